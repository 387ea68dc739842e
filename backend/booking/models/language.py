from sqlalchemy import Column, Integer, Text
from booking.database import Base


class Language(Base):
    __tablename__ = "languages"

    id = Column(Text, primary_key=True)
    language = Column(Text, nullable=False)
    active = Column(Integer, nullable=False, default=1)
