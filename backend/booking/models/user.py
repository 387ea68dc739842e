from sqlalchemy import Column, ForeignKey, Integer, Table, Text
from sqlalchemy.orm import relationship
from booking.database import Base

user_languages = Table(
    "user_languages",
    Base.metadata,
    Column("user_id", Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("lang_id", Text, ForeignKey("languages.id", ondelete="CASCADE"), primary_key=True),
)

users_blacklist = Table(
    "users_blacklist",
    Base.metadata,
    Column("user_id", Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("translator_id", Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    user_type = Column(Text, nullable=False)
    status = Column(Integer, nullable=False, default=1)
    created_at = Column(Text, nullable=False)

    meta = relationship("UserMeta", uselist=False, back_populates="user")
    languages = relationship("Language", secondary=user_languages)
    jobs = relationship("Job", back_populates="customer")

    @property
    def is_customer(self) -> bool:
        return self.user_type == "customer"

    @property
    def is_translator(self) -> bool:
        return self.user_type == "translator"


class UserMeta(Base):
    """Customer details and translator profile, one row per user."""

    __tablename__ = "user_meta"

    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    consumer_type = Column(Text)
    customer_type = Column(Text)
    city = Column(Text)
    translator_type = Column(Text)
    gender = Column(Text)
    translator_level = Column(Text)
    town = Column(Text)
    not_get_notification = Column(Text, nullable=False, default="no")
    not_get_emergency = Column(Text, nullable=False, default="no")
    not_get_nighttime = Column(Text, nullable=False, default="no")

    user = relationship("User", back_populates="meta")
