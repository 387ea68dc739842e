from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from booking.database import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    created_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="feedback")
