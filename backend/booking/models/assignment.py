from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from booking.database import Base


class TranslatorAssignment(Base):
    __tablename__ = "translator_job_rel"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, ForeignKey("users.id"), nullable=False)
    will_expire_at = Column(Text)
    cancel_at = Column(Text)
    completed_at = Column(Text)
    completed_by = Column(Text)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="assignments")
    translator = relationship("User")

    @property
    def is_active(self) -> bool:
        return self.cancel_at is None and self.completed_at is None
