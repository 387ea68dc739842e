from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from booking.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id"), nullable=False)
    from_language_id = Column(Text, ForeignKey("languages.id"), nullable=False)
    immediate = Column(Text, nullable=False, default="no")
    due = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    gender = Column(Text)
    certified = Column(Text)
    job_type = Column(Text, nullable=False, default="unpaid")
    customer_phone_type = Column(Text, nullable=False, default="no")
    customer_physical_type = Column(Text, nullable=False, default="no")
    will_expire_at = Column(Text, nullable=False)
    b_created_at = Column(Text)
    end_at = Column(Text)
    session_time = Column(Integer)
    by_admin = Column(Text, nullable=False, default="no")
    admin_comments = Column(Text)
    cust_16_hour_email = Column(Integer, nullable=False, default=0)
    cust_48_hour_email = Column(Integer, nullable=False, default=0)
    ignore = Column(Integer, nullable=False, default=0)
    ignore_expired = Column(Integer, nullable=False, default=0)
    ignore_feedback = Column(Integer, nullable=False, default=0)
    ignore_physical = Column(Integer, nullable=False, default=0)
    ignore_physical_phone = Column(Integer, nullable=False, default=0)
    ignore_flagged = Column(Integer, nullable=False, default=0)
    flagged = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    customer = relationship("User", back_populates="jobs")
    language = relationship("Language")
    assignments = relationship(
        "TranslatorAssignment",
        back_populates="job",
        order_by="TranslatorAssignment.created_at",
    )
    feedback = relationship("Feedback", back_populates="job", cascade="all, delete-orphan")

    @property
    def is_immediate(self) -> bool:
        return self.immediate == "yes"
