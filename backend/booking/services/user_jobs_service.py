import math

from sqlalchemy import false
from sqlalchemy.orm import Session

from booking.errors import NotFoundError
from booking.models import Job, TranslatorAssignment, User

CURRENT_STATUSES = ("pending", "assigned", "started")
HISTORY_STATUSES = ("completed", "withdrawn_before_24", "withdrawn_after_24", "timed_out")


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def _translator_jobs(db: Session, user_id: str):
    return (
        db.query(Job)
        .join(TranslatorAssignment, TranslatorAssignment.job_id == Job.id)
        .filter(TranslatorAssignment.user_id == user_id)
    )


def get_users_jobs(db: Session, user_id: str) -> dict:
    """Current jobs of a customer or translator, split into urgent and normal."""
    user = _get_user(db, user_id)
    if user.is_customer:
        jobs = (
            db.query(Job)
            .filter(Job.user_id == user.id)
            .filter(Job.status.in_(CURRENT_STATUSES))
            .order_by(Job.due.asc())
            .all()
        )
    elif user.is_translator:
        jobs = (
            _translator_jobs(db, user.id)
            .filter(TranslatorAssignment.cancel_at.is_(None))
            .filter(TranslatorAssignment.completed_at.is_(None))
            .order_by(Job.due.asc())
            .all()
        )
    else:
        jobs = []

    emergency = [j for j in jobs if j.is_immediate]
    normal = sorted((j for j in jobs if not j.is_immediate), key=lambda j: j.due)
    return {
        "user_type": user.user_type,
        "emergency_jobs": emergency,
        "normal_jobs": normal,
    }


def get_users_jobs_history(db: Session, user_id: str, page: int = 1, per_page: int = 15) -> dict:
    user = _get_user(db, user_id)
    if user.is_customer:
        query = (
            db.query(Job)
            .filter(Job.user_id == user.id)
            .filter(Job.status.in_(HISTORY_STATUSES))
        )
    elif user.is_translator:
        query = _translator_jobs(db, user.id).filter(TranslatorAssignment.completed_at.isnot(None))
    else:
        query = db.query(Job).filter(false())

    total = query.count()
    jobs = query.order_by(Job.due.desc()).offset((page - 1) * per_page).limit(per_page).all()
    return {
        "user_type": user.user_type,
        "jobs": jobs,
        "total": total,
        "page": page,
        "num_pages": math.ceil(total / per_page),
    }
