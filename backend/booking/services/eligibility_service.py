"""
Which translators may be offered a job.

A translator is eligible when every check passes:

* they have not opted out of pushes (or of urgent pushes, for immediate jobs);
* the job is among the jobs they can structurally see: matching job type,
  a language they speak, status pending, a gender and certification level
  they satisfy;
* a physical-only job is in their town;
* the assignment-compatibility and particular-job-acceptance strategies
  both allow it.

The two strategies stand in for business rules held elsewhere. Each is a
callable `(db, translator, job, now) -> bool`; returning False excludes the
translator.
"""
from datetime import datetime, timedelta
from typing import Callable, Protocol

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from booking.models import Job, TranslatorAssignment, User, users_blacklist
from booking.utils.timeutil import from_iso, is_business_time, now_utc

TRANSLATOR_JOB_TYPES = {
    "professional": "paid",
    "rwstranslator": "rws",
    "volunteer": "unpaid",
}

CERTIFIED_LEVELS = {"certified", "certified_in_law", "certified_in_health"}


class AssignmentCompatibility(Protocol):
    def __call__(self, db: Session, translator: User, job: Job, now: datetime) -> bool: ...


class ParticularJobAcceptance(Protocol):
    def __call__(self, db: Session, translator: User, job: Job, now: datetime) -> bool: ...


def translator_job_type(translator_type: str | None) -> str:
    return TRANSLATOR_JOB_TYPES.get(translator_type or "", "unpaid")


def allowed_certifications(translator_level: str | None) -> list[str]:
    """Stored `jobs.certified` codes a translator at this level may take."""
    allowed = ["normal", "both"]
    if translator_level in CERTIFIED_LEVELS:
        allowed.append("yes")
    if translator_level == "certified_in_law":
        allowed.append("law")
    if translator_level == "certified_in_health":
        allowed.append("health")
    return allowed


def _job_window(job: Job) -> tuple[datetime, datetime]:
    start = from_iso(job.due)
    return start, start + timedelta(minutes=job.duration or 0)


def no_blocking_assignment(db: Session, translator: User, job: Job, now: datetime) -> bool:
    """Nobody holds the job yet and the translator is free for its time slot."""
    taken = (
        db.query(TranslatorAssignment)
        .filter(TranslatorAssignment.job_id == job.id)
        .filter(TranslatorAssignment.cancel_at.is_(None))
        .filter(TranslatorAssignment.completed_at.is_(None))
        .first()
    )
    if taken:
        return False

    start, end = _job_window(job)
    held = (
        db.query(Job)
        .join(TranslatorAssignment, TranslatorAssignment.job_id == Job.id)
        .filter(TranslatorAssignment.user_id == translator.id)
        .filter(TranslatorAssignment.cancel_at.is_(None))
        .filter(TranslatorAssignment.completed_at.is_(None))
        .filter(Job.id != job.id)
        .all()
    )
    for other in held:
        other_start, other_end = _job_window(other)
        if other_start < end and start < other_end:
            return False
    return True


def customer_accepts_translator(db: Session, translator: User, job: Job, now: datetime) -> bool:
    """The job is still upcoming and the customer has not blacklisted the translator."""
    if from_iso(job.due) <= now:
        return False
    blacklisted = (
        db.query(users_blacklist)
        .filter(users_blacklist.c.user_id == job.user_id)
        .filter(users_blacklist.c.translator_id == translator.id)
        .first()
    )
    return blacklisted is None


def towns_match(customer: User | None, translator: User) -> bool:
    city = (customer.meta.city if customer and customer.meta else None) or ""
    town = (translator.meta.town if translator.meta else None) or ""
    return bool(city.strip()) and city.strip().lower() == town.strip().lower()


def passes_town_check(job: Job, translator: User) -> bool:
    is_physical_job = job.customer_physical_type == "yes"
    phone_allowed = job.customer_phone_type not in ("no", "", None)
    return not (is_physical_job and not towns_match(job.customer, translator) and not phone_allowed)


class TranslatorEligibility:
    def __init__(
        self,
        db: Session,
        assignment_check: AssignmentCompatibility = no_blocking_assignment,
        acceptance_check: ParticularJobAcceptance = customer_accepts_translator,
        clock: Callable[[], datetime] = now_utc,
        business_hours: tuple[int, int] = (8, 20),
    ):
        self.db = db
        self.assignment_check = assignment_check
        self.acceptance_check = acceptance_check
        self.clock = clock
        self.business_hours = business_hours

    def wants_push(self, translator: User, job: Job) -> bool:
        meta = translator.meta
        if meta is None:
            return True
        if meta.not_get_notification == "yes":
            return False
        if job.is_immediate and meta.not_get_emergency == "yes":
            return False
        return True

    def _potential_jobs_query(self, translator: User) -> Query | None:
        meta = translator.meta
        if meta is None:
            return None
        language_ids = [lang.id for lang in translator.languages]
        return (
            self.db.query(Job)
            .filter(Job.job_type == translator_job_type(meta.translator_type))
            .filter(Job.status == "pending")
            .filter(Job.from_language_id.in_(language_ids))
            .filter(or_(Job.gender.is_(None), Job.gender == meta.gender))
            .filter(or_(Job.certified.is_(None), Job.certified.in_(allowed_certifications(meta.translator_level))))
        )

    def potential_jobs(self, translator: User) -> list[Job]:
        """Pending jobs this translator could be offered, in due order."""
        query = self._potential_jobs_query(translator)
        if query is None:
            return []
        jobs = query.order_by(Job.due.asc()).all()
        return [job for job in jobs if passes_town_check(job, translator)]

    def rejection_reason(self, translator: User, job: Job) -> str | None:
        if not self.wants_push(translator, job):
            return "opted_out"

        query = self._potential_jobs_query(translator)
        if query is None or query.filter(Job.id == job.id).first() is None:
            return "not_a_potential_job"
        if not passes_town_check(job, translator):
            return "town_mismatch"

        now = self.clock()
        if not self.assignment_check(self.db, translator, job, now):
            return "assignment_conflict"
        if not self.acceptance_check(self.db, translator, job, now):
            return "cannot_accept_job"
        return None

    def is_eligible(self, translator: User, job: Job) -> bool:
        return self.rejection_reason(translator, job) is None

    def needs_delay(self, translator: User) -> bool:
        """Nighttime opt-out translators get pushes held until business hours."""
        meta = translator.meta
        if meta is None or meta.not_get_nighttime != "yes":
            return False
        start, end = self.business_hours
        return not is_business_time(self.clock(), start, end)
