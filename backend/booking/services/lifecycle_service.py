import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Mapping

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.errors import NotFoundError, PastDateError, ProcessingError, StorageError, ValidationError
from booking.models import Job, Language, TranslatorAssignment, User
from booking.services.dispatch_service import DispatchEngine
from booking.services.expiration_service import will_expire_at
from booking.utils.job_for import JobFor
from booking.utils.timeutil import from_iso, now_utc, parse_due, to_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEnded:
    job_id: str
    user_id: str | None
    session_time: int


def publish_session_ended(event: SessionEnded, log: logging.Logger | None = None):
    """Default consumer: records the event on the service log."""
    (log or logger).info(
        "Session ended for job %s by %s after %d min",
        event.job_id, event.user_id, event.session_time,
    )


def _is_empty(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_missing_field(data: Mapping) -> str | None:
    """Name of the first required booking field that is missing, if any."""
    if _is_empty(data.get("from_language_id")):
        return "from_language_id"
    immediate = data.get("immediate") or "no"
    if immediate not in ("yes", "no"):
        return "immediate"
    if immediate == "no":
        for name in ("due_date", "due_time", "duration"):
            if _is_empty(data.get(name)):
                return name
    elif _is_empty(data.get("duration")):
        return "duration"
    if data.get("customer_phone_type") is None and data.get("customer_physical_type") is None:
        return "customer_phone_type"
    return None


def job_type_for_consumer(consumer_type: str | None) -> str:
    return "rws" if consumer_type == "rwsconsumer" else "unpaid"


class JobLifecycle:
    def __init__(
        self,
        db: Session,
        dispatcher: DispatchEngine | None = None,
        on_session_ended: Callable[[SessionEnded], None] = publish_session_ended,
        clock: Callable[[], datetime] = now_utc,
        immediate_due_minutes: int = 5,
        log: logging.Logger | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.on_session_ended = on_session_ended
        self.clock = clock
        self.immediate_due_minutes = immediate_due_minutes
        self.log = log or logger

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        except Exception:
            self.db.rollback()
            raise

    def _lock_job(self, job_id: str) -> Job:
        job = self.db.query(Job).filter(Job.id == job_id).with_for_update().first()
        if not job:
            raise NotFoundError("Job", job_id)
        return job

    def _active_assignment(self, job_id: str) -> TranslatorAssignment | None:
        return (
            self.db.query(TranslatorAssignment)
            .filter(TranslatorAssignment.job_id == job_id)
            .filter(TranslatorAssignment.cancel_at.is_(None))
            .filter(TranslatorAssignment.completed_at.is_(None))
            .with_for_update()
            .first()
        )

    def _dispatch(self, job_id: str):
        if self.dispatcher is not None:
            self.dispatcher.dispatch_for_job(job_id)

    # --- create ---

    def _due(self, data: Mapping, now: datetime) -> datetime:
        if (data.get("immediate") or "no") == "yes":
            return now + timedelta(minutes=self.immediate_due_minutes)
        try:
            due = parse_due(str(data["due_date"]).strip(), str(data["due_time"]).strip())
        except ValueError as exc:
            raise ValidationError("due_date", "Invalid due date or time") from exc
        if due <= now:
            raise PastDateError()
        return due

    def create_booking(self, customer: User, data: Mapping) -> Job:
        if not customer.is_customer:
            raise ValidationError("user_type", "Translator cannot create booking")

        missing = first_missing_field(data)
        if missing == "immediate":
            raise ValidationError("immediate", "Immediate must be 'yes' or 'no'")
        if missing:
            raise ValidationError(missing)
        immediate = data.get("immediate") or "no"
        try:
            duration = int(data["duration"])
        except (TypeError, ValueError) as exc:
            raise ValidationError("duration", "Duration must be a number of minutes") from exc
        if duration <= 0:
            raise ValidationError("duration", "Duration must be a number of minutes")

        language = self.db.query(Language).filter(Language.id == data["from_language_id"]).first()
        if not language:
            raise ValidationError("from_language_id", "Unknown language")

        now = self.clock()
        due = self._due(data, now)
        job_for = JobFor.from_tags(data.get("job_for"))
        consumer_type = customer.meta.consumer_type if customer.meta else None
        now_iso = to_iso(now)

        job = Job(
            id=str(uuid.uuid4()),
            user_id=customer.id,
            from_language_id=language.id,
            immediate=immediate,
            due=to_iso(due),
            duration=duration,
            status="pending",
            gender=job_for.gender_value,
            certified=job_for.certified_value,
            job_type=job_type_for_consumer(consumer_type),
            customer_phone_type=data.get("customer_phone_type") or "no",
            customer_physical_type=data.get("customer_physical_type") or "no",
            will_expire_at=to_iso(will_expire_at(due, now)),
            b_created_at=now_iso,
            by_admin=data.get("by_admin") or "no",
            created_at=now_iso,
            updated_at=now_iso,
        )
        with self._transaction():
            self.db.add(job)

        self.log.info("User #%s created a new booking: %s", customer.id, job.id)
        self._dispatch(job.id)
        return job

    # --- completion ---

    def end_job(self, job_id: str, completed_at: datetime, acting_user_id: str) -> Job:
        with self._transaction():
            job = self._lock_job(job_id)
            session_time = int((completed_at - from_iso(job.due)).total_seconds() / 60)
            completed_iso = to_iso(completed_at)

            job.end_at = completed_iso
            job.status = "completed"
            job.session_time = session_time
            job.updated_at = to_iso(self.clock())

            assignment = self._active_assignment(job.id)
            if acting_user_id == job.user_id:
                responsible = job.user_id
            elif assignment is not None:
                responsible = assignment.user_id
            else:
                responsible = job.assignments[-1].user_id if job.assignments else None

            if assignment is not None:
                assignment.completed_at = completed_iso
                assignment.completed_by = acting_user_id
                assignment.updated_at = job.updated_at

        if session_time > 0:
            self.on_session_ended(SessionEnded(job_id=job.id, user_id=responsible, session_time=session_time))
        return job

    def mark_not_carried_out(self, job_id: str, completed_at: datetime) -> Job:
        try:
            with self._transaction():
                job = self._lock_job(job_id)
                assignment = self._active_assignment(job.id)
                if assignment is None:
                    raise NotFoundError("Active assignment for job", job_id)

                completed_iso = to_iso(completed_at)
                job.end_at = completed_iso
                job.status = "not_carried_out_by_customer"
                job.updated_at = to_iso(self.clock())
                assignment.completed_at = completed_iso
                assignment.completed_by = assignment.user_id
                assignment.updated_at = job.updated_at
        except Exception as exc:
            self.log.exception("Error marking job %s as not carried out", job_id)
            raise ProcessingError() from exc
        return job

    # --- reopen ---

    def _replicate(self, job: Job, now_iso: str, expires_iso: str) -> Job:
        values = {
            attr.key: getattr(job, attr.key)
            for attr in inspect(Job).column_attrs
            if attr.key != "id"
        }
        values.update(
            id=str(uuid.uuid4()),
            status="pending",
            created_at=now_iso,
            updated_at=now_iso,
            will_expire_at=expires_iso,
            cust_16_hour_email=0,
            cust_48_hour_email=0,
            admin_comments=f"This booking is a reopening of booking #{job.id}",
        )
        return Job(**values)

    def reopen(self, job_id: str, translator_id: str) -> str:
        """
        Put a job back on offer. Returns the id of the job now pending.

        A timed-out job is left as it is and a copy becomes the pending
        booking; any other job is reset in place. Either way the original's
        open assignments are cancelled, and the acting translator gets an
        assignment on the pending job that is recorded as already cancelled.
        """
        with self._transaction():
            job = self._lock_job(job_id)
            translator = self.db.query(User).filter(User.id == translator_id).first()
            if not translator:
                raise NotFoundError("Translator", translator_id)

            now = self.clock()
            now_iso = to_iso(now)
            expires_iso = to_iso(will_expire_at(from_iso(job.due), now))

            if job.status != "timed_out":
                job.status = "pending"
                job.created_at = now_iso
                job.updated_at = now_iso
                job.will_expire_at = expires_iso
                target = job
            else:
                target = self._replicate(job, now_iso, expires_iso)
                self.db.add(target)

            (
                self.db.query(TranslatorAssignment)
                .filter(TranslatorAssignment.job_id == job.id)
                .filter(TranslatorAssignment.cancel_at.is_(None))
                .update({"cancel_at": now_iso, "updated_at": now_iso}, synchronize_session="fetch")
            )
            self.db.add(TranslatorAssignment(
                id=str(uuid.uuid4()),
                job_id=target.id,
                user_id=translator.id,
                will_expire_at=expires_iso,
                cancel_at=now_iso,
                created_at=now_iso,
                updated_at=now_iso,
            ))

        if target.id == job_id:
            self.log.info("Job %s reopened in place by translator %s", job_id, translator_id)
        else:
            self.log.info("Timed-out job %s reopened as %s by translator %s", job_id, target.id, translator_id)
        self._dispatch(target.id)
        return target.id
