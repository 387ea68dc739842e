import logging
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.orm import Session

from booking.errors import NotificationDeliveryError
from booking.models import Job, User
from booking.services.eligibility_service import TranslatorEligibility
from booking.utils.job_for import JobFor
from booking.utils.timeutil import from_iso

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, recipients: list[str], job_id: str, payload: dict, message: str, delay: bool): ...


@dataclass
class DispatchResult:
    job_id: str
    immediate: list[str] = field(default_factory=list)
    delayed: list[str] = field(default_factory=list)
    payload: dict = field(default_factory=dict)
    message: str = ""
    receipts: list = field(default_factory=list)


def build_payload(job: Job) -> dict:
    due = from_iso(job.due)
    customer_meta = job.customer.meta if job.customer else None
    return {
        "job_id": job.id,
        "from_language_id": job.from_language_id,
        "language": job.language.language if job.language else job.from_language_id,
        "immediate": job.immediate,
        "duration": job.duration,
        "status": job.status,
        "gender": job.gender,
        "certified": job.certified,
        "due": job.due,
        "due_date": due.strftime("%m/%d/%Y"),
        "due_time": due.strftime("%H:%M"),
        "job_type": job.job_type,
        "customer_phone_type": job.customer_phone_type,
        "customer_physical_type": job.customer_physical_type,
        "customer_town": customer_meta.city if customer_meta else None,
        "customer_type": customer_meta.customer_type if customer_meta else None,
        "job_for": JobFor.from_columns(job.gender, job.certified).to_tags(),
        "notification_type": "suitable_job",
    }


def compose_message(payload: dict) -> str:
    if payload["immediate"] == "no":
        due = from_iso(payload["due"]).strftime("%Y-%m-%d %H:%M")
        return f"New booking for {payload['language']} interpreter, {payload['duration']} min, due {due}"
    return f"New urgent booking for {payload['language']} interpreter, {payload['duration']} min"


class DispatchEngine:
    def __init__(
        self,
        db: Session,
        notifier: Notifier,
        eligibility: TranslatorEligibility,
        notify_empty_batches: bool = True,
        log: logging.Logger | None = None,
    ):
        self.db = db
        self.notifier = notifier
        self.eligibility = eligibility
        self.notify_empty_batches = notify_empty_batches
        self.log = log or logger

    def candidates(self, excluded_user_id: str | None = None) -> list[User]:
        query = (
            self.db.query(User)
            .filter(User.user_type == "translator")
            .filter(User.status == 1)
        )
        if excluded_user_id is not None:
            query = query.filter(User.id != excluded_user_id)
        return query.order_by(User.created_at.asc(), User.id.asc()).all()

    def partition(self, job: Job, excluded_user_id: str | None = None) -> tuple[list[str], list[str]]:
        immediate: list[str] = []
        delayed: list[str] = []
        for translator in self.candidates(excluded_user_id):
            reason = self.eligibility.rejection_reason(translator, job)
            if reason is not None:
                self.log.debug("Translator %s skipped for job %s: %s", translator.id, job.id, reason)
                continue
            if self.eligibility.needs_delay(translator):
                delayed.append(translator.id)
            else:
                immediate.append(translator.id)
        return immediate, delayed

    def _send(self, result: DispatchResult, recipients: list[str], delay: bool):
        if not recipients and not self.notify_empty_batches:
            return
        try:
            receipt = self.notifier.send(recipients, result.job_id, result.payload, result.message, delay)
        except NotificationDeliveryError as exc:
            self.log.error("Push delivery failed for job %s (delay=%s): %s", result.job_id, delay, exc)
            return
        except Exception:
            # each batch is attempted on its own
            self.log.exception("Push send raised for job %s (delay=%s)", result.job_id, delay)
            return
        result.receipts.append(receipt)

    def dispatch(self, job: Job, excluded_user_id: str | None = None) -> DispatchResult:
        immediate, delayed = self.partition(job, excluded_user_id)
        payload = build_payload(job)
        result = DispatchResult(
            job_id=job.id,
            immediate=immediate,
            delayed=delayed,
            payload=payload,
            message=compose_message(payload),
        )
        self.log.info(
            "Push send for job %s: %d immediate, %d delayed",
            job.id, len(immediate), len(delayed),
        )
        self._send(result, immediate, delay=False)
        self._send(result, delayed, delay=True)
        return result

    def dispatch_for_job(self, job_id: str, excluded_user_id: str | None = None) -> DispatchResult | None:
        """Fire-and-forget fan-out; failures are logged, never raised."""
        try:
            job = self.db.query(Job).filter(Job.id == job_id).first()
            if not job:
                self.log.warning("Dispatch requested for unknown job %s", job_id)
                return None
            return self.dispatch(job, excluded_user_id)
        except Exception:
            self.log.exception("Dispatch failed for job %s", job_id)
            return None
