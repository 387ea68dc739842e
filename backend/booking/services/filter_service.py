"""
Admin job listing filters.

Each filter is a small predicate object; `apply_filters` folds them left to
right onto a SQLAlchemy query. A predicate built from an empty request value
leaves the query untouched, so callers can build the full list unconditionally.
"""
from dataclasses import dataclass
from functools import reduce

from sqlalchemy import exists, select
from sqlalchemy.orm import Query

from booking.models import Feedback, Job, TranslatorAssignment, User, UserMeta


class JobPredicate:
    def apply(self, query: Query) -> Query:
        raise NotImplementedError


def apply_filters(query: Query, predicates: list[JobPredicate]) -> Query:
    return reduce(lambda q, predicate: predicate.apply(q), predicates, query)


@dataclass
class ById(JobPredicate):
    ids: list[str]

    def apply(self, query):
        return query.filter(Job.id.in_(self.ids)) if self.ids else query


@dataclass
class ByLanguages(JobPredicate):
    language_ids: list[str]

    def apply(self, query):
        return query.filter(Job.from_language_id.in_(self.language_ids)) if self.language_ids else query


@dataclass
class ByStatuses(JobPredicate):
    statuses: list[str]

    def apply(self, query):
        return query.filter(Job.status.in_(self.statuses)) if self.statuses else query


@dataclass
class ByJobTypes(JobPredicate):
    job_types: list[str]

    def apply(self, query):
        return query.filter(Job.job_type.in_(self.job_types)) if self.job_types else query


@dataclass
class WillExpireFrom(JobPredicate):
    instant: str | None

    def apply(self, query):
        return query.filter(Job.will_expire_at >= self.instant) if self.instant else query


@dataclass
class ExpiredBefore(JobPredicate):
    instant: str | None

    def apply(self, query):
        return query.filter(Job.will_expire_at < self.instant) if self.instant else query


@dataclass
class TimeWindow(JobPredicate):
    """`time_type` is "created" or "due"; `to` is a date, inclusive to 23:59."""

    time_type: str | None
    start: str | None = None
    to: str | None = None

    def apply(self, query):
        if self.time_type not in ("created", "due"):
            return query
        col = Job.created_at if self.time_type == "created" else Job.due
        if self.start:
            query = query.filter(col >= self.start)
        if self.to:
            query = query.filter(col <= f"{self.to}T23:59:00Z")
        return query.order_by(col.desc())


@dataclass
class ByPhysical(JobPredicate):
    physical: str | None

    def apply(self, query):
        if self.physical is None:
            return query
        return query.filter(Job.customer_physical_type == self.physical).filter(Job.ignore_physical == 0)


@dataclass
class ByPhone(JobPredicate):
    phone: str | None
    physical: str | None = None

    def apply(self, query):
        if self.phone is None:
            return query
        query = query.filter(Job.customer_phone_type == self.phone)
        if self.physical is not None:
            query = query.filter(Job.ignore_physical_phone == 0)
        return query


@dataclass
class ByFlagged(JobPredicate):
    flagged: int | None

    def apply(self, query):
        if self.flagged is None:
            return query
        return query.filter(Job.flagged == self.flagged).filter(Job.ignore_flagged == 0)


@dataclass
class ByBookingType(JobPredicate):
    booking_type: str | None

    def apply(self, query):
        if self.booking_type == "physical":
            return query.filter(Job.customer_physical_type == "yes")
        if self.booking_type == "phone":
            return query.filter(Job.customer_phone_type == "yes")
        return query


@dataclass
class ByCustomerEmails(JobPredicate):
    emails: list[str]

    def apply(self, query):
        emails = [e for e in self.emails if e]
        if not emails:
            return query
        customer_ids = select(User.id).where(User.email.in_(emails))
        return query.filter(Job.user_id.in_(customer_ids))


@dataclass
class ByTranslatorEmails(JobPredicate):
    emails: list[str]

    def apply(self, query):
        emails = [e for e in self.emails if e]
        if not emails:
            return query
        job_ids = (
            select(TranslatorAssignment.job_id)
            .join(User, User.id == TranslatorAssignment.user_id)
            .where(TranslatorAssignment.cancel_at.is_(None))
            .where(User.email.in_(emails))
        )
        return query.filter(Job.id.in_(job_ids))


@dataclass
class ByConsumerType(JobPredicate):
    consumer_type: str | None

    def apply(self, query):
        if not self.consumer_type:
            return query
        customer_ids = select(UserMeta.user_id).where(UserMeta.consumer_type == self.consumer_type)
        return query.filter(Job.user_id.in_(customer_ids))


@dataclass
class LowFeedback(JobPredicate):
    """Jobs with a rating of 3 or less, unless feedback is ignored."""

    enabled: bool

    def apply(self, query):
        if not self.enabled:
            return query
        low = exists().where(Feedback.job_id == Job.id).where(Feedback.rating <= 3)
        return query.filter(Job.ignore_feedback == 0).filter(low)


@dataclass
class SessionTimeAlert(JobPredicate):
    """Sessions that ran at least twice the booked duration."""

    def apply(self, query):
        return query.filter(Job.session_time.isnot(None)).filter(Job.session_time >= Job.duration * 2)


@dataclass
class NotIgnored(JobPredicate):
    flag: str

    def apply(self, query):
        return query.filter(getattr(Job, self.flag) == 0)
