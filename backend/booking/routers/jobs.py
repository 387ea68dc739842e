from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking.config import settings
from booking.database import get_db
from booking.errors import NotFoundError
from booking.models import Job
from booking.schemas.job import JobCountResponse, JobListResponse, JobResponse
from booking.services.filter_service import (
    ById,
    ByBookingType,
    ByConsumerType,
    ByCustomerEmails,
    ByFlagged,
    ByJobTypes,
    ByLanguages,
    ByPhone,
    ByPhysical,
    ByStatuses,
    ByTranslatorEmails,
    ExpiredBefore,
    LowFeedback,
    NotIgnored,
    SessionTimeAlert,
    TimeWindow,
    WillExpireFrom,
    apply_filters,
)
from booking.utils.serializers import job_to_response
from booking.utils.timeutil import now_utc, to_iso

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _paginate(query, page: int) -> JobListResponse:
    per_page = settings.page_size
    total = query.count()
    jobs = query.order_by(Job.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()
    return JobListResponse(
        jobs=[job_to_response(j) for j in jobs],
        total=total,
        page=page,
        per_page=per_page,
    )


def _get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job", job_id)
    return job


@router.get("", response_model=JobListResponse | JobCountResponse)
async def list_jobs(
    id: list[str] = Query([]),
    lang: list[str] = Query([]),
    status: list[str] = Query([]),
    job_type: list[str] = Query([]),
    customer_email: list[str] = Query([]),
    translator_email: list[str] = Query([]),
    will_expire_at: str | None = None,
    filter_timetype: str | None = Query(None, pattern="^(created|due)$"),
    time_from: str | None = Query(None, alias="from"),
    time_to: str | None = Query(None, alias="to"),
    physical: str | None = None,
    phone: str | None = None,
    flagged: int | None = None,
    booking_type: str | None = Query(None, pattern="^(physical|phone)$"),
    consumer_type: str | None = None,
    feedback: bool = False,
    count: bool = False,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = apply_filters(db.query(Job), [
        LowFeedback(feedback),
        ById(id),
        ByLanguages(lang),
        ByStatuses(status),
        WillExpireFrom(will_expire_at),
        ByCustomerEmails(customer_email),
        ByTranslatorEmails(translator_email),
        TimeWindow(filter_timetype, time_from, time_to),
        ByJobTypes(job_type),
        ByPhysical(physical),
        ByPhone(phone, physical),
        ByFlagged(flagged),
        ByBookingType(booking_type),
        ByConsumerType(consumer_type),
    ])
    if count:
        return JobCountResponse(count=query.count())
    return _paginate(query, page)


@router.get("/alerts", response_model=JobListResponse)
async def alerts(
    lang: list[str] = Query([]),
    status: list[str] = Query([]),
    job_type: list[str] = Query([]),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = apply_filters(db.query(Job), [
        SessionTimeAlert(),
        ByLanguages(lang),
        ByStatuses(status),
        ByJobTypes(job_type),
        NotIgnored("ignore"),
    ])
    return _paginate(query, page)


@router.get("/expired-unaccepted", response_model=JobListResponse)
async def expired_unaccepted(
    lang: list[str] = Query([]),
    job_type: list[str] = Query([]),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = apply_filters(db.query(Job), [
        ByStatuses(["pending"]),
        ExpiredBefore(to_iso(now_utc())),
        ByLanguages(lang),
        ByJobTypes(job_type),
        NotIgnored("ignore_expired"),
    ])
    return _paginate(query, page)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, db: Session = Depends(get_db)):
    return job_to_response(_get_job_or_404(db, job_id))


@router.post("/{job_id}/ignore-expiring")
async def ignore_expiring(job_id: str, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)
    job.ignore = 1
    job.updated_at = to_iso(now_utc())
    db.commit()
    return {"message": "Changes saved"}


@router.post("/{job_id}/ignore-expired")
async def ignore_expired(job_id: str, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)
    job.ignore_expired = 1
    job.updated_at = to_iso(now_utc())
    db.commit()
    return {"message": "Changes saved"}
