from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from booking.database import get_db
from booking.dependencies import get_dispatch_engine, get_lifecycle
from booking.errors import NotFoundError, ProcessingError, ValidationError
from booking.models import User
from booking.schemas.booking import (
    BookingCreate,
    BookingCreated,
    DispatchAccepted,
    EndJobRequest,
    NotCarriedOutRequest,
    ReopenRequest,
    ReopenResponse,
    TransitionResponse,
)
from booking.services.dispatch_service import DispatchEngine
from booking.services.lifecycle_service import JobLifecycle
from booking.utils.timeutil import from_iso, now_utc

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _completion_instant(value: str | None) -> datetime:
    if not value:
        return now_utc()
    try:
        return from_iso(value)
    except ValueError as exc:
        raise ValidationError("completed_at", "Expected YYYY-MM-DDTHH:MM:SSZ") from exc


# Routes that send pushes are plain functions; FastAPI runs them in its threadpool.
@router.post("", response_model=BookingCreated, status_code=201)
def create_booking(
    req: BookingCreate,
    db: Session = Depends(get_db),
    lifecycle: JobLifecycle = Depends(get_lifecycle),
):
    customer = db.query(User).filter(User.id == req.customer_id).first()
    if not customer:
        raise NotFoundError("User", req.customer_id)

    data = req.model_dump(exclude={"customer_id"})
    job = lifecycle.create_booking(customer, data)
    return BookingCreated(
        id=job.id,
        status=job.status,
        due=job.due,
        will_expire_at=job.will_expire_at,
    )


@router.post("/{job_id}/end", response_model=TransitionResponse)
async def end_job(
    job_id: str,
    req: EndJobRequest,
    lifecycle: JobLifecycle = Depends(get_lifecycle),
):
    lifecycle.end_job(job_id, _completion_instant(req.completed_at), req.user_id)
    return TransitionResponse(status="success")


@router.post("/{job_id}/not-carried-out", response_model=TransitionResponse)
async def customer_not_call(
    job_id: str,
    req: NotCarriedOutRequest,
    lifecycle: JobLifecycle = Depends(get_lifecycle),
):
    try:
        lifecycle.mark_not_carried_out(job_id, _completion_instant(req.completed_at))
    except ProcessingError as exc:
        return TransitionResponse(status="error", message=exc.message)
    return TransitionResponse(status="success")


@router.post("/{job_id}/reopen", response_model=ReopenResponse)
def reopen(
    job_id: str,
    req: ReopenRequest,
    lifecycle: JobLifecycle = Depends(get_lifecycle),
):
    new_job_id = lifecycle.reopen(job_id, req.translator_id)
    return ReopenResponse(id=new_job_id, reopened_from=job_id)


@router.post("/{job_id}/dispatch", response_model=DispatchAccepted, status_code=202)
def dispatch(job_id: str, engine: DispatchEngine = Depends(get_dispatch_engine)):
    engine.dispatch_for_job(job_id)
    return DispatchAccepted(job_id=job_id)
