from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking.config import settings
from booking.database import get_db
from booking.errors import NotFoundError
from booking.models import User
from booking.schemas.job import JobResponse, UserJobsHistoryResponse, UserJobsResponse
from booking.services.eligibility_service import TranslatorEligibility
from booking.services.user_jobs_service import get_users_jobs, get_users_jobs_history
from booking.utils.serializers import job_to_response

router = APIRouter(prefix="/users/{user_id}", tags=["users"])


@router.get("/jobs", response_model=UserJobsResponse)
async def users_jobs(user_id: str, db: Session = Depends(get_db)):
    result = get_users_jobs(db, user_id)
    return UserJobsResponse(
        user_type=result["user_type"],
        emergency_jobs=[job_to_response(j) for j in result["emergency_jobs"]],
        normal_jobs=[job_to_response(j) for j in result["normal_jobs"]],
    )


@router.get("/jobs/history", response_model=UserJobsHistoryResponse)
async def users_jobs_history(
    user_id: str,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    result = get_users_jobs_history(db, user_id, page=page, per_page=settings.page_size)
    return UserJobsHistoryResponse(
        user_type=result["user_type"],
        jobs=[job_to_response(j) for j in result["jobs"]],
        total=result["total"],
        page=result["page"],
        num_pages=result["num_pages"],
    )


@router.get("/potential-jobs", response_model=list[JobResponse])
async def potential_jobs(user_id: str, db: Session = Depends(get_db)):
    translator = db.query(User).filter(User.id == user_id, User.user_type == "translator").first()
    if not translator:
        raise NotFoundError("Translator", user_id)
    eligibility = TranslatorEligibility(
        db,
        business_hours=(settings.business_hours_start, settings.business_hours_end),
    )
    return [job_to_response(j) for j in eligibility.potential_jobs(translator)]
