from booking.models import Job
from booking.schemas.job import JobResponse
from booking.utils.formatting import convert_to_hours_mins
from booking.utils.job_for import JobFor


def job_to_response(job: Job) -> JobResponse:
    return JobResponse(
        id=job.id,
        user_id=job.user_id,
        from_language_id=job.from_language_id,
        immediate=job.immediate,
        due=job.due,
        duration=job.duration,
        duration_label=convert_to_hours_mins(job.duration),
        status=job.status,
        gender=job.gender,
        certified=job.certified,
        job_for=JobFor.from_columns(job.gender, job.certified).to_tags(),
        job_type=job.job_type,
        customer_phone_type=job.customer_phone_type,
        customer_physical_type=job.customer_physical_type,
        will_expire_at=job.will_expire_at,
        end_at=job.end_at,
        session_time=job.session_time,
        admin_comments=job.admin_comments,
        flagged=job.flagged,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )
