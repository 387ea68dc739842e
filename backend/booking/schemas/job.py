from pydantic import BaseModel


class JobResponse(BaseModel):
    id: str
    user_id: str
    from_language_id: str
    immediate: str
    due: str
    duration: int
    duration_label: str
    status: str
    gender: str | None
    certified: str | None
    job_for: list[str] = []
    job_type: str
    customer_phone_type: str
    customer_physical_type: str
    will_expire_at: str
    end_at: str | None
    session_time: int | None
    admin_comments: str | None
    flagged: int
    created_at: str
    updated_at: str


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
    page: int
    per_page: int


class JobCountResponse(BaseModel):
    count: int


class UserJobsResponse(BaseModel):
    user_type: str
    emergency_jobs: list[JobResponse]
    normal_jobs: list[JobResponse]


class UserJobsHistoryResponse(BaseModel):
    user_type: str
    jobs: list[JobResponse]
    total: int
    page: int
    num_pages: int
