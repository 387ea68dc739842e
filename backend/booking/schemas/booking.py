from pydantic import BaseModel


class BookingCreate(BaseModel):
    customer_id: str
    from_language_id: str | None = None
    immediate: str = "no"
    due_date: str | None = None
    due_time: str | None = None
    duration: int | None = None
    customer_phone_type: str | None = None
    customer_physical_type: str | None = None
    job_for: list[str] = []
    by_admin: str | None = None


class BookingCreated(BaseModel):
    id: str
    status: str
    due: str
    will_expire_at: str


class EndJobRequest(BaseModel):
    user_id: str
    completed_at: str | None = None


class NotCarriedOutRequest(BaseModel):
    completed_at: str | None = None


class TransitionResponse(BaseModel):
    status: str
    message: str | None = None


class ReopenRequest(BaseModel):
    translator_id: str


class ReopenResponse(BaseModel):
    id: str
    reopened_from: str


class DispatchAccepted(BaseModel):
    job_id: str
    message: str = "Dispatch queued"
