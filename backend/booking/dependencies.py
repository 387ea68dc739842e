from fastapi import Depends
from sqlalchemy.orm import Session

from booking.config import settings
from booking.database import get_db
from booking.services.dispatch_service import DispatchEngine
from booking.services.eligibility_service import TranslatorEligibility
from booking.services.lifecycle_service import JobLifecycle, publish_session_ended
from booking.services.notification_service import PushNotifier, build_push_config


def get_notifier() -> PushNotifier:
    return PushNotifier(build_push_config(settings))


def get_dispatch_engine(
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
) -> DispatchEngine:
    eligibility = TranslatorEligibility(
        db,
        business_hours=(settings.business_hours_start, settings.business_hours_end),
    )
    return DispatchEngine(
        db,
        notifier,
        eligibility,
        notify_empty_batches=settings.notify_empty_batches,
    )


def get_lifecycle(
    db: Session = Depends(get_db),
    dispatcher: DispatchEngine = Depends(get_dispatch_engine),
) -> JobLifecycle:
    return JobLifecycle(
        db,
        dispatcher=dispatcher,
        on_session_ended=publish_session_ended,
        immediate_due_minutes=settings.immediate_due_minutes,
    )
