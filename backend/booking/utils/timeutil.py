from datetime import datetime, timedelta, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def now_utc() -> datetime:
    # Stored timestamps have second precision.
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)


def from_iso(value: str) -> datetime:
    return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc)


def parse_due(due_date: str, due_time: str) -> datetime:
    """Parse a booking's `MM/DD/YYYY` date and `HH:MM` time as UTC."""
    return datetime.strptime(f"{due_date} {due_time}", "%m/%d/%Y %H:%M").replace(tzinfo=timezone.utc)


def is_business_time(moment: datetime, start_hour: int, end_hour: int) -> bool:
    return start_hour <= moment.astimezone(timezone.utc).hour < end_hour


def next_business_time(moment: datetime, start_hour: int, end_hour: int) -> datetime:
    """Earliest instant at or after `moment` that falls inside business hours."""
    moment = moment.astimezone(timezone.utc)
    if is_business_time(moment, start_hour, end_hour):
        return moment
    opening = moment.replace(hour=start_hour, minute=0, second=0, microsecond=0)
    if moment.hour >= end_hour:
        opening += timedelta(days=1)
    return opening
