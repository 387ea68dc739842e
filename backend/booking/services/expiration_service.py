from datetime import datetime, timedelta


def will_expire_at(due: datetime, created_at: datetime) -> datetime:
    """
    Deadline after which an unaccepted booking is considered stale.

    Tiers on the lead time between booking and due:
      <= 90 min       -> due itself
      <= 24 h         -> 90 min after booking
      <= 72 h         -> 16 h after booking
      longer          -> 48 h before due
    """
    diff_hours = (due - created_at).total_seconds() / 3600

    if diff_hours <= 1.5:
        return due
    if diff_hours <= 24:
        return created_at + timedelta(minutes=90)
    if diff_hours <= 72:
        return created_at + timedelta(hours=16)
    return due - timedelta(hours=48)
