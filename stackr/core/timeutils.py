from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_utc(moment: Optional[datetime]) -> datetime:
    """Naive datetimes are treated as UTC; None means now."""
    if moment is None:
        return utc_now()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_day(moment: datetime) -> date:
    return normalize_utc(moment).date()
