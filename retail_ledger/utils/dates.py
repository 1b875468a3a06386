from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """[00:00:00, 23:59:59.999999] of a calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def range_bounds(start_date: date, end_date: Optional[date] = None) -> Tuple[datetime, datetime]:
    end_date = end_date or start_date
    if start_date > end_date:
        raise ValueError("start_date must be on or before end_date")
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


def period_key(moment: datetime, period: str = "daily") -> str:
    """Bucket key used by revenue trends: day, Monday of the ISO week, or month."""
    if period == "daily":
        return moment.strftime("%Y-%m-%d")
    if period == "weekly":
        monday = moment.date() - timedelta(days=moment.weekday())
        return monday.isoformat()
    if period == "monthly":
        return moment.strftime("%Y-%m")
    raise ValueError(f"Unknown trend period '{period}'")
