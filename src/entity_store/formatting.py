"""Human-readable date and duration formatting."""

from datetime import datetime, timezone
from typing import Optional, Union


def ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_long_date(value: datetime) -> str:
    """Format like ``October 19th 2026, 9:05:03 am``."""
    hour = value.hour % 12 or 12
    meridiem = "am" if value.hour < 12 else "pm"
    return (
        f"{value.strftime('%B')} {ordinal(value.day)} {value.year}, "
        f"{hour}:{value.minute:02d}:{value.second:02d} {meridiem}"
    )


def format_duration(seconds: Union[int, float, str, None]) -> str:
    """Compact duration: ``2h 5m``, ``3m 20s`` or ``45s``."""
    try:
        total = int(float(seconds))
    except (TypeError, ValueError):
        return ""

    hours, remainder = divmod(abs(total), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def relative_time(then: datetime, now: Optional[datetime] = None) -> str:
    """Rough "5 minutes ago" / "in 2 hours" phrasing."""
    now = now or datetime.now(timezone.utc)
    delta = (now - then).total_seconds()
    future = delta < 0
    seconds = abs(delta)

    if seconds < 45:
        phrase = "a few seconds"
    elif seconds < 90:
        phrase = "a minute"
    elif seconds < 45 * 60:
        phrase = f"{round(seconds / 60)} minutes"
    elif seconds < 90 * 60:
        phrase = "an hour"
    elif seconds < 22 * 3600:
        phrase = f"{round(seconds / 3600)} hours"
    elif seconds < 36 * 3600:
        phrase = "a day"
    elif seconds < 26 * 86400:
        phrase = f"{round(seconds / 86400)} days"
    elif seconds < 46 * 86400:
        phrase = "a month"
    elif seconds < 320 * 86400:
        phrase = f"{round(seconds / (30 * 86400))} months"
    elif seconds < 548 * 86400:
        phrase = "a year"
    else:
        phrase = f"{round(seconds / (365 * 86400))} years"

    return f"in {phrase}" if future else f"{phrase} ago"
