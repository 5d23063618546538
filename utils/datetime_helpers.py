from datetime import datetime, timezone
from typing import Optional


def format_utc_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime as an ISO 8601 UTC string with millisecond precision
    and a 'Z' suffix, e.g. "2025-11-06T04:59:59.999Z".

    Naive datetimes are assumed to already be UTC (that is how the store hands
    them back); aware datetimes are converted to UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
