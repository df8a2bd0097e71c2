from datetime import date, datetime, time, timezone


def to_utc_datetime(value: date) -> datetime:
    """
    Normalize a date or datetime to an aware UTC datetime.
    Naive datetimes are taken to already be in UTC; plain dates map to midnight UTC.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time(0, 0), tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_iso(value: date) -> str:
    """
    Format a date or datetime as an ISO 8601 UTC timestamp with millisecond precision.
    Example: "2014-05-01T12:00:00.000Z"
    """
    utc = to_utc_datetime(value)
    return (f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
            f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}.{utc.microsecond // 1000:03d}Z")
