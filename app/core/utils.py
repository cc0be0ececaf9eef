from datetime import datetime, timezone, tzinfo


def current_time() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_local_time(value: datetime, tz: tzinfo) -> datetime:
    """Stored times are naive UTC."""
    return value.replace(tzinfo=timezone.utc).astimezone(tz)
