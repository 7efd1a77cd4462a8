import datetime as dt


def utc_now() -> dt.datetime:
    """Current UTC instant as a naive datetime, truncated to whole seconds."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None, microsecond=0)


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value
