from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# Sort fields accepted by the paged event listings (white list)
ALLOWED_EVENT_SORTS = ("id", "event_date", "title", "reminder_time")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

EVENT_CACHE_PREFIX = "event:"
