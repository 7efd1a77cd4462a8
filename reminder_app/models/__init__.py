# Import order is important to avoid circular dependencies
from reminder_app.models.user_model import User
from reminder_app.models.event_model import Event

__all__ = [
    "User",
    "Event",
]
