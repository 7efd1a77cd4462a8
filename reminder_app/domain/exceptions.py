"""Domain exceptions that represent business rule violations."""

from typing import Optional


class DomainException(Exception):
    """Base exception for all domain-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


# Store Exceptions
class StoreException(DomainException):
    """Base exception for persistence errors."""


class StoreUnavailable(StoreException):
    """The event store could not be reached or failed mid-operation."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Event store unavailable during {operation}: {reason}",
            "STORE_UNAVAILABLE",
        )


# Event Domain Exceptions
class EventException(DomainException):
    """Base exception for event-related errors."""


class EventNotFound(EventException):
    """Event not found in the system."""

    def __init__(self, event_id: int):
        super().__init__(f"Event with ID {event_id} not found.", "EVENT_NOT_FOUND")


class EventAccessDenied(EventException):
    """Event belongs to another user."""

    def __init__(self, event_id: int):
        super().__init__(
            f"Access denied to event {event_id}.", "EVENT_ACCESS_DENIED"
        )


# Reminder Domain Exceptions
class ReminderException(DomainException):
    """Base exception for reminder delivery errors."""


class ReminderAlreadySent(ReminderException):
    """Reminder was already delivered for the current schedule."""

    def __init__(self, event_id: int):
        super().__init__(
            f"Reminder already sent for event {event_id}.", "REMINDER_ALREADY_SENT"
        )


class DeliveryFailed(ReminderException):
    """A notification could not be delivered."""

    def __init__(self, event_id: int, reason: str):
        self.event_id = event_id
        self.reason = reason
        super().__init__(
            f"Failed to send reminder for event {event_id}: {reason}",
            "DELIVERY_FAILED",
        )



class CycleAlreadyRunning(ReminderException):
    """Another dispatch cycle is in progress in this process."""

    def __init__(self):
        super().__init__("Reminder cycle already running.", "CYCLE_ALREADY_RUNNING")
