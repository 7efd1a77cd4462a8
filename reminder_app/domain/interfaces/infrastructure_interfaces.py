"""Infrastructure service interfaces to decouple domain from concrete implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from reminder_app.models.event_model import Event


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a single delivery attempt; the reason is opaque to callers."""

    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "DeliveryResult":
        return cls(True)

    @classmethod
    def failure(cls, reason: str) -> "DeliveryResult":
        return cls(False, reason)


class INotificationSender(ABC):
    """Interface for reminder delivery.

    Delivery is at-least-once: a crash between a successful ``deliver`` and
    the sent-state commit makes the next cycle send the same reminder again.
    Implementations should be idempotent on a best-effort basis; exactly-once
    delivery is not guaranteed.
    """

    @abstractmethod
    def render(self, event: "Event") -> str:
        """Render the notification body from the event's current fields."""

    @abstractmethod
    def deliver(self, address: str, subject: str, content: str) -> DeliveryResult:
        """Attempt one delivery."""
