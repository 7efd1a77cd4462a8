import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_app.db.base import Base
from reminder_app.utils.clock import utc_now

if TYPE_CHECKING:
    from reminder_app.models.user_model import User


class Event(Base):
    """A user's event with a one-shot reminder.

    ``reminder_sent``/``reminder_sent_time`` always move together: the time
    is NULL while the flag is false and set in the same write that flips it.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_pending_reminders", "reminder_sent", "reminder_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    event_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    reminder_time: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_sent_time: Mapped[Optional[dt.datetime]] = mapped_column(DateTime)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="events")

    def reschedule(self, reminder_time: dt.datetime) -> None:
        """Move the reminder back to pending for a new schedule."""
        self.reminder_time = reminder_time
        self.reminder_sent = False
        self.reminder_sent_time = None

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} reminder_sent={self.reminder_sent}>"
