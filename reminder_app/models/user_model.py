import datetime as dt
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_app.core.constants import Role
from reminder_app.db.base import Base
from reminder_app.utils.clock import utc_now

if TYPE_CHECKING:
    from reminder_app.models.event_model import Event


class User(Base):
    """Event owner; the email doubles as login identity and delivery address."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), default=Role.USER, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    events: Mapped[List["Event"]] = relationship(
        "Event", back_populates="user", cascade="all, delete-orphan"
    )
