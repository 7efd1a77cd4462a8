import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reminder_app.utils.clock import to_naive_utc


class EventSchema:
    class Request(BaseModel):
        title: str = Field(..., min_length=1, max_length=255)
        description: Optional[str] = Field(None, max_length=5000)
        event_date: dt.date
        reminder_time: dt.datetime

        @field_validator("title")
        @classmethod
        def strip_title(cls, v: str) -> str:
            v = v.strip()
            if not v:
                raise ValueError("title must not be blank")
            return v

        @field_validator("reminder_time")
        @classmethod
        def normalize_reminder_time(cls, v: dt.datetime) -> dt.datetime:
            # Whole seconds are enough for dispatch
            return to_naive_utc(v).replace(microsecond=0)

    class Out(BaseModel):
        id: int
        title: str
        description: Optional[str]
        event_date: dt.date
        reminder_time: dt.datetime
        reminder_sent: bool
        reminder_sent_time: Optional[dt.datetime]

        model_config = ConfigDict(from_attributes=True)

    class AdminOut(Out):
        user_email: str

        @classmethod
        def from_entity(cls, event) -> "EventSchema.AdminOut":
            return cls(
                id=event.id,
                title=event.title,
                description=event.description,
                event_date=event.event_date,
                reminder_time=event.reminder_time,
                reminder_sent=event.reminder_sent,
                reminder_sent_time=event.reminder_sent_time,
                user_email=event.user.email,
            )


class UserSummary(BaseModel):
    id: int
    email: str
    enabled: bool
    event_count: int
