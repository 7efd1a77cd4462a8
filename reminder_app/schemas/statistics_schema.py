import datetime as dt
from typing import List

from pydantic import BaseModel


class DailyCount(BaseModel):
    date: dt.date
    count: int


class SystemStats(BaseModel):
    total_users: int
    total_events: int
    total_reminders_sent: int
    total_pending_reminders: int
    total_events_last_seven_days: int
    count_events_last_24_hours: int
    count_events_last_7_days: int
    count_reminders_sent_last_24_hours: int
    count_upcoming_reminders_next_24_hours: int
    events_last_7_days: List[DailyCount]
