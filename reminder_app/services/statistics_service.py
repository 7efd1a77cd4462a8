import datetime as dt
from typing import List, Optional

from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.schemas.statistics_schema import DailyCount, SystemStats
from reminder_app.utils.clock import utc_now


class StatisticsService:
    """Read-only admin statistics over users, events and reminders."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def system_stats(self, now: Optional[dt.datetime] = None) -> SystemStats:
        now = now or utc_now()
        events = self.uow.events
        return SystemStats(
            total_users=self.uow.users.count(),
            total_events=events.count(),
            total_reminders_sent=events.count_by_reminder_sent(True),
            total_pending_reminders=events.count_by_reminder_sent(False),
            total_events_last_seven_days=events.count_created_after(now - dt.timedelta(days=7)),
            count_events_last_24_hours=events.count_created_after(now - dt.timedelta(hours=24)),
            # Six days back plus today
            count_events_last_7_days=events.count_created_after(now - dt.timedelta(days=6)),
            count_reminders_sent_last_24_hours=events.count_sent_after(now - dt.timedelta(hours=24)),
            count_upcoming_reminders_next_24_hours=events.count_pending_between(
                now, now + dt.timedelta(hours=24)
            ),
            events_last_7_days=self.events_per_day(now.date()),
        )

    def events_per_day(self, today: dt.date, days: int = 7) -> List[DailyCount]:
        """Event counts by event date for the last ``days`` days, zero-filled."""
        start = today - dt.timedelta(days=days - 1)
        counts = dict(self.uow.events.events_per_day(start, today))
        return [
            DailyCount(date=day, count=counts.get(day, 0))
            for day in (start + dt.timedelta(days=offset) for offset in range(days))
        ]
