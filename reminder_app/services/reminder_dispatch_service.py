"""Reminder dispatch engine: the periodic cycle and the manual "send now" path."""

import datetime as dt
import time
from typing import Callable, List, Optional

from reminder_app.core.config import settings
from reminder_app.domain.exceptions import StoreUnavailable
from reminder_app.domain.interfaces.infrastructure_interfaces import (
    DeliveryResult,
    INotificationSender,
)
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.models.event_model import Event
from reminder_app.schemas.reminder_schema import (
    CycleReport,
    DispatchResult,
    DispatchStatus,
    ReminderCounters,
)
from reminder_app.utils.clock import utc_now
from reminder_app.utils.logger import get_logger
from reminder_app.utils.metrics import (
    reminder_cycles_total,
    reminders_committed_total,
    reminders_dispatch_failed_total,
    reminders_dispatch_success_total,
)

logger = get_logger("reminder_dispatch")


class ReminderDispatchService:
    """Finds due reminders, delivers them and records the successful ones.

    Both the cycle runner and the manual trigger deliver through
    ``_attempt`` and record through ``_commit_sent``, so they share the same
    success/failure classification and the same state transition.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        sender: INotificationSender,
        clock: Callable[[], dt.datetime] = utc_now,
        deadline_seconds: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.uow = uow
        self.sender = sender
        self.clock = clock
        self.deadline_seconds = deadline_seconds
        self.monotonic = monotonic

    @classmethod
    def from_settings(cls, uow: UnitOfWork, sender: INotificationSender) -> "ReminderDispatchService":
        return cls(uow, sender, deadline_seconds=settings.scheduler.cycle_deadline_seconds)

    # ------------------------------------------------------------------
    def run_cycle(self) -> CycleReport:
        """Run one full pass over every currently due reminder.

        ``now`` is captured once so the due set is stable for the cycle.
        A failed delivery only leaves its event pending; store errors
        (``StoreUnavailable``) propagate and abort the cycle without
        persisting anything.
        """
        now = self.clock()
        report = CycleReport(started_at=now)

        due = self.uow.events.find_due(now)
        report.due = len(due)
        if not due:
            logger.debug(f"No due reminders at {now.isoformat()}")
            reminder_cycles_total.inc()
            return report

        deadline = (
            self.monotonic() + self.deadline_seconds
            if self.deadline_seconds is not None
            else None
        )
        sent_ids: List[int] = []
        for index, event in enumerate(due):
            if deadline is not None and self.monotonic() >= deadline:
                report.skipped = len(due) - index
                logger.warning(
                    f"Cycle deadline reached, leaving {report.skipped} reminders pending"
                )
                break

            result = self._attempt(event, trigger="cycle")
            if result.ok:
                sent_ids.append(event.id)
            else:
                report.failed += 1

        report.sent = len(sent_ids)
        report.attempted = report.sent + report.failed

        if sent_ids:
            report.committed = self._commit_sent(sent_ids)
            logger.info(f"Processed {report.committed} reminders at {now.isoformat()}")
            if report.committed < len(sent_ids):
                logger.warning(
                    f"{len(sent_ids) - report.committed} delivered reminders were "
                    "already sent or deleted before commit"
                )

        reminder_cycles_total.inc()
        return report

    def dispatch_now(self, event_id: int) -> DispatchResult:
        """Deliver one reminder immediately, outside the periodic cycle."""
        event = self.uow.events.get_with_owner(event_id)
        if event is None:
            return DispatchResult(event_id=event_id, status=DispatchStatus.NOT_FOUND)
        if event.reminder_sent:
            return DispatchResult(event_id=event_id, status=DispatchStatus.ALREADY_SENT)

        result = self._attempt(event, trigger="manual")
        if not result.ok:
            return DispatchResult(
                event_id=event_id,
                status=DispatchStatus.DELIVERY_FAILED,
                reason=result.reason,
            )

        if self._commit_sent([event_id]) == 0:
            # Another commit won the race; the notification may have gone out twice
            logger.warning(f"Reminder for event {event_id} was recorded by a concurrent dispatch")
            if not self.uow.events.exists(event_id):
                return DispatchResult(event_id=event_id, status=DispatchStatus.NOT_FOUND)
            return DispatchResult(event_id=event_id, status=DispatchStatus.ALREADY_SENT)

        logger.info(f"Manual reminder sent for event {event_id}")
        return DispatchResult(event_id=event_id, status=DispatchStatus.SENT)

    def counters(self) -> ReminderCounters:
        return ReminderCounters(
            sent=self.uow.events.count_by_reminder_sent(True),
            pending=self.uow.events.count_by_reminder_sent(False),
        )

    # ------------------------------------------------------------------
    def _attempt(self, event: Event, trigger: str) -> DeliveryResult:
        recipient = event.user.email
        subject = f"{settings.notifications.subject_prefix}{event.title}"
        try:
            content = self.sender.render(event)
            result = self.sender.deliver(recipient, subject, content)
        except Exception as exc:
            result = DeliveryResult.failure(f"{type(exc).__name__}: {exc}")

        if result.ok:
            reminders_dispatch_success_total.labels(trigger=trigger).inc()
        else:
            reminders_dispatch_failed_total.labels(trigger=trigger).inc()
            logger.error(
                f"Failed to send reminder for event {event.id} to {recipient}: {result.reason}"
            )
        return result

    def _commit_sent(self, ids: List[int]) -> int:
        try:
            updated = self.uow.events.commit_sent(ids, self.clock())
            self.uow.commit()
        except StoreUnavailable:
            self.uow.rollback()
            raise
        reminders_committed_total.inc(updated)
        return updated
