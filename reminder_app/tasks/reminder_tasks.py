import threading
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from reminder_app.core.config import SchedulerSettings, settings
from reminder_app.db.session import db_manager
from reminder_app.domain.exceptions import CycleAlreadyRunning, StoreUnavailable
from reminder_app.domain.interfaces.infrastructure_interfaces import INotificationSender
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.schemas.reminder_schema import CycleReport
from reminder_app.services.notification_sender import build_sender
from reminder_app.services.reminder_dispatch_service import ReminderDispatchService
from reminder_app.utils.logger import get_logger
from reminder_app.utils.metrics import (
    reminder_cycle_duration_seconds,
    reminder_cycles_aborted_total,
)

logger = get_logger("reminder_tasks")

JOB_ID = "reminder-dispatch-cycle"


# Held for the whole of any dispatch cycle in this process, timer or on-demand
cycle_lock = threading.Lock()


def run_exclusive(cycle: Callable[[], CycleReport]) -> CycleReport:
    """Run ``cycle`` under the cycle lock, refusing to wait for a running one."""
    if not cycle_lock.acquire(blocking=False):
        raise CycleAlreadyRunning()
    try:
        return cycle()
    finally:
        cycle_lock.release()


class ReminderScheduler:
    """Owns the periodic timer that drives the dispatch cycle.

    The job runs with ``max_instances=1`` so a slow cycle is never
    overlapped by the next tick; missed ticks are coalesced into one run.
    Tests call ``run_once`` directly instead of starting the timer.
    On-demand runs share ``cycle_lock`` with the timer, so cycles in one
    process never overlap.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = db_manager.SessionLocal,
        sender: Optional[INotificationSender] = None,
        config: SchedulerSettings = settings.scheduler,
    ):
        self.session_factory = session_factory
        self.sender = sender or build_sender()
        self.config = config
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.config.interval_seconds),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.config.misfire_grace_seconds,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"Reminder scheduler started (every {self.config.interval_seconds}s)")

    def stop(self, wait: bool = True) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Reminder scheduler stopped")

    def run_once(self) -> Optional[CycleReport]:
        """Execute one cycle; never raises so the timer keeps ticking."""
        session = self.session_factory()
        try:
            service = ReminderDispatchService(
                UnitOfWork(session),
                self.sender,
                deadline_seconds=self.config.cycle_deadline_seconds,
            )
            with reminder_cycle_duration_seconds.time():
                report = run_exclusive(service.run_cycle)
            if report.due:
                logger.info(
                    f"Cycle finished: attempted={report.attempted} sent={report.sent} "
                    f"failed={report.failed} skipped={report.skipped}"
                )
            return report
        except CycleAlreadyRunning:
            logger.info("Skipping tick, an on-demand reminder cycle is still running")
            return None
        except StoreUnavailable as exc:
            reminder_cycles_aborted_total.inc()
            logger.warning(f"Reminder cycle aborted, retrying next interval: {exc.message}")
            return None
        except Exception:
            reminder_cycles_aborted_total.inc()
            logger.exception("Reminder cycle failed unexpectedly")
            return None
        finally:
            session.close()
