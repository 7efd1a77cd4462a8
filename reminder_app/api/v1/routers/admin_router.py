import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from reminder_app.api.v1.dependencies import get_dispatch_service, get_uow, require_admin
from reminder_app.domain.exceptions import DeliveryFailed, EventNotFound, ReminderAlreadySent
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.models.user_model import User
from reminder_app.schemas.common_schema import ApiResponse, PageResponse
from reminder_app.schemas.event_schema import EventSchema, UserSummary
from reminder_app.schemas.reminder_schema import (
    CycleReport,
    DispatchStatus,
    ReminderCounters,
)
from reminder_app.schemas.statistics_schema import SystemStats
from reminder_app.services.event_service import EventService
from reminder_app.services.reminder_dispatch_service import ReminderDispatchService
from reminder_app.services.statistics_service import StatisticsService
from reminder_app.tasks.reminder_tasks import run_exclusive
from reminder_app.utils.logger import get_logger

logger = get_logger("admin_router")




class AdminRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/admin", tags=["Admin"])
        self._register()

    def _register(self):
        self.router.get("/events", response_model=ApiResponse[List[EventSchema.AdminOut]])(self._list_events)
        self.router.get(
            "/events/paged", response_model=ApiResponse[PageResponse[EventSchema.AdminOut]]
        )(self._paged_events)
        self.router.get(
            "/events/pending", response_model=ApiResponse[List[EventSchema.AdminOut]]
        )(self._pending_events)
        self.router.post("/events/{event_id}/send-reminder", response_model=ApiResponse[None])(
            self._send_reminder_now
        )
        self.router.get("/users", response_model=ApiResponse[List[UserSummary]])(self._list_users)
        self.router.get("/stats", response_model=ApiResponse[SystemStats])(self._stats)
        self.router.get(
            "/reminders/counters", response_model=ApiResponse[ReminderCounters]
        )(self._counters)
        self.router.post("/reminders/run", response_model=ApiResponse[CycleReport])(self._run_cycle)

    # ------------------------------------------------------------------
    async def _list_events(
        self,
        user_email: Optional[str] = Query(None),
        reminder_sent: Optional[bool] = Query(None),
        uow: UnitOfWork = Depends(get_uow),
        admin: User = Depends(require_admin),
    ):
        events = EventService(uow).list_for_admin(user_email, reminder_sent)
        return ApiResponse.success(
            "All events fetched", [EventSchema.AdminOut.from_entity(e) for e in events]
        )

    async def _paged_events(
        self,
        page: int = Query(0),
        size: int = Query(5),
        sort_by: str = Query("id"),
        direction: str = Query("asc"),
        after_date: Optional[dt.date] = Query(None),
        search: Optional[str] = Query(None),
        uow: UnitOfWork = Depends(get_uow),
        admin: User = Depends(require_admin),
    ):
        logger.info(
            f"GET /admin/events/paged -> page={page}, size={size}, sort_by={sort_by}, "
            f"direction={direction}, after_date={after_date}, search={search}"
        )
        data = EventService(uow).get_paged_for_admin(
            page, size, sort_by, direction, after_date, search
        )
        return ApiResponse.success("Paged Events retrieved", data)

    async def _pending_events(
        self,
        uow: UnitOfWork = Depends(get_uow),
        admin: User = Depends(require_admin),
    ):
        events = EventService(uow).list_for_admin(reminder_sent=False)
        return ApiResponse.success(
            "Pending events fetched", [EventSchema.AdminOut.from_entity(e) for e in events]
        )

    # Delivery can block on SMTP, so these run in the threadpool as plain defs
    def _send_reminder_now(
        self,
        event_id: int,
        dispatcher: ReminderDispatchService = Depends(get_dispatch_service),
        admin: User = Depends(require_admin),
    ):
        result = dispatcher.dispatch_now(event_id)
        logger.info(f"POST /admin/events/{event_id}/send-reminder -> {result.status.value}")
        if result.status == DispatchStatus.NOT_FOUND:
            raise EventNotFound(event_id)
        if result.status == DispatchStatus.ALREADY_SENT:
            raise ReminderAlreadySent(event_id)
        if result.status == DispatchStatus.DELIVERY_FAILED:
            raise DeliveryFailed(event_id, result.reason or "unknown error")
        return ApiResponse.success("Reminder sent successfully.")

    async def _list_users(
        self,
        uow: UnitOfWork = Depends(get_uow),
        admin: User = Depends(require_admin),
    ):
        return ApiResponse.success("All Users", EventService(uow).list_user_summaries())

    async def _stats(
        self,
        uow: UnitOfWork = Depends(get_uow),
        admin: User = Depends(require_admin),
    ):
        return ApiResponse.success("System stats fetched.", StatisticsService(uow).system_stats())

    async def _counters(
        self,
        dispatcher: ReminderDispatchService = Depends(get_dispatch_service),
        admin: User = Depends(require_admin),
    ):
        return ApiResponse.success("Reminder counters fetched.", dispatcher.counters())

    def _run_cycle(
        self,
        dispatcher: ReminderDispatchService = Depends(get_dispatch_service),
        admin: User = Depends(require_admin),
    ):
        report = run_exclusive(dispatcher.run_cycle)
        logger.info(
            f"POST /admin/reminders/run -> attempted={report.attempted} "
            f"sent={report.sent} failed={report.failed}"
        )
        return ApiResponse.success("Reminder cycle completed.", report)


admin_router = AdminRouter().router
