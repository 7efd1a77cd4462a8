import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from reminder_app.api.v1.dependencies import get_uow
from reminder_app.core.auth import auth_manager
from reminder_app.domain.exceptions import EventAccessDenied, EventNotFound
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.models.user_model import User
from reminder_app.schemas.common_schema import ApiResponse, PageResponse
from reminder_app.schemas.event_schema import EventSchema
from reminder_app.services.event_service import AccessResult, AccessStatus, EventService
from reminder_app.utils.logger import get_logger

logger = get_logger("event_router")


def ensure_access(access: AccessResult, event_id: int) -> None:
    if access.status == AccessStatus.NOT_FOUND:
        raise EventNotFound(event_id)
    if access.status == AccessStatus.FORBIDDEN:
        raise EventAccessDenied(event_id)


class EventRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/events", tags=["Events"])
        self._register()

    def _register(self):
        self.router.get("", response_model=ApiResponse[List[EventSchema.Out]])(self._list)
        self.router.get("/paged", response_model=ApiResponse[PageResponse[EventSchema.Out]])(self._paged)
        self.router.get("/upcoming", response_model=ApiResponse[List[EventSchema.Out]])(self._upcoming)
        self.router.get("/{event_id}", response_model=ApiResponse[EventSchema.Out])(self._get)
        self.router.post(
            "", response_model=ApiResponse[EventSchema.Out], status_code=status.HTTP_201_CREATED
        )(self._create)
        self.router.put("/{event_id}", response_model=ApiResponse[EventSchema.Out])(self._update)
        self.router.delete("/{event_id}", response_model=ApiResponse[EventSchema.Out])(self._delete)

    # ------------------------------------------------------------------
    async def _list(
        self,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        events = EventService(uow).list_for_user(current)
        logger.info(f"GET /events -> {len(events)} items")
        message = "Events retrieved successfully." if events else "No Events found for current user."
        return ApiResponse.success(message, [EventSchema.Out.model_validate(e) for e in events])

    async def _paged(
        self,
        page: int = Query(0),
        size: int = Query(5),
        sort_by: str = Query("id"),
        direction: str = Query("asc"),
        after_date: Optional[dt.date] = Query(None),
        search: Optional[str] = Query(None),
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        logger.info(
            f"GET /events/paged -> page={page}, size={size}, sort_by={sort_by}, "
            f"direction={direction}, after_date={after_date}, search={search}"
        )
        data = EventService(uow).get_paged_for_user(
            current, page, size, sort_by, direction, after_date, search
        )
        return ApiResponse.success("Paged Events retrieved", data)

    async def _upcoming(
        self,
        minute: int = Query(1, ge=0),
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        events = EventService(uow).upcoming(current, minute)
        return ApiResponse.success(
            "Upcoming Events retrieved", [EventSchema.Out.model_validate(e) for e in events]
        )

    async def _get(
        self,
        event_id: int,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        access, view = EventService(uow).get_event_view(current, event_id)
        ensure_access(access, event_id)
        logger.info(f"GET /events/{event_id} -> OK")
        return ApiResponse.success("Event retrieved successfully", view)

    async def _create(
        self,
        payload: EventSchema.Request,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        event = EventService(uow).create_event(current, payload)
        logger.info(f"POST /events -> created id={event.id}, title={event.title}")
        return ApiResponse.success("Event Created", EventSchema.Out.model_validate(event))

    async def _update(
        self,
        event_id: int,
        payload: EventSchema.Request,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        access = EventService(uow).update_event(current, event_id, payload)
        ensure_access(access, event_id)
        logger.info(f"PUT /events/{event_id} -> updated")
        return ApiResponse.success("Event Updated.", EventSchema.Out.model_validate(access.event))

    async def _delete(
        self,
        event_id: int,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(auth_manager.get_current_user),
    ):
        access = EventService(uow).delete_event(current, event_id)
        ensure_access(access, event_id)
        logger.info(f"DELETE /events/{event_id} -> deleted")
        # Loaded attributes survive the delete since sessions don't expire on commit
        return ApiResponse.success("Event Deleted.", EventSchema.Out.model_validate(access.event))


event_router = EventRouter().router
