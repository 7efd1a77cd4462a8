import datetime as dt
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from reminder_app.core.constants import (
    ALLOWED_EVENT_SORTS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)
from reminder_app.domain.repositories.event_repository import event_cache_key
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.models.event_model import Event
from reminder_app.models.user_model import User
from reminder_app.schemas.common_schema import PageResponse
from reminder_app.schemas.event_schema import EventSchema, UserSummary
from reminder_app.utils.clock import utc_now
from reminder_app.utils.logger import get_logger

logger = get_logger("event_service")


class AccessStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"


@dataclass
class AccessResult:
    status: AccessStatus
    event: Optional[Event] = None

    @property
    def ok(self) -> bool:
        return self.status == AccessStatus.OK


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int
    sort_by: str
    descending: bool

    @classmethod
    def normalize(
        cls,
        page: Optional[int],
        size: Optional[int],
        sort_by: Optional[str],
        direction: Optional[str],
    ) -> "PageRequest":
        """Clamp user supplied paging input to safe values."""
        p = 0 if page is None or page < 0 else page
        s = DEFAULT_PAGE_SIZE if size is None or size <= 0 or size > MAX_PAGE_SIZE else size
        sort = sort_by if sort_by in ALLOWED_EVENT_SORTS else "id"
        descending = (direction or "asc").strip().lower() == "desc"
        return cls(page=p, size=s, sort_by=sort, descending=descending)


class EventService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # ---------------- access ------------------------------------------
    def check_access(self, user: User, event_id: int) -> AccessResult:
        event = self.uow.events.get(event_id)
        if event is None:
            return AccessResult(AccessStatus.NOT_FOUND)
        if event.user_id != user.id:
            return AccessResult(AccessStatus.FORBIDDEN)
        return AccessResult(AccessStatus.OK, event)

    def get_event_view(self, user: User, event_id: int) -> Tuple[AccessResult, Optional[dict]]:
        """Owner-checked single event, served through the read-through cache."""
        key = event_cache_key(event_id)
        cache = self.uow.events.cache
        cached = cache.get(key)
        if cached is not None:
            if cached.get("user_id") != user.id:
                return AccessResult(AccessStatus.FORBIDDEN), None
            return AccessResult(AccessStatus.OK), cached

        access = self.check_access(user, event_id)
        if not access.ok:
            return access, None
        view = EventSchema.Out.model_validate(access.event).model_dump(mode="json")
        # Pending views are not cached; a dispatch commit could race the write
        if access.event.reminder_sent:
            cache.set(key, {**view, "user_id": access.event.user_id})
        return access, view

    # ---------------- listing -----------------------------------------
    def list_for_user(self, user: User) -> List[Event]:
        logger.info(f"Listing events for user: {user.email}")
        return self.uow.events.list_for_owner(user.id)

    def get_paged_for_user(
        self,
        user: User,
        page: Optional[int] = None,
        size: Optional[int] = None,
        sort_by: Optional[str] = None,
        direction: Optional[str] = None,
        after_date: Optional[dt.date] = None,
        search: Optional[str] = None,
    ) -> PageResponse[EventSchema.Out]:
        request = PageRequest.normalize(page, size, sort_by, direction)
        items, total = self._search(request, user.id, after_date, search)
        return self._page(request, [EventSchema.Out.model_validate(e) for e in items], total)

    def get_paged_for_admin(
        self,
        page: Optional[int] = None,
        size: Optional[int] = None,
        sort_by: Optional[str] = None,
        direction: Optional[str] = None,
        after_date: Optional[dt.date] = None,
        search: Optional[str] = None,
    ) -> PageResponse[EventSchema.AdminOut]:
        request = PageRequest.normalize(page, size, sort_by, direction)
        items, total = self._search(request, None, after_date, search)
        return self._page(request, [EventSchema.AdminOut.from_entity(e) for e in items], total)

    def upcoming(self, user: User, minutes: int, now: Optional[dt.datetime] = None) -> List[Event]:
        start = now or utc_now()
        return self.uow.events.find_upcoming_for_owner(
            user.id, start, start + dt.timedelta(minutes=max(minutes, 0))
        )

    def list_for_admin(
        self, user_email: Optional[str] = None, reminder_sent: Optional[bool] = None
    ) -> List[Event]:
        return self.uow.events.list_all(user_email=user_email, reminder_sent=reminder_sent)

    def list_user_summaries(self) -> List[UserSummary]:
        return [
            UserSummary(id=u.id, email=u.email, enabled=u.enabled, event_count=count)
            for u, count in self.uow.users.list_with_event_counts()
        ]

    # ---------------- mutations ---------------------------------------
    def create_event(self, user: User, payload: EventSchema.Request) -> Event:
        with self.uow:
            event = Event(
                title=payload.title,
                description=payload.description,
                event_date=payload.event_date,
                reminder_time=payload.reminder_time,
                reminder_sent=False,
                user_id=user.id,
            )
            self.uow.events.add(event)
        logger.info(f"Created event id={event.id} title={event.title!r}")
        return event

    def update_event(self, user: User, event_id: int, payload: EventSchema.Request) -> AccessResult:
        access = self.check_access(user, event_id)
        if not access.ok:
            return access
        with self.uow:
            event = access.event
            event.title = payload.title
            event.description = payload.description
            event.event_date = payload.event_date
            # Any update reschedules the reminder
            event.reschedule(payload.reminder_time)
            self.uow.events.flush()
        self.uow.events.evict(event_id)
        return access

    def delete_event(self, user: User, event_id: int) -> AccessResult:
        access = self.check_access(user, event_id)
        if not access.ok:
            return access
        with self.uow:
            self.uow.events.delete(access.event)
        self.uow.events.evict(event_id)
        return access

    # ---------------- helpers -----------------------------------------
    def _search(
        self,
        request: PageRequest,
        owner_id: Optional[int],
        after_date: Optional[dt.date],
        search: Optional[str],
    ) -> Tuple[List[Event], int]:
        return self.uow.events.search_page(
            owner_id=owner_id,
            after_date=after_date,
            search=search if search and search.strip() else None,
            sort_by=request.sort_by,
            descending=request.descending,
            offset=request.page * request.size,
            limit=request.size,
        )

    @staticmethod
    def _page(request: PageRequest, content: list, total: int) -> PageResponse:
        return PageResponse(
            content=content,
            current_page=request.page,
            total_items=total,
            total_pages=math.ceil(total / request.size) if total else 0,
            size=request.size,
        )
