import datetime as dt
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.util import identity_key

from reminder_app.core.constants import EVENT_CACHE_PREFIX
from reminder_app.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from reminder_app.models.event_model import Event
from reminder_app.models.user_model import User
from reminder_app.utils.cache import Cache, cache as default_cache
from reminder_app.utils.logger import get_logger


logger = get_logger("event_repository")


def event_cache_key(event_id: int) -> str:
    return f"{EVENT_CACHE_PREFIX}{event_id}"


class EventRepository(SQLAlchemyRepository[Event, int]):
    def __init__(self, db: Session, cache: Cache | None = None):
        super().__init__(Event, db)
        self.cache = cache or default_cache

    # ----- reminder dispatch -------------------------------------------
    def find_due(self, now: dt.datetime) -> List[Event]:
        """Events whose reminder is pending and whose time has arrived.

        There is no lower bound: an event due hours ago is still returned.
        The owner is loaded eagerly because the sender needs the address.
        """
        stmt = (
            select(Event)
            .options(joinedload(Event.user))
            .where(Event.reminder_sent.is_(False), Event.reminder_time <= now)
            .order_by(Event.reminder_time, Event.id)
        )
        with self._guard("find_due"):
            rows = self.db.scalars(stmt).unique().all()
        seen: set[int] = set()
        due: List[Event] = []
        for event in rows:
            if event.id not in seen:
                seen.add(event.id)
                due.append(event)
        return due

    def find_upcoming_for_owner(
        self, owner_id: int, start: dt.datetime, end: dt.datetime
    ) -> List[Event]:
        stmt = (
            select(Event)
            .where(
                Event.user_id == owner_id,
                Event.reminder_sent.is_(False),
                Event.reminder_time >= start,
                Event.reminder_time <= end,
            )
            .order_by(Event.reminder_time, Event.id)
        )
        with self._guard("find_upcoming_for_owner"):
            return list(self.db.scalars(stmt).all())

    def commit_sent(self, ids: Iterable[int], at: dt.datetime) -> int:
        """Mark the given events as sent in a single conditional UPDATE.

        Only rows still pending are touched, so two racing commits for the
        same event report it as updated at most once. Rows deleted in the
        meantime are silently skipped; the returned count reflects the
        rows actually changed.
        """
        id_list = sorted(set(ids))
        if not id_list:
            return 0
        stmt = (
            update(Event)
            .where(Event.id.in_(id_list), Event.reminder_sent.is_(False))
            .values(reminder_sent=True, reminder_sent_time=at)
            .execution_options(synchronize_session=False)
        )
        with self._guard("commit_sent"):
            result = self.db.execute(stmt)
        updated = result.rowcount or 0
        self._refresh_or_evict(id_list)
        logger.debug(f"commit_sent requested={len(id_list)} updated={updated}")
        return updated

    def _refresh_or_evict(self, ids: Sequence[int]) -> None:
        """Drop stale copies of events changed behind the ORM's back.

        The bulk UPDATE bypasses the identity map, so loaded instances are
        expired (reloaded on next access) and cached views are evicted.
        """
        for event_id in ids:
            instance = self.db.identity_map.get(identity_key(Event, event_id))
            if instance is not None:
                self.db.expire(instance)
        self.cache.delete(*(event_cache_key(event_id) for event_id in ids))

    def evict(self, event_id: int) -> None:
        self.cache.delete(event_cache_key(event_id))

    # ----- lookups -----------------------------------------------------
    def get_with_owner(self, event_id: int) -> Optional[Event]:
        stmt = select(Event).options(joinedload(Event.user)).where(Event.id == event_id)
        with self._guard("get_with_owner"):
            return self.db.scalar(stmt)

    def exists(self, event_id: int) -> bool:
        stmt = select(func.count(Event.id)).where(Event.id == event_id)
        with self._guard("exists"):
            return bool(self.db.scalar(stmt))

    def list_for_owner(self, owner_id: int) -> List[Event]:
        stmt = select(Event).where(Event.user_id == owner_id).order_by(Event.id)
        with self._guard("list_for_owner"):
            return list(self.db.scalars(stmt).all())

    def list_all(
        self, user_email: Optional[str] = None, reminder_sent: Optional[bool] = None
    ) -> List[Event]:
        stmt = select(Event).join(Event.user).options(joinedload(Event.user))
        if user_email:
            stmt = stmt.where(func.lower(User.email) == user_email.lower())
        if reminder_sent is not None:
            stmt = stmt.where(Event.reminder_sent.is_(reminder_sent))
        stmt = stmt.order_by(Event.id)
        with self._guard("list_all"):
            return list(self.db.scalars(stmt).unique().all())

    def search_page(
        self,
        *,
        owner_id: Optional[int],
        after_date: Optional[dt.date],
        search: Optional[str],
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> Tuple[List[Event], int]:
        """One page of events plus the total number of matches."""
        stmt: Select = select(Event)
        if owner_id is not None:
            stmt = stmt.where(Event.user_id == owner_id)
        if after_date is not None:
            stmt = stmt.where(Event.event_date >= after_date)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Event.title).like(pattern),
                    func.lower(Event.description).like(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        sort_column = getattr(Event, sort_by)
        # id as a tie-breaker keeps pages stable
        if descending:
            ordering = (sort_column.desc(), Event.id.desc())
        else:
            ordering = (sort_column.asc(), Event.id.asc())
        page_stmt = (
            stmt.options(joinedload(Event.user))
            .order_by(*ordering)
            .offset(offset)
            .limit(limit)
        )
        with self._guard("search_page"):
            total = self.db.scalar(count_stmt) or 0
            items = list(self.db.scalars(page_stmt).unique().all())
        return items, total

    # ----- counters ----------------------------------------------------
    def count(self) -> int:
        with self._guard("count_events"):
            return self.db.scalar(select(func.count(Event.id))) or 0

    def count_by_reminder_sent(self, sent: bool) -> int:
        stmt = select(func.count(Event.id)).where(Event.reminder_sent.is_(sent))
        with self._guard("count_by_reminder_sent"):
            return self.db.scalar(stmt) or 0

    def count_created_after(self, since: dt.datetime) -> int:
        stmt = select(func.count(Event.id)).where(Event.created_at >= since)
        with self._guard("count_created_after"):
            return self.db.scalar(stmt) or 0

    def count_sent_after(self, since: dt.datetime) -> int:
        stmt = select(func.count(Event.id)).where(
            Event.reminder_sent.is_(True), Event.reminder_sent_time >= since
        )
        with self._guard("count_sent_after"):
            return self.db.scalar(stmt) or 0

    def count_pending_between(self, start: dt.datetime, end: dt.datetime) -> int:
        stmt = select(func.count(Event.id)).where(
            Event.reminder_sent.is_(False),
            Event.reminder_time >= start,
            Event.reminder_time <= end,
        )
        with self._guard("count_pending_between"):
            return self.db.scalar(stmt) or 0

    def events_per_day(self, start: dt.date, end: dt.date) -> List[Tuple[dt.date, int]]:
        stmt = (
            select(Event.event_date, func.count(Event.id))
            .where(Event.event_date >= start, Event.event_date <= end)
            .group_by(Event.event_date)
            .order_by(Event.event_date)
        )
        with self._guard("events_per_day"):
            return [(day, count) for day, count in self.db.execute(stmt).all()]
