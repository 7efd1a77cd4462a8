from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_app.domain.exceptions import StoreUnavailable
from reminder_app.domain.repositories.event_repository import EventRepository
from reminder_app.domain.repositories.user_repository import UserRepository
from reminder_app.utils.cache import Cache


class IUnitOfWork(ABC):
    @abstractmethod
    def __enter__(self): ...
    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb): ...
    @abstractmethod
    def commit(self): ...
    @abstractmethod
    def rollback(self): ...
    # plus abstract attributes: users, events


class UnitOfWork(AbstractContextManager, IUnitOfWork):
    """Coordinates repositories & transaction boundaries."""

    def __init__(self, db: Session, cache: Cache | None = None):
        self.db = db
        self.users = UserRepository(db)
        self.events = EventRepository(db, cache=cache)

    # ---- context‑manager API -----------------------------------------
    def __enter__(self):
        return self

    def __exit__(self, exc_type, *_):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    # ---- public -------------------------------------------------------
    def commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreUnavailable("commit", str(exc)) from exc

    def rollback(self):
        self.db.rollback()
