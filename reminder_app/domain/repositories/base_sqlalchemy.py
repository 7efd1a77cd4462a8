from __future__ import annotations

from contextlib import contextmanager
from typing import Generic, Iterator, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reminder_app.domain.exceptions import StoreUnavailable
from reminder_app.domain.repositories.base import ID, IRepository, T


class SQLAlchemyRepository(Generic[T, ID], IRepository[T, ID]):
    """Generic SQLAlchemy repository with basic CRUD.

    Every statement runs inside ``_guard`` so driver and transport errors
    surface as ``StoreUnavailable`` instead of raw SQLAlchemy exceptions.
    """

    def __init__(self, model: Type[T], db: Session):
        self.model = model
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            raise StoreUnavailable(operation, str(exc)) from exc

    # ----- CRUD --------------------------------------------------------
    def add(self, obj: T) -> T:
        with self._guard("add"):
            self.db.add(obj)
            self.db.flush()
        return obj

    def get(self, id_: ID) -> T | None:
        with self._guard("get"):
            return self.db.get(self.model, id_)

    def delete(self, obj: T) -> None:
        with self._guard("delete"):
            self.db.delete(obj)
            self.db.flush()

    def flush(self) -> None:
        with self._guard("flush"):
            self.db.flush()
