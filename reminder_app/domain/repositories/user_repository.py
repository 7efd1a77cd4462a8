from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from reminder_app.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from reminder_app.models.event_model import Event
from reminder_app.models.user_model import User


class UserRepository(SQLAlchemyRepository[User, int]):
    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._guard("get_by_email"):
            stmt = select(User).where(func.lower(User.email) == email.lower())
            return self.db.scalar(stmt)

    def count(self) -> int:
        with self._guard("count_users"):
            return self.db.scalar(select(func.count(User.id))) or 0

    def list_with_event_counts(self) -> List[Tuple[User, int]]:
        """All users paired with the number of events they own."""
        with self._guard("list_with_event_counts"):
            stmt = (
                select(User, func.count(Event.id))
                .outerjoin(Event, Event.user_id == User.id)
                .group_by(User.id)
                .order_by(User.id)
            )
            return [(user, count) for user, count in self.db.execute(stmt).all()]
