from typing import Generator, List

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from reminder_app.core.auth import auth_manager, oauth2_scheme
from reminder_app.core.constants import Role
from reminder_app.db.session import get_db
from reminder_app.domain.interfaces.infrastructure_interfaces import INotificationSender
from reminder_app.domain.unit_of_work import UnitOfWork
from reminder_app.models.user_model import User
from reminder_app.services.notification_sender import build_sender
from reminder_app.services.reminder_dispatch_service import ReminderDispatchService


__all__ = [
    "get_db",
    "oauth2_scheme",
    "get_uow",
    "get_sender",
    "get_dispatch_service",
    "require_roles",
]


def get_uow(db: Session = Depends(get_db)) -> Generator[UnitOfWork, None, None]:
    """Get a Unit of Work instance for dependency injection."""
    yield UnitOfWork(db)


def get_sender(request: Request) -> INotificationSender:
    """Sender shared with the scheduler when the app has one configured."""
    sender = getattr(request.app.state, "notification_sender", None)
    return sender or build_sender()


def get_dispatch_service(
    uow: UnitOfWork = Depends(get_uow),
    sender: INotificationSender = Depends(get_sender),
) -> ReminderDispatchService:
    return ReminderDispatchService.from_settings(uow, sender)


def require_roles(allowed_roles: List[Role]):
    """
    Dependency factory: only lets through users whose role is in allowed.
    Returns the current_user if check passes, otherwise raises 403.
    """

    async def _dependency(
        current_user: User = Depends(auth_manager.get_current_user),
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return current_user

    return _dependency


require_admin = require_roles([Role.ADMIN])
