from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from reminder_app.core.security import security_manager
from reminder_app.db.session import get_db
from reminder_app.domain.repositories.user_repository import UserRepository
from reminder_app.models.user_model import User


# Tokens are issued by the identity service; we only validate them.
oauth2_scheme: OAuth2PasswordBearer = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/token"
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    email = security_manager.decode_subject(token)
    if email is None:
        raise credentials_exception

    repo = UserRepository(db)
    user: User | None = repo.get_by_email(email)
    if user is None or not user.enabled:
        raise credentials_exception
    return user


class AuthManager:
    @staticmethod
    async def get_current_user(
        token: Annotated[str, Depends(oauth2_scheme)],
        db: Session = Depends(get_db),
    ) -> User:
        return await get_current_user(token, db)


auth_manager = AuthManager()
