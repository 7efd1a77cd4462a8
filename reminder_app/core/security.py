from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from reminder_app.core.config import AuthSettings, settings


class SecurityManager:
    """Issues and validates bearer tokens whose subject is the user's email."""

    def __init__(self, config: AuthSettings = settings.auth):
        self.config = config

    def create_access_token(
        self, subject: str, expires_delta: timedelta | None = None, **claims
    ) -> str:
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (
            expires_delta or timedelta(minutes=self.config.access_token_expires)
        )
        to_encode = {**claims, "sub": subject, "iat": issued_at, "exp": expire}
        return jwt.encode(to_encode, self.config.secret_key, algorithm=self.config.algorithm)

    def verify_token(self, token: str) -> dict | None:
        """Verify and decode JWT token."""
        try:
            return jwt.decode(
                token, self.config.secret_key, algorithms=[self.config.algorithm]
            )
        except JWTError:
            return None

    def decode_subject(self, token: str) -> str | None:
        """Email carried by a valid, unexpired token."""
        payload = self.verify_token(token)
        if not payload:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) and subject else None


# A global instance for dependency injection:
security_manager = SecurityManager()
