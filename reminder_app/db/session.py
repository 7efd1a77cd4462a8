from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from reminder_app.core.config import settings


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # SQLite pools do not accept the QueuePool sizing arguments
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        future=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        pool_timeout=settings.database.pool_timeout,
        pool_recycle=settings.database.pool_recycle,
        pool_pre_ping=settings.database.pool_pre_ping,
    )


class DBSessionManager:

    def __init__(self, database_url: str | None = None) -> None:
        self.engine = build_engine(database_url or settings.database.database_url)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )

    def create_tables(self) -> None:
        # Import models so every table is registered on the metadata
        import reminder_app.models  # noqa: F401
        from reminder_app.db.base import Base

        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        session: Session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()


db_manager = DBSessionManager()


def get_db() -> Session:
    yield from db_manager.get_session()
