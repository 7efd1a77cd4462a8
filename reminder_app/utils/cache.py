import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import redis
from sqlalchemy.orm.state import InstanceState

from reminder_app.core.config import settings
from reminder_app.utils.logger import get_logger

logger = get_logger("cache")


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and enum values."""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, InstanceState):
            return None  # Skip SQLAlchemy internal state objects
        return super().default(obj)


class Cache:
    """Redis read-through cache.

    Every operation degrades to a no-op when redis is unavailable so the
    cache can never turn into a hard dependency of the request path.
    """

    def __init__(self, client: redis.Redis | None = None, ttl: int | None = None):
        self._client = client
        self._ttl = ttl or settings.cache.ttl_seconds

    @classmethod
    def from_settings(cls) -> "Cache":
        if not settings.cache.enabled:
            logger.info("Redis cache disabled by configuration")
            return cls(None)
        try:
            client = redis.from_url(
                settings.cache.redis_url,
                decode_responses=True,
                socket_timeout=settings.cache.redis_socket_timeout,
                socket_connect_timeout=settings.cache.redis_socket_connect_timeout,
                retry_on_timeout=settings.cache.redis_retry_on_timeout,
            )
            logger.info(f"Redis cache initialized with URL: {settings.cache.redis_url}")
        except redis.RedisError as e:
            logger.warning(f"Failed to initialize Redis cache: {str(e)}. Caching will be disabled.")
            client = None
        return cls(client)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _serialize_value(self, value: Any) -> Any:
        """Recursively convert SQLAlchemy objects to dictionaries and prepare for JSON serialization."""
        if value is None or isinstance(value, InstanceState):
            return None

        if isinstance(value, (datetime, date)):
            return value.isoformat()

        if isinstance(value, Enum):
            return value.value

        # SQLAlchemy models: columns only, relationships are not cached
        if hasattr(value, "__table__"):
            return {
                column.name: self._serialize_value(getattr(value, column.name))
                for column in value.__table__.columns
            }

        # Pydantic models
        if hasattr(value, "model_dump"):
            return value.model_dump(mode="json")

        if isinstance(value, list):
            return [self._serialize_value(item) for item in value]

        if isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}

        return value

    # ------------------------------------------------------------------
    def get(self, key: str):
        if self._client is None:
            return None

        try:
            val = self._client.get(key)
            if val:
                logger.debug(f"Cache hit for key: {key}")
                return json.loads(val)
            logger.debug(f"Cache miss for key: {key}")
            return None
        except Exception as e:
            logger.error(f"Error retrieving from cache: {str(e)}")
            return None

    def set(self, key: str, value, ttl: int | None = None):
        if self._client is None:
            return

        try:
            serialized_value = self._serialize_value(value)
            self._client.set(key, json.dumps(serialized_value, cls=DateTimeEncoder), ex=ttl or self._ttl)
            logger.debug(f"Set cache for key: {key}, TTL: {ttl or self._ttl}s")
        except Exception as e:
            logger.error(f"Error setting cache: {str(e)}")

    def delete(self, *keys: str) -> int:
        if self._client is None or not keys:
            return 0

        try:
            removed = self._client.delete(*keys)
            logger.debug(f"Evicted {removed} of {len(keys)} keys")
            return removed
        except Exception as e:
            logger.error(f"Error deleting cache keys: {str(e)}")
            return 0


cache = Cache.from_settings()
