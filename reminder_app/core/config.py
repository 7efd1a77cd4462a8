from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    database_url: str = Field("sqlite:///./reminders.db")
    pool_size: int = Field(10)
    max_overflow: int = Field(20)
    pool_timeout: int = Field(30)  # Connection timeout in seconds
    pool_recycle: int = Field(1800)  # Recycle connections every 30 minutes
    pool_pre_ping: bool = Field(True)  # Validate connections before use
    create_tables: bool = Field(True)


class AuthSettings(BaseSettings):
    secret_key: str = Field("change-me")
    algorithm: str = Field("HS256")
    access_token_expires: int = Field(120)


class CacheSettings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = 300  # Events change often, keep entries short-lived
    redis_socket_timeout: int = 5
    redis_socket_connect_timeout: int = 5
    redis_retry_on_timeout: bool = True
    enabled: bool = True


class SMTPSettings(BaseSettings):
    smtp_server: str = Field("smtp.gmail.com")
    smtp_port: int = Field(587)
    sender_email: str = Field("reminders@example.com")
    sender_password: str = Field("")
    use_tls: bool = Field(True)
    timeout_seconds: int = Field(30)


class NotificationSettings(BaseSettings):
    backend: Literal["smtp", "log"] = Field("smtp")
    subject_prefix: str = Field("Reminder: ")


class SchedulerSettings(BaseSettings):
    enabled: bool = Field(True)
    interval_seconds: int = Field(60)
    # Events not attempted before the deadline stay pending for the next cycle
    cycle_deadline_seconds: Optional[float] = Field(None)
    misfire_grace_seconds: int = Field(30)

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("interval_seconds must be positive")
        return v


class AppSettings(BaseSettings):
    debug: bool = Field(False)
    log_level: str = Field("INFO")
    allowed_hosts: str = Field("http://localhost:3000,http://localhost:8000")
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    @classmethod
    def _split_allowed_hosts(cls, v: str) -> List[str]:
        if not v or not v.strip():
            return []
        hosts = []
        for host in v.split(","):
            host = host.strip().rstrip("/")
            if host and (host.startswith("http://") or host.startswith("https://")):
                hosts.append(host)
        return hosts

    @property
    def allowed_hosts_list(self) -> List[str]:
        """Convert allowed_hosts string to list."""
        if not self.allowed_hosts:
            return ["http://localhost:3000", "http://localhost:8000"]
        return self._split_allowed_hosts(self.allowed_hosts)

    class Config:
        env_prefix = "APP_"
        case_sensitive = False
        env_nested_delimiter = "__"
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"


settings: AppSettings = AppSettings()
