"""Exception handlers to translate domain exceptions to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from reminder_app.domain.exceptions import (
    CycleAlreadyRunning,
    DeliveryFailed,
    DomainException,
    EventAccessDenied,
    EventException,
    EventNotFound,
    ReminderAlreadySent,
    ReminderException,
    StoreException,
    StoreUnavailable,
)
from reminder_app.utils.logger import get_logger

logger = get_logger("exception_handlers")


class DomainExceptionHandler:
    """Centralized handler for domain exceptions."""

    # Mapping of domain exceptions to HTTP status codes
    EXCEPTION_STATUS_MAP = {
        # Store exceptions
        StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,

        # Event exceptions
        EventNotFound: status.HTTP_404_NOT_FOUND,
        EventAccessDenied: status.HTTP_403_FORBIDDEN,

        # Reminder exceptions
        ReminderAlreadySent: status.HTTP_400_BAD_REQUEST,
        DeliveryFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
        CycleAlreadyRunning: status.HTTP_409_CONFLICT,
    }

    # Base exception type status codes
    BASE_EXCEPTION_STATUS_MAP = {
        StoreException: status.HTTP_503_SERVICE_UNAVAILABLE,
        EventException: status.HTTP_400_BAD_REQUEST,
        ReminderException: status.HTTP_400_BAD_REQUEST,
    }

    @classmethod
    def status_for(cls, exc: DomainException) -> int:
        status_code = cls.EXCEPTION_STATUS_MAP.get(type(exc))

        if status_code is None:
            for base_type, base_status in cls.BASE_EXCEPTION_STATUS_MAP.items():
                if isinstance(exc, base_type):
                    status_code = base_status
                    break

        if status_code is None:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return status_code


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = DomainExceptionHandler.status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "message": exc.message,
            "data": {"error_code": exc.error_code, "type": exc.__class__.__name__},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
