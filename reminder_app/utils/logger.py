import logging
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
APP_LOGGER = "reminder_app"


def get_logger(name: str) -> logging.Logger:
    """
    Get a child of the application logger.
    Handlers live on the parent only, so records are never emitted twice.
    """
    return logging.getLogger(f"{APP_LOGGER}.{name}")


def configure_logging(level: str = "INFO"):
    """
    Configure application-wide logging to prevent duplicates.
    """
    # Disable uvicorn access logging, LoggingMiddleware covers requests
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level.upper())
    for existing in app_logger.handlers[:]:
        app_logger.removeHandler(existing)
    app_logger.addHandler(handler)
    app_logger.propagate = False

    # Third-party warnings still reach stdout through the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
