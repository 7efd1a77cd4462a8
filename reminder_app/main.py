from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.cors import CORSMiddleware

from reminder_app.api.v1 import api_router
from reminder_app.api.v1.exception_handlers import register_exception_handlers
from reminder_app.core.config import settings
from reminder_app.db.session import db_manager
from reminder_app.middlewares.logging_middleware import LoggingMiddleware
from reminder_app.services.notification_sender import build_sender
from reminder_app.tasks.reminder_tasks import ReminderScheduler
from reminder_app.utils.logger import configure_logging, get_logger


# Configure logging to prevent duplicates
configure_logging("DEBUG" if settings.debug else settings.log_level)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.database.create_tables:
        db_manager.create_tables()

    # One sender shared by the timer and the manual trigger
    app.state.notification_sender = build_sender()
    scheduler = None
    if settings.scheduler.enabled:
        scheduler = ReminderScheduler(sender=app.state.notification_sender)
        scheduler.start()
    app.state.reminder_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(title="Reminder Dispatch Service", lifespan=lifespan)

allowed_origins = settings.allowed_hosts_list or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]
logger.info(f"CORS allowed origins: {allowed_origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)

# Prometheus instrumentation
Instrumentator().instrument(app).expose(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    scheduler = getattr(app.state, "reminder_scheduler", None)
    return {
        "status": "healthy",
        "message": "Backend is running",
        "scheduler_running": bool(scheduler and scheduler.running),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
