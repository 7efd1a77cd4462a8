from fastapi import APIRouter
from reminder_app.api.v1.routers.admin_router import admin_router
from reminder_app.api.v1.routers.event_router import event_router

api_router = APIRouter()

api_router.include_router(event_router)
api_router.include_router(admin_router)
