from fastapi import APIRouter

from classboard.api.v1 import classes, health, members, notifications, profiles, schedules, websocket


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
api_router.include_router(classes.router, prefix="/classes", tags=["classes"])
api_router.include_router(members.router, prefix="", tags=["members"])
api_router.include_router(schedules.router, prefix="", tags=["schedules"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(websocket.router, prefix="/ws", tags=["websocket"])
