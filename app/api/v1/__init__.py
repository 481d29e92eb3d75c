"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    health,
    lessons,
    notifications,
    reports,
    tutors,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(tutors.router, prefix="/tutors", tags=["tutors"])
api_router.include_router(lessons.router, prefix="/lessons", tags=["lessons"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
