"""API router setup."""
from fastapi import APIRouter

from app.api.routes import health, students
from app.core.settings import settings

api_router = APIRouter(prefix=settings.API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(students.router)
