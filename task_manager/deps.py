"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import HTTPException, status

from .config import Settings, settings
from .services import category_service, task_service
from .services.category_service import CategoryService
from .services.task_service import TaskService


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return settings


def get_task_service() -> TaskService:
    """Get the task service initialized at startup."""
    service = task_service.get_task_service()
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task service not initialized",
        )
    return service


def get_category_service() -> CategoryService:
    """Get the category service initialized at startup."""
    service = category_service.get_category_service()
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Category service not initialized",
        )
    return service
