"""Task management REST routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..deps import get_settings, get_task_service
from ..services.task_service import TaskService
from .responses import read_payload, respond

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_tasks(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None, ge=1),
    search: Optional[str] = Query(None),
    task_service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """List the acting user's tasks, newest first.

    Args:
        page: Page number
        limit: Tasks per page, capped at ``max_page_size``
        status_filter: Filter by task status
        priority: Filter by priority
        category_id: Filter by category
        search: Case-insensitive title search
        task_service: Task service instance
        settings: Application settings

    Returns:
        Page of tasks with pagination metadata
    """
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    logger.debug(
        f"Listing tasks with filters: status={status_filter}, priority={priority}, "
        f"category_id={category_id}, search={search}"
    )

    result = task_service.list_tasks(
        settings.default_user_id,
        page=page,
        limit=page_size,
        status=status_filter,
        priority=priority,
        category_id=category_id,
        search=search,
    )
    return respond(result)


@router.get("/statistics")
async def get_task_statistics(
    task_service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Get task statistics for the acting user."""
    logger.debug("Getting task statistics")
    return respond(task_service.get_statistics(settings.default_user_id))


@router.get("/overdue")
async def list_overdue_tasks(
    task_service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    return respond(task_service.get_overdue_tasks(settings.default_user_id))


@router.post("")
async def create_task(
    request: Request,
    task_service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Create a new task from a JSON or form body.

    The owner is always the acting user; a ``user_id`` in the body is ignored.
    """
    data = await read_payload(request)
    data["user_id"] = settings.default_user_id

    logger.info(f"Creating new task: {data.get('title')}")
    return respond(task_service.create_task(data), status.HTTP_201_CREATED)


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    logger.debug(f"Getting task: {task_id}")
    return respond(task_service.get_task(task_id))


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    request: Request,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    """Update a pending task with the fields present in the body."""
    data = await read_payload(request)

    logger.info(f"Updating task: {task_id}")
    return respond(task_service.update_task(task_id, data))


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    logger.info(f"Deleting task: {task_id}")
    return respond(task_service.delete_task(task_id))


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    return respond(task_service.complete_task(task_id))


@router.post("/{task_id}/start")
async def start_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    return respond(task_service.start_task(task_id))


@router.post("/{task_id}/duplicate")
async def duplicate_task(
    task_id: int,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    logger.info(f"Duplicating task: {task_id}")
    return respond(task_service.duplicate_task(task_id), status.HTTP_201_CREATED)


@router.patch("/{task_id}/priority")
async def change_priority(
    task_id: int,
    request: Request,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    data = await read_payload(request)
    return respond(task_service.change_priority(task_id, data.get("priority")))


@router.patch("/{task_id}/category")
async def move_to_category(
    task_id: int,
    request: Request,
    task_service: TaskService = Depends(get_task_service),
) -> JSONResponse:
    """Move a task to a category; a null or empty ``category_id`` clears it."""
    data = await read_payload(request)
    return respond(task_service.move_to_category(task_id, data.get("category_id")))
