"""Category REST routes."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..deps import get_category_service, get_settings
from ..services.category_service import CategoryService
from .responses import read_payload, respond

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_categories(
    category_service: CategoryService = Depends(get_category_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    return respond(category_service.list_categories(settings.default_user_id))


@router.post("")
async def create_category(
    request: Request,
    category_service: CategoryService = Depends(get_category_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Create a category owned by the acting user."""
    data = await read_payload(request)

    logger.info(f"Creating new category: {data.get('name')}")
    result = category_service.create_category(data, settings.default_user_id)
    return respond(result, status.HTTP_201_CREATED)


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    category_service: CategoryService = Depends(get_category_service),
) -> JSONResponse:
    return respond(category_service.get_category(category_id))


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    request: Request,
    category_service: CategoryService = Depends(get_category_service),
) -> JSONResponse:
    """Update a category with the fields present in the body."""
    data = await read_payload(request)

    logger.info(f"Updating category: {category_id}")
    return respond(category_service.update_category(category_id, data))


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    category_service: CategoryService = Depends(get_category_service),
) -> JSONResponse:
    logger.info(f"Deleting category: {category_id}")
    return respond(category_service.delete_category(category_id))
