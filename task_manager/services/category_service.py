"""Category service with plain CRUD over the category repository."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .. import messages
from ..errors import ErrorCode
from ..models.category import Category
from ..repositories.memory import CategoryRepository, InMemoryCategoryRepository
from ..schemas import OperationResult
from ..utils.clock import Clock, current_time
from ..validators import rules

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "color", "description")


class CategoryService:
    """Service for managing categories.

    Like the task service, every public method returns an ``OperationResult``
    and storage failures are logged and reported rather than raised.
    """

    def __init__(self, repository: Optional[CategoryRepository] = None,
                 clock: Clock = current_time):
        self._repository = repository if repository is not None else InMemoryCategoryRepository()
        self._clock = clock
        logger.info("Category service initialized")

    @property
    def repository(self) -> CategoryRepository:
        """Storage shared with the task service for category existence checks."""
        return self._repository

    @staticmethod
    def _missing_id(category_id: Any) -> Optional[OperationResult]:
        if not category_id or (isinstance(category_id, int) and category_id <= 0):
            return OperationResult.fail(messages.CATEGORY_ID_REQUIRED, ErrorCode.MISSING_ID)
        return None

    @staticmethod
    def _not_found(category_id: Any) -> OperationResult:
        logger.warning(f"Category {category_id} not found")
        return OperationResult.fail(messages.CATEGORY_NOT_FOUND, ErrorCode.CATEGORY_NOT_FOUND)

    @staticmethod
    def _invalid(error: ValidationError) -> OperationResult:
        errors: Dict[str, List[str]] = {}
        for item in error.errors():
            field = str(item["loc"][0]) if item["loc"] else "category"
            errors.setdefault(field, []).append(item["msg"])
        logger.warning(f"Category payload rejected: {errors}")
        return OperationResult.fail(messages.INVALID_INPUT, ErrorCode.VALIDATION_ERROR, errors)

    @staticmethod
    def _editable(data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = rules.sanitize(data)
        return {key: payload[key] for key in EDITABLE_FIELDS if payload.get(key) is not None}

    def create_category(self, data: Mapping[str, Any], user_id: int) -> OperationResult:
        """Create a category owned by ``user_id``.

        Args:
            data: Raw fields (name, color, description)
            user_id: Owner of the new category

        Returns:
            Result carrying the stored category
        """
        try:
            now = self._clock()
            category = Category(user_id=user_id, created_at=now, updated_at=now, **self._editable(data))
            saved = self._repository.save(category)

            logger.info(f"Created category {saved.id}: {saved.name}")
            return OperationResult.ok(messages.CATEGORY_CREATED, saved)

        except ValidationError as e:
            return self._invalid(e)
        except Exception as e:
            logger.error(f"Error creating category: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category_create", e), ErrorCode.CREATION_ERROR)

    def update_category(self, category_id: int, data: Mapping[str, Any]) -> OperationResult:
        """Update the name, color or description of a category.

        Absent fields keep their values; an empty description clears it.
        Ownership and creation time never change.

        Args:
            category_id: Category ID
            data: Raw fields (name, color, description)

        Returns:
            Result carrying the updated category
        """
        missing = self._missing_id(category_id)
        if missing:
            return missing

        try:
            existing = self._repository.get(category_id)
            if existing is None:
                return self._not_found(category_id)

            changes = self._editable(data)
            if changes.get("description") == "":
                changes["description"] = None

            fields = existing.model_dump()
            fields.update(changes)
            fields["updated_at"] = self._clock()
            saved = self._repository.save(Category(**fields))

            logger.info(f"Updated category {category_id}: {saved.name}")
            return OperationResult.ok(messages.CATEGORY_UPDATED, saved)

        except ValidationError as e:
            return self._invalid(e)
        except Exception as e:
            logger.error(f"Error updating category {category_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category_update", e), ErrorCode.UPDATE_ERROR)

    def get_category(self, category_id: int) -> OperationResult:
        missing = self._missing_id(category_id)
        if missing:
            return missing

        try:
            category = self._repository.get(category_id)
            if category is None:
                return self._not_found(category_id)
            return OperationResult.ok(messages.CATEGORY_FOUND, category)

        except Exception as e:
            logger.error(f"Error getting category {category_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category_get", e), ErrorCode.INTERNAL_ERROR)

    def list_categories(self, user_id: int) -> OperationResult:
        try:
            categories = sorted(self._repository.list_for_user(user_id), key=lambda c: c.name.lower())
            return OperationResult.ok(messages.CATEGORIES_LISTED, categories)

        except Exception as e:
            logger.error(f"Error listing categories: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category_list", e), ErrorCode.INTERNAL_ERROR)

    def delete_category(self, category_id: int) -> OperationResult:
        """Delete a category; tasks pointing at it keep their reference."""
        missing = self._missing_id(category_id)
        if missing:
            return missing

        try:
            if not self._repository.delete(category_id):
                return self._not_found(category_id)

            logger.info(f"Deleted category {category_id}")
            return OperationResult.ok(messages.CATEGORY_DELETED)

        except Exception as e:
            logger.error(f"Error deleting category {category_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category_delete", e), ErrorCode.DELETE_ERROR)


# Global category service instance - will be initialized during app startup
_category_service: Optional[CategoryService] = None


def get_category_service() -> Optional[CategoryService]:
    """Get the global category service instance."""
    return _category_service


def initialize_category_service(repository: Optional[CategoryRepository] = None) -> CategoryService:
    """Initialize the global category service instance."""
    global _category_service
    _category_service = CategoryService(repository)
    return _category_service
