"""Task domain model."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .. import messages
from ..errors import InvalidFieldError
from ..utils.clock import current_time
from ..validators import rules
from .enums import TaskPriority, TaskStatus

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Assigning any of these counts as a content edit and refreshes updated_at.
# id and user_id are housekeeping and leave it alone.
CONTENT_FIELDS = frozenset({
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "category_id",
})


def _first_error(field: str, errors: list) -> None:
    if errors:
        raise InvalidFieldError(field, errors[0])


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


class Task(BaseModel):
    """Task domain model.

    Every validating field is checked on construction and on assignment and
    raises ``InvalidFieldError`` with the same message the payload validator
    produces. Setting ``status`` keeps ``completed_at`` in step: it is stamped
    the first time the task becomes completed and cleared as soon as it
    becomes anything else.
    """

    id: Optional[int] = Field(None, description="Identity assigned on first save")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    due_date: Optional[datetime] = Field(None, description="Due date")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    user_id: int = Field(..., description="Owner of the task")
    category_id: Optional[int] = Field(None, description="Category reference")
    created_at: datetime = Field(default_factory=current_time, description="Task creation timestamp")
    updated_at: datetime = Field(default_factory=current_time, description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        validate_assignment = True

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: Any) -> str:
        _first_error("title", rules.check_title(value))
        return value.strip()

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        _first_error("description", rules.check_description(value))
        return value.strip() or None

    @field_validator("status", mode="before")
    @classmethod
    def _check_status(cls, value: Any) -> Any:
        _first_error("status", rules.check_status(value))
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _check_priority(cls, value: Any) -> Any:
        _first_error("priority", rules.check_priority(value))
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def _check_due_date(cls, value: Any) -> Optional[datetime]:
        if value is None or value == "":
            return None
        try:
            return rules.parse_due_date(value)
        except ValueError:
            raise InvalidFieldError("due_date", messages.DUE_DATE_INVALID)

    @field_validator("user_id", mode="before")
    @classmethod
    def _check_user_id(cls, value: Any) -> int:
        if not rules.is_positive_number(value):
            raise InvalidFieldError("user_id", messages.USER_ID_NOT_POSITIVE)
        return rules.coerce_id(value)

    @field_validator("category_id", mode="before")
    @classmethod
    def _check_category_id(cls, value: Any) -> Optional[int]:
        _first_error("category_id", rules.check_category_id(value))
        return rules.coerce_id(value)

    def model_post_init(self, context: Any) -> None:
        if self.status == TaskStatus.COMPLETED and self.completed_at is None:
            self.completed_at = current_time()

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)

        if name == "status":
            self._sync_completed_at()

        if name in CONTENT_FIELDS:
            self.update_timestamp()

    def _sync_completed_at(self) -> None:
        if self.status == TaskStatus.COMPLETED:
            if self.completed_at is None:
                self.completed_at = current_time()
        else:
            self.completed_at = None

    def update_timestamp(self, now: Optional[datetime] = None) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = now or current_time()

    def mark_completed(self) -> None:
        """Mark task as completed."""
        self.status = TaskStatus.COMPLETED

    def mark_in_progress(self) -> None:
        """Mark task as in progress."""
        self.status = TaskStatus.IN_PROGRESS

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_in_progress(self) -> bool:
        return self.status == TaskStatus.IN_PROGRESS

    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """A task is overdue when it has a due date in the past and is not completed."""
        if self.due_date is None or self.is_completed():
            return False
        return self.due_date < (now or current_time())

    def to_dict(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Render the task in the API response shape."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "due_date": format_timestamp(self.due_date),
            "completed_at": format_timestamp(self.completed_at),
            "user_id": self.user_id,
            "category_id": self.category_id,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "is_completed": self.is_completed(),
            "is_in_progress": self.is_in_progress(),
            "is_pending": self.is_pending(),
            "is_overdue": self.is_overdue(now),
        }

    @staticmethod
    def available_statuses() -> Dict[str, str]:
        return {status.value: messages.STATUS_LABELS[status.value] for status in TaskStatus}

    @staticmethod
    def available_priorities() -> Dict[str, str]:
        return {priority.value: messages.PRIORITY_LABELS[priority.value] for priority in TaskPriority}


__all__ = ["Task", "TaskStatus", "TaskPriority", "format_timestamp"]
