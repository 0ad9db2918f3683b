"""Request/response schemas and service result types."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from .errors import ErrorCode
from .models.task import Task, TaskPriority, TaskStatus, format_timestamp
from .validators import rules


def render(value: Any) -> Any:
    """Convert result data into JSON-ready primitives."""
    if isinstance(value, Task):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return {name: render(item) for name, item in value}
    if isinstance(value, (list, tuple)):
        return [render(item) for item in value]
    if isinstance(value, dict):
        return {getattr(key, "value", key): render(item) for key, item in value.items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


class OperationResult(BaseModel):
    """Uniform outcome of every service operation."""
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Optional[Any] = Field(None, description="Entity, list or aggregate produced")
    errors: Optional[Dict[str, List[str]]] = Field(None, description="Messages per field")
    error_code: Optional[ErrorCode] = Field(None, description="Machine-readable failure code")

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error_code: ErrorCode,
             errors: Optional[Dict[str, List[str]]] = None) -> "OperationResult":
        return cls(success=False, message=message, error_code=error_code, errors=errors)

    def to_response(self) -> Dict[str, Any]:
        """Serialize for an HTTP body, omitting absent keys."""
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            body["data"] = render(self.data)
        if self.errors:
            body["errors"] = self.errors
        if self.error_code is not None:
            body["error_code"] = self.error_code.value
        return body


class TaskChanges(BaseModel):
    """Typed field changes taken from a sanitized and validated payload.

    Only keys present with a non-null value become changes. An empty string
    for ``description``, ``due_date`` or ``category_id`` clears the field.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    user_id: Optional[int] = None
    category_id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "TaskChanges":
        changes: Dict[str, Any] = {}

        for field in cls.model_fields:
            value = data.get(field)
            if value is None:
                continue

            if field == "due_date":
                changes[field] = rules.parse_due_date(value) if value != "" else None
            elif field in ("user_id", "category_id"):
                changes[field] = rules.coerce_id(value)
            else:
                changes[field] = value

        return cls(**changes)

    def apply_to(self, task: Task, exclude: Iterable[str] = ()) -> Task:
        """Assign every present change to ``task`` through its validating setters."""
        for field in self.model_fields_set - set(exclude):
            setattr(task, field, getattr(self, field))
        return task


class Pagination(BaseModel):
    """Pagination metadata for task listings."""
    total: int = Field(..., description="Number of tasks matching the filters")
    page: int = Field(..., description="Current page, starting at 1")
    limit: int = Field(..., description="Page size")
    total_pages: int = Field(..., description="Number of pages")


class TaskPage(BaseModel):
    """One page of tasks."""
    tasks: List[Task] = Field(..., description="Tasks on this page")
    pagination: Pagination = Field(..., description="Pagination metadata")


class TaskStatistics(BaseModel):
    """Aggregate figures over a user's tasks."""
    total: int = Field(..., description="Total number of tasks")
    by_status: Dict[str, int] = Field(..., description="Task count per status")
    by_priority: Dict[str, int] = Field(..., description="Task count per priority")
    overdue: int = Field(..., description="Number of overdue tasks")
    completion_rate: float = Field(..., description="Completed tasks as a percentage")
    overdue_tasks: List[Task] = Field(default_factory=list, description="Overdue tasks, earliest due first")


class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")
    version: str = Field(default="1.0.0", description="Application version")
    services: Dict[str, str] = Field(default_factory=dict, description="Service initialization state")
