"""Exception types and error codes for the task management core."""

from enum import Enum


class TaskManagerError(Exception):
    """Base class for task manager exceptions."""


class InvalidFieldError(TaskManagerError):
    """Raised when a Task field is assigned a value that breaks its rules.

    Not a ``ValueError`` subclass: pydantic wraps ``ValueError`` raised from
    validators into a ``ValidationError``, while other exceptions propagate
    unchanged. Keeping it separate lets callers catch the field and message
    directly from both construction and attribute assignment.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def as_errors(self) -> dict:
        """Return the error in the validation-mapping shape."""
        return {self.field: [self.message]}


class ErrorCode(str, Enum):
    """Error codes carried by failed operation results."""
    MISSING_ID = "MISSING_ID"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    OPERATION_NOT_ALLOWED = "OPERATION_NOT_ALLOWED"
    INVALID_JSON = "INVALID_JSON"
    CREATION_ERROR = "CREATION_ERROR"
    UPDATE_ERROR = "UPDATE_ERROR"
    DELETE_ERROR = "DELETE_ERROR"
    COMPLETE_ERROR = "COMPLETE_ERROR"
    START_ERROR = "START_ERROR"
    DUPLICATE_ERROR = "DUPLICATE_ERROR"
    STATISTICS_ERROR = "STATISTICS_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class InvalidPayloadError(TaskManagerError):
    """Raised when a request body is not a JSON object or form."""
