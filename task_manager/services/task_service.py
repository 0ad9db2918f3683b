"""Task service orchestrating validation, eligibility checks and persistence."""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .. import messages
from ..errors import ErrorCode, InvalidFieldError
from ..models.task import Task, TaskPriority, TaskStatus
from ..repositories.memory import CategoryRepository, InMemoryTaskRepository, TaskRepository
from ..schemas import OperationResult, Pagination, TaskChanges, TaskPage, TaskStatistics
from ..utils.clock import Clock, current_time
from ..validators import operation_gate, rules

logger = logging.getLogger(__name__)

COPY_SUFFIX = " - Cópia"


class TaskService:
    """Service for the task lifecycle.

    Every public method returns an ``OperationResult``; nothing raises across
    this boundary. The read-check-write sequences are not locked, so two
    callers mutating the same task race and the last save wins.
    """

    def __init__(
        self,
        repository: Optional[TaskRepository] = None,
        category_repository: Optional[CategoryRepository] = None,
        clock: Clock = current_time,
    ):
        """Initialize the task service.

        Args:
            repository: Task storage; in-memory storage when omitted
            category_repository: Used to check that referenced categories exist
            clock: Source of "now" for the temporal rules
        """
        self._repository = repository if repository is not None else InMemoryTaskRepository()
        self._categories = category_repository
        self._clock = clock
        logger.info("Task service initialized")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _missing_id(task_id: Any) -> Optional[OperationResult]:
        if not task_id or (isinstance(task_id, int) and task_id <= 0):
            return OperationResult.fail(messages.TASK_ID_REQUIRED, ErrorCode.MISSING_ID)
        return None

    @staticmethod
    def _not_found(task_id: int) -> OperationResult:
        logger.warning(f"Task {task_id} not found")
        return OperationResult.fail(messages.TASK_NOT_FOUND, ErrorCode.TASK_NOT_FOUND)

    @staticmethod
    def _invalid(errors: Dict[str, List[str]]) -> OperationResult:
        logger.warning(f"Task payload rejected: {errors}")
        return OperationResult.fail(messages.INVALID_INPUT, ErrorCode.VALIDATION_ERROR, errors)

    @staticmethod
    def _not_allowed(task_id: int, errors: List[str]) -> OperationResult:
        logger.warning(f"Operation not allowed on task {task_id}")
        return OperationResult.fail(
            messages.OPERATION_NOT_ALLOWED,
            ErrorCode.OPERATION_NOT_ALLOWED,
            {"operation": errors},
        )

    def _category_errors(self, payload: Mapping[str, Any]) -> Dict[str, List[str]]:
        if self._categories is None:
            return {}

        category_id = payload.get("category_id")
        if category_id in (None, "") or not rules.is_positive_number(category_id):
            return {}

        if not self._categories.exists(rules.coerce_id(category_id)):
            return {"category_id": [messages.CATEGORY_NOT_FOUND]}
        return {}

    def _check_payload(self, data: Mapping[str, Any], is_create: bool,
                       now: datetime) -> tuple:
        payload = rules.sanitize(data)
        errors = rules.validate(payload, is_create=is_create, now=now)
        if "category_id" not in errors:
            errors.update(self._category_errors(payload))
        return payload, errors

    @staticmethod
    def _stamp(task: Task, completed_at_before: Optional[datetime], now: datetime) -> None:
        """Re-stamp the timestamps the entity set on its own with the service clock."""
        if task.completed_at is not None and completed_at_before is None:
            task.completed_at = now
        task.update_timestamp(now)

    @staticmethod
    def _copy_title(title: str) -> str:
        room = messages.TITLE_MAX_LENGTH - len(COPY_SUFFIX)
        return title[:room].rstrip() + COPY_SUFFIX

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------

    def create_task(self, data: Mapping[str, Any]) -> OperationResult:
        """Create a new task.

        The payload is sanitized and validated as a creation, which includes
        the weekday rule and the "due date not in the past" rule.

        Args:
            data: Raw field mapping (title, description, status, priority,
                due_date, user_id, category_id)

        Returns:
            Result carrying the stored task, or the validation errors
        """
        try:
            now = self._clock()
            payload, errors = self._check_payload(data, is_create=True, now=now)
            if errors:
                return self._invalid(errors)

            changes = TaskChanges.from_payload(payload)
            task = Task(created_at=now, updated_at=now, **changes.model_dump(exclude_unset=True))
            self._stamp(task, None, now)
            saved = self._repository.save(task)

            logger.info(f"Created task {saved.id}: {saved.title}")
            return OperationResult.ok(messages.TASK_CREATED, saved)

        except InvalidFieldError as e:
            return self._invalid(e.as_errors())
        except Exception as e:
            logger.error(f"Error creating task: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("create", e), ErrorCode.CREATION_ERROR)

    def update_task(self, task_id: int, data: Mapping[str, Any]) -> OperationResult:
        """Update a pending task with the fields present in ``data``.

        Args:
            task_id: Task ID
            data: Raw field mapping; absent fields keep their values

        Returns:
            Result carrying the updated task
        """
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            gate_errors = operation_gate.check_update_allowed(task.status)
            if gate_errors:
                return self._not_allowed(task_id, gate_errors)

            now = self._clock()
            payload, errors = self._check_payload(data, is_create=False, now=now)
            if errors:
                return self._invalid(errors)

            completed_at = task.completed_at
            TaskChanges.from_payload(payload).apply_to(task, exclude=("user_id",))
            self._stamp(task, completed_at, now)
            saved = self._repository.save(task)

            logger.info(f"Updated task {task_id}: {saved.title}")
            return OperationResult.ok(messages.TASK_UPDATED, saved)

        except InvalidFieldError as e:
            return self._invalid(e.as_errors())
        except Exception as e:
            logger.error(f"Error updating task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("update", e), ErrorCode.UPDATE_ERROR)

    def delete_task(self, task_id: int) -> OperationResult:
        """Delete a pending task that is at least five days old.

        Args:
            task_id: Task ID

        Returns:
            Successful result if the task was removed
        """
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            gate_errors = operation_gate.check_delete_allowed(
                task.status, task.created_at, now=self._clock()
            )
            if gate_errors:
                return self._not_allowed(task_id, gate_errors)

            if not self._repository.delete(task_id):
                logger.error(f"Task {task_id} vanished before it could be deleted")
                return OperationResult.fail(messages.FAILURE_PREFIXES["delete"], ErrorCode.DELETE_ERROR)

            logger.info(f"Deleted task {task_id}: {task.title}")
            return OperationResult.ok(messages.TASK_DELETED)

        except Exception as e:
            logger.error(f"Error deleting task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("delete", e), ErrorCode.DELETE_ERROR)

    def complete_task(self, task_id: int) -> OperationResult:
        """Mark a task as completed. Not subject to the pending-only rule."""
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            old_status = task.status
            completed_at = task.completed_at
            task.mark_completed()
            self._stamp(task, completed_at, self._clock())
            saved = self._repository.save(task)

            logger.info(f"Updated task {task_id} status: {old_status.value} -> {saved.status.value}")
            return OperationResult.ok(messages.TASK_COMPLETED, saved)

        except Exception as e:
            logger.error(f"Error completing task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("complete", e), ErrorCode.COMPLETE_ERROR)

    def start_task(self, task_id: int) -> OperationResult:
        """Mark a task as in progress. Not subject to the pending-only rule."""
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            old_status = task.status
            completed_at = task.completed_at
            task.mark_in_progress()
            self._stamp(task, completed_at, self._clock())
            saved = self._repository.save(task)

            logger.info(f"Updated task {task_id} status: {old_status.value} -> {saved.status.value}")
            return OperationResult.ok(messages.TASK_STARTED, saved)

        except Exception as e:
            logger.error(f"Error starting task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("start", e), ErrorCode.START_ERROR)

    def duplicate_task(self, task_id: int) -> OperationResult:
        """Store a pending copy of a task.

        The copy keeps the original's due date even if it is already past;
        neither the weekday rule nor the due date rule applies here.
        """
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            original = self._repository.get(task_id)
            if original is None:
                return self._not_found(task_id)

            now = self._clock()
            copy = Task(
                title=self._copy_title(original.title),
                description=original.description,
                status=TaskStatus.PENDING,
                priority=original.priority,
                due_date=original.due_date,
                user_id=original.user_id,
                category_id=original.category_id,
                created_at=now,
                updated_at=now,
            )
            saved = self._repository.save(copy)

            logger.info(f"Duplicated task {task_id} as {saved.id}")
            return OperationResult.ok(messages.TASK_DUPLICATED, saved)

        except InvalidFieldError as e:
            return self._invalid(e.as_errors())
        except Exception as e:
            logger.error(f"Error duplicating task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("duplicate", e), ErrorCode.DUPLICATE_ERROR)

    def change_priority(self, task_id: int, priority: Any) -> OperationResult:
        """Set a task's priority directly, without the pending-only rule."""
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            if priority is None:
                accepted = [member.value for member in TaskPriority]
                return self._invalid({"priority": [messages.invalid_priority(accepted)]})

            task.priority = priority
            self._stamp(task, task.completed_at, self._clock())
            saved = self._repository.save(task)

            logger.info(f"Changed priority of task {task_id} to {saved.priority.value}")
            return OperationResult.ok(messages.PRIORITY_CHANGED, saved)

        except InvalidFieldError as e:
            return self._invalid(e.as_errors())
        except Exception as e:
            logger.error(f"Error changing priority of task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("priority", e), ErrorCode.UPDATE_ERROR)

    def move_to_category(self, task_id: int, category_id: Any) -> OperationResult:
        """Move a task to another category (or out of any with None)."""
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)

            errors = self._category_errors({"category_id": category_id})
            if errors:
                return self._invalid(errors)

            task.category_id = category_id
            self._stamp(task, task.completed_at, self._clock())
            saved = self._repository.save(task)

            logger.info(f"Moved task {task_id} to category {saved.category_id}")
            return OperationResult.ok(messages.CATEGORY_CHANGED, saved)

        except InvalidFieldError as e:
            return self._invalid(e.as_errors())
        except Exception as e:
            logger.error(f"Error moving task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("category", e), ErrorCode.UPDATE_ERROR)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def get_task(self, task_id: int) -> OperationResult:
        """Get a task by ID."""
        missing = self._missing_id(task_id)
        if missing:
            return missing

        try:
            task = self._repository.get(task_id)
            if task is None:
                return self._not_found(task_id)
            logger.debug(f"Retrieved task {task_id}: {task.title}")
            return OperationResult.ok(messages.TASK_FOUND, task)

        except Exception as e:
            logger.error(f"Error getting task {task_id}: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("get", e), ErrorCode.INTERNAL_ERROR)

    def list_tasks(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> OperationResult:
        """List a user's tasks with optional filters.

        Args:
            user_id: Owner of the tasks
            page: Page number, starting at 1
            limit: Maximum number of tasks per page
            status: Filter by status
            priority: Filter by priority
            category_id: Filter by category
            search: Case-insensitive substring of the title

        Returns:
            Result carrying a ``TaskPage``, newest tasks first
        """
        errors = {}
        for field, field_errors in (
            ("status", rules.check_status(status or None)),
            ("priority", rules.check_priority(priority or None)),
        ):
            if field_errors:
                errors[field] = field_errors
        if errors:
            return self._invalid(errors)

        try:
            tasks = self._repository.list_for_user(user_id)

            if status:
                tasks = [task for task in tasks if task.status == status]
            if priority:
                tasks = [task for task in tasks if task.priority == priority]
            if category_id:
                tasks = [task for task in tasks if task.category_id == category_id]
            if search and search.strip():
                needle = search.strip().lower()
                tasks = [task for task in tasks if needle in task.title.lower()]

            tasks.sort(key=lambda t: (t.created_at, t.id or 0), reverse=True)

            page = max(page, 1)
            limit = max(limit, 1)
            total = len(tasks)
            offset = (page - 1) * limit

            result = TaskPage(
                tasks=tasks[offset:offset + limit],
                pagination=Pagination(
                    total=total,
                    page=page,
                    limit=limit,
                    total_pages=math.ceil(total / limit),
                ),
            )

            logger.debug(f"Listed {len(result.tasks)} of {total} tasks for user {user_id}")
            return OperationResult.ok(messages.TASKS_LISTED, result)

        except Exception as e:
            logger.error(f"Error listing tasks: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("list", e), ErrorCode.INTERNAL_ERROR)

    def _overdue(self, tasks: List[Task], now: datetime) -> List[Task]:
        overdue = [task for task in tasks if task.is_overdue(now)]
        overdue.sort(key=lambda t: t.due_date)
        return overdue

    def get_overdue_tasks(self, user_id: int) -> OperationResult:
        """Tasks with a past due date that are not completed, earliest due first."""
        try:
            tasks = self._repository.list_for_user(user_id)
            return OperationResult.ok(messages.TASKS_LISTED, self._overdue(tasks, self._clock()))
        except Exception as e:
            logger.error(f"Error listing overdue tasks: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("list", e), ErrorCode.INTERNAL_ERROR)

    def get_statistics(self, user_id: int) -> OperationResult:
        """Get task statistics for a user.

        Returns:
            Result carrying ``TaskStatistics``
        """
        try:
            tasks = self._repository.list_for_user(user_id)
            total = len(tasks)

            by_status = {status.value: 0 for status in TaskStatus}
            by_priority = {priority.value: 0 for priority in TaskPriority}
            for task in tasks:
                by_status[task.status.value] += 1
                by_priority[task.priority.value] += 1

            completed = by_status[TaskStatus.COMPLETED.value]
            completion_rate = (completed / total * 100) if total > 0 else 0
            overdue_tasks = self._overdue(tasks, self._clock())

            statistics = TaskStatistics(
                total=total,
                by_status=by_status,
                by_priority=by_priority,
                overdue=len(overdue_tasks),
                completion_rate=round(completion_rate, 2),
                overdue_tasks=overdue_tasks,
            )
            return OperationResult.ok(messages.STATISTICS_READY, statistics)

        except Exception as e:
            logger.error(f"Error computing statistics: {str(e)}", exc_info=True)
            return OperationResult.fail(messages.failure("statistics", e), ErrorCode.STATISTICS_ERROR)


# Global task service instance - will be initialized during app startup
_task_service: Optional[TaskService] = None


def get_task_service() -> Optional[TaskService]:
    """Get the global task service instance.

    Returns:
        Task service instance or None if not initialized
    """
    return _task_service


def initialize_task_service(
    repository: Optional[TaskRepository] = None,
    category_repository: Optional[CategoryRepository] = None,
) -> TaskService:
    """Initialize the global task service instance.

    Returns:
        Initialized task service
    """
    global _task_service
    _task_service = TaskService(repository, category_repository)
    return _task_service
