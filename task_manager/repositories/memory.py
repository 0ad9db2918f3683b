"""In-memory storage for tasks and categories."""

import logging
from itertools import count
from threading import Lock
from typing import Dict, List, Optional, Protocol

from ..models.category import Category
from ..models.task import Task

logger = logging.getLogger(__name__)


class TaskRepository(Protocol):
    """Data-access primitives the task service depends on."""

    def get(self, task_id: int) -> Optional[Task]: ...

    def save(self, task: Task) -> Task: ...

    def delete(self, task_id: int) -> bool: ...

    def list_for_user(self, user_id: int) -> List[Task]: ...


class CategoryRepository(Protocol):
    """Data-access primitives for categories."""

    def get(self, category_id: int) -> Optional[Category]: ...

    def exists(self, category_id: int) -> bool: ...

    def save(self, category: Category) -> Category: ...

    def delete(self, category_id: int) -> bool: ...

    def list_for_user(self, user_id: int) -> List[Category]: ...


class InMemoryTaskRepository:
    """Task storage backed by a dict.

    Each call holds the lock for its own duration only, the way a single SQL
    statement is atomic. Tasks are copied on the way in and out, so callers
    never share an instance with storage.
    """

    def __init__(self):
        self._tasks: Dict[int, Task] = {}
        self._ids = count(1)
        self._lock = Lock()
        logger.info("Task repository initialized with in-memory storage")

    def get(self, task_id: int) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.debug(f"Task {task_id} not found")
                return None
            return task.model_copy(deep=True)

    def save(self, task: Task) -> Task:
        """Insert or overwrite a task.

        Args:
            task: Task to store; an id is assigned if it has none

        Returns:
            Copy of the stored task
        """
        with self._lock:
            stored = task.model_copy(deep=True)
            if stored.id is None:
                stored.id = next(self._ids)
                logger.debug(f"Inserted task {stored.id}")
            else:
                logger.debug(f"Overwrote task {stored.id}")
            self._tasks[stored.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, task_id: int) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def list_for_user(self, user_id: int) -> List[Task]:
        with self._lock:
            return [
                task.model_copy(deep=True)
                for task in self._tasks.values()
                if task.user_id == user_id
            ]


class InMemoryCategoryRepository:
    """Category storage backed by a dict."""

    def __init__(self):
        self._categories: Dict[int, Category] = {}
        self._ids = count(1)
        self._lock = Lock()

    def get(self, category_id: int) -> Optional[Category]:
        with self._lock:
            category = self._categories.get(category_id)
            return category.model_copy(deep=True) if category else None

    def exists(self, category_id: int) -> bool:
        with self._lock:
            return category_id in self._categories

    def save(self, category: Category) -> Category:
        with self._lock:
            stored = category.model_copy(deep=True)
            if stored.id is None:
                stored.id = next(self._ids)
            self._categories[stored.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, category_id: int) -> bool:
        with self._lock:
            return self._categories.pop(category_id, None) is not None

    def list_for_user(self, user_id: int) -> List[Category]:
        with self._lock:
            return [
                category.model_copy(deep=True)
                for category in self._categories.values()
                if category.user_id == user_id
            ]
