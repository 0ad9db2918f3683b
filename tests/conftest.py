"""Shared test fixtures and configuration for the test suite."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
sys.path.append(str(Path(__file__).parent.parent))

from task_manager.config import Settings
from task_manager.deps import get_category_service, get_settings, get_task_service
from task_manager.main import create_app
from task_manager.repositories.memory import InMemoryCategoryRepository, InMemoryTaskRepository
from task_manager.services.category_service import CategoryService
from task_manager.services.task_service import TaskService

# 2024-01-10 is a Wednesday, 2024-01-13 a Saturday and 2024-01-14 a Sunday.
WEDNESDAY = datetime(2024, 1, 10, 10, 0, 0)
SATURDAY = datetime(2024, 1, 13, 10, 0, 0)
SUNDAY = datetime(2024, 1, 14, 10, 0, 0)


class FixedClock:
    """Clock that stays put until a test moves it."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> None:
        self.moment += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed on a Wednesday morning."""
    return FixedClock(WEDNESDAY)


@pytest.fixture
def saturday_clock() -> FixedClock:
    """Clock fixed on a Saturday morning."""
    return FixedClock(SATURDAY)


@pytest.fixture
def task_repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def category_repository() -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository()


@pytest.fixture
def task_service(task_repository, category_repository, clock) -> TaskService:
    """Task service wired to in-memory storage and the Wednesday clock."""
    return TaskService(task_repository, category_repository, clock=clock)


@pytest.fixture
def category_service(category_repository, clock) -> CategoryService:
    return CategoryService(category_repository, clock=clock)


@pytest.fixture
def test_settings() -> Settings:
    """Settings that keep logs out of the filesystem."""
    return Settings(
        log_level="DEBUG",
        log_to_file=False,
        environment="test",
        default_user_id=1,
        default_page_size=10,
        max_page_size=100,
    )


@pytest.fixture
def client(test_settings, task_service, category_service) -> Generator[TestClient, None, None]:
    """Create a test client whose services use the fixtures above."""
    with patch("task_manager.main.setup_logging"):
        app = create_app(test_settings)
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_task_service] = lambda: task_service
        app.dependency_overrides[get_category_service] = lambda: category_service

        with TestClient(app) as test_client:
            yield test_client


# Test data fixtures
@pytest.fixture
def sample_task_data():
    """Valid creation payload for the Wednesday clock."""
    return {
        "title": "Revisar relatório trimestral",
        "description": "Conferir os números antes da reunião",
        "priority": "high",
        "due_date": "2024-01-20 18:00:00",
        "user_id": 1,
    }
