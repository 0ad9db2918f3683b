"""Tests for TaskService orchestration."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from task_manager import messages
from task_manager.errors import ErrorCode
from task_manager.models.category import Category
from task_manager.models.task import Task, TaskPriority, TaskStatus
from task_manager.services.task_service import COPY_SUFFIX, TaskService
from task_manager.validators.rules import CREATION_TIME_KEY

from conftest import SATURDAY, WEDNESDAY


def _create(service: TaskService, **overrides) -> Task:
    data = {"title": "Tarefa de teste", "user_id": 1}
    data.update(overrides)
    result = service.create_task(data)
    assert result.success, result.errors
    return result.data


class TestCreateTask:
    """Test task creation."""

    def test_create_task_success(self, task_service, sample_task_data):
        result = task_service.create_task(sample_task_data)

        assert result.success is True
        assert result.message == messages.TASK_CREATED
        task = result.data
        assert task.id == 1
        assert task.title == "Revisar relatório trimestral"
        assert task.priority == TaskPriority.HIGH
        assert task.status == TaskStatus.PENDING
        assert task.created_at == WEDNESDAY
        assert task.updated_at == WEDNESDAY

    def test_created_task_is_stored(self, task_service, task_repository, sample_task_data):
        task = task_service.create_task(sample_task_data).data

        stored = task_repository.get(task.id)
        assert stored.title == task.title

    def test_create_on_weekend_rejected(self, task_service, task_repository, clock, sample_task_data):
        clock.moment = SATURDAY

        result = task_service.create_task(sample_task_data)

        assert result.success is False
        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.message == messages.INVALID_INPUT
        assert CREATION_TIME_KEY in result.errors
        assert task_repository.list_for_user(1) == []

    def test_all_errors_reported(self, task_service, clock):
        clock.moment = SATURDAY

        result = task_service.create_task({"title": "ab", "status": "done"})

        assert set(result.errors) == {CREATION_TIME_KEY, "title", "status", "user_id"}

    def test_create_sanitizes_input(self, task_service):
        task = _create(
            task_service,
            title="  <b>Relatório</b> mensal ",
            description="Texto<script>alert(1)</script>",
        )

        assert task.title == "Relatório mensal"
        assert task.description == "Textoalert(1)"

    def test_markup_only_title_is_required(self, task_service):
        result = task_service.create_task({"title": "<b></b>", "user_id": 1})

        assert result.errors["title"] == [messages.TITLE_REQUIRED]

    def test_create_with_past_due_date_rejected(self, task_service):
        result = task_service.create_task(
            {"title": "Tarefa atrasada", "user_id": 1, "due_date": "2024-01-01"}
        )

        assert result.errors == {"due_date": [messages.DUE_DATE_IN_PAST]}

    def test_create_with_unknown_category_rejected(self, task_service):
        result = task_service.create_task({"title": "Tarefa", "user_id": 1, "category_id": 42})

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.errors == {"category_id": [messages.CATEGORY_NOT_FOUND]}

    def test_create_with_existing_category(self, task_service, category_repository):
        category = category_repository.save(Category(name="Trabalho", user_id=1))

        task = _create(task_service, category_id=str(category.id))

        assert task.category_id == category.id

    def test_create_completed_task_stamps_completion(self, task_service):
        task = _create(task_service, status="completed")

        assert task.completed_at == WEDNESDAY

    def test_unexpected_failure_becomes_creation_error(self, clock):
        repository = MagicMock()
        repository.save.side_effect = RuntimeError("disco cheio")
        service = TaskService(repository, clock=clock)

        result = service.create_task({"title": "Tarefa", "user_id": 1})

        assert result.success is False
        assert result.error_code == ErrorCode.CREATION_ERROR
        assert result.message == "Erro ao criar tarefa: disco cheio"


class TestUpdateTask:
    """Test task updates."""

    def test_update_pending_task(self, task_service, task_repository):
        task = _create(task_service)

        result = task_service.update_task(task.id, {"title": "Título atualizado", "priority": "urgent"})

        assert result.success is True
        assert result.message == messages.TASK_UPDATED
        stored = task_repository.get(task.id)
        assert stored.title == "Título atualizado"
        assert stored.priority == TaskPriority.URGENT

    def test_absent_fields_keep_values(self, task_service, task_repository):
        task = _create(task_service, description="Descrição original")

        task_service.update_task(task.id, {"priority": "low"})

        stored = task_repository.get(task.id)
        assert stored.title == "Tarefa de teste"
        assert stored.description == "Descrição original"

    def test_empty_due_date_clears_it(self, task_service, task_repository):
        task = _create(task_service, due_date="2024-01-20")

        task_service.update_task(task.id, {"due_date": ""})

        assert task_repository.get(task.id).due_date is None

    def test_past_due_date_allowed_on_update(self, task_service):
        task = _create(task_service)

        result = task_service.update_task(task.id, {"due_date": "2024-01-01 08:00:00"})

        assert result.success is True

    def test_update_on_weekend_allowed(self, task_service, clock):
        task = _create(task_service)
        clock.moment = SATURDAY

        assert task_service.update_task(task.id, {"title": "Sábado"}).success is True

    def test_user_id_cannot_change(self, task_service, task_repository):
        task = _create(task_service)

        task_service.update_task(task.id, {"user_id": 99, "title": "Novo dono"})

        stored = task_repository.get(task.id)
        assert stored.user_id == 1
        assert stored.title == "Novo dono"

    def test_invalid_payload_rejected(self, task_service, task_repository):
        task = _create(task_service)

        result = task_service.update_task(task.id, {"title": "ab", "priority": "x"})

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert set(result.errors) == {"title", "priority"}
        assert task_repository.get(task.id).title == "Tarefa de teste"

    @pytest.mark.parametrize("status", ["in_progress", "completed", "cancelled"])
    def test_non_pending_task_locked(self, task_service, task_repository, status):
        task = _create(task_service, status=status)

        result = task_service.update_task(task.id, {"title": "Mudança"})

        assert result.error_code == ErrorCode.OPERATION_NOT_ALLOWED
        assert result.message == messages.OPERATION_NOT_ALLOWED
        assert result.errors == {"operation": [messages.update_not_allowed(status)]}
        assert task_repository.get(task.id).title == "Tarefa de teste"

    def test_gate_checked_before_payload(self, task_service):
        """A locked task reports the lock even when the payload is also invalid."""
        task = _create(task_service)
        task_service.start_task(task.id)

        result = task_service.update_task(task.id, {"title": "ab"})

        assert result.error_code == ErrorCode.OPERATION_NOT_ALLOWED

    def test_missing_and_unknown_ids(self, task_service):
        assert task_service.update_task(0, {}).error_code == ErrorCode.MISSING_ID
        assert task_service.update_task(999, {}).error_code == ErrorCode.TASK_NOT_FOUND

    def test_concurrent_updates_last_writer_wins(self, task_service, task_repository):
        """Concurrent edits all succeed and one of them ends up stored."""
        task = _create(task_service)
        titles = [f"Versão {number}" for number in range(10)]

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(
                lambda title: task_service.update_task(task.id, {"title": title}),
                titles,
            ))

        assert all(result.success for result in results)
        assert task_repository.get(task.id).title in titles


class TestDeleteTask:
    """Test task deletion."""

    def test_new_task_cannot_be_deleted(self, task_service, task_repository):
        task = _create(task_service)

        result = task_service.delete_task(task.id)

        assert result.error_code == ErrorCode.OPERATION_NOT_ALLOWED
        assert "Aguarde mais 5 dia(s)" in result.errors["operation"][0]
        assert task_repository.get(task.id) is not None

    def test_old_pending_task_deleted(self, task_service, task_repository, clock):
        task = _create(task_service)
        clock.advance(days=5)

        result = task_service.delete_task(task.id)

        assert result.success is True
        assert result.message == messages.TASK_DELETED
        assert task_repository.get(task.id) is None

    def test_old_started_task_locked(self, task_service, clock):
        task = _create(task_service)
        task_service.start_task(task.id)
        clock.advance(days=10)

        result = task_service.delete_task(task.id)

        assert result.errors == {"operation": [messages.delete_not_allowed("in_progress")]}

    def test_recent_completed_task_reports_both_reasons(self, task_service):
        task = _create(task_service, status="completed")

        result = task_service.delete_task(task.id)

        assert len(result.errors["operation"]) == 2

    def test_missing_and_unknown_ids(self, task_service):
        assert task_service.delete_task(0).error_code == ErrorCode.MISSING_ID
        assert task_service.delete_task(None).error_code == ErrorCode.MISSING_ID
        assert task_service.delete_task(999).error_code == ErrorCode.TASK_NOT_FOUND

    def test_storage_refusal_becomes_delete_error(self, clock):
        repository = MagicMock()
        repository.get.return_value = Task(
            id=1, title="Tarefa antiga", user_id=1, created_at=WEDNESDAY - timedelta(days=10)
        )
        repository.delete.return_value = False
        service = TaskService(repository, clock=clock)

        result = service.delete_task(1)

        assert result.error_code == ErrorCode.DELETE_ERROR


class TestStatusShortcuts:
    """Complete and start bypass the pending-only rule."""

    def test_complete_task(self, task_service, task_repository):
        task = _create(task_service)

        result = task_service.complete_task(task.id)

        assert result.success is True
        assert result.message == messages.TASK_COMPLETED
        stored = task_repository.get(task.id)
        assert stored.status == TaskStatus.COMPLETED
        assert stored.completed_at is not None

    def test_complete_started_task(self, task_service):
        task = _create(task_service)
        task_service.start_task(task.id)

        assert task_service.complete_task(task.id).success is True

    def test_complete_twice_keeps_completion_time(self, task_service):
        task = _create(task_service)
        first = task_service.complete_task(task.id).data.completed_at

        second = task_service.complete_task(task.id).data.completed_at

        assert second == first

    def test_start_completed_task_clears_completion(self, task_service):
        task = _create(task_service, status="completed")

        result = task_service.start_task(task.id)

        assert result.data.status == TaskStatus.IN_PROGRESS
        assert result.data.completed_at is None

    def test_unknown_task(self, task_service):
        assert task_service.complete_task(999).error_code == ErrorCode.TASK_NOT_FOUND
        assert task_service.start_task(0).error_code == ErrorCode.MISSING_ID


class TestDuplicateTask:

    def test_duplicate_task(self, task_service, sample_task_data):
        original = task_service.create_task(sample_task_data).data
        task_service.complete_task(original.id)

        result = task_service.duplicate_task(original.id)

        copy = result.data
        assert result.message == messages.TASK_DUPLICATED
        assert copy.id != original.id
        assert copy.title == "Revisar relatório trimestral" + COPY_SUFFIX
        assert copy.status == TaskStatus.PENDING
        assert copy.completed_at is None
        assert copy.priority == original.priority
        assert copy.due_date == original.due_date

    def test_duplicate_ignores_weekday_and_past_due_date(self, task_service, clock):
        original = _create(task_service, due_date="2024-01-11 09:00:00")
        clock.moment = SATURDAY

        result = task_service.duplicate_task(original.id)

        assert result.success is True
        assert result.data.due_date == original.due_date
        assert result.data.created_at == SATURDAY

    def test_long_title_truncated(self, task_service):
        original = _create(task_service, title="a" * 200)

        copy = task_service.duplicate_task(original.id).data

        assert len(copy.title) == messages.TITLE_MAX_LENGTH
        assert copy.title.endswith(COPY_SUFFIX)

    def test_unknown_task(self, task_service):
        assert task_service.duplicate_task(999).error_code == ErrorCode.TASK_NOT_FOUND


class TestDirectChanges:
    """Priority and category changes bypass the pending-only rule."""

    def test_change_priority_on_started_task(self, task_service):
        task = _create(task_service)
        task_service.start_task(task.id)

        result = task_service.change_priority(task.id, "urgent")

        assert result.success is True
        assert result.data.priority == TaskPriority.URGENT

    @pytest.mark.parametrize("priority", ["critical", None])
    def test_invalid_priority(self, task_service, priority):
        task = _create(task_service)

        result = task_service.change_priority(task.id, priority)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "priority" in result.errors

    def test_move_to_category(self, task_service, category_repository):
        category = category_repository.save(Category(name="Casa", user_id=1))
        task = _create(task_service)

        moved = task_service.move_to_category(task.id, category.id).data
        cleared = task_service.move_to_category(task.id, None).data

        assert moved.category_id == category.id
        assert cleared.category_id is None

    def test_move_to_unknown_category(self, task_service):
        task = _create(task_service)

        result = task_service.move_to_category(task.id, 42)

        assert result.errors == {"category_id": [messages.CATEGORY_NOT_FOUND]}


class TestServiceClock:
    """Timestamps written by the service come from its injected clock."""

    def test_update_stamps_updated_at(self, task_service, clock):
        task = _create(task_service)
        clock.advance(hours=1)

        updated = task_service.update_task(task.id, {"title": "Novo título"}).data

        assert updated.updated_at == clock()
        assert updated.created_at == WEDNESDAY

    def test_complete_stamps_both_timestamps(self, task_service, clock):
        task = _create(task_service)
        clock.advance(hours=2)

        completed = task_service.complete_task(task.id).data

        assert completed.completed_at == clock()
        assert completed.updated_at == clock()

    def test_second_completion_keeps_first_stamp(self, task_service, clock):
        task = _create(task_service)
        task_service.complete_task(task.id)
        clock.advance(hours=3)

        again = task_service.complete_task(task.id).data

        assert again.completed_at == WEDNESDAY
        assert again.updated_at == clock()

    def test_start_stamps_updated_at(self, task_service, clock):
        task = _create(task_service)
        clock.advance(minutes=30)

        started = task_service.start_task(task.id).data

        assert started.updated_at == clock()
        assert started.completed_at is None

    def test_direct_changes_stamp_updated_at(self, task_service, category_repository, clock):
        category = category_repository.save(Category(name="Casa", user_id=1))
        task = _create(task_service)

        clock.advance(hours=1)
        prioritized = task_service.change_priority(task.id, "low").data
        assert prioritized.updated_at == clock()

        clock.advance(hours=1)
        moved = task_service.move_to_category(task.id, category.id).data
        assert moved.updated_at == clock()

    def test_create_completed_uses_clock(self, task_service, clock):
        clock.advance(days=1)

        task = _create(task_service, status="completed")

        assert task.created_at == clock()
        assert task.completed_at == clock()
        assert task.updated_at == clock()


class TestQueries:
    """Test task lookups, listings and statistics."""

    def test_get_task(self, task_service):
        task = _create(task_service)

        assert task_service.get_task(task.id).data.title == "Tarefa de teste"
        assert task_service.get_task(999).error_code == ErrorCode.TASK_NOT_FOUND
        assert task_service.get_task(0).error_code == ErrorCode.MISSING_ID

    def test_list_tasks_newest_first(self, task_service, clock):
        for title in ("Primeira", "Segunda", "Terceira"):
            _create(task_service, title=title)
            clock.advance(minutes=1)
        _create(task_service, title="De outro usuário", user_id=2)

        page = task_service.list_tasks(1).data

        assert [task.title for task in page.tasks] == ["Terceira", "Segunda", "Primeira"]
        assert page.pagination.total == 3

    def test_list_tasks_filters(self, task_service):
        _create(task_service, title="Comprar pão", priority="low")
        _create(task_service, title="Comprar café", priority="high")
        started = _create(task_service, title="Pagar contas", priority="high")
        task_service.start_task(started.id)

        assert task_service.list_tasks(1, priority="high").data.pagination.total == 2
        assert task_service.list_tasks(1, status="in_progress").data.tasks[0].id == started.id
        assert task_service.list_tasks(1, search="comprar").data.pagination.total == 2
        assert task_service.list_tasks(1, search="CAFÉ", priority="high").data.pagination.total == 1

    def test_list_tasks_pagination(self, task_service):
        for number in range(5):
            _create(task_service, title=f"Tarefa {number}")

        page = task_service.list_tasks(1, page=3, limit=2).data

        assert len(page.tasks) == 1
        assert page.pagination.total == 5
        assert page.pagination.total_pages == 3

    def test_list_tasks_invalid_filter(self, task_service):
        result = task_service.list_tasks(1, status="done")

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "status" in result.errors

    def test_overdue_and_statistics(self, task_service, clock):
        overdue = _create(task_service, title="Tarefa um", due_date="2024-01-11 09:00:00")
        done = _create(task_service, title="Tarefa dois", due_date="2024-01-11 09:00:00")
        task_service.complete_task(done.id)
        started = _create(task_service, title="Tarefa tres")
        task_service.start_task(started.id)
        _create(task_service, title="Tarefa quatro", priority="high")
        clock.advance(days=2)

        assert [task.id for task in task_service.get_overdue_tasks(1).data] == [overdue.id]

        stats = task_service.get_statistics(1).data
        assert stats.total == 4
        assert stats.by_status == {"pending": 2, "in_progress": 1, "completed": 1, "cancelled": 0}
        assert stats.by_priority == {"low": 0, "medium": 3, "high": 1, "urgent": 0}
        assert stats.overdue == 1
        assert stats.completion_rate == 25.0
        assert stats.overdue_tasks[0].id == overdue.id

    def test_statistics_without_tasks(self, task_service):
        stats = task_service.get_statistics(1).data

        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.by_status["cancelled"] == 0

    def test_statistics_failure(self, clock):
        repository = MagicMock()
        repository.list_for_user.side_effect = RuntimeError("sem conexão")
        service = TaskService(repository, clock=clock)

        result = service.get_statistics(1)

        assert result.error_code == ErrorCode.STATISTICS_ERROR
        assert result.message == "Erro ao buscar estatísticas: sem conexão"
