"""User-facing message catalogue.

The validator and the Task entity both render their errors from here, so the
two enforcement points always report the same text for the same violation.
"""

from datetime import datetime
from typing import Iterable

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
DELETION_MIN_AGE_DAYS = 5

# Field errors
TITLE_REQUIRED = "O título da tarefa é obrigatório"
TITLE_EMPTY = "O título da tarefa não pode estar vazio"
TITLE_NOT_TEXT = "O título deve ser um texto"
TITLE_TOO_SHORT = f"O título deve ter pelo menos {TITLE_MIN_LENGTH} caracteres"
TITLE_TOO_LONG = f"O título não pode ter mais de {TITLE_MAX_LENGTH} caracteres"
TITLE_INVALID_CHARS = (
    "O título contém caracteres inválidos. "
    "Use apenas letras, números, espaços e pontuação básica"
)
DESCRIPTION_TOO_LONG = f"A descrição não pode ter mais de {DESCRIPTION_MAX_LENGTH} caracteres"
DESCRIPTION_NOT_TEXT = "A descrição deve ser um texto"
DUE_DATE_INVALID = (
    "Data de vencimento inválida. "
    "Use o formato YYYY-MM-DD HH:MM:SS, YYYY-MM-DDTHH:MM ou YYYY-MM-DD"
)
DUE_DATE_IN_PAST = "A data de vencimento não pode ser no passado"
USER_ID_REQUIRED = "O ID do usuário é obrigatório"
USER_ID_NOT_POSITIVE = "ID do usuário deve ser um número positivo"
CATEGORY_ID_NOT_POSITIVE = "ID da categoria deve ser um número positivo"
CATEGORY_NOT_FOUND = "Categoria não encontrada"
CATEGORY_ID_REQUIRED = "ID da categoria é obrigatório"
CREATED_AT_INVALID = "Data de criação inválida"

# Service outcomes
TASK_CREATED = "Tarefa criada com sucesso"
TASK_UPDATED = "Tarefa atualizada com sucesso"
TASK_DELETED = "Tarefa excluída com sucesso"
TASK_COMPLETED = "Tarefa marcada como concluída"
TASK_STARTED = "Tarefa marcada como em andamento"
TASK_DUPLICATED = "Tarefa duplicada com sucesso"
TASK_FOUND = "Tarefa encontrada"
TASKS_LISTED = "Tarefas listadas com sucesso"
PRIORITY_CHANGED = "Prioridade da tarefa alterada"
CATEGORY_CHANGED = "Categoria da tarefa alterada"
STATISTICS_READY = "Estatísticas calculadas"
TASK_NOT_FOUND = "Tarefa não encontrada"
TASK_ID_REQUIRED = "ID da tarefa é obrigatório"
INVALID_INPUT = "Dados de entrada inválidos"
OPERATION_NOT_ALLOWED = "Operação não permitida"
INVALID_JSON = "JSON inválido"
INTERNAL_ERROR = "Erro interno do servidor"

CATEGORY_CREATED = "Categoria criada com sucesso"
CATEGORY_UPDATED = "Categoria atualizada com sucesso"
CATEGORY_DELETED = "Categoria excluída com sucesso"
CATEGORY_FOUND = "Categoria encontrada"
CATEGORIES_LISTED = "Categorias listadas com sucesso"

# Error prefixes for unexpected failures, keyed by operation
FAILURE_PREFIXES = {
    "create": "Erro ao criar tarefa",
    "update": "Erro ao atualizar tarefa",
    "delete": "Erro ao excluir tarefa",
    "complete": "Erro ao completar tarefa",
    "start": "Erro ao iniciar tarefa",
    "duplicate": "Erro ao duplicar tarefa",
    "statistics": "Erro ao buscar estatísticas",
    "get": "Erro ao buscar tarefa",
    "list": "Erro ao buscar tarefas",
    "priority": "Erro ao alterar prioridade",
    "category": "Erro ao mover tarefa",
    "category_create": "Erro ao criar categoria",
    "category_update": "Erro ao atualizar categoria",
    "category_delete": "Erro ao excluir categoria",
    "category_get": "Erro ao buscar categoria",
    "category_list": "Erro ao buscar categorias",
}

STATUS_LABELS = {
    "pending": "Pendente",
    "in_progress": "Em Andamento",
    "completed": "Concluída",
    "cancelled": "Cancelada",
}

PRIORITY_LABELS = {
    "low": "Baixa",
    "medium": "Média",
    "high": "Alta",
    "urgent": "Urgente",
}

WEEKEND_DAY_NAMES = {6: "Sábado", 7: "Domingo"}

WEEKDAY_NAMES = {
    1: "Segunda-feira",
    2: "Terça-feira",
    3: "Quarta-feira",
    4: "Quinta-feira",
    5: "Sexta-feira",
}


def invalid_status(accepted: Iterable[str]) -> str:
    return "Status inválido. Valores aceitos: " + ", ".join(accepted)


def invalid_priority(accepted: Iterable[str]) -> str:
    return "Prioridade inválida. Valores aceitos: " + ", ".join(accepted)


def status_label(status: str) -> str:
    """Human-readable label for a status value, falling back to the raw value."""
    return STATUS_LABELS.get(status, status)


def weekend_creation(today: datetime, next_weekday: datetime) -> str:
    """Error shown when someone tries to create a task on a weekend."""
    return (
        "📅 Tarefas só podem ser criadas em dias úteis (segunda a sexta-feira). "
        f"Hoje é {WEEKEND_DAY_NAMES[today.isoweekday()]} - tente novamente na "
        f"{WEEKDAY_NAMES[next_weekday.isoweekday()]} ({next_weekday.strftime('%d/%m/%Y')})."
    )


def update_not_allowed(status: str) -> str:
    return (
        f"🔒 Esta tarefa não pode ser editada porque está com status '{status_label(status)}'. "
        "Apenas tarefas 'Pendentes' podem ser modificadas.\n\n"
        "💡 Motivo: Tarefas com outros status são protegidas para manter a "
        "integridade do histórico do projeto."
    )


def delete_not_allowed(status: str) -> str:
    return (
        f"🔒 Esta tarefa não pode ser excluída porque está com status '{status_label(status)}'. "
        "Apenas tarefas 'Pendentes' podem ser removidas.\n\n"
        "🛡️ Proteção: Tarefas que já foram iniciadas, concluídas ou canceladas "
        "contêm informações valiosas do histórico do projeto."
    )


def deletion_too_recent(remaining_days: int) -> str:
    return (
        f"Tarefas só podem ser excluídas após {DELETION_MIN_AGE_DAYS} dias da criação. "
        f"Aguarde mais {remaining_days} dia(s)"
    )


def failure(operation: str, error: Exception) -> str:
    """Message for an unexpected failure, with the underlying error attached."""
    prefix = FAILURE_PREFIXES.get(operation, INTERNAL_ERROR)
    return f"{prefix}: {error}"
