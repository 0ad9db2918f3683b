"""Status and age eligibility checks for update and delete operations.

These checks look only at the task as it is currently stored. They run
before the incoming payload is validated, and a task that fails them must
never reach persistence however valid the payload is.
"""

from datetime import datetime, timedelta
from typing import Any, List, Optional

from .. import messages
from ..models.enums import TaskStatus
from ..utils.clock import current_time

CREATED_AT_FORMATS = ("%Y-%m-%d %H:%M:%S",)


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def _parse_created_at(created_at: Any) -> Optional[datetime]:
    if isinstance(created_at, datetime):
        return created_at
    if isinstance(created_at, str):
        for fmt in CREATED_AT_FORMATS:
            try:
                return datetime.strptime(created_at, fmt)
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(created_at)
        except ValueError:
            return None
    return None


def check_update_allowed(current_status: Any) -> List[str]:
    """Only pending tasks may be edited."""
    status = _status_value(current_status)
    if status != TaskStatus.PENDING.value:
        return [messages.update_not_allowed(status)]
    return []


def check_deletion_age(created_at: Any, now: Optional[datetime] = None) -> List[str]:
    """A task must be at least five whole days old before it can be deleted.

    The remaining wait is ``5 - days_since_creation`` where the elapsed days
    are truncated, so a task created 4 days and 23 hours ago still needs 1.
    """
    created = _parse_created_at(created_at)
    if created is None:
        return [messages.CREATED_AT_INVALID]

    moment = now or current_time()
    threshold = moment - timedelta(days=messages.DELETION_MIN_AGE_DAYS)

    if created > threshold:
        days_since_creation = abs(moment - created).days
        remaining = messages.DELETION_MIN_AGE_DAYS - days_since_creation
        return [messages.deletion_too_recent(remaining)]
    return []


def check_delete_allowed(current_status: Any, created_at: Any = None,
                         now: Optional[datetime] = None) -> List[str]:
    """Both the status rule and the age rule must hold; all violations are reported."""
    errors: List[str] = []

    status = _status_value(current_status)
    if status != TaskStatus.PENDING.value:
        errors.append(messages.delete_not_allowed(status))

    if created_at is not None:
        errors.extend(check_deletion_age(created_at, now))

    return errors
