"""Structural and temporal validation rules for task payloads.

Every rule takes the raw value it checks and returns a list of messages; an
empty list means the value is acceptable. ``validate`` runs all of them over
a raw field mapping and collects the failures per field without
short-circuiting between fields.
"""

import math
import re
from datetime import date, datetime, time
from typing import Any, Dict, List, Mapping, Optional

from .. import messages
from ..models.enums import TaskPriority, TaskStatus
from ..utils.clock import current_time, is_weekend, next_weekday

TITLE_PATTERN = re.compile(
    r"^[a-zA-Z0-9\s\-_.,!?áéíóúàèìòùâêîôûãõçÁÉÍÓÚÀÈÌÒÙÂÊÎÔÛÃÕÇ]+$"
)

DUE_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
)

# C0 and C1 control characters, keeping tab, line feed and carriage return.
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")

# Markup tags, comments and unterminated tags running to the end of input.
TAG_PATTERN = re.compile(r"<!--.*?(?:-->|$)|<[a-zA-Z/!?][^>]*(?:>|$)", re.DOTALL)

CREATION_TIME_KEY = "creation_time"


def _raw(value: Any) -> Any:
    """Unwrap enum members to their plain value."""
    return getattr(value, "value", value)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_positive_number(value: Any) -> bool:
    """Check that ``value`` is numeric and its integer part is above zero."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value) and int(value) > 0
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return False
        try:
            number = float(text)
        except ValueError:
            return False
        return math.isfinite(number) and int(number) > 0
    return False


def coerce_id(value: Any) -> Optional[int]:
    """Convert an already validated id value to ``int``; blanks become None."""
    if _is_blank(value):
        return None
    return int(float(value)) if isinstance(value, str) else int(value)


def parse_due_date(value: Any) -> datetime:
    """Parse a due date given as a datetime, a date or one of the accepted strings.

    Raises:
        ValueError: If the value matches none of the accepted formats
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        for fmt in DUE_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    raise ValueError(f"Unsupported due date value: {value!r}")


def check_title(title: Any) -> List[str]:
    """Length and charset checks for a title that is present.

    Evaluated as empty, too short, too long, then charset, stopping at the
    first failure. Anything other than a string is rejected outright.
    """
    if title is not None and not isinstance(title, str):
        return [messages.TITLE_NOT_TEXT]

    text = "" if title is None else title.strip()

    if not text:
        return [messages.TITLE_EMPTY]
    if len(text) < messages.TITLE_MIN_LENGTH:
        return [messages.TITLE_TOO_SHORT]
    if len(text) > messages.TITLE_MAX_LENGTH:
        return [messages.TITLE_TOO_LONG]
    if not TITLE_PATTERN.match(text):
        return [messages.TITLE_INVALID_CHARS]
    return []


def validate_title(title: Any, is_create: bool) -> List[str]:
    if is_create and _is_blank(title):
        return [messages.TITLE_REQUIRED]
    if title is None:
        return []
    return check_title(title)


def check_description(description: Any) -> List[str]:
    if description is None:
        return []
    if not isinstance(description, str):
        return [messages.DESCRIPTION_NOT_TEXT]
    if len(description) > messages.DESCRIPTION_MAX_LENGTH:
        return [messages.DESCRIPTION_TOO_LONG]
    return []


def check_status(status: Any) -> List[str]:
    if status is None:
        return []
    accepted = [member.value for member in TaskStatus]
    if _raw(status) not in accepted:
        return [messages.invalid_status(accepted)]
    return []


def check_priority(priority: Any) -> List[str]:
    if priority is None:
        return []
    accepted = [member.value for member in TaskPriority]
    if _raw(priority) not in accepted:
        return [messages.invalid_priority(accepted)]
    return []


def check_due_date(due_date: Any, is_create: bool, now: Optional[datetime] = None) -> List[str]:
    """Format check, plus "not in the past" when creating."""
    if due_date is None or due_date == "":
        return []

    try:
        parsed = parse_due_date(due_date)
    except ValueError:
        return [messages.DUE_DATE_INVALID]

    if is_create and parsed < (now or current_time()):
        return [messages.DUE_DATE_IN_PAST]
    return []


def check_user_id(user_id: Any, is_create: bool) -> List[str]:
    if is_create and (_is_blank(user_id) or user_id in (0, "0", False)):
        return [messages.USER_ID_REQUIRED]
    if user_id is not None and not is_positive_number(user_id):
        return [messages.USER_ID_NOT_POSITIVE]
    return []


def check_category_id(category_id: Any) -> List[str]:
    if category_id is None or category_id == "":
        return []
    if not is_positive_number(category_id):
        return [messages.CATEGORY_ID_NOT_POSITIVE]
    return []


def check_creation_weekday(now: Optional[datetime] = None) -> List[str]:
    """Tasks may only be created Monday through Friday."""
    moment = now or current_time()
    if is_weekend(moment):
        return [messages.weekend_creation(moment, next_weekday(moment))]
    return []


def validate(data: Mapping[str, Any], is_create: bool = True,
             now: Optional[datetime] = None) -> Dict[str, List[str]]:
    """Validate a raw task payload.

    Args:
        data: Raw field mapping, usually already sanitized
        is_create: Whether the payload creates a new task
        now: Moment the temporal rules are evaluated against

    Returns:
        Mapping of field name (or ``creation_time``) to its error messages;
        empty when the payload may be stored
    """
    moment = now or current_time()
    errors: Dict[str, List[str]] = {}

    checks = []
    if is_create:
        checks.append((CREATION_TIME_KEY, check_creation_weekday(moment)))

    checks.extend([
        ("title", validate_title(data.get("title"), is_create)),
        ("description", check_description(data.get("description"))),
        ("status", check_status(data.get("status"))),
        ("priority", check_priority(data.get("priority"))),
        ("due_date", check_due_date(data.get("due_date"), is_create, moment)),
        ("user_id", check_user_id(data.get("user_id"), is_create)),
        ("category_id", check_category_id(data.get("category_id"))),
    ])

    for field, field_errors in checks:
        if field_errors:
            errors[field] = field_errors

    return errors


def sanitize_value(value: str) -> str:
    """Remove control characters and markup, then trim."""
    value = CONTROL_CHARS.sub("", value)

    # Stripping one tag can join the text around it into a new one.
    while True:
        stripped = TAG_PATTERN.sub("", value)
        if stripped == value:
            break
        value = stripped

    return value.strip()


def sanitize(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with every string value sanitized."""
    return {
        key: sanitize_value(value) if isinstance(value, str) else value
        for key, value in data.items()
    }
