"""Wall-clock helpers shared by the entity, the rules and the services."""

from datetime import datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]

SATURDAY = 6


def current_time() -> datetime:
    """Return the current local time as a naive datetime.

    Due dates arrive as wall-clock strings without an offset, so every
    comparison in the core is made in naive local time.
    """
    return datetime.now()


def iso_weekday(moment: datetime) -> int:
    """Day of week with 1 = Monday ... 7 = Sunday."""
    return moment.isoweekday()


def is_weekend(moment: datetime) -> bool:
    return iso_weekday(moment) >= SATURDAY


def next_weekday(moment: datetime) -> datetime:
    """Return the first moment on or after ``moment`` that falls on a weekday."""
    candidate = moment
    while is_weekend(candidate):
        candidate += timedelta(days=1)
    return candidate
