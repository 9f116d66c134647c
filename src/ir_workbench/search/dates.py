"""Calendar-date to epoch-millisecond bounds for range filters."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
import logging

from ir_workbench.search.errors import ConfigError


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_EPOCH = date(1970, 1, 1)
_MILLIS_PER_DAY = 86_400_000


class DateBoundaryMode(str, Enum):
    """How a ``YYYY-MM-DD`` string maps to a day.

    ``LITERAL`` uses the named day. ``SHIFTED`` advances the parsed date by
    one day first, which reproduces result sets produced by older runs.
    """

    LITERAL = "literal"
    SHIFTED = "shifted"


def coerce_boundary_mode(value: DateBoundaryMode | str) -> DateBoundaryMode:
    if isinstance(value, DateBoundaryMode):
        return value
    try:
        return DateBoundaryMode(str(value).strip().lower())
    except ValueError:
        msg = f"Unknown date boundary mode '{value}'. Available: {[m.value for m in DateBoundaryMode]}"
        raise ConfigError(msg) from None


def parse_day(text: str | None, mode: DateBoundaryMode | str = DateBoundaryMode.LITERAL) -> date | None:
    """Parse ``YYYY-MM-DD``; return None for empty or unparsable input."""

    resolved = coerce_boundary_mode(mode)
    if text is None or not text.strip():
        return None
    try:
        day = datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        logger.debug("Ignoring unparsable date bound %r", text)
        return None
    if resolved is DateBoundaryMode.SHIFTED:
        day += timedelta(days=1)
    return day


def _day_start_millis(day: date) -> int:
    return (day - _EPOCH).days * _MILLIS_PER_DAY


def start_of_day_millis(text: str | None, mode: DateBoundaryMode | str = DateBoundaryMode.LITERAL) -> int | None:
    """Return 00:00:00.000 UTC of the day in epoch milliseconds."""

    day = parse_day(text, mode)
    if day is None:
        return None
    return _day_start_millis(day)


def end_of_day_millis(text: str | None, mode: DateBoundaryMode | str = DateBoundaryMode.LITERAL) -> int | None:
    """Return 23:59:59.999 UTC of the day in epoch milliseconds."""

    day = parse_day(text, mode)
    if day is None:
        return None
    return _day_start_millis(day) + _MILLIS_PER_DAY - 1

