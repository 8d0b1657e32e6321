import logging
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Any, Optional

logger = logging.getLogger(__name__)


def as_date(value: Any) -> date:
    """Collapse a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_date(value: Any) -> Optional[date]:
    """
    Lenient date parsing for history entries.

    Accepts ``date``/``datetime`` objects and ISO strings (``2024-01-15``,
    ``2024-01-15T10:00:00Z``). Anything else yields ``None`` so the caller
    can skip the entry.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return as_date(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        logger.debug("Unparsable date %r", value)
        return None


def calculate_age(birth_date: date, reference_date: date) -> int:
    """Whole years at reference_date; a birthday on reference_date counts as reached."""
    birth_date = as_date(birth_date)
    reference_date = as_date(reference_date)

    age = reference_date.year - birth_date.year
    if (reference_date.month, reference_date.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def days_between(start: date, end: date) -> int:
    return (as_date(end) - as_date(start)).days


def add_days(start: date, days: int) -> Optional[date]:
    """``start`` shifted by ``days``, or None when the result falls outside the calendar."""
    try:
        return as_date(start) + timedelta(days=days)
    except OverflowError:
        return None


def add_years(start: date, years: int) -> Optional[date]:
    # Feb 29 lands on Mar 1 in non-leap years, the first day calculate_age counts the birthday as reached.
    start = as_date(start)
    year = start.year + years
    if not MINYEAR <= year <= MAXYEAR:
        return None
    try:
        return start.replace(year=year)
    except ValueError:
        return date(year, 3, 1)
