"""
Department Directory
Read-only department lookups with the operating window normalized to
minutes after midnight.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.department import Department

logger = logging.getLogger(__name__)

_CLOCK = r"(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?"
_RANGE_RE = re.compile(rf"^\s*{_CLOCK}\s*(?:-|–|to)\s*{_CLOCK}\s*$")
_DURATION_RE = re.compile(r"^\s*(\d{1,2})\s*(?:h|hrs?|hours?)?\s*$", re.IGNORECASE)

DAY_END = 24 * 60


@dataclass(frozen=True)
class OperatingWindow:
    """Opening hours in minutes after midnight; opens inclusive, closes is closing time."""
    opens: int
    closes: int
    has_lunch_break: bool = False


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _default_hours() -> Tuple[int, int]:
    return settings.default_open_hour * 60, settings.default_close_hour * 60


def _to_minutes(hour: str, minute: Optional[str], meridiem: Optional[str]) -> int:
    hour, minute = int(hour), int(minute or 0)
    if minute > 59:
        raise ValueError(f"Invalid minute value: {minute}")
    if meridiem:
        if hour < 1 or hour > 12:
            raise ValueError(f"Invalid 12-hour clock value: {hour}")
        if meridiem.lower() == "am":
            hour = 0 if hour == 12 else hour
        else:
            hour = hour if hour == 12 else hour + 12
    return hour * 60 + minute


def parse_operating_hours(value: Optional[str]) -> Tuple[int, int]:
    """
    Normalize a stored operating-hours value to (opens, closes) in minutes
    after midnight.

    Accepts "8:00-16:00", "8:30 - 16:30", "8:00 AM - 4:00 PM", "8-16" and a
    bare duration such as "8" (hours counted from the default opening hour).
    Times are kept to the minute. The one exception is the legacy last-start
    notation: a range ending at HH:50 with the default 10 minute cutoff, as in
    "8:00-15:50", names the last bookable start, so the department closes on
    the following hour.

    Raises:
        ValueError: if the value matches none of the accepted forms
    """
    if value is None or not str(value).strip():
        return _default_hours()

    value = str(value).strip()

    duration = _DURATION_RE.match(value)
    if duration:
        hours = int(duration.group(1))
        opens = settings.default_open_hour * 60
        closes = opens + hours * 60
        if hours <= 0 or closes > DAY_END:
            raise ValueError(f"Invalid operating-hours duration: {value!r}")
        return opens, closes

    match = _RANGE_RE.match(value)
    if not match:
        raise ValueError(f"Unrecognized operating-hours value: {value!r}")

    start_hour, start_minute, start_meridiem, end_hour, end_minute, end_meridiem = match.groups()
    opens = _to_minutes(start_hour, start_minute, start_meridiem)
    closes = _to_minutes(end_hour, end_minute, end_meridiem)

    cutoff = settings.last_slot_cutoff_minutes
    if 0 < cutoff < 60 and closes % 60 == 60 - cutoff:
        closes += cutoff

    if not (0 <= opens < closes <= DAY_END):
        raise ValueError(f"Invalid operating-hours range: {value!r}")
    return opens, closes


def operating_window(department: Department) -> OperatingWindow:
    """Normalized window for a department, falling back to the default on bad data."""
    try:
        opens, closes = parse_operating_hours(department.operating_hours)
    except ValueError as e:
        opens, closes = _default_hours()
        logger.warning(
            f"[Departments] Department {department.id} has unusable operating hours "
            f"({e}); using default {format_minutes(opens)}-{format_minutes(closes)}"
        )
    return OperatingWindow(opens, closes, bool(department.has_lunch_break))


class DepartmentDirectory:
    """Department lookups used by the booking engine."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, department_id: int) -> Department:
        department = self.db.get(Department, department_id)
        if not department:
            raise NotFoundError(f"Department with ID {department_id} not found", reason="department-not-found")
        return department

    def list(self) -> List[Department]:
        return self.db.query(Department).order_by(Department.name).all()

    def window(self, department_id: int) -> OperatingWindow:
        return operating_window(self.get(department_id))
