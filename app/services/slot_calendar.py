"""
Slot Calendar
Enumerates the bookable slot start times of a department day. Pure: it knows
nothing about existing bookings.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, List

from app.core.config import settings
from app.services.department_directory import OperatingWindow


@dataclass(frozen=True)
class SlotPolicy:
    """
    Slot layout rules shared by the calendar and the availability checker.

    last_slot_cutoff_minutes is how long before closing the last start may
    fall: with a 16:00 close and a 10 minute cutoff, nothing starts after 15:50.
    """
    granularity_minutes: int = 15
    last_slot_cutoff_minutes: int = 10
    lunch_start_hour: int = 12
    lunch_end_hour: int = 13

    @classmethod
    def from_settings(cls) -> "SlotPolicy":
        return cls(
            granularity_minutes=settings.slot_granularity_minutes,
            last_slot_cutoff_minutes=settings.last_slot_cutoff_minutes,
            lunch_start_hour=settings.lunch_break_start_hour,
            lunch_end_hour=settings.lunch_break_end_hour,
        )


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def last_start(window: OperatingWindow, policy: SlotPolicy) -> int:
    """Latest start time, in minutes after midnight, that the window admits."""
    return window.closes - policy.last_slot_cutoff_minutes


def within_window(window: OperatingWindow, value: time, policy: SlotPolicy) -> bool:
    """True when a start time falls inside opening hours (alignment not considered)."""
    minute_of_day = _minutes(value)
    if value.second or value.microsecond:
        minute_of_day += 1
    if not (window.opens <= minute_of_day <= last_start(window, policy)):
        return False
    if window.has_lunch_break:
        if policy.lunch_start_hour * 60 <= minute_of_day < policy.lunch_end_hour * 60:
            return False
    return True


def is_aligned(value: time, policy: SlotPolicy) -> bool:
    return value.second == 0 and value.microsecond == 0 and value.minute % policy.granularity_minutes == 0


class SlotCalendar:
    """Restartable sequence of slot start times for one department day."""

    def __init__(self, window: OperatingWindow, day: date, policy: SlotPolicy):
        self.window = window
        self.day = day
        self.policy = policy

    def __iter__(self) -> Iterator[time]:
        # Slots sit on the granularity grid of the hour, even when the
        # department opens off the grid
        step = timedelta(minutes=self.policy.granularity_minutes)
        midnight = datetime.combine(self.day, time(0, 0))
        current = midnight + timedelta(hours=self.window.opens // 60)
        closing = midnight + timedelta(minutes=self.window.closes)
        while current < closing:
            start = current.time()
            if within_window(self.window, start, self.policy):
                yield start
            current += step

    def slots(self) -> List[time]:
        return list(self)

    def __contains__(self, value: time) -> bool:
        return within_window(self.window, value, self.policy) and is_aligned(value, self.policy)
