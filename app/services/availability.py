"""
Availability Checker
The single decision point for "can this department slot be booked?". Used
for new bookings, for rescheduling (excluding the ticket being moved) and by
the read-only check-availability and day slots endpoints.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from app.core.clock import Clock, local_now
from app.core.config import settings
from app.services.booking_ledger import BookingLedger, combine
from app.services.department_directory import DepartmentDirectory, OperatingWindow, format_minutes
from app.services.slot_calendar import SlotCalendar, SlotPolicy, is_aligned, last_start, within_window

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


class Reason(str, enum.Enum):
    INVALID_FORMAT = "invalid-format"
    OUTSIDE_OPERATING_HOURS = "outside-operating-hours"
    BAD_ALIGNMENT = "bad-alignment"
    WEEKEND = "weekend"
    IN_PAST = "in-past"
    TOO_FAR_AHEAD = "too-far-ahead"
    SLOT_TAKEN = "slot-taken"


@dataclass(frozen=True)
class AvailabilityDecision:
    admit: bool
    message: str
    reason: Optional[Reason] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None

    @property
    def appointment_datetime(self) -> Optional[datetime]:
        if self.appointment_date is None or self.appointment_time is None:
            return None
        return combine(self.appointment_date, self.appointment_time)


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_time(value: Union[str, time, None]) -> Optional[time]:
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


class AvailabilityChecker:
    """Applies the booking rules in order; the first failing rule decides."""

    def __init__(
        self,
        db: Session,
        clock: Clock = local_now,
        policy: Optional[SlotPolicy] = None,
        horizon_months: Optional[int] = None,
    ):
        self.directory = DepartmentDirectory(db)
        self.ledger = BookingLedger(db)
        self.clock = clock
        self.policy = policy or SlotPolicy.from_settings()
        self.horizon_months = horizon_months if horizon_months is not None else settings.booking_horizon_months

    def check(
        self,
        department_id: int,
        appointment_date: Union[str, date, None],
        appointment_time: Union[str, time, None],
        exclude_ticket_id: Optional[int] = None,
    ) -> AvailabilityDecision:
        """
        Decide whether a slot can be booked.

        Raises:
            NotFoundError: if the department does not exist
        """
        window = self.directory.window(department_id)

        day = parse_date(appointment_date)
        at = parse_time(appointment_time)
        if day is None or at is None:
            return AvailabilityDecision(
                False,
                "Invalid date or time format. Use YYYY-MM-DD and HH:MM.",
                Reason.INVALID_FORMAT,
            )

        decision = self._apply_rules(window, day, at, self.clock())
        if not decision.admit:
            return decision

        conflict = self.ledger.find_conflict(department_id, decision.appointment_datetime, exclude_ticket_id)
        if conflict is not None:
            logger.debug(
                f"[Availability] Department {department_id} slot {decision.appointment_datetime} "
                f"held by ticket {conflict.id}"
            )
            return _taken(day, at)
        return decision

    def day_slots(self, department_id: int, day: date) -> List[Tuple[time, AvailabilityDecision]]:
        """
        Every calendar slot of a department day with its decision. Active
        bookings are read once for the whole day.

        Raises:
            NotFoundError: if the department does not exist
        """
        window = self.directory.window(department_id)
        taken = self.ledger.taken_times(department_id, day)
        now = self.clock()

        results = []
        for start in SlotCalendar(window, day, self.policy):
            decision = self._apply_rules(window, day, start, now)
            if decision.admit and start in taken:
                decision = _taken(day, start)
            results.append((start, decision))
        return results

    def _apply_rules(self, window: OperatingWindow, day: date, at: time, now: datetime) -> AvailabilityDecision:
        """The rules that need no storage, in order."""

        def reject(reason: Reason, message: str) -> AvailabilityDecision:
            return AvailabilityDecision(False, message, reason, day, at)

        if not within_window(window, at, self.policy):
            return reject(
                Reason.OUTSIDE_OPERATING_HOURS,
                f"Appointments are available between {format_minutes(window.opens)} "
                f"and {format_minutes(last_start(window, self.policy))}",
            )

        if not is_aligned(at, self.policy):
            return reject(
                Reason.BAD_ALIGNMENT,
                f"Appointments must start on a {self.policy.granularity_minutes}-minute boundary",
            )

        if day.weekday() >= 5:
            return reject(Reason.WEEKEND, "Appointments cannot be booked on weekends")

        appointment_at = combine(day, at)
        if appointment_at < now:
            return reject(Reason.IN_PAST, "Cannot book appointments in the past")

        if appointment_at > now + relativedelta(months=self.horizon_months):
            return reject(
                Reason.TOO_FAR_AHEAD,
                f"Appointments can only be booked up to {self.horizon_months} months in advance",
            )

        return AvailabilityDecision(True, "Time slot is available", None, day, at)


def _taken(day: date, at: time) -> AvailabilityDecision:
    return AvailabilityDecision(False, "This time slot is already booked", Reason.SLOT_TAKEN, day, at)
