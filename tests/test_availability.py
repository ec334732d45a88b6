"""Tests for the ordered slot admission rules."""

from datetime import datetime

import pytest

from app.core.exceptions import NotFoundError
from app.models import Department, Ticket, TicketStatus
from app.services.availability import AvailabilityChecker, Reason
from conftest import NOW


@pytest.fixture
def checker(db, clock, seed):
    return AvailabilityChecker(db, clock=clock)


def hold_slot(db, seed, when: datetime, status=TicketStatus.PENDING) -> Ticket:
    ticket = Ticket(
        customer_id=seed.bob.id,
        department_id=seed.dept_a.id,
        issue_description="Existing booking",
        notes="Booked earlier by another customer.",
        appointment_date=when.date(),
        appointment_time=when.time(),
        appointment_datetime=when,
        status=status,
        created_date=NOW,
        closed_date=None if status is TicketStatus.PENDING else NOW,
        rejection_reason="duplicate" if status is TicketStatus.REJECTED else None,
    )
    db.add(ticket)
    db.commit()
    return ticket


def test_valid_slot_is_admitted(checker, seed):
    decision = checker.check(seed.dept_a.id, "2025-03-10", "09:00")

    assert decision.admit
    assert decision.reason is None
    assert decision.appointment_datetime == datetime(2025, 3, 10, 9, 0)


@pytest.mark.parametrize(
    "day, at",
    [("10/03/2025", "09:00"), ("2025-02-30", "09:00"), ("2025-03-10", "9am"), ("2025-03-10", "25:00"), (None, "09:00")],
)
def test_unparseable_input_is_invalid_format(checker, seed, day, at):
    decision = checker.check(seed.dept_a.id, day, at)

    assert not decision.admit
    assert decision.reason is Reason.INVALID_FORMAT


def test_unknown_department_raises(checker):
    with pytest.raises(NotFoundError):
        checker.check(9999, "2025-03-10", "09:00")


@pytest.mark.parametrize(
    "at, admit, reason",
    [
        ("08:00", True, None),
        ("15:45", True, None),
        ("15:50", False, Reason.BAD_ALIGNMENT),
        ("15:55", False, Reason.OUTSIDE_OPERATING_HOURS),
        ("16:00", False, Reason.OUTSIDE_OPERATING_HOURS),
        ("07:45", False, Reason.OUTSIDE_OPERATING_HOURS),
        ("09:10", False, Reason.BAD_ALIGNMENT),
    ],
)
def test_slot_edges(checker, seed, at, admit, reason):
    decision = checker.check(seed.dept_a.id, "2025-03-10", at)

    assert decision.admit is admit
    assert decision.reason is reason


def test_lunch_break_is_outside_operating_hours(checker, seed):
    decision = checker.check(seed.dept_lunch.id, "2025-03-10", "12:15")
    assert decision.reason is Reason.OUTSIDE_OPERATING_HOURS


def add_department(db, hours) -> Department:
    department = Department(name=f"Counter {hours}", operating_hours=hours)
    db.add(department)
    db.commit()
    return department


@pytest.mark.parametrize(
    "hours, at, admit",
    [
        ("9:00-16:30", "16:15", True),
        ("9:00-16:30", "16:30", False),
        ("9:00-16:30", "16:45", False),
        ("8:30-16:00", "08:00", False),
        ("8:30-16:00", "08:15", False),
        ("8:30-16:00", "08:30", True),
        ("8:00-15:50", "15:45", True),
    ],
)
def test_half_hour_operating_hours_are_respected(db, checker, seed, hours, at, admit):
    department = add_department(db, hours)

    decision = checker.check(department.id, "2025-03-10", at)

    assert decision.admit is admit
    if not admit:
        assert decision.reason is Reason.OUTSIDE_OPERATING_HOURS


def test_saturday_is_rejected_regardless_of_other_rules(checker, seed):
    decision = checker.check(seed.dept_a.id, "2025-06-07", "10:00")

    assert not decision.admit
    assert decision.reason is Reason.WEEKEND


def test_sunday_is_rejected(checker, seed):
    assert checker.check(seed.dept_a.id, "2025-03-09", "10:00").reason is Reason.WEEKEND


def test_past_slot_is_rejected(checker, seed):
    assert checker.check(seed.dept_a.id, "2025-02-28", "09:00").reason is Reason.IN_PAST


def test_current_instant_is_not_in_the_past(checker, seed):
    assert checker.check(seed.dept_a.id, "2025-03-03", "08:00").admit


def test_horizon_boundary_is_inclusive(checker, seed):
    # NOW is Monday 2025-03-03 08:00; three months later is Tuesday 2025-06-03 08:00
    assert checker.check(seed.dept_a.id, "2025-06-03", "08:00").admit

    decision = checker.check(seed.dept_a.id, "2025-06-04", "08:00")
    assert decision.reason is Reason.TOO_FAR_AHEAD


def test_active_tickets_block_the_slot(db, checker, seed):
    hold_slot(db, seed, datetime(2025, 3, 10, 9, 0), TicketStatus.APPROVED)

    decision = checker.check(seed.dept_a.id, "2025-03-10", "09:00")
    assert decision.reason is Reason.SLOT_TAKEN

    # Neighbouring quarter-hour slots stay free
    assert checker.check(seed.dept_a.id, "2025-03-10", "09:15").admit


@pytest.mark.parametrize("status", [TicketStatus.REJECTED, TicketStatus.CANCELLED])
def test_closed_tickets_do_not_block_the_slot(db, checker, seed, status):
    hold_slot(db, seed, datetime(2025, 3, 10, 9, 0), status)
    assert checker.check(seed.dept_a.id, "2025-03-10", "09:00").admit


def test_ticket_does_not_conflict_with_itself(db, checker, seed):
    ticket = hold_slot(db, seed, datetime(2025, 3, 10, 9, 0))

    assert checker.check(seed.dept_a.id, "2025-03-10", "09:00").reason is Reason.SLOT_TAKEN
    assert checker.check(seed.dept_a.id, "2025-03-10", "09:00", exclude_ticket_id=ticket.id).admit


def test_slot_in_another_department_is_independent(db, checker, seed):
    hold_slot(db, seed, datetime(2025, 3, 10, 9, 0))
    assert checker.check(seed.dept_lunch.id, "2025-03-10", "09:00").admit


def test_repeated_checks_agree(db, checker, seed):
    hold_slot(db, seed, datetime(2025, 3, 10, 9, 0))

    for at in ("09:00", "09:15", "15:50", "16:00"):
        first = checker.check(seed.dept_a.id, "2025-03-10", at)
        for _ in range(3):
            again = checker.check(seed.dept_a.id, "2025-03-10", at)
            assert (again.admit, again.reason) == (first.admit, first.reason)
