"""Concurrent bookings for one slot: the database admits exactly one."""

import threading

from app.core.exceptions import ConflictError
from app.models import Ticket
from app.schemas.ticket import TicketCreate
from app.services.ticket_lifecycle import TicketLifecycle

from conftest import RecordingNotifier


def test_parallel_bookings_for_one_slot(session_factory, clock, seed):
    attempts = 6
    barrier = threading.Barrier(attempts)
    results = []
    lock = threading.Lock()

    def attempt(index):
        session = session_factory()
        lifecycle = TicketLifecycle(session, RecordingNotifier(), clock=clock)
        data = TicketCreate(
            customer_id=seed.alice.id if index % 2 else seed.bob.id,
            department_id=seed.dept_a.id,
            issue_description="Passport collection",
            notes=f"Parallel attempt number {index}",
            appointment_date="2025-03-10",
            appointment_time="10:00",
        )
        try:
            barrier.wait()
            lifecycle.book(data)
            outcome = "booked"
        except ConflictError:
            outcome = "conflict"
        except Exception as e:
            outcome = repr(e)
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(results) == ["booked"] + ["conflict"] * (attempts - 1)

    with session_factory() as session:
        assert session.query(Ticket).count() == 1


def test_parallel_bookings_for_different_slots_all_succeed(session_factory, clock, seed):
    times = ["08:00", "08:15", "08:30", "08:45"]
    barrier = threading.Barrier(len(times))
    results = []
    lock = threading.Lock()

    def attempt(at):
        session = session_factory()
        lifecycle = TicketLifecycle(session, RecordingNotifier(), clock=clock)
        data = TicketCreate(
            customer_id=seed.alice.id,
            department_id=seed.dept_a.id,
            issue_description="Certificate copy",
            notes="Needs a certified copy for abroad.",
            appointment_date="2025-03-11",
            appointment_time=at,
        )
        try:
            barrier.wait()
            lifecycle.book(data)
            outcome = "booked"
        except Exception as e:
            outcome = repr(e)
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(at,)) for at in times]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert results == ["booked"] * len(times)
