"""Shared fixtures: a throwaway SQLite database, a pinned clock and a recording notifier."""

from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.core.clock import get_clock
from app.core.database import Base, build_engine, get_db
from app.main import app
from app.models import Customer, Department, Staff
from app.routers.ticket import get_notifier

# Monday morning, opening time
NOW = datetime(2025, 3, 3, 8, 0)


class FrozenClock:
    """Clock that returns a fixed instant until moved."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingNotifier:
    """Stands in for the email service and records every status event."""

    def __init__(self):
        self.events = []

    def ticket_status_changed(self, ticket, department, customer) -> bool:
        self.events.append((ticket.id, ticket.status.value, department.id, customer.email))
        return True


class FailingNotifier:
    def ticket_status_changed(self, ticket, department, customer) -> bool:
        raise RuntimeError("SMTP server unreachable")


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'helpdesk_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def seed(db):
    """Two departments, two customers and one staff member."""
    records = SimpleNamespace(
        dept_a=Department(name="Registration of Persons", operating_hours="8:00-16:00"),
        dept_lunch=Department(name="Motor Traffic", operating_hours="8", has_lunch_break=True),
        alice=Customer(name="Alice Perera", email="alice@example.com"),
        bob=Customer(name="Bob Silva", email="bob@example.com"),
    )
    db.add_all([records.dept_a, records.dept_lunch, records.alice, records.bob])
    db.flush()
    records.officer = Staff(name="Nimal Officer", email="nimal@govhub.example", department_id=records.dept_a.id)
    db.add(records.officer)
    db.commit()
    return records


@pytest.fixture
def client(session_factory, clock, notifier, seed):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def booking_payload(seed):
    """Builds a valid booking body for department A on Monday 2025-03-10 09:00."""

    def build(**overrides):
        payload = {
            "customerID": seed.alice.id,
            "departmentID": seed.dept_a.id,
            "issueDescription": "Identity card renewal",
            "notes": "Bringing the old card and birth certificate.",
            "appointmentDate": "2025-03-10",
            "appointmentTime": "09:00",
        }
        payload.update(overrides)
        return payload

    return build
