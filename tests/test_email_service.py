"""Tests for the email notifier, with SMTP replaced by an in-memory fake."""

from datetime import date, time
from types import SimpleNamespace
import smtplib

import pytest

from app.models import TicketStatus
from app.services.email_service import EmailService


class FakeSMTP:
    sent = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.timeout = timeout

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def service():
    service = EmailService()
    service.enabled = True
    service.smtp_user = "helpdesk@govhub.example"
    service.smtp_password = "secret"
    return service


def make_ticket(status, rejection_reason=None):
    return SimpleNamespace(
        id=42,
        status=status,
        appointment_date=date(2025, 3, 10),
        appointment_time=time(9, 0),
        rejection_reason=rejection_reason,
        feedback=None,
    )


def department(send_confirmation_email=True):
    return SimpleNamespace(id=1, name="Registration of Persons", send_confirmation_email=send_confirmation_email)


CUSTOMER = SimpleNamespace(name="Alice Perera", email="alice@example.com")


def test_ticket_reference():
    assert EmailService.ticket_reference(42) == "TKT-000042"


def test_pending_sends_one_status_update(service, fake_smtp):
    assert service.ticket_status_changed(make_ticket(TicketStatus.PENDING), department(), CUSTOMER) is True

    assert len(fake_smtp.sent) == 1
    assert fake_smtp.sent[0]["To"] == "alice@example.com"
    assert "TKT-000042" in fake_smtp.sent[0]["Subject"]


def test_approved_also_sends_qr_confirmation(service, fake_smtp):
    service.ticket_status_changed(make_ticket(TicketStatus.APPROVED), department(), CUSTOMER)

    assert len(fake_smtp.sent) == 2
    confirmation = fake_smtp.sent[1]
    assert confirmation["Subject"].startswith("Appointment Confirmation")
    images = [part for part in confirmation.walk() if part.get_content_maintype() == "image"]
    assert len(images) == 1
    assert images[0]["Content-ID"] == "<appointment_qr>"


def test_approved_without_confirmation_flag(service, fake_smtp):
    service.ticket_status_changed(make_ticket(TicketStatus.APPROVED), department(False), CUSTOMER)

    assert len(fake_smtp.sent) == 1


def test_disabled_service_sends_nothing(service, fake_smtp):
    service.enabled = False

    assert service.ticket_status_changed(make_ticket(TicketStatus.PENDING), department(), CUSTOMER) is False
    assert fake_smtp.sent == []


def test_closed_service_sends_nothing(service, fake_smtp):
    service.close()

    assert service.ticket_status_changed(make_ticket(TicketStatus.CANCELLED), department(), CUSTOMER) is False
    assert fake_smtp.sent == []


@pytest.mark.parametrize("error", [smtplib.SMTPConnectError(421, "busy"), TimeoutError("timed out"), OSError("refused")])
def test_transport_failures_are_swallowed(service, fake_smtp, error):
    fake_smtp.fail_with = error

    result = service.ticket_status_changed(make_ticket(TicketStatus.REJECTED, "duplicate"), department(), CUSTOMER)

    assert result is False
