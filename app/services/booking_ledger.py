"""
Booking Ledger
Persistence for tickets. The partial unique index on the tickets table is what
guarantees one active ticket per department slot; this module turns a violation
of it into a ConflictError and storage timeouts into a TransientError.
"""
import logging
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, TransientError, ValidationError
from app.models.ticket import ACTIVE_STATUSES, Ticket, TicketStatus

logger = logging.getLogger(__name__)


class BookingLedger:
    """Repository for ticket reads and writes."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, ticket_id: int) -> Ticket:
        ticket = self.db.get(Ticket, ticket_id)
        if not ticket:
            raise NotFoundError(f"Ticket with ID {ticket_id} not found", reason="ticket-not-found")
        return ticket

    def find_conflict(
        self,
        department_id: int,
        appointment_datetime: datetime,
        exclude_ticket_id: Optional[int] = None,
    ) -> Optional[Ticket]:
        """Active ticket holding exactly this department slot, if any."""
        query = self.db.query(Ticket).filter(
            Ticket.department_id == department_id,
            Ticket.appointment_datetime == appointment_datetime,
            Ticket.status.in_(ACTIVE_STATUSES),
        )
        if exclude_ticket_id is not None:
            query = query.filter(Ticket.id != exclude_ticket_id)
        return query.first()

    def taken_times(self, department_id: int, day: date) -> set:
        """Start times of active tickets for a department day."""
        rows = (
            self.db.query(Ticket.appointment_time)
            .filter(
                Ticket.department_id == department_id,
                Ticket.appointment_date == day,
                Ticket.status.in_(ACTIVE_STATUSES),
            )
            .all()
        )
        return {row[0] for row in rows}

    def list(
        self,
        status: Optional[TicketStatus] = None,
        department_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        staff_id: Optional[int] = None,
    ) -> List[Ticket]:
        query = self.db.query(Ticket)
        if status is not None:
            query = query.filter(Ticket.status == status)
        if department_id is not None:
            query = query.filter(Ticket.department_id == department_id)
        if customer_id is not None:
            query = query.filter(Ticket.customer_id == customer_id)
        if staff_id is not None:
            query = query.filter(Ticket.staff_id == staff_id)
        return query.order_by(Ticket.appointment_datetime, Ticket.id).all()

    def recent_rejected_for_staff(self, staff_id: int, limit: int = 5) -> List[Ticket]:
        return (
            self.db.query(Ticket)
            .filter(Ticket.staff_id == staff_id, Ticket.status == TicketStatus.REJECTED)
            .order_by(Ticket.closed_date.desc())
            .limit(limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Writes (called by the lifecycle service only)
    # ------------------------------------------------------------------
    def insert(self, ticket: Ticket) -> Ticket:
        self.db.add(ticket)
        self.commit()
        self.db.refresh(ticket)
        return ticket

    def update(self, ticket: Ticket, patch: dict) -> Ticket:
        for field, value in patch.items():
            setattr(ticket, field, value)
        self.commit()
        self.db.refresh(ticket)
        return ticket

    def set_status(self, ticket: Ticket, new_status: TicketStatus, **extra) -> Ticket:
        return self.update(ticket, {"status": new_status, **extra})

    def commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            detail = str(e.orig)
            if "uq_tickets_active_slot" in detail or "appointment_datetime" in detail:
                logger.info(f"[Ledger] Slot constraint rejected write: {detail}")
                raise ConflictError("This time slot is already booked", reason="slot-taken") from e
            logger.warning(f"[Ledger] Integrity error: {detail}")
            raise ValidationError("Ticket references are invalid", reason="invalid-reference") from e
        except (OperationalError, PoolTimeoutError) as e:
            self.db.rollback()
            logger.error(f"[Ledger] Storage unavailable: {e}")
            raise TransientError("Storage is temporarily unavailable, please retry") from e


def combine(day: date, at: time) -> datetime:
    """Derived appointment instant for a (date, time) pair."""
    return datetime.combine(day, at.replace(second=0, microsecond=0))
