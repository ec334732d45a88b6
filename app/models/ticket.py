"""
Ticket Model
An appointment request filed by a customer against a department.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Date, Time, DateTime, ForeignKey, Index,
    Enum as SQLEnum, text,
)
import enum

from app.core.database import Base


class TicketStatus(str, enum.Enum):
    """Ticket lifecycle states; everything but PENDING is terminal."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not TicketStatus.PENDING


# Statuses that hold a slot. Stored by enum name, which is what the
# partial index below compares against.
ACTIVE_STATUSES = (TicketStatus.PENDING, TicketStatus.APPROVED)
_ACTIVE_SLOT_PREDICATE = text("status IN ('PENDING', 'APPROVED')")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)

    # References
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)

    # Content
    issue_description = Column(Text, nullable=False)
    notes = Column(String(500), nullable=False)

    # Scheduling; appointment_datetime is always appointment_date + appointment_time
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    appointment_datetime = Column(DateTime, nullable=False)

    # Lifecycle
    status = Column(SQLEnum(TicketStatus), default=TicketStatus.PENDING, nullable=False)
    created_date = Column(DateTime, nullable=False)
    closed_date = Column(DateTime, nullable=True)

    # Outcome
    feedback = Column(Text, nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    __table_args__ = (
        # One active ticket per department slot, enforced by the database
        Index(
            "uq_tickets_active_slot",
            "department_id",
            "appointment_datetime",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_tickets_department_slot_status", "department_id", "appointment_datetime", "status"),
    )

    def __repr__(self):
        return (
            f"<Ticket(id={self.id}, department_id={self.department_id}, "
            f"appointment='{self.appointment_datetime}', status='{self.status}')>"
        )
