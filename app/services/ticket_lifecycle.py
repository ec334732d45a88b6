"""
Ticket Lifecycle
Booking, rescheduling and status transitions for tickets.

    Pending -> Approved | Rejected | Cancelled   (all terminal)

Every rule is checked before the ledger is touched, so a rejected request
never leaves a partial change behind. Customers are notified after the change
is committed; a failed notification never undoes it.
"""
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.clock import Clock, local_now
from app.core.exceptions import ConflictError, ValidationError
from app.models.ticket import Ticket, TicketStatus
from app.schemas.ticket import TicketCreate, TicketReject, TicketUpdate
from app.services.availability import AvailabilityChecker, AvailabilityDecision, Reason
from app.services.booking_ledger import BookingLedger, combine
from app.services.customer_directory import CustomerDirectory
from app.services.department_directory import DepartmentDirectory

logger = logging.getLogger(__name__)

Dispatch = Callable[..., Any]

# Closed tickets keep their outcome; staff may still add feedback
CLOSED_TICKET_FIELDS = {"feedback"}


def _run_now(func: Callable, *args) -> None:
    func(*args)


class TicketLifecycle:
    """
    Service for everything that changes a ticket.

    Args:
        db: Database session
        notifier: object with ticket_status_changed(ticket, department, customer)
        clock: source of "now" for admission checks and lifecycle timestamps
        dispatch: how to run the notification; routers pass
            BackgroundTasks.add_task so it happens after the response
    """

    def __init__(
        self,
        db: Session,
        notifier,
        clock: Clock = local_now,
        dispatch: Optional[Dispatch] = None,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.dispatch = dispatch or _run_now
        self.ledger = BookingLedger(db)
        self.departments = DepartmentDirectory(db)
        self.customers = CustomerDirectory(db)
        self.checker = AvailabilityChecker(db, clock=clock)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def book(self, data: TicketCreate) -> Ticket:
        customer = self.customers.get(data.customer_id)
        department = self.departments.get(data.department_id)

        decision = self.checker.check(department.id, data.appointment_date, data.appointment_time)
        self._require_admitted(decision)

        ticket = Ticket(
            customer_id=customer.id,
            department_id=department.id,
            issue_description=data.issue_description,
            notes=data.notes,
            appointment_date=decision.appointment_date,
            appointment_time=decision.appointment_time,
            appointment_datetime=decision.appointment_datetime,
            status=TicketStatus.PENDING,
            created_date=self.clock(),
        )
        ticket = self.ledger.insert(ticket)
        logger.info(
            f"[Booking] Ticket {ticket.id} booked for customer {customer.id} "
            f"at department {department.id} on {ticket.appointment_datetime}"
        )

        self._notify(ticket)
        return ticket

    def update(self, ticket_id: int, patch: TicketUpdate) -> Ticket:
        ticket = self.ledger.get(ticket_id)
        changes: Dict[str, Any] = patch.model_dump(exclude_unset=True)

        new_status = changes.pop("status", None)
        new_date = changes.pop("appointment_date", None)
        new_time = changes.pop("appointment_time", None)
        status_changed = new_status is not None and new_status != ticket.status
        rescheduling = new_date is not None or new_time is not None

        if ticket.status.is_terminal and (status_changed or rescheduling or set(changes) - CLOSED_TICKET_FIELDS):
            raise ValidationError(
                f"Ticket {ticket.id} is already {ticket.status.value}; only feedback can be changed",
                reason="ticket-closed",
            )

        if "notes" in changes and changes["notes"] is None:
            raise ValidationError("Notes cannot be removed", reason="invalid-request")
        if "staff_id" in changes and changes["staff_id"] is None and new_status is TicketStatus.APPROVED:
            raise ValidationError("A staff member is required to approve a ticket", reason="staff-required")
        if changes.get("staff_id") is not None:
            self.customers.get_staff(changes["staff_id"])

        values = dict(changes)
        if rescheduling:
            values.update(self._reschedule(ticket, new_date, new_time))

        if status_changed:
            values.update(self._transition(
                ticket,
                new_status,
                staff_id=changes.get("staff_id"),
                rejection_reason=changes.get("rejection_reason"),
            ))
        elif values.get("rejection_reason") is not None:
            if values["rejection_reason"].strip():
                raise ValidationError(
                    "A rejection reason can only be given when rejecting a ticket",
                    reason="invalid-request",
                )
            values["rejection_reason"] = None

        if not values:
            return ticket

        ticket = self.ledger.update(ticket, values)
        logger.info(f"[Lifecycle] Ticket {ticket.id} updated: {sorted(values)}")

        if status_changed:
            self._notify(ticket)
        return ticket

    def reject(self, ticket_id: int, data: TicketReject) -> Ticket:
        ticket = self.ledger.get(ticket_id)
        if data.staff_id is not None:
            self.customers.get_staff(data.staff_id)

        values = self._transition(
            ticket,
            TicketStatus.REJECTED,
            staff_id=data.staff_id,
            rejection_reason=data.rejection_reason,
        )
        ticket = self.ledger.set_status(ticket, values.pop("status"), **values)
        logger.info(f"[Lifecycle] Ticket {ticket.id} rejected: {ticket.rejection_reason}")

        self._notify(ticket)
        return ticket

    def cancel(self, ticket_id: int) -> Ticket:
        ticket = self.ledger.get(ticket_id)
        values = self._transition(ticket, TicketStatus.CANCELLED)
        ticket = self.ledger.set_status(ticket, values.pop("status"), **values)
        logger.info(f"[Lifecycle] Ticket {ticket.id} cancelled, slot {ticket.appointment_datetime} released")

        self._notify(ticket)
        return ticket

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------
    def _transition(
        self,
        ticket: Ticket,
        new_status: TicketStatus,
        staff_id: Optional[int] = None,
        rejection_reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Validate a status change and return the fields it writes."""
        if ticket.status.is_terminal:
            raise ValidationError(
                f"Ticket {ticket.id} is already {ticket.status.value}; its status can no longer change",
                reason="ticket-closed",
            )
        if new_status is TicketStatus.PENDING:
            raise ValidationError("Tickets cannot be moved back to Pending", reason="invalid-transition")

        values: Dict[str, Any] = {"status": new_status, "closed_date": self.clock()}

        if new_status is TicketStatus.APPROVED:
            approver = staff_id if staff_id is not None else ticket.staff_id
            if approver is None:
                raise ValidationError("A staff member is required to approve a ticket", reason="staff-required")
            values["staff_id"] = approver
        elif staff_id is not None:
            values["staff_id"] = staff_id

        if new_status is TicketStatus.REJECTED:
            reason = (rejection_reason or "").strip()
            if not reason:
                raise ValidationError("Rejection reason is required", reason="rejection-reason-required")
            values["rejection_reason"] = reason
        elif rejection_reason:
            raise ValidationError(
                "A rejection reason can only be given when rejecting a ticket",
                reason="invalid-request",
            )

        return values

    def _reschedule(self, ticket: Ticket, new_date: Optional[str], new_time: Optional[str]) -> Dict[str, Any]:
        target_date = new_date if new_date is not None else ticket.appointment_date
        target_time = new_time if new_time is not None else ticket.appointment_time

        decision = self.checker.check(
            ticket.department_id,
            target_date,
            target_time,
            exclude_ticket_id=ticket.id,
        )
        if decision.reason is Reason.INVALID_FORMAT or decision.appointment_datetime != ticket.appointment_datetime:
            self._require_admitted(decision)

        return {
            "appointment_date": decision.appointment_date,
            "appointment_time": decision.appointment_time,
            "appointment_datetime": combine(decision.appointment_date, decision.appointment_time),
        }

    @staticmethod
    def _require_admitted(decision: AvailabilityDecision) -> None:
        if decision.admit:
            return
        if decision.reason is Reason.SLOT_TAKEN:
            raise ConflictError(decision.message, reason=decision.reason.value)
        raise ValidationError(decision.message, reason=decision.reason.value)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------
    def _notify(self, ticket: Ticket) -> None:
        try:
            department = self.departments.get(ticket.department_id)
            customer = self.customers.get(ticket.customer_id)
            self.dispatch(self.notifier.ticket_status_changed, ticket, department, customer)
        except Exception as e:
            logger.error(f"[Lifecycle] Could not schedule notification for ticket {ticket.id}: {e}", exc_info=True)
