"""
Ticket Router
Booking, availability and lifecycle endpoints for appointment tickets
"""
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session
import logging

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.models.ticket import TicketStatus
from app.schemas.ticket import (
    AvailabilityResponse,
    ErrorResponse,
    TicketActionResponse,
    TicketCreate,
    TicketDetailResponse,
    TicketListResponse,
    TicketReject,
    TicketResponse,
    TicketUpdate,
)
from app.services.availability import AvailabilityChecker
from app.services.booking_ledger import BookingLedger
from app.services.ticket_lifecycle import TicketLifecycle
from app.services.ticket_views import ticket_detail, ticket_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def get_notifier(request: Request):
    """The process-wide notifier created at startup"""
    return request.app.state.notifier


def get_lifecycle(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> TicketLifecycle:
    """Dependency injection for TicketLifecycle; notifications run after the response"""
    return TicketLifecycle(db, notifier, clock=clock, dispatch=background_tasks.add_task)


@router.get("/check-availability", response_model=AvailabilityResponse, status_code=status.HTTP_200_OK)
def check_availability(
    department_id: int = Query(..., alias="departmentID"),
    appointment_date: str = Query(..., alias="appointmentDate", description="YYYY-MM-DD"),
    appointment_time: str = Query(..., alias="appointmentTime", description="HH:MM"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Check whether a department slot can be booked. Read-only.

    Returns:
        available flag with a human readable message and the rejection reason
    """
    decision = AvailabilityChecker(db, clock=clock).check(department_id, appointment_date, appointment_time)
    return AvailabilityResponse(
        available=decision.admit,
        message=decision.message,
        reason=decision.reason.value if decision.reason else None,
    )


@router.post("/", response_model=TicketActionResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
def create_ticket(
    ticket_data: TicketCreate,
    lifecycle: TicketLifecycle = Depends(get_lifecycle),
):
    """
    Book an appointment ticket. The slot is validated first; a booking that
    loses a race for the same slot at the database returns 409.
    """
    ticket = lifecycle.book(ticket_data)
    return TicketActionResponse(
        message="Ticket created successfully",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.get("/", response_model=TicketListResponse, status_code=status.HTTP_200_OK)
def get_tickets(
    ticket_status: Optional[TicketStatus] = Query(None, alias="status"),
    department_id: Optional[int] = Query(None, alias="departmentID"),
    customer_id: Optional[int] = Query(None, alias="customerID"),
    staff_id: Optional[int] = Query(None, alias="staffID"),
    db: Session = Depends(get_db),
):
    """List tickets ordered by appointment time, optionally filtered"""
    tickets = BookingLedger(db).list(
        status=ticket_status,
        department_id=department_id,
        customer_id=customer_id,
        staff_id=staff_id,
    )
    return TicketListResponse(total=len(tickets), tickets=ticket_list(tickets))


@router.get("/recent-rejected/{staff_id}", response_model=List[TicketResponse], status_code=status.HTTP_200_OK)
def get_recent_rejected_tickets(staff_id: int, db: Session = Depends(get_db)):
    """The five tickets most recently rejected by a staff member"""
    return ticket_list(BookingLedger(db).recent_rejected_for_staff(staff_id))


@router.get("/{ticket_id}", response_model=TicketResponse, status_code=status.HTTP_200_OK, responses=_ERRORS)
def get_ticket_by_id(ticket_id: int, db: Session = Depends(get_db)):
    return TicketResponse.model_validate(BookingLedger(db).get(ticket_id))


@router.get("/{ticket_id}/details", response_model=TicketDetailResponse, status_code=status.HTTP_200_OK, responses=_ERRORS)
def get_ticket_details(ticket_id: int, db: Session = Depends(get_db)):
    """Ticket with department, customer and staff names filled in"""
    return ticket_detail(db, BookingLedger(db).get(ticket_id))


@router.put("/{ticket_id}", response_model=TicketActionResponse, status_code=status.HTTP_200_OK, responses=_ERRORS)
def update_ticket(
    ticket_id: int,
    ticket_data: TicketUpdate,
    lifecycle: TicketLifecycle = Depends(get_lifecycle),
):
    """
    Partially update a ticket. Time changes are re-validated against the
    slot rules; status changes go through the lifecycle rules.
    """
    ticket = lifecycle.update(ticket_id, ticket_data)
    return TicketActionResponse(
        message="Ticket updated successfully",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.put("/{ticket_id}/reject", response_model=TicketActionResponse, status_code=status.HTTP_200_OK, responses=_ERRORS)
def reject_ticket(
    ticket_id: int,
    reject_data: TicketReject,
    lifecycle: TicketLifecycle = Depends(get_lifecycle),
):
    """Reject a pending ticket. rejectionReason is required."""
    ticket = lifecycle.reject(ticket_id, reject_data)
    return TicketActionResponse(
        message="Ticket rejected successfully",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.delete("/{ticket_id}", response_model=TicketActionResponse, status_code=status.HTTP_200_OK, responses=_ERRORS)
def delete_ticket(
    ticket_id: int,
    lifecycle: TicketLifecycle = Depends(get_lifecycle),
):
    """
    Cancel a ticket. Tickets are kept for the audit trail; cancelling frees
    the slot for new bookings.
    """
    ticket = lifecycle.cancel(ticket_id)
    return TicketActionResponse(
        message="Ticket cancelled successfully",
        ticket=TicketResponse.model_validate(ticket),
    )
