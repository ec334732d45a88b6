"""
Read-side projection: tickets joined with the names and contact details the
frontend shows next to them. Nothing here is used by the booking rules.
"""
from typing import List

from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.models.department import Department
from app.models.staff import Staff
from app.models.ticket import Ticket
from app.schemas.ticket import TicketDetailResponse, TicketResponse


def ticket_detail(db: Session, ticket: Ticket) -> TicketDetailResponse:
    department = db.get(Department, ticket.department_id)
    customer = db.get(Customer, ticket.customer_id)
    staff = db.get(Staff, ticket.staff_id) if ticket.staff_id else None

    base = TicketResponse.model_validate(ticket).model_dump()
    return TicketDetailResponse(
        **base,
        department_name=department.name if department else None,
        customer_name=customer.name if customer else None,
        customer_email=customer.email if customer else None,
        staff_name=staff.name if staff else None,
    )


def ticket_list(tickets: List[Ticket]) -> List[TicketResponse]:
    return [TicketResponse.model_validate(ticket) for ticket in tickets]
