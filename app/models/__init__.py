from app.models.customer import Customer
from app.models.department import Department
from app.models.staff import Staff
from app.models.ticket import Ticket, TicketStatus, ACTIVE_STATUSES

__all__ = ["Customer", "Department", "Staff", "Ticket", "TicketStatus", "ACTIVE_STATUSES"]
