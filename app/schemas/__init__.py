from app.schemas.department import (
    DepartmentResponse,
    SlotResponse,
    DaySlotsResponse,
)
from app.schemas.ticket import (
    TicketCreate,
    TicketUpdate,
    TicketReject,
    TicketResponse,
    TicketDetailResponse,
    TicketActionResponse,
    TicketListResponse,
    AvailabilityResponse,
    ErrorResponse,
)

__all__ = [
    "DepartmentResponse",
    "SlotResponse",
    "DaySlotsResponse",
    "TicketCreate",
    "TicketUpdate",
    "TicketReject",
    "TicketResponse",
    "TicketDetailResponse",
    "TicketActionResponse",
    "TicketListResponse",
    "AvailabilityResponse",
    "ErrorResponse",
]
