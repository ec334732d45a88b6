from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer
from typing import List, Optional
from datetime import date, datetime, time
from app.models.ticket import TicketStatus


class TicketCreate(BaseModel):
    """Schema for booking a new appointment ticket"""
    customer_id: int = Field(..., alias="customerID", description="ID of the customer filing the ticket")
    department_id: int = Field(..., alias="departmentID", description="ID of the department to meet")
    issue_description: str = Field(..., min_length=1, alias="issueDescription", description="What the appointment is about")
    notes: str = Field(..., min_length=10, max_length=500, description="Additional notes (10-500 characters)")
    appointment_date: str = Field(..., alias="appointmentDate", description="Appointment date (YYYY-MM-DD)")
    appointment_time: str = Field(..., alias="appointmentTime", description="Appointment time (HH:MM, 24h)")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("issue_description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("issueDescription must not be blank")
        return v


class TicketUpdate(BaseModel):
    """
    Partial update. Only these fields are mutable after creation; identity,
    references and createdDate are rejected.
    """
    status: Optional[TicketStatus] = None
    staff_id: Optional[int] = Field(None, alias="staffID")
    notes: Optional[str] = Field(None, min_length=10, max_length=500)
    feedback: Optional[str] = None
    rejection_reason: Optional[str] = Field(None, max_length=500, alias="rejectionReason")
    appointment_date: Optional[str] = Field(None, alias="appointmentDate")
    appointment_time: Optional[str] = Field(None, alias="appointmentTime")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class TicketReject(BaseModel):
    """Schema for rejecting a ticket; the reason is checked by the lifecycle service"""
    rejection_reason: Optional[str] = Field(None, max_length=500, alias="rejectionReason")
    staff_id: Optional[int] = Field(None, alias="staffID")

    model_config = ConfigDict(populate_by_name=True)


class TicketResponse(BaseModel):
    """Schema for ticket response"""
    id: int
    customer_id: int = Field(..., alias="customerID")
    department_id: int = Field(..., alias="departmentID")
    staff_id: Optional[int] = Field(None, alias="staffID")
    issue_description: str = Field(..., alias="issueDescription")
    notes: str
    appointment_date: date = Field(..., alias="appointmentDate")
    appointment_time: time = Field(..., alias="appointmentTime")
    appointment_datetime: datetime = Field(..., alias="appointmentDateTime")
    status: TicketStatus
    created_date: datetime = Field(..., alias="createdDate")
    closed_date: Optional[datetime] = Field(None, alias="closedDate")
    feedback: Optional[str] = None
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_serializer("appointment_time")
    def _format_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class TicketDetailResponse(TicketResponse):
    """Ticket joined with department, customer and staff details"""
    department_name: Optional[str] = Field(None, alias="departmentName")
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    staff_name: Optional[str] = Field(None, alias="staffName")


class TicketActionResponse(BaseModel):
    """Schema for create/update responses with a success message"""
    success: bool = True
    message: str
    ticket: TicketResponse


class AvailabilityResponse(BaseModel):
    available: bool
    message: str
    reason: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    reason: str


class TicketListResponse(BaseModel):
    total: int
    tickets: List[TicketResponse]
