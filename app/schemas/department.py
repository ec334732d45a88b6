from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date


class DepartmentResponse(BaseModel):
    """Department with its operating window normalized to HH:MM"""
    id: int
    name: str
    description: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    email_address: Optional[str] = Field(None, alias="emailAddress")
    operating_hours: Optional[str] = Field(None, alias="operatingHours")
    opening_time: str = Field(..., alias="openingTime")
    closing_time: str = Field(..., alias="closingTime")
    has_lunch_break: bool = Field(False, alias="hasLunchBreak")
    appointment_reasons: List[str] = Field(default_factory=list, alias="appointmentReasons")

    model_config = ConfigDict(populate_by_name=True)


class SlotResponse(BaseModel):
    time: str
    available: bool
    reason: Optional[str] = None


class DaySlotsResponse(BaseModel):
    department_id: int = Field(..., alias="departmentID")
    day: date = Field(..., alias="date")
    granularity_minutes: int = Field(..., alias="granularityMinutes")
    slots: List[SlotResponse]

    model_config = ConfigDict(populate_by_name=True)
