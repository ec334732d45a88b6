"""
Department Router
Read-only department directory and day slot calendar
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from app.core.clock import Clock, get_clock
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.models.department import Department
from app.schemas.department import DaySlotsResponse, DepartmentResponse, SlotResponse
from app.services.availability import AvailabilityChecker, parse_date
from app.services.department_directory import DepartmentDirectory, format_minutes, operating_window

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/departments", tags=["Departments"])


def department_response(department: Department) -> DepartmentResponse:
    window = operating_window(department)
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        description=department.description,
        phone_number=department.phone_number,
        email_address=department.email_address,
        operating_hours=department.operating_hours,
        opening_time=format_minutes(window.opens),
        closing_time=format_minutes(window.closes),
        has_lunch_break=window.has_lunch_break,
        appointment_reasons=department.appointment_reasons or [],
    )


@router.get("/", response_model=List[DepartmentResponse], status_code=status.HTTP_200_OK)
def get_departments(db: Session = Depends(get_db)):
    return [department_response(d) for d in DepartmentDirectory(db).list()]


@router.get("/{department_id}", response_model=DepartmentResponse, status_code=status.HTTP_200_OK)
def get_department(department_id: int, db: Session = Depends(get_db)):
    return department_response(DepartmentDirectory(db).get(department_id))


@router.get("/{department_id}/slots", response_model=DaySlotsResponse, status_code=status.HTTP_200_OK)
def get_department_slots(
    department_id: int,
    day: str = Query(..., alias="date", description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    List a day's slots for a department, each marked available or not with
    the reason it cannot be booked.
    """
    parsed = parse_date(day)
    if parsed is None:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD.", reason="invalid-format")

    checker = AvailabilityChecker(db, clock=clock)
    slots = [
        SlotResponse(
            time=start.strftime("%H:%M"),
            available=decision.admit,
            reason=decision.reason.value if decision.reason else None,
        )
        for start, decision in checker.day_slots(department_id, parsed)
    ]

    return DaySlotsResponse(
        department_id=department_id,
        day=parsed,
        granularity_minutes=checker.policy.granularity_minutes,
        slots=slots,
    )
