from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from app.core.database import Base


class Department(Base):
    """
    Department model representing a government office customers book with.
    operating_hours keeps the raw stored form ("8:00-16:00", "8"); use the
    department directory to read it as a normalized window.
    """
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)
    email_address = Column(String(255), nullable=True)
    operating_hours = Column(String(50), nullable=True)
    has_lunch_break = Column(Boolean, default=False, nullable=False)
    send_confirmation_email = Column(Boolean, default=True, nullable=False)
    appointment_reasons = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Department(id={self.id}, name='{self.name}', operating_hours='{self.operating_hours}')>"
