"""
Customer and staff lookups used by the booking engine and the notifier.
"""
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.customer import Customer
from app.models.staff import Staff


class CustomerDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError(f"Customer with ID {customer_id} not found", reason="customer-not-found")
        return customer

    def get_staff(self, staff_id: int) -> Staff:
        staff = self.db.get(Staff, staff_id)
        if not staff or not staff.is_active:
            raise NotFoundError(f"Staff member with ID {staff_id} not found", reason="staff-not-found")
        return staff
