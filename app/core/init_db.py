"""
Database initialization script.
Creates all tables and optionally seeds sample departments, customers and staff.
"""

from sqlalchemy import inspect
from app.core.database import engine, Base, SessionLocal
from app.models import Customer, Department, Staff
import logging

logger = logging.getLogger(__name__)

SAMPLE_DEPARTMENTS = [
    {
        "name": "Registration of Persons",
        "description": "National identity card issuance and renewals",
        "phone_number": "0112000001",
        "email_address": "registration@govhub.example",
        "operating_hours": "8:00-15:50",
        "has_lunch_break": False,
        "appointment_reasons": ["New identity card", "Renewal", "Lost card"],
    },
    {
        "name": "Motor Traffic",
        "description": "Driving licences and vehicle registration",
        "phone_number": "0112000002",
        "email_address": "motortraffic@govhub.example",
        "operating_hours": "8",
        "has_lunch_break": True,
        "appointment_reasons": ["Licence renewal", "Vehicle transfer"],
    },
    {
        "name": "Immigration",
        "description": "Passport applications and visa services",
        "phone_number": "0112000003",
        "email_address": "immigration@govhub.example",
        "operating_hours": "9:00 AM - 3:00 PM",
        "has_lunch_break": False,
        "appointment_reasons": ["Passport", "Visa extension"],
    },
]


def init_db():
    """
    Initialize the database by creating all tables.
    """
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully!")


def seed_initial_data():
    """
    Seed the database with sample departments, one customer and one staff member.
    """
    db = SessionLocal()

    try:
        existing_departments = db.query(Department).count()

        if existing_departments == 0:
            logger.info("No departments found. Creating sample data...")

            departments = [Department(**data) for data in SAMPLE_DEPARTMENTS]
            db.add_all(departments)
            db.flush()

            db.add(Customer(name="Sample Customer", email="customer@example.com", phone_number="0771234567"))
            db.add(Staff(name="Sample Officer", email="officer@govhub.example", department_id=departments[0].id))
            db.commit()

            logger.info(f"Created {len(departments)} departments, 1 customer and 1 staff member")
        else:
            logger.info(f"Database already has {existing_departments} department(s). Skipping seed data.")

    except Exception as e:
        logger.error(f"Error seeding initial data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def check_tables():
    """
    Check which tables exist in the database.
    """
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    logger.info("Existing tables in database:")
    for table in tables:
        logger.info(f"  - {table}")

    return tables


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    logger.info("=" * 50)
    logger.info("Database Initialization Script")
    logger.info("=" * 50)

    check_tables()
    init_db()
    seed_initial_data()
    check_tables()

    logger.info("=" * 50)
    logger.info("Database initialization complete!")
    logger.info("=" * 50)
