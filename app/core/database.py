# File: database.py
# Path: app/core/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings

# Shared declarative base for all models
Base = declarative_base()


def build_engine(url: str, echo: bool = False):
    """
    Create an engine with bounded waits on every I/O path.

    PostgreSQL gets a connect timeout and a per-statement timeout; SQLite
    gets a busy timeout so concurrent writers queue instead of failing fast.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.db_pool_timeout,
            },
            echo=echo,
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
        connect_args={
            "options": f"-c timezone=utc -c statement_timeout={settings.db_statement_timeout_ms}",
            "connect_timeout": settings.db_connect_timeout,
            "application_name": "GovHubHelpdesk",
        } if "postgresql" in url else {},
        echo=echo,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.database_echo)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db():
    """
    Dependency function for FastAPI endpoints.
    Creates a new database session for each request; anything not committed
    when the request ends (error or abandoned call) is rolled back.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

