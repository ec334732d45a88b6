"""
Gov Hub Helpdesk API
Main application file
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
import logging
import uvicorn

from app.core.config import settings
from app.core.database import engine, Base
from app.core.exceptions import BookingError, TransientError
from app.routers import department, ticket
from app.services.email_service import EmailService

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# FastAPI Application
# ============================================================================

docs_url = "/docs" if settings.ENVIRONMENT != "production" else None
redoc_url = "/redoc" if settings.ENVIRONMENT != "production" else None

app = FastAPI(
    title="Gov Hub Helpdesk API",
    version=settings.app_version,
    description="Appointment tickets for government departments: slot booking, triage and status notifications",
    docs_url=docs_url,
    redoc_url=redoc_url,
)

# ============================================================================
# CORS Configuration
# ============================================================================

if settings.API_CORS_ORIGINS and settings.API_CORS_ORIGINS.strip() == "*":
    # Allow all origins (credentials must be False)
    origins = ["*"]
    allow_credentials = False
else:
    origins = list(settings.cors_origins)
    if settings.API_CORS_ORIGINS:
        origins.extend(o.strip() for o in settings.API_CORS_ORIGINS.split(",") if o.strip())
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", []) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "; ".join(problems), "reason": "invalid-request"},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def storage_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} storage failure: {exc}")
    error = TransientError("Storage is temporarily unavailable, please retry")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())

# ============================================================================
# Root & Health Endpoints
# ============================================================================

@app.get("/", tags=["Root"])
def root():
    """Root endpoint - API information"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "documentation": "/docs",
        "endpoints": {
            "health": "/health",
            "tickets": "/api/tickets",
            "departments": "/api/departments",
        }
    }


@app.get("/health", tags=["Health"])
@app.get("/api/health", tags=["Health"])
def health_check():
    """Health check endpoint for API monitoring"""
    return {
        "status": "ok",
        "message": "Gov Hub Helpdesk API is running",
        "version": settings.app_version,
        "environment": settings.ENVIRONMENT,
    }

# ============================================================================
# Event Handlers
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Actions to perform on application startup"""
    logger.info("=" * 60)
    logger.info("Starting Gov Hub Helpdesk API")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Timezone: {settings.timezone}")
    logger.info(f"Slot granularity: {settings.slot_granularity_minutes} minutes")
    logger.info(f"Email enabled: {settings.email_enabled}")
    logger.info("=" * 60)

    try:
        logger.info("Ensuring database tables exist...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
        if settings.seed_database:
            from app.core.init_db import seed_initial_data
            seed_initial_data()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        logger.warning("Application will continue, but database operations may fail")

    app.state.notifier = EmailService()


@app.on_event("shutdown")
async def shutdown_event():
    """Actions to perform on application shutdown"""
    logger.info("=" * 60)
    logger.info("Shutting down Gov Hub Helpdesk API")
    logger.info("=" * 60)

    notifier = getattr(app.state, "notifier", None)
    if notifier is not None:
        notifier.close()

# ============================================================================
# Router Registration
# ============================================================================

logger.info("Registering API routers...")
app.include_router(ticket.router)  # Booking and ticket lifecycle
app.include_router(department.router)  # Department directory and slots
logger.info("All routers registered successfully")

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.LOG_LEVEL.lower()
    )
