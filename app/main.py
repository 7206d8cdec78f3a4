from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.core.config import settings, app_logger
from app.core.db import AsyncSessionLocal, dispose_db, init_db
from app.core.exceptions.handlers import (
    authentication_exception_handler,
    database_exception_handler,
    exception_schema,
    general_exception_handler,
    sms_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    SMSException,
)
from app.core.routers import auth_router, health_router
from app.core.services import (
    AlertDispatcher,
    HealthMonitor,
    NotificationService,
    SMSService,
)
from app.infrastructure.scheduler import scheduler, initialize_scheduler


def create_health_monitor() -> HealthMonitor:
    """Build the process-wide health monitor bound to the application store."""
    return HealthMonitor(
        alerts=AlertDispatcher(session_factory=AsyncSessionLocal),
        session_factory=AsyncSessionLocal,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("Starting application...")

    # Create database tables
    app_logger.info("Initializing database...")
    await init_db()
    app_logger.info("Database initialized successfully.")

    # Initialize SMS service
    app_logger.info("Initializing SMS service...")
    await SMSService.init()
    app_logger.info("SMS service initialized successfully.")

    # Initialize notification service
    app_logger.info("Initializing notification service...")
    await NotificationService.init()
    app_logger.info("Notification service initialized successfully.")

    # Start the scheduler (only if enabled)
    if settings.ENABLE_SCHEDULER:
        app_logger.info("Starting scheduler...")
        scheduler.start()
        app_logger.info("Scheduler started successfully.")
        initialize_scheduler(app.state.health_monitor)
    else:
        app_logger.info("Scheduler disabled via ENABLE_SCHEDULER setting.")

    # Yield control back to the application
    yield

    # Cleanup on shutdown
    app_logger.info("Shutting down application...")

    if settings.ENABLE_SCHEDULER and scheduler.running:
        app_logger.info("Stopping scheduler...")
        scheduler.shutdown()
        app_logger.info("Scheduler stopped successfully.")

    await app.state.health_monitor.alerts.wait_pending()

    app_logger.info("Closing outbound HTTP clients...")
    await SMSService.aclose()
    await NotificationService.aclose()
    app_logger.info("Outbound HTTP clients closed successfully.")

    await dispose_db()
    app_logger.info("Database connections closed.")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
)

app.state.health_monitor = create_health_monitor()

# Register exception handlers (order matters - more specific first)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SMSException, sms_exception_handler)
app.add_exception_handler(AuthenticationException, authentication_exception_handler)
app.add_exception_handler(DatabaseException, database_exception_handler)
# Generic fallbacks
app.add_exception_handler(AppException, general_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.middleware("http")
async def track_requests(request: Request, call_next):
    """Count every request as "<METHOD> <path>" from the client address."""
    monitor: HealthMonitor = request.app.state.health_monitor
    monitor.observe_request(
        f"{request.method} {request.url.path}",
        request.client.host if request.client else "unknown",
        {
            "user_agent": request.headers.get("user-agent"),
            "referer": request.headers.get("referer"),
        },
    )
    return await call_next(request)


# Include routers
app.include_router(auth_router, tags=["Authentication"])
app.include_router(health_router, tags=["Health"])
