import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI
from sqlalchemy import text

from services.building_ops.database import (
    close_db,
    create_tables,
    get_async_session_factory,
)
from services.building_ops.dependencies import reset_dependencies
from services.building_ops.routers import (
    aggregation,
    availability,
    events,
    raw_events,
    resources,
)
from services.building_ops.settings import get_settings
from services.common.http_errors import register_ops_exception_handlers
from services.common.logging_config import (
    create_request_logging_middleware,
    get_logger,
    log_service_shutdown,
    log_service_startup,
    setup_service_logging,
)

# Set up centralized logging - will be initialized in lifespan
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    # Startup event logic
    settings = get_settings()

    setup_service_logging(
        service_name="building-ops",
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
    )

    log_service_startup(
        "building-ops",
        app_name=settings.SERVICE_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        school_timezone=settings.school_timezone,
    )
    await create_tables()
    yield
    # Shutdown event logic
    reset_dependencies()
    await close_db()
    log_service_shutdown("building-ops")


app = FastAPI(
    title="Building Ops Service",
    description=(
        "Aggregates events from the reservation system, staff and division "
        "calendars and self-service requests into one canonical event list, "
        "and flags scheduling conflicts"
    ),
    version="0.1.0",
    openapi_tags=[
        {"name": "aggregation", "description": "Aggregation and conflict runs"},
        {"name": "events", "description": "Canonical events and raw event links"},
        {"name": "raw-events", "description": "Raw event ingest"},
        {"name": "availability", "description": "Resource availability checks"},
        {"name": "resources", "description": "Resources and resource aliases"},
    ],
    debug=False,
    lifespan=lifespan,
)

# Add centralized request logging middleware
app.middleware("http")(create_request_logging_middleware())

register_ops_exception_handlers(app)

app.include_router(aggregation.router)
app.include_router(events.router)
app.include_router(raw_events.router)
app.include_router(availability.router)
app.include_router(resources.router)


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint for load balancers and monitoring.
    Checks database connectivity and basic configuration.
    """
    start_time = time.time()

    db_status = "ok"
    db_error = None
    db_response_time = None

    try:
        async with get_async_session_factory()() as session:
            db_start = time.time()
            await session.execute(text("SELECT 1"))
            db_response_time = round((time.time() - db_start) * 1000, 2)
    except Exception as e:
        db_status = "error"
        db_error = str(e) if get_settings().DEBUG else "Database unavailable"
        logger.error(f"Health check database error: {e}")

    settings = get_settings()
    config_issues = []
    if not settings.api_scheduler_building_ops_key:
        config_issues.append("API_SCHEDULER_BUILDING_OPS_KEY not configured")
    if not settings.api_frontend_building_ops_key:
        config_issues.append("API_FRONTEND_BUILDING_OPS_KEY not configured")
    config_status = "ok" if not config_issues else "error"

    overall_status = "ok" if db_status == "ok" and config_status == "ok" else "error"
    total_duration = round((time.time() - start_time) * 1000, 2)

    return {
        "status": overall_status,
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": {
                "status": db_status,
                "response_time_ms": db_response_time,
                "error": db_error,
            },
            "configuration": {"status": config_status, "issues": config_issues},
        },
        "performance": {"total_check_time_ms": total_duration},
    }
