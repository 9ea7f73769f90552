"""
Ticket Warning Tracker - Main Application
==========================================

Support ticket tracker with automatic warning escalation.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and the escalation policy
- Infrastructure: JSON store, remote clock, config watcher, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from warning_tracker import __version__
from warning_tracker.config import REGIONS, Settings, get_settings
from warning_tracker.core import ApplicationException
from warning_tracker.escalation.application import ITimeSource, TicketTrackerService
from warning_tracker.escalation.domain import BusinessCalendar
from warning_tracker.escalation.infrastructure import (
    EscalationConfigManager,
    EscalationScheduler,
    JsonTrackerRepository,
    LocalTimeSource,
    WorldTimeSource,
)
from warning_tracker.escalation.interfaces import tracker_router
from warning_tracker.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler
)
from warning_tracker.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)

API_DESCRIPTION = """
## Support Ticket Warning Tracker

Tracks EU and Global tickets and escalates idle ones by business days
(Monday to Friday) since last activity.

**Escalation (default thresholds):**
- Trackable ticket idle for 2 business days -> `Pending Warning 1`
- `Warning 1 Sent` for 2 business days -> `Pending Warning 2`
- `Warning 2 Sent` for 3 business days -> `Pending Warning 3`
- Recent activity on a `Pending Warning` ticket restores its previous status

Checks run at startup, on a fixed interval, and right after `lastModified`
is edited.
"""


def _build_time_source(settings: Settings) -> ITimeSource:
    if not settings.time_api_url:
        logger.info("Time API not configured, using local clock")
        return LocalTimeSource()
    return WorldTimeSource(
        settings.time_api_url,
        timeout_seconds=settings.time_api_timeout_seconds
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its lifespan bound to `settings`."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        STARTUP:
        1. Structured logging
        2. Escalation config, watched for edits
        3. Ticket data file
        4. Startup escalation check, so tickets that aged while the service
           was down are caught up before the first request
        5. Periodic escalation scheduler

        SHUTDOWN runs the reverse: scheduler, config watcher, time API client.
        """
        setup_logging(settings.log_level, settings.environment, settings.app_name)
        logger.info("Starting Ticket Warning Tracker", extra={
            "version": settings.app_version,
            "environment": settings.environment,
            "data_path": str(settings.data_path),
        })

        config_manager = EscalationConfigManager()
        config_manager.load(settings.escalation_config_path)
        config_manager.start_watching()

        repository = JsonTrackerRepository(settings.data_path)
        repository.load()

        time_source = _build_time_source(settings)
        service = TicketTrackerService(
            repository=repository,
            time_source=time_source,
            config_provider=config_manager,
            calendar=BusinessCalendar(settings.business_timezone)
        )
        await service.startup_check()

        scheduler = None
        if settings.escalation_interval_seconds > 0:
            scheduler = EscalationScheduler(interval_seconds=settings.escalation_interval_seconds)
            await scheduler.start(service.periodic_check)
        else:
            logger.info("Periodic escalation disabled")

        app.state.settings = settings
        app.state.tracker_service = service
        app.state.scheduler = scheduler
        app.state.config_manager = config_manager
        app.state.time_source = time_source

        try:
            yield
        finally:
            logger.info("Shutting down Ticket Warning Tracker")
            if scheduler:
                await scheduler.stop()
            config_manager.stop_watching()
            if isinstance(time_source, WorldTimeSource):
                await time_source.close()

    app = FastAPI(
        title="Ticket Warning Tracker API",
        description=API_DESCRIPTION,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it runs first and the logging middleware sees the id
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(tracker_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Liveness plus a snapshot of the tracker's moving parts."""
        state = request.app.state
        service: Optional[TicketTrackerService] = getattr(state, "tracker_service", None)
        scheduler: Optional[EscalationScheduler] = getattr(state, "scheduler", None)
        config_manager: Optional[EscalationConfigManager] = getattr(state, "config_manager", None)
        time_source = getattr(state, "time_source", None)

        checks = {
            "escalation_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
            "time_source": (
                f"remote ({time_source.circuit_breaker.state})"
                if isinstance(time_source, WorldTimeSource) else "local_clock"
            ),
        }
        if config_manager is not None:
            checks["thresholds"] = config_manager.config.thresholds.model_dump()
        if service is not None:
            checks["tickets"] = {
                region.value: len(service.list_tickets(region)) for region in REGIONS
            }
            checks["unread_notifications"] = service.unread_count()

        return {
            "status": "healthy" if service is not None else "starting",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "service": "Ticket Warning Tracker",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "api": tracker_router.prefix,
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "warning_tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
