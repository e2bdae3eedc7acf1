from contextlib import asynccontextmanager
import threading
from typing import AsyncIterator, Optional, TYPE_CHECKING

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging
from infrastructure.services import get_settings
from jobs import scheduled_tasks
from modules.dispatch import DispatchService

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

SHUTDOWN_TIMEOUT_SECONDS = 10


def _start_dispatch_service(
    settings: "Settings", logger: BoundLogger
) -> DispatchService:
    service = DispatchService.from_settings(settings)
    service.start()
    logger.info(
        "dispatch_service_started",
        workers=settings.dispatch.worker_count,
        channels=sorted(service.adapters),
    )
    return service


def _start_maintenance(
    service: DispatchService, settings: "Settings"
) -> Optional[threading.Event]:
    scheduled_tasks.init(
        service, interval_seconds=settings.dispatch.maintenance_interval_seconds
    )
    return scheduled_tasks.run_continuously()


def _stop_scheduled_tasks(stop_event: Optional[threading.Event]) -> None:
    if stop_event is None:
        return
    stop_event.set()
    scheduled_tasks.clear()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the worker pool and maintenance jobs for the life of the app."""
    settings = get_settings()
    logger = configure_logging(settings=settings)
    logger.info("configuration_loaded", **settings.summary())

    service = _start_dispatch_service(settings, logger)
    stop_event = _start_maintenance(service, settings)
    app.state.settings = settings
    app.state.dispatch_service = service

    try:
        yield
    finally:
        logger.info("application_shutdown")
        _stop_scheduled_tasks(stop_event)
        service.stop(timeout=SHUTDOWN_TIMEOUT_SECONDS)
        logger.info("dispatch_service_stopped")
