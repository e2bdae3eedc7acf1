"""structlog configuration for the dispatch service.

``configure_logging`` is called once from the application lifespan. Modules
create their logger at import time with ``get_module_logger`` and log
snake_case event names with keyword context::

    logger = get_module_logger()
    logger.info("job_delivered", job_id=job.job_id, channel="email")
"""

import inspect
import logging
import sys
from typing import Any, List, Optional, TYPE_CHECKING

import structlog
from structlog.stdlib import BoundLogger

from infrastructure.logging.formatters import (
    add_service_info,
    add_thread_name,
    mask_sensitive_data,
    truncate_large_values,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

SERVICE_NAME = "notification-dispatch"

# Above CRITICAL, so nothing is emitted
SILENT_LEVEL = logging.CRITICAL + 1


def _running_under_pytest() -> bool:
    return "pytest" in sys.modules


def _shared_processors(version: str) -> List[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_service_info(SERVICE_NAME, version),
        add_thread_name,
        mask_sensitive_data(),
        truncate_large_values(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    settings: Optional["Settings"] = None,
    log_level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> BoundLogger:
    """Configure structlog for the process and return the service logger.

    Production renders one JSON object per line; anywhere else uses the
    console renderer. Under pytest every record is dropped.

    Args:
        settings: Application settings; loaded from the provider when omitted.
        log_level: Overrides settings.LOG_LEVEL.
        json_output: Overrides the production check for the renderer.
    """
    if _running_under_pytest():
        logging.basicConfig(format="%(message)s", level=SILENT_LEVEL, force=True)
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.processors.KeyValueRenderer(),
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
        )
        return structlog.stdlib.get_logger(SERVICE_NAME)

    if settings is None:
        from infrastructure.services.providers import get_settings

        settings = get_settings()

    as_json = settings.is_production if json_output is None else json_output
    renderer = (
        structlog.processors.JSONRenderer()
        if as_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*_shared_processors(settings.GIT_SHA), renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level_name = (log_level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
        force=True,
    )
    return structlog.stdlib.get_logger(SERVICE_NAME)


def get_module_logger() -> BoundLogger:
    """Return a logger named after, and bound to, the calling module."""
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module_name = "unknown"
    if caller is not None:
        module_name = caller.f_globals.get("__name__", module_name)
    return structlog.stdlib.get_logger(module_name).bind(module=module_name)
