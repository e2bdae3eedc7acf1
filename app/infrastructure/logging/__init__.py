"""Structured logging for the dispatch service (structlog).

    from infrastructure.logging import get_module_logger, bind_request_context

    logger = get_module_logger()
    with bind_request_context(job_id=job.job_id, channel="sms"):
        logger.info("job_claimed")
"""

from infrastructure.logging.setup import configure_logging, get_module_logger
from infrastructure.logging.context import (
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    set_correlation_id,
)
from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_service_info,
    add_thread_name,
    mask_sensitive_data,
    truncate_large_values,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_request_context",
    "clear_request_context",
    "get_correlation_id",
    "set_correlation_id",
    "SENSITIVE_PATTERNS",
    "add_service_info",
    "add_thread_name",
    "mask_sensitive_data",
    "truncate_large_values",
]
