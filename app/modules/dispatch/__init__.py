"""Notification dispatch module.

Accepts notification requests idempotently, queues them by priority and
delivers them through channel adapters with retries and dead-lettering.

Usage:
    from modules.dispatch import DispatchService

    service = DispatchService.from_settings(settings)
    service.start()
"""

from modules.dispatch.service import DispatchService

__all__ = ["DispatchService"]
