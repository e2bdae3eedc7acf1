"""Channel adapter implementations."""

from infrastructure.notifications.channels.base import ChannelAdapter
from infrastructure.notifications.channels.notify import (
    EmailChannel,
    NotifyChannel,
    SMSChannel,
)
from infrastructure.notifications.channels.push import PushChannel

__all__ = [
    "ChannelAdapter",
    "NotifyChannel",
    "EmailChannel",
    "SMSChannel",
    "PushChannel",
]
