"""Channel adapters for notification delivery.

Provides the adapter interface used by the dispatch worker pool and the
reference adapters:

- EmailChannel: GC Notify email
- SMSChannel: GC Notify SMS
- PushChannel: HTTP push gateway

Adapters perform one send per call and raise typed DeliveryError
subclasses on failure.

Usage:
    from infrastructure.notifications import (
        ResolvedNotification,
        build_channel_adapters,
    )

    adapters = build_channel_adapters(settings)
    receipt = adapters["email"].send(
        ResolvedNotification(
            job_id="abc",
            channel="email",
            recipient_address="user@example.com",
            body="Hello",
        )
    )
"""

# Models
from infrastructure.notifications.models import (
    Channel,
    DeliveryReceipt,
    ResolvedNotification,
)

# Errors
from infrastructure.notifications.errors import (
    DeliveryError,
    DeliveryTimeout,
    ProviderPermanent,
    ProviderTransient,
    Unauthenticated,
    delivery_error_from_result,
)

# Channel interface and implementations
from infrastructure.notifications.channels import (
    ChannelAdapter,
    EmailChannel,
    PushChannel,
    SMSChannel,
)

# Factory
from infrastructure.notifications.factory import build_channel_adapters

__all__ = [
    # Models
    "Channel",
    "DeliveryReceipt",
    "ResolvedNotification",
    # Errors
    "DeliveryError",
    "DeliveryTimeout",
    "ProviderPermanent",
    "ProviderTransient",
    "Unauthenticated",
    "delivery_error_from_result",
    # Channels
    "ChannelAdapter",
    "EmailChannel",
    "SMSChannel",
    "PushChannel",
    # Factory
    "build_channel_adapters",
]
