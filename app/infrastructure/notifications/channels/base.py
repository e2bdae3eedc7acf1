"""Channel adapter abstract base class.

All channel implementations (email, SMS, push) must implement this interface.
"""

from abc import ABC, abstractmethod

from infrastructure.notifications.models import DeliveryReceipt, ResolvedNotification
from infrastructure.operations import OperationResult


class ChannelAdapter(ABC):
    """Abstract base class for channel adapters.

    Each adapter performs exactly one provider send per call and reports the
    outcome either as a DeliveryReceipt or by raising a DeliveryError
    subclass. Adapters never retry on their own; retries are scheduled by
    the dispatch retry controller.

    Adapters are constructed explicitly and injected into the worker pool, so
    a provider can be swapped without touching dispatch code.

    Example Implementation:
        class PushChannel(ChannelAdapter):

            @property
            def channel_name(self) -> str:
                return "push"

            def send(self, notification: ResolvedNotification) -> DeliveryReceipt:
                response = self._post(notification)
                return DeliveryReceipt(channel="push", provider_message_id=response["id"])
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Channel identifier (email, sms, push)."""

    @abstractmethod
    def send(self, notification: ResolvedNotification) -> DeliveryReceipt:
        """Send a resolved notification.

        Args:
            notification: Notification to send

        Returns:
            DeliveryReceipt acknowledging the send

        Raises:
            DeliveryTimeout: the provider call timed out
            ProviderTransient: the provider failed temporarily
            ProviderPermanent: the provider rejected the notification
            Unauthenticated: the provider rejected our credentials
        """

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check channel health (configuration, credentials).

        Returns:
            OperationResult indicating channel health
        """
