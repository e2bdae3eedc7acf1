"""Channel adapter construction from settings."""

from typing import Dict, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels import (
    ChannelAdapter,
    EmailChannel,
    PushChannel,
    SMSChannel,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def build_channel_adapters(settings: "Settings") -> Dict[str, ChannelAdapter]:
    """Construct an adapter for every configured channel.

    Channels without provider configuration are left out; jobs for them are
    dead-lettered with CHANNEL_NOT_CONFIGURED.

    Returns:
        Dict mapping channel name to adapter instance.
    """
    adapters: Dict[str, ChannelAdapter] = {}
    dispatch = settings.dispatch

    if settings.notify.is_configured:
        adapters["email"] = EmailChannel(
            settings.notify,
            default_template_id=settings.notify.NOTIFY_EMAIL_TEMPLATE_ID,
            timeout_seconds=dispatch.email_timeout_seconds,
        )
        adapters["sms"] = SMSChannel(
            settings.notify,
            default_template_id=settings.notify.NOTIFY_SMS_TEMPLATE_ID,
            timeout_seconds=dispatch.sms_timeout_seconds,
        )
    else:
        logger.warning("channel_not_configured", channels=["email", "sms"])

    if settings.push.is_configured:
        adapters["push"] = PushChannel(
            settings.push, timeout_seconds=dispatch.push_timeout_seconds
        )
    else:
        logger.warning("channel_not_configured", channels=["push"])

    logger.info("channel_adapters_built", channels=sorted(adapters))
    return adapters
