from infrastructure.configuration.integrations.aws import AwsSettings
from infrastructure.configuration.integrations.notify import NotifySettings
from infrastructure.configuration.integrations.push import PushSettings

__all__ = [
    "AwsSettings",
    "NotifySettings",
    "PushSettings",
]
