from infrastructure.configuration.features.dispatch import DispatchSettings

__all__ = [
    "DispatchSettings",
]
