"""Configuration loading and validation module."""

from cosmos_repository.config.errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    PlaceholderResolutionError,
)
from cosmos_repository.config.loader import deep_merge, load_config
from cosmos_repository.config.models import (
    AppSettings,
    ConnectionDescriptor,
    CosmosDbSettings,
    LoggingSettings,
    ObservabilitySettings,
    ServiceSettings,
)

__all__ = [
    "AppSettings",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    "ConnectionDescriptor",
    "CosmosDbSettings",
    "LoggingSettings",
    "ObservabilitySettings",
    "PlaceholderResolutionError",
    "ServiceSettings",
    "deep_merge",
    "load_config",
]
