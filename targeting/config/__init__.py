"""Configuration management for the targeting assistant."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AdvancedConfig,
    AppConfig,
    CriteriaConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MatchingConfig,
    MetaConfig,
    RetryConfig,
    SoprismConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "MatchingConfig",
    "CriteriaConfig",
    "MetaConfig",
    "SoprismConfig",
    "RetryConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
