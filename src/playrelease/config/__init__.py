"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .google_play import (
    GOOGLE_PLAY_BASE_URL,
    GOOGLE_PLAY_SCOPE,
    GooglePlayConfig,
    ServiceAccountConfig,
    default_resilience_config,
    get_google_play_config,
    get_service_account_config,
)
from .http_resilience import RateLimit, ResilienceConfig
from .logging import configure_logging

__all__ = [
    "GOOGLE_PLAY_BASE_URL",
    "GOOGLE_PLAY_SCOPE",
    "ConfigurationError",
    "GooglePlayConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "ServiceAccountConfig",
    "configure_logging",
    "default_resilience_config",
    "get_google_play_config",
    "get_service_account_config",
    "optional_env_var",
    "require_env_vars",
]
