"""Application configuration helpers."""

from __future__ import annotations

from .bitrix24 import (
    Bitrix24Config,
    bitrix24_resilience,
    get_bitrix24_config,
    portal_resilience,
    require_bitrix24_config,
)
from .env import env_flag, env_float, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .resolver import DEFAULT_ENTITY_TYPE_ID, ResolverConfig, get_resolver_config

__all__ = [
    "DEFAULT_ENTITY_TYPE_ID",
    "Bitrix24Config",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "ResolverConfig",
    "RetryPolicy",
    "bitrix24_resilience",
    "configure_logging",
    "env_flag",
    "env_float",
    "get_bitrix24_config",
    "get_resolver_config",
    "optional_env_var",
    "portal_resilience",
    "require_bitrix24_config",
    "require_env_var",
    "require_env_vars",
]
