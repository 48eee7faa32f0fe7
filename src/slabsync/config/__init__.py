"""Application configuration helpers."""

from __future__ import annotations

from .cardladder import CardLadderConfig, get_cardladder_config
from .env import env_bool, optional_env, parse_enum, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from .psa import PsaConfig, get_psa_config

__all__ = [
    "CacheConfig",
    "CardLadderConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "PsaConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "env_bool",
    "get_cardladder_config",
    "get_psa_config",
    "optional_env",
    "parse_enum",
    "require_env_vars",
]
