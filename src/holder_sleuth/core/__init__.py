"""Core infrastructure for holder_sleuth package."""

from .base import BaseAPIClient, APIConfig, RetryPolicy
from .rate_limiter import RateLimiter
from .exceptions import (
    HolderSleuthError,
    ConfigurationError,
    ConfigError,
    SchemaError,
    APIError,
    UpstreamError,
    FetchError,
    DecodingError,
    DecodeError,
    PersistenceError,
)

__all__ = [
    "BaseAPIClient",
    "APIConfig",
    "RetryPolicy",
    "RateLimiter",
    "HolderSleuthError",
    "ConfigurationError",
    "ConfigError",
    "SchemaError",
    "APIError",
    "UpstreamError",
    "FetchError",
    "DecodingError",
    "DecodeError",
    "PersistenceError",
]
