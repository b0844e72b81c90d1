"""Exception handling module."""

from riftwatch.core.exceptions.base import (
    ConfigError,
    FetchError,
    QueryValidationError,
    RateLimitError,
    RiftwatchError,
    StoreTransactionError,
)

__all__ = [
    "RiftwatchError",
    "ConfigError",
    "FetchError",
    "RateLimitError",
    "StoreTransactionError",
    "QueryValidationError",
]
