"""Core exception types for riftwatch."""

from typing import Any


class RiftwatchError(Exception):
    """Base exception for every riftwatch failure."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """Initialise the error.

        Args:
            message: Human readable message.
            error_code: Stable machine readable code.
            details: Extra structured context.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigError(RiftwatchError):
    """Configuration values are missing or inconsistent."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "CONFIG_ERROR", details)


class FetchError(RiftwatchError):
    """The upstream price source returned a non-success status or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        offset: int | None = None,
        error_code: str = "FETCH_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        if offset is not None:
            super_details["offset"] = offset
        super().__init__(message, error_code, super_details)
        self.status_code = status_code
        self.offset = offset


class RateLimitError(FetchError):
    """The upstream rejected a page with a rate-limit status."""

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if retry_after is not None:
            super_details["retry_after"] = retry_after
        super().__init__(message, 429, offset, "RATE_LIMIT_ERROR", super_details)
        self.retry_after = retry_after


class StoreTransactionError(RiftwatchError):
    """A snapshot write failed and was rolled back."""

    def __init__(
        self,
        message: str,
        snapshot_date: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if snapshot_date is not None:
            super_details["snapshot_date"] = snapshot_date
        super().__init__(message, "STORE_TRANSACTION_ERROR", super_details)


class QueryValidationError(RiftwatchError):
    """Ranking query arguments are out of range."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if field:
            super_details["field"] = field
        super().__init__(message, "QUERY_VALIDATION_ERROR", super_details)
        self.field = field
