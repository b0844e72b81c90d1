"""Structured JSON logging with trace and run context."""

from riftwatch.core.logging.config import LogConfig
from riftwatch.core.logging.logger import (
    configure_logging,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LogConfig",
    "configure_logging",
    "get_logger",
    "log_context",
    "logger",
]
