"""Utility modules."""

from .logging_config import (
    get_logger,
    setup_logging,
    ensure_logging,
    bind,
    ContextAdapter,
    TandemFormatter,
    FileFormatter,
)
from .retry import (
    retry_with_backoff,
    RetryConfig,
    RetryableSession,
    DEFAULT_RETRY_CONFIG,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "ensure_logging",
    "bind",
    "ContextAdapter",
    "TandemFormatter",
    "FileFormatter",
    # Retry
    "retry_with_backoff",
    "RetryConfig",
    "RetryableSession",
    "DEFAULT_RETRY_CONFIG",
]
