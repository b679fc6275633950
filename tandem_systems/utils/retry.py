"""
Retry utilities for Tandem API calls.

Exponential backoff for transient HTTP failures (throttling, gateway errors,
dropped connections).

Usage:
    from tandem_systems.utils.retry import retry_with_backoff, RetryConfig

    @retry_with_backoff(max_retries=3)
    def fetch_schema():
        return session.get(url)

    with RetryableSession(token="...") as session:
        response = session.post(url, json=payload)
"""

import functools
import logging
import random
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type, TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (
            requests.ConnectionError,
            requests.Timeout,
            ConnectionError,
            TimeoutError,
        )
    )
    # Throttling and gateway failures
    retryable_status_codes: Tuple[int, ...] = (429, 500, 502, 503, 504)


DEFAULT_RETRY_CONFIG = RetryConfig()


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay for exponential backoff.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay = min(
        config.base_delay * (config.exponential_base ** attempt),
        config.max_delay,
    )

    if config.jitter:
        # Up to 25% extra
        delay = delay * (1 + random.uniform(0, 0.25))

    return delay


def retry_after_delay(exc: Exception, config: RetryConfig) -> Optional[float]:
    """Server-requested wait from a ``Retry-After`` header (seconds form only), capped at max_delay."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not isinstance(headers, Mapping):
        return None
    try:
        seconds = float(headers.get("Retry-After", ""))
    except (TypeError, ValueError):
        return None
    return min(max(seconds, 0.0), config.max_delay)


def should_retry_exception(exc: Exception, config: RetryConfig) -> bool:
    """Check if exception is retryable."""
    response = getattr(exc, "response", None)
    if response is not None and hasattr(response, "status_code"):
        return response.status_code in config.retryable_status_codes

    return isinstance(exc, config.retryable_exceptions)


def retry_with_backoff(
    func: Optional[Callable[..., T]] = None,
    *,
    config: Optional[RetryConfig] = None,
    max_retries: Optional[int] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[..., T]:
    """
    Decorator for retrying a call with exponential backoff.

    Works both bare (``@retry_with_backoff``) and with arguments
    (``@retry_with_backoff(max_retries=5)``).

    Args:
        func: Function to retry
        config: Full retry configuration
        max_retries: Override for max retries
        on_retry: Callback called on each retry (exc, attempt)
        sleep: Sleep function, replaceable in tests

    Returns:
        Decorated function
    """
    config = config or RetryConfig()
    if max_retries is not None:
        config = replace(config, max_retries=max_retries)

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return fn(*args, **kwargs)
                except Exception as exc:
                    if not should_retry_exception(exc, config):
                        logger.debug(f"Non-retryable exception: {type(exc).__name__}")
                        raise

                    if attempt >= config.max_retries:
                        logger.error(
                            f"All {config.max_retries} retries failed for {fn.__name__}"
                        )
                        raise

                    delay = retry_after_delay(exc, config)
                    if delay is None:
                        delay = calculate_delay(attempt, config)
                    logger.warning(
                        f"Retry {attempt + 1}/{config.max_retries} for {fn.__name__} "
                        f"after {delay:.1f}s (error: {exc})"
                    )
                    if on_retry:
                        on_retry(exc, attempt)
                    sleep(delay)
                    attempt += 1

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class RetryableSession:
    """
    Authenticated ``requests`` session with retry and a default timeout.

    Usage:
        with RetryableSession(token="...", region="US") as session:
            response = session.get(url)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        region: Optional[str] = None,
        timeout: float = 30.0,
        config: Optional[RetryConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or DEFAULT_RETRY_CONFIG
        self.timeout = timeout
        self._sleep = sleep
        self._session = session or requests.Session()
        self._headers: Dict[str, str] = {}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        if region:
            self._headers["Region"] = region

    def __enter__(self) -> "RetryableSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def close(self) -> None:
        self._session.close()

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue a request, retrying transient failures."""
        kwargs.setdefault("timeout", self.timeout)
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", None) or {})

        @retry_with_backoff(config=self.config, sleep=self._sleep)
        def _send() -> requests.Response:
            response = self._session.request(method, url, headers=headers, **kwargs)
            if response.status_code in self.config.retryable_status_codes:
                response.raise_for_status()
            return response

        return _send()

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)
