"""Exceptions raised by the Tandem client and scan sources."""

from typing import Optional


class TandemError(Exception):
    """Base class for errors raised by this package."""


class TandemAPIError(TandemError):
    """Non-success HTTP response from the Tandem API."""

    def __init__(self, status_code: int, message: str, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code}: {message}")


class ScanError(TandemError):
    """A model could not be scanned (transport, HTTP or payload failure)."""

    def __init__(self, model_id: str, message: str):
        self.model_id = model_id
        super().__init__(f"Scan of {model_id} failed: {message}")
