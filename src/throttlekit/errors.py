from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ThrottleKitError(Exception):
    """Base error type for throttlekit."""


class ConfigError(ThrottleKitError):
    """Raised when configuration cannot be loaded or validated."""


class RequestError(ThrottleKitError):
    """Raised when a logical request cannot be completed."""


class TransportError(RequestError):
    """Raised when the executor could not complete the call (DNS, TLS, connection)."""


@dataclass(slots=True)
class HttpStatusError(RequestError):
    """A non-throttle response with status >= 400."""

    status_code: int
    message: str = "request failed"
    body: Any = None

    def __str__(self) -> str:
        if self.body not in (None, ""):
            return f"HTTP {self.status_code}: {self.message} ({self.body})"
        return f"HTTP {self.status_code}: {self.message}"


@dataclass(slots=True)
class ThrottleExhaustedError(RequestError):
    """Throttling persisted through every permitted attempt."""

    status_code: int
    max_retries: int

    def __str__(self) -> str:
        return f"throttling: max retries ({self.max_retries}) exceeded, last status: {self.status_code}"
