"""Errors raised while working out which CRM record the embedded view belongs to."""

from __future__ import annotations


class HostContextError(RuntimeError):
    """Base class for host-context resolution failures."""


class SdkUnavailableError(HostContextError):
    """Raised when the host SDK never became available within the polling window."""

    def __init__(self, waited_seconds: float) -> None:
        super().__init__(f"Host SDK unavailable after {waited_seconds:.1f}s")
        self.waited_seconds = waited_seconds


class EntityNotResolvedError(HostContextError):
    """Raised when every extraction strategy and retry came up empty."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Entity id not found after {attempts} attempt(s)")
        self.attempts = attempts


class HostCallError(HostContextError):
    """Raised when a host ``callMethod`` invocation reports an error."""

    def __init__(self, method: str, message: str) -> None:
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message


class UrlParseError(HostContextError, ValueError):
    """Raised when a path or referrer string cannot be parsed as a URL."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Cannot parse URL {value!r}: {reason}")
        self.value = value


class ResolutionCancelledError(HostContextError):
    """Raised inside the resolver once its owner has closed it."""
