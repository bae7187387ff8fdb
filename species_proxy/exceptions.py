"""
Exception Hierarchy

Domain exceptions raised by the services and converted to HTTP responses by
the exception handlers registered in main.create_app().

    SpeciesProxyError (base)
    ├── RateLimitExceeded      → 429 {"message": "too much requests"}
    ├── CacheLookupFailure     → 404 (empty body)
    ├── UpstreamFetchFailure   → 404 "Data unavailable"
    ├── StoreUnavailable       → 503 (fail-closed policy)
    └── ServiceNotReady        → 503 (store not connected yet)

The message of every exception is for the server log only. Clients get the
fixed bodies above.
"""

from typing import Any, Dict, Optional


class SpeciesProxyError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable description (logged, never returned)
        context: Additional debug info such as the species or client key
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class RateLimitExceeded(SpeciesProxyError):
    """
    Raised when a client exceeds max_requests within the current window.

    Attributes:
        retry_after: Seconds the client should wait before the window resets
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, context)


class CacheLookupFailure(SpeciesProxyError):
    """Raised when reading or decoding a cached species response fails."""


class UpstreamFetchFailure(SpeciesProxyError):
    """
    Raised when the species data cannot be obtained.

    Covers network errors, non-success statuses, malformed bodies, empty
    results and failures while populating the cache.
    """


class StoreUnavailable(SpeciesProxyError):
    """Raised when the key-value store cannot be reached."""


class ServiceNotReady(SpeciesProxyError):
    """Raised when a request arrives before the store connection is up."""
