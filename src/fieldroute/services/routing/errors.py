"""Errors raised by the route optimization pipeline."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for route optimization failures."""


class ValidationError(RoutingError, ValueError):
    """The request cannot be optimized as given. Not retryable."""


class ProviderError(RoutingError):
    """The mapping provider failed or reported a non-success status."""

    def __init__(self, status: str, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"Mapping provider error: {status}")


class CacheError(RoutingError):
    """A route cache read or write failed."""
