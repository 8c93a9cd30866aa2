"""Shared enums for the URL alias service.

This module defines all status and kind enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["AppEnv", "HealthStatus", "ErrorKind", "StoreErrorKind", "RequestStatus", "DuplicateField"]


class AppEnv(StrEnum):
    """Deployment environment, selects the logging format and level."""

    LOCAL = "local"
    DEV = "dev"
    PROD = "prod"


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def from_str(cls, value: str) -> "HealthStatus":
        """Safely parse from string, falling back to UNHEALTHY for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNHEALTHY


class ErrorKind(StrEnum):
    """Failure kinds surfaced by the alias service."""

    INVALID_REQUEST = "invalid_request"
    ALIAS_CONFLICT = "alias_conflict"
    URL_ALREADY_EXISTS = "url_already_exists"
    ALIAS_NOT_FOUND = "alias_not_found"
    STORAGE_ERROR = "storage_error"


class StoreErrorKind(StrEnum):
    """Closed set of failures the mapping store reports upward."""

    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class DuplicateField(StrEnum):
    """Column whose unique index rejected an insert."""

    ALIAS = "alias"
    URL = "url"


class RequestStatus(StrEnum):
    """Outcome label used by the service metrics."""

    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    ERROR = "error"
