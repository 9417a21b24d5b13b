"""
Error types for pacer.

Wrapped callbacks are never caught or wrapped by the combinators; these
exceptions only cover misuse of the library itself.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Serializable error payload."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class PacerException(Exception):
    """Base exception for pacer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(PacerException, ValueError):
    """Invalid argument passed to a factory or scheduler."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class CacheKeyError(PacerException, TypeError):
    """A memoize cache key could not be derived from the call arguments."""

    def __init__(self, message: str = "Cache key derivation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_KEY_ERROR", message, details)


class SchedulerError(PacerException):
    """Scheduler misconfiguration."""

    def __init__(self, message: str = "Scheduler error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SCHEDULER_ERROR", message, details)


def require_callable(value: Any, argument: str) -> None:
    """Raise ValidationError unless value is callable."""
    if not callable(value):
        raise ValidationError(
            f"{argument} must be callable",
            details={"argument": argument, "type": type(value).__name__}
        )


def require_delay(delay: Any, argument: str = "delay") -> float:
    """Validate a non-negative delay and return it as a float."""
    if isinstance(delay, bool) or not isinstance(delay, (int, float)):
        raise ValidationError(
            f"{argument} must be a number",
            details={"argument": argument, "type": type(delay).__name__}
        )
    if delay < 0:
        raise ValidationError(
            f"{argument} must not be negative",
            details={"argument": argument, "value": delay}
        )
    return float(delay)
