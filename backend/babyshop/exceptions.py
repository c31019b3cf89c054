"""
BabyShop Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the different failure scenarios.
Why:   Targeted handling with the right HTTP status and a safe message,
       instead of generic exceptions that leak driver or SQL details.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (main.py) turn them into JSON responses.

Exception Hierarchy:
    BabyShopError (base)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    ├── ConfigurationError           → fatal at startup (500 if seen in a request)
    ├── DatabaseError                → 500 Internal Server Error
    │   ├── DatabaseConnectionError  → connect retries exhausted
    │   └── QueryExecutionError      → a single statement failed
    │       └── ParameterCountError  → markers and values disagree
    ├── CircuitBreakerOpenError      → image recognition paused
    └── VisionServiceError           → image recognition failed

The database layer never swallows errors: it raises these and lets the
caller decide between a 500, a graceful fallback, or an empty result.
"""

from typing import Any, Dict, Optional


class BabyShopError(Exception):
    """
    Root of the exception hierarchy.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BabyShopError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems are still reported by
    FastAPI as 422.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(BabyShopError):
    """
    Raised when a requested row does not exist.

    Services convert an empty result list into this exception so routes
    stay free of `if not rows` checks.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConfigurationError(BabyShopError):
    """
    Raised when required configuration is missing.

    When: DB_USER or DB_PASSWORD is empty at connect time. Raised before any
    connection attempt, so it is never retried.
    """

    def __init__(
        self,
        message: str = "Application is not configured correctly",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BabyShopError):
    """
    Raised when database operations fail.

    Security Note:
        The message returned to the client is always generic. Driver text and
        SQL are kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(DatabaseError):
    """Raised when every startup connection attempt has failed."""

    def __init__(
        self,
        attempts: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["attempts"] = attempts
        super().__init__(
            message=f"Could not connect to the database after {attempts} attempt(s)",
            context=ctx,
        )
        self.attempts = attempts


class QueryExecutionError(DatabaseError):
    """
    Raised when a statement fails to execute.

    Covers syntax errors, constraint violations and stale pooled connections.
    Never retried by the database layer.
    """


class ParameterCountError(QueryExecutionError):
    """Raised when a template's `?` markers and the supplied values disagree."""

    def __init__(self, expected: int, received: int):
        super().__init__(
            message=f"Query expects {expected} parameter(s) but {received} were supplied",
            context={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class CircuitBreakerOpenError(BabyShopError):
    """
    Raised when the image-recognition circuit breaker is OPEN.

    The vision service catches it and answers with a fallback analysis, so
    it normally never reaches the HTTP layer.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Image recognition is temporarily unavailable due to repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class VisionServiceError(BabyShopError):
    """Raised when the image-recognition call fails after all retries."""

    def __init__(
        self,
        message: str = "Image recognition service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
