"""Error Hierarchy — typed, categorized exceptions for all Weight API failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400/401) are recoverable; infrastructure errors (500) are critical
    - to_response() produces the {ok: false, error: <message>} envelope
    - message is always safe to show; internal details live in ErrorContext.debug_info

Design Decisions:
    - Single hierarchy with WeightApiError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Error strings are part of the HTTP contract (mobile client matches on them);
      never reword an existing message
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    subject: str | None = None
    entry_id: int | None = None
    debug_info: dict[str, Any] | None = None


class WeightApiError(Exception):
    """Base exception for all Weight API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the public REST error envelope."""
        return {"ok": False, "error": self.message}


# ─── Authentication Errors (401) ────────────────────────────────

class AuthError(WeightApiError):
    """Bearer token missing or rejected. Never carries verifier internals."""
    def __init__(self, code: str, context: ErrorContext | None = None):
        super().__init__(
            code, code.upper(), ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class MissingBearerError(AuthError):
    """No Authorization header, or not of the form 'Bearer <token>'."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("missing_bearer", context)


class InvalidTokenError(AuthError):
    """Signature, issuer, expiry, key lookup or claim check failed."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.debug_info = {**(ctx.debug_info or {}), "reason": reason}
        super().__init__("invalid_token", ctx)
        self.reason = reason


# ─── Validation Errors (400) ────────────────────────────────────

class InputValidationError(WeightApiError):
    """Request input failed validation before reaching storage."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class InvalidValueError(InputValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Invalid value", "value", context)


class InvalidIdError(InputValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Invalid id", "id", context)


class InvalidTimestampError(InputValidationError):
    """Timestamp input could not be parsed as an instant.

    Raised from inside the record store's coercion helpers, so it must stay
    distinct from DatabaseError: callers map it to 400, not 500.
    """
    def __init__(
        self, message: str = "Invalid recorded_at", context: ErrorContext | None = None,
    ):
        super().__init__(message, "recorded_at", context)


class NothingToUpdateError(InputValidationError):
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Nothing to update", "body", context)


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(WeightApiError):
    """Database operation failed. Public message names the operation only."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"DB {operation} failed",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
