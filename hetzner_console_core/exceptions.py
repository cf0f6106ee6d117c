"""
Consolidated exception system with error codes, context, and correlation support.

This module provides the error taxonomy of the verified action pipeline,
with automatic logging, correlation ID tracking and a retryable flag that
lets callers tell transient upstream failures from input problems.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes for operation results."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONNECTION_ERROR = "1002"
    CONFIGURATION_ERROR = "1003"
    TIMEOUT_ERROR = "1004"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    TYPE_MISMATCH = "2003"
    CONSTRAINT_VIOLATION = "2004"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"

    # Business logic errors (4xxx)
    INVALID_STATE_TRANSITION = "4001"
    PERMISSION_DENIED = "4003"
    PRECONDITION_FAILED = "4004"
    AUTHENTICATION_FAILED = "4005"

    # External service errors (5xxx)
    EXTERNAL_API_ERROR = "5002"
    SCHEMA_MISMATCH = "5005"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Lazy import, the logger module imports config which must stay import-cycle free
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "retryable": self.retryable,
            "timestamp": self.timestamp,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if "correlation_id" in self.context:
            log_data["correlation_id"] = self.context["correlation_id"]

        if self.status_code >= 500:
            logger.error(f"Error {self.error_code.value}: {self.message}", extra=log_data)
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code.value}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code.value}: {self.message}", extra=log_data)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for operation results.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "type": type(self).__name__,
                "code": self.error_code.value,
                "status_code": self.status_code,
                "message": self.message,
                "retryable": self.retryable,
                "timestamp": self.timestamp,
                "context": {
                    k: v
                    for k, v in self.context.items()
                    if k not in ["cause", "error_id", "correlation_id"]
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


class AuthenticationError(BaseError):
    """Session token missing, invalid, expired or unverifiable."""

    def __init__(
        self,
        message: str = "Session could not be verified",
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, 401, cause, **context)


class ValidationError(BaseError):
    """Malformed or out-of-range input, with field-level violations."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        violations: Optional[List[Dict[str, Any]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        status_code: int = 400,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        self.violations: List[Dict[str, Any]] = list(violations or [])
        if not self.violations and field:
            self.violations.append({"field": field, "message": message, "type": "value_error"})
        context["violations"] = self.violations
        super().__init__(message, error_code, status_code, cause, **context)


class InvalidServerStateError(ValidationError):
    """A power action does not fit the server's current status."""

    def __init__(self, message: str, status: str, action: str, **context: Any):
        super().__init__(
            message,
            field="action",
            error_code=ErrorCode.INVALID_STATE_TRANSITION,
            status_code=409,
            server_status=status,
            action=action,
            **context,
        )


class ConfigurationError(BaseError):
    """Something the operator must configure is missing."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **context: Any):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, 412, cause, **context)


class UpstreamError(BaseError):
    """The upstream API rejected the request or could not be reached."""

    def __init__(
        self,
        upstream_status: Optional[int],
        code: str,
        message: str,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize with the upstream's own status, code and message.

        Args:
            upstream_status: HTTP status from the upstream, None for transport failures
            code: Upstream error code (e.g. "locked", "unauthorized")
            message: Upstream error message
            cause: Original exception if any
        """
        self.upstream_status = upstream_status
        self.code = code
        context["upstream_status"] = upstream_status
        context["upstream_code"] = code
        status_code = upstream_status if upstream_status and upstream_status >= 400 else 503
        super().__init__(message, ErrorCode.EXTERNAL_API_ERROR, status_code, cause, **context)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        if self.upstream_status is None:
            return True
        return self.upstream_status >= 500 or self.upstream_status == 429


class SchemaError(BaseError):
    """An upstream response did not match the expected shape."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        if operation:
            context["operation"] = operation
        super().__init__(message, ErrorCode.SCHEMA_MISMATCH, 502, cause, **context)


class PersistenceError(BaseError):
    """A local store operation failed."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        super().__init__(message, error_code, 500, cause, **context)


class NotFoundError(BaseError):
    """A locally stored record does not exist for this owner."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **context: Any):
        super().__init__(message, ErrorCode.NOT_FOUND, 404, cause, **context)


# Factory functions for common error patterns
def not_found(record_type: str, /, cause: Optional[Exception] = None, **identifiers) -> NotFoundError:
    """
    Factory for not found errors.

    Args:
        record_type: Model name of the record (e.g., 'ResourceNote')
        cause: Original exception if any
        **identifiers: Record identifiers (e.g., note_id='123')

    Returns:
        Configured NotFoundError instance
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{record_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return NotFoundError(message, cause=cause, record_type=record_type, **identifiers)
