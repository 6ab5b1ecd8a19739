"""Application-specific exception classes with standardized error handling."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from src.models.api_responses import ErrorCode


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ApplicationError(Exception):
    """Base application error class.

    Carries a standardized error code, the HTTP status the API answers with,
    a user-facing message and optional details. Route handlers raise these
    and the Flask error handler renders them as JSON.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        original_error: Optional[Exception] = None,
        field: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        """Initialize application error.

        Args:
            message: Technical error message for developers
            error_code: Standardized error code
            user_message: User-friendly error message
            details: Additional error details
            severity: Error severity level
            original_error: Original exception that caused this error
            field: Field name for validation errors
            status_code: HTTP status override
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.user_message = user_message or message
        self.details = details or {}
        self.severity = severity
        self.original_error = original_error
        self.field = field
        if status_code is not None:
            self.status_code = status_code

        self.timestamp = datetime.utcnow()
        self.error_id = f"ERR_{uuid.uuid4().hex[:8].upper()}"

        if original_error:
            self.details["original_error"] = {
                "type": type(original_error).__name__,
                "message": str(original_error),
            }

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "field": self.field,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code={self.error_code}, "
            f"status_code={self.status_code}, "
            f"error_id='{self.error_id}'"
            f")"
        )


class ValidationError(ApplicationError):
    """Validation error for input validation failures."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            field=field,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class AuthenticationError(ApplicationError):
    """Authentication error for login and token failures."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHENTICATION_ERROR,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )


class AuthorizationError(ApplicationError):
    """Authorization error for permission failures."""

    status_code = 403

    def __init__(
        self, message: str = "Access denied", resource: Optional[str] = None, **kwargs
    ):
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource

        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHORIZATION_ERROR,
            details=details,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )


class NotFoundError(ApplicationError):
    """Not found error for missing resources."""

    status_code = 404

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            error_code=ErrorCode.NOT_FOUND,
            details=details,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class ConflictError(ApplicationError):
    """Conflict error for duplicate resources."""

    status_code = 409

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFLICT,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class ProcessingError(ApplicationError):
    """Processing error for business logic failures."""

    status_code = 500

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        kwargs.setdefault("error_code", ErrorCode.PROCESSING_ERROR)

        super().__init__(
            message=message,
            details=details,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )
