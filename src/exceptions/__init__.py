"""Custom exception classes for the Answer Paper Grader."""

from ..models.api_responses import ErrorCode
from .application_errors import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorSeverity,
    NotFoundError,
    ProcessingError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "ProcessingError",
    "ErrorSeverity",
    "ErrorCode",
]
