"""Standardized API response helpers for consistent error formatting."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Standard error codes for consistent error handling."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    OCR_ERROR = "OCR_ERROR"


def error_body(
    message: str,
    error: Optional[str] = None,
    code: Optional[ErrorCode] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build the JSON body returned for a failed request.

    Every error body carries ``message``; ``error`` and ``code`` are added
    when known so clients can branch on them.
    """
    body: Dict[str, Any] = {"message": message}
    if error:
        body["error"] = error
    if code is not None:
        body["code"] = code.value
    body.update({key: value for key, value in extra.items() if value is not None})
    return body
