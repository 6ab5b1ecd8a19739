"""Models package for standardized data structures."""

from .api_responses import ErrorCode, error_body

__all__ = ["ErrorCode", "error_body"]
