"""
Error Handlers

This module provides centralized error handling for the Flask application.
Every error is answered with a JSON body carrying a ``message``.
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from src.exceptions.application_errors import ApplicationError
from src.models.api_responses import ErrorCode, error_body
from utils.logger import logger


def handle_400(error):
    """Handle 400 Bad Request errors."""
    logger.warning(f"400 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "The request could not be understood by the server",
                error="Bad request",
                code=ErrorCode.VALIDATION_ERROR,
            )
        ),
        400,
    )


def handle_401(error):
    """Handle 401 Unauthorized errors."""
    logger.warning(f"401 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "Authentication required",
                error="Unauthorized",
                code=ErrorCode.AUTHENTICATION_ERROR,
            )
        ),
        401,
    )


def handle_403(error):
    """Handle 403 Forbidden errors."""
    logger.warning(f"403 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "You do not have permission to access this resource",
                error="Forbidden",
                code=ErrorCode.AUTHORIZATION_ERROR,
            )
        ),
        403,
    )


def handle_404(error):
    """Handle 404 Not Found errors."""
    logger.info(f"404 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "The requested resource was not found",
                error="Not found",
                code=ErrorCode.NOT_FOUND,
            )
        ),
        404,
    )


def handle_405(error):
    """Handle 405 Method Not Allowed errors."""
    logger.info(f"405 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "Method not allowed",
                error=f"{request.method} is not supported for this endpoint",
                code=ErrorCode.METHOD_NOT_ALLOWED,
            )
        ),
        405,
    )


def handle_413(error):
    """Handle 413 Request Entity Too Large errors."""
    logger.warning(f"413 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "The uploaded file is too large",
                error="File too large",
                code=ErrorCode.PAYLOAD_TOO_LARGE,
            )
        ),
        413,
    )


def handle_500(error):
    """Handle 500 Internal Server Error."""
    logger.error(f"500 error: {error} - URL: {request.url}")
    return (
        jsonify(
            error_body(
                "An unexpected error occurred. Please try again later.",
                error="Internal server error",
                code=ErrorCode.INTERNAL_ERROR,
            )
        ),
        500,
    )


def handle_application_error(error: ApplicationError):
    """Render an ``ApplicationError`` raised by a route or service."""
    if error.status_code >= 500:
        logger.error(f"Application error: {error.to_dict()}")
    else:
        logger.warning(f"{error.error_code.value}: {error.message} - URL: {request.url}")

    return (
        jsonify(error_body(error.user_message, code=error.error_code, field=error.field)),
        error.status_code,
    )


def handle_unexpected_error(error: Exception):
    """Log an unhandled exception with its traceback and answer 500.

    HTTP errors without a dedicated handler keep their own status code.
    """
    if isinstance(error, HTTPException):
        return jsonify(error_body(error.description or error.name, error=error.name)), error.code

    logger.log_error_with_context(
        error, {"url": request.url, "method": request.method}
    )
    return handle_500(error)
