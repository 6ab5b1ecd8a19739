"""
Authentication module for the Answer Paper Grader API.

Requests authenticate with an ``Authorization: Bearer <token>`` header.
Flask-Login resolves the token into a ``User`` through a request loader, so
routes keep using ``login_required`` and ``current_user``.
"""

from functools import wraps

from flask import current_app, g, jsonify, request
from flask_login import LoginManager, current_user

from src.database.models import User, db
from src.exceptions.application_errors import AuthenticationError
from src.models.api_responses import ErrorCode, error_body
from src.security.auth_tokens import decode_token, extract_bearer_token, generate_token
from utils.logger import logger

login_manager = LoginManager()


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve the bearer token of a request into a user.

    The reason for a rejection is kept in ``g.auth_error`` so the
    unauthorized handler can report it.
    """
    token = extract_bearer_token(req.headers.get("Authorization"))
    if not token:
        g.auth_error = "Missing token"
        return None

    try:
        payload = decode_token(token, current_app.config["JWT_SECRET"])
    except AuthenticationError as e:
        g.auth_error = e.message
        return None

    user_id = payload.get("id")
    user = db.session.get(User, user_id) if user_id else None
    if user is None:
        g.auth_error = "Invalid user"
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    """Return a JSON 401 instead of redirecting to a login page."""
    message = g.get("auth_error", "Missing token")
    logger.warning(f"Unauthorized request to {request.path}: {message}")
    return jsonify(error_body(message, code=ErrorCode.AUTHENTICATION_ERROR)), 401


def teacher_required(f):
    """Restrict a route to teachers; apply after ``login_required``."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_teacher:
            return jsonify(error_body("Access denied", code=ErrorCode.AUTHORIZATION_ERROR)), 403
        return f(*args, **kwargs)

    return decorated_function


def issue_token(user: User) -> str:
    """Sign a bearer token for a user with the app's JWT settings."""
    return generate_token(
        user,
        current_app.config["JWT_SECRET"],
        current_app.config["JWT_EXPIRY_HOURS"],
    )
