"""
Authentication Routes

This module handles login, registration and the current-user endpoints.
Successful logins and registrations answer with a bearer token.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from src.constants import ROLE_STUDENT, USER_ROLES
from src.database.models import User, db
from src.database.utils import DatabaseUtils
from src.exceptions.application_errors import ConflictError
from src.models.api_responses import error_body
from utils.logger import logger
from webapp.auth import issue_token, teacher_required

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

ERROR_ACCOUNT_EXISTS = "Account already exists for this role"

CREDENTIALS_BODY = {"email": "string", "password": "string", "role": "teacher|student"}
TOKEN_RESPONSE = {
    "token": "string",
    "user": {"id": "string", "email": "string", "role": "string"},
}


def _usage_hint(action: str, path: str):
    """405 body explaining how to call a POST-only endpoint."""
    return (
        jsonify(
            error_body(
                "Method not allowed",
                error=f"{action} requires a POST request",
                usage={
                    "method": "POST",
                    "url": path,
                    "body": {
                        "email": "user@example.com",
                        "password": "password123",
                        "role": "teacher or student",
                    },
                },
            )
        ),
        405,
    )


def _credentials():
    data = request.get_json(silent=True) or {}
    return data.get("email"), data.get("password"), data.get("role")


@auth_bp.route("", methods=["GET"])
@auth_bp.route("/", methods=["GET"])
def info():
    """Describe the authentication endpoints."""
    return jsonify(
        {
            "message": "Authentication API",
            "endpoints": {
                "login": {
                    "method": "POST",
                    "path": "/api/auth/login",
                    "body": CREDENTIALS_BODY,
                    "response": TOKEN_RESPONSE,
                },
                "register": {
                    "method": "POST",
                    "path": "/api/auth/register",
                    "body": CREDENTIALS_BODY,
                    "response": TOKEN_RESPONSE,
                },
                "me": {
                    "method": "GET",
                    "path": "/api/auth/me",
                    "headers": {"Authorization": "Bearer <token>"},
                    "response": {"user": TOKEN_RESPONSE["user"]},
                },
            },
            "note": "Login and register endpoints require POST requests with a JSON body.",
        }
    )


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """User login."""
    if request.method == "GET":
        return _usage_hint("Login", "/api/auth/login")

    email, password, role = _credentials()
    if not email or not password or not role:
        return jsonify({"message": "Email, password and role are required"}), 400

    try:
        user = DatabaseUtils.find_user(email, role)
        if not user:
            logger.info(
                f"Login attempt failed: User not found - email: "
                f"{User.normalize_email(email)}, role: {role}"
            )
            return jsonify({"message": "Invalid credentials"}), 401

        if not user.check_password(password):
            logger.info(
                f"Login attempt failed: Invalid password - email: {user.email}, role: {role}"
            )
            return jsonify({"message": "Invalid credentials"}), 401

        logger.info(f"Login successful: {user.email} ({role})")
        return jsonify({"token": issue_token(user), "user": user.to_dict()})

    except Exception as e:
        logger.error(f"Login error: {e}")
        return jsonify({"message": "Internal error"}), 500


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    """User registration."""
    if request.method == "GET":
        return _usage_hint("Register", "/api/auth/register")

    email, password, role = _credentials()
    if not email or not password or not role:
        return jsonify({"message": "Email, password and role are required"}), 400
    if role not in USER_ROLES:
        return jsonify({"message": "Role must be teacher or student"}), 400

    if DatabaseUtils.find_user(email, role):
        raise ConflictError(ERROR_ACCOUNT_EXISTS)

    try:
        user = DatabaseUtils.create_user(email, password, role)
        logger.info(f"Registered {role}: {user.email}")
        return jsonify({"token": issue_token(user), "user": user.to_dict()}), 201

    except IntegrityError:
        # A concurrent registration inserted the same email and role first
        db.session.rollback()
        raise ConflictError(ERROR_ACCOUNT_EXISTS)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Register error: {e}")
        return jsonify({"message": "Internal error"}), 500


@auth_bp.route("/me")
@login_required
def me():
    """Current user."""
    return jsonify({"user": current_user.to_dict()})


@auth_bp.route("/students")
@login_required
@teacher_required
def students():
    """All student accounts (teachers only)."""
    try:
        accounts = User.query.filter_by(role=ROLE_STUDENT).order_by(User.created_at).all()
        return jsonify([student.to_student_dict() for student in accounts])
    except Exception as e:
        logger.error(f"Error fetching students: {e}")
        return jsonify({"message": "Error fetching students", "error": str(e)}), 500
