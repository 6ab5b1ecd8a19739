"""
Main Application Routes

This module contains the API index and the health check.
"""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from src.constants import STATUS_HEALTHY, STATUS_UNHEALTHY
from src.database.models import db
from src.services.base_service import ServiceRegistry
from src.services.grading_service import GradingServiceError, get_grading_service
from src.services.ocr_service import OCRServiceError, get_ocr_service
from utils.logger import logger

main_bp = Blueprint("main", __name__)

API_VERSION = "1.0.0"


@main_bp.route("/")
def index():
    """API index listing the available endpoints."""
    return jsonify(
        {
            "message": "Answer Paper Correction API",
            "version": API_VERSION,
            "endpoints": {
                "health": "/health",
                "auth": {
                    "login": "POST /api/auth/login",
                    "register": "POST /api/auth/register",
                    "me": "GET /api/auth/me (requires authentication)",
                    "students": "GET /api/auth/students (teachers only)",
                },
                "papers": {
                    "upload": "POST /api/papers/upload/student-papers",
                    "saveConfig": "POST /api/papers/save-config",
                    "getStatus": "GET /api/papers/:paperId/status",
                    "getProcessedFile": "GET /api/papers/:paperId/processed-file",
                    "getUserPapers": "GET /api/papers/user/:userId",
                    "saveResult": "PUT /api/papers/:paperId/result",
                    "delete": "DELETE /api/papers/:paperId",
                },
                "grading": {"grade": "POST /api/grading/grade"},
            },
        }
    )


@main_bp.route("/health")
def health():
    """Health check: database, AI provider services and configuration."""
    config = current_app.config
    provider_errors = {}
    for concern, factory, error_class in (
        ("ocr", get_ocr_service, OCRServiceError),
        ("grading", get_grading_service, GradingServiceError),
    ):
        try:
            factory(config)
        except error_class as e:
            provider_errors[concern] = str(e)

    summary = current_app.extensions["unified_config"].get_configuration_summary()
    body = {"services": ServiceRegistry.get_health_status(), "configuration": summary}
    if provider_errors:
        body["providerErrors"] = provider_errors

    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        body.update({"ok": False, "status": STATUS_UNHEALTHY, "database": "unavailable"})
        return jsonify(body), 503

    body.update({"ok": True, "status": STATUS_HEALTHY, "database": "connected"})
    return jsonify(body)
