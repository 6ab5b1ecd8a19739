"""
Grading Routes

Grades student answers against an answer key with the configured LLM.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from src.constants import ERROR_GRADING_FAILED
from src.services.grading_service import grade_paper
from utils.logger import logger

grading_bp = Blueprint("grading", __name__, url_prefix="/api/grading")


@grading_bp.route("/grade", methods=["POST"])
@login_required
def grade():
    """Grade one paper; the model's JSON reply is returned unchanged."""
    payload = request.get_json(silent=True) or {}
    try:
        result = grade_paper(payload, current_app.config)
        return jsonify(result)
    except Exception as e:
        logger.log_error_with_context(e, {"operation": "grade", "subject": payload.get("subject")})
        return jsonify({"error": ERROR_GRADING_FAILED, "message": str(e)}), 500
