"""
Paper Routes

Upload answer papers, save grading configurations, poll processing status
and attach grading results.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from src.models.api_responses import ErrorCode, error_body
from src.services import paper_service
from src.services.background_tasks import BackgroundTaskService
from utils.logger import logger
from webapp.forms import PaperUploadForm

papers_bp = Blueprint("papers", __name__, url_prefix="/api/papers")


@papers_bp.route("/upload/student-papers", methods=["POST"])
@login_required
def upload_papers():
    """Upload answer papers and start processing each of them."""
    form = PaperUploadForm()
    files = form.selected_files()

    if not files:
        return jsonify({"message": "No files uploaded"}), 400

    max_files = current_app.config["MAX_FILES_PER_UPLOAD"]
    if len(files) > max_files:
        return (
            jsonify(
                error_body(
                    f"At most {max_files} files can be uploaded at once",
                    code=ErrorCode.VALIDATION_ERROR,
                )
            ),
            400,
        )

    if not form.validate():
        return jsonify(error_body(form.first_error(), code=ErrorCode.VALIDATION_ERROR)), 400

    papers = paper_service.create_uploaded_papers(
        files, form.data, current_user, current_app.config["UPLOAD_FOLDER"]
    )
    created = [
        {
            "id": paper.id,
            "fileName": paper.original_file_name,
            "status": paper.status,
            "progress": paper.processing_progress,
        }
        for paper in papers
    ]

    # Processing must not hold up the response
    tasks = BackgroundTaskService(current_app._get_current_object())
    for entry in created:
        tasks.submit(entry["id"])

    logger.info(f"Uploaded {len(created)} paper(s) for user {current_user.id}")
    return jsonify({"message": "Files uploaded successfully", "papers": created})


@papers_bp.route("/save-config", methods=["POST"])
@login_required
def save_config():
    """Save a paper configuration without a file."""
    data = request.get_json(silent=True) or {}
    paper = paper_service.save_paper_config(data, current_user)
    return (
        jsonify(
            {
                "message": "Paper configuration saved successfully",
                "paper": {
                    "id": paper.id,
                    "subject": paper.subject,
                    "sections": paper.sections,
                    "totalMarks": paper.total_marks,
                    "gradingSettings": paper.grading_settings,
                },
            }
        ),
        201,
    )


@papers_bp.route("/user/<user_id>")
@login_required
def user_papers(user_id):
    """Papers owned by or assigned to a user, newest first."""
    papers = paper_service.list_user_papers(user_id, current_user)
    return jsonify([paper.to_summary_dict() for paper in papers])


@papers_bp.route("/<paper_id>/status")
@login_required
def paper_status(paper_id):
    """Processing status of a paper."""
    paper = paper_service.get_paper(paper_id)
    return jsonify(paper.to_status_dict())


@papers_bp.route("/<paper_id>/processed-file")
@login_required
def processed_file(paper_id):
    """Metadata about the processed output of an analyzed paper."""
    paper = paper_service.get_paper(paper_id)
    return jsonify(paper_service.processed_file_summary(paper))


@papers_bp.route("/<paper_id>", methods=["DELETE"])
@login_required
def delete_paper(paper_id):
    """Delete a paper and its files."""
    paper = paper_service.get_paper(paper_id)
    paper_service.delete_paper(paper, current_user)
    return jsonify({"message": "Paper deleted successfully"})


@papers_bp.route("/<paper_id>/result", methods=["PUT"])
@login_required
def save_result(paper_id):
    """Attach a grading result to a paper."""
    data = request.get_json(silent=True) or {}
    paper = paper_service.get_paper(paper_id)
    paper = paper_service.save_grading_result(
        paper, data.get("result"), data.get("studentId")
    )
    return jsonify({"message": "Grading result saved successfully", "paper": paper.to_dict()})
