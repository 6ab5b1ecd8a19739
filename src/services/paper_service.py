"""
Paper Service - creating, listing, updating and deleting paper records.

Route handlers call into this module; it raises ``ApplicationError``
subclasses which the Flask error handlers render as JSON.
"""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from src.constants import (
    CONFIG_ONLY,
    DEFAULT_GRADING_SETTINGS,
    PAPER_STATUS_ANALYZED,
    PAPER_STATUS_UPLOADED,
)
from src.database.models import Paper, User, db, default_processing_steps
from src.exceptions.application_errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.services.storage_service import remove_file, save_upload
from utils.logger import logger


def parse_json_field(value: Any, field: str, default: Any = None) -> Any:
    """Decode a JSON string sent in a form field.

    Already-decoded values (from a JSON body) are returned unchanged.
    """
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid JSON in field '{field}'", field=field)


def parse_total_marks(value: Any) -> int:
    """Parse ``totalMarks`` leniently, like ``parseInt``."""
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValidationError("totalMarks must be a number", field="totalMarks")


def resolve_owner_id(requested_id: Optional[str], current: User) -> str:
    """Owner of a new paper: the caller unless a teacher names another user."""
    if not requested_id or requested_id == current.id:
        return current.id
    if not current.is_teacher:
        raise AuthorizationError("Students can only create their own papers")
    return requested_id


def get_paper(paper_id: str) -> Paper:
    """Load a paper or raise ``NotFoundError``."""
    paper = db.session.get(Paper, paper_id)
    if paper is None:
        raise NotFoundError("Paper not found", resource_type="paper", resource_id=paper_id)
    return paper


def create_uploaded_papers(
    files: Iterable, form: Mapping[str, Any], current: User, upload_dir: str
) -> List[Paper]:
    """Store every uploaded file and create one paper record per file."""
    owner_id = resolve_owner_id(form.get("userId"), current)
    subject = (form.get("subject") or "").strip()
    sections = parse_json_field(form.get("sections"), "sections", default=[])
    grading_settings = parse_json_field(
        form.get("gradingSettings"), "gradingSettings", default=dict(DEFAULT_GRADING_SETTINGS)
    )
    total_marks = parse_total_marks(form.get("totalMarks"))
    student_id = form.get("studentId") or None

    papers = []
    for file in files:
        stored = save_upload(file, upload_dir)
        paper = Paper(
            user_id=owner_id,
            student_id=student_id,
            subject=subject,
            file_name=stored["file_name"],
            original_file_name=stored["original_file_name"],
            file_path=stored["file_path"],
            sections=sections,
            total_marks=total_marks,
            grading_settings=grading_settings,
            status=PAPER_STATUS_UPLOADED,
            processing_steps=default_processing_steps(),
        )
        db.session.add(paper)
        papers.append(paper)

    db.session.commit()
    logger.info(f"Created {len(papers)} paper(s) for user {owner_id}")
    return papers


def save_paper_config(data: Mapping[str, Any], current: User) -> Paper:
    """Create a paper record holding only a grading configuration."""
    owner_id = data.get("userId") or current.id
    subject = data.get("subject")
    sections = data.get("sections")
    total_marks = data.get("totalMarks")
    if not owner_id or not subject or not sections or not total_marks:
        raise ValidationError("Missing required fields")
    owner_id = resolve_owner_id(owner_id, current)

    paper = Paper(
        user_id=owner_id,
        subject=subject,
        file_name=CONFIG_ONLY,
        original_file_name=f"{subject}-config",
        file_path=CONFIG_ONLY,
        sections=parse_json_field(sections, "sections", default=[]),
        total_marks=parse_total_marks(total_marks),
        grading_settings=data.get("gradingSettings") or dict(DEFAULT_GRADING_SETTINGS),
        status=PAPER_STATUS_UPLOADED,
        processing_steps=default_processing_steps(),
    )
    db.session.add(paper)
    db.session.commit()
    logger.info(f"Saved configuration paper {paper.id} ({subject})")
    return paper


def list_user_papers(user_id: str, current: User) -> List[Paper]:
    """Papers owned by or assigned to a user, newest first."""
    if not current.is_teacher and user_id != current.id:
        raise AuthorizationError("Students can only view their own papers")

    return (
        Paper.query.filter((Paper.user_id == user_id) | (Paper.student_id == user_id))
        .order_by(Paper.created_at.desc())
        .all()
    )


def delete_paper(paper: Paper, current: User) -> None:
    """Delete a paper with its uploaded and processed files.

    File removal failures are logged and do not stop the deletion.
    """
    if paper.user_id != current.id:
        raise AuthorizationError("Only the owner can delete this paper", resource="paper")

    if paper.file_path and not paper.is_config_only:
        remove_file(paper.file_path, "original file")
    if paper.processed_file_path:
        remove_file(paper.processed_file_path, "processed file")

    db.session.delete(paper)
    db.session.commit()
    logger.info(f"Deleted paper {paper.id}")


def save_grading_result(paper: Paper, result: Any, student_id: Optional[str] = None) -> Paper:
    """Attach a grading result to a paper and mark it analyzed."""
    analysis = dict(paper.analysis_results or {})
    analysis["detailedAnalysis"] = result
    paper.analysis_results = analysis
    paper.mark_analysis_modified()
    if student_id:
        paper.student_id = student_id
    paper.status = PAPER_STATUS_ANALYZED

    db.session.commit()
    logger.info(f"Saved grading result for paper {paper.id}")
    return paper


def processed_file_summary(paper: Paper) -> Dict[str, Any]:
    """Metadata about a processed paper; the file itself is never returned."""
    if paper.status != PAPER_STATUS_ANALYZED:
        raise ValidationError("Paper processing not complete")

    analysis = paper.analysis_results or {}
    return {
        "message": "File processed successfully",
        "metadata": {
            "fileName": paper.original_file_name,
            "processedAt": datetime.utcnow().isoformat(),
            "analysisComplete": True,
            "canBeUsedForGrading": True,
        },
        "analysisSummary": {
            "handwritingScore": analysis.get("handwritingScore"),
            "readabilityScore": analysis.get("readabilityScore"),
            "wordCount": analysis.get("wordCount"),
            "estimatedGradingTime": analysis.get("estimatedTime"),
        },
    }
