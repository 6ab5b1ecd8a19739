"""
Database models for the Answer Paper Grader.

This module defines the SQLAlchemy models for users and uploaded papers.
The nested parts of a paper (sections, grading settings, processing steps
and analysis results) are stored as JSON columns so one paper stays one row.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm.attributes import flag_modified
from werkzeug.security import check_password_hash, generate_password_hash

from src.constants import (
    CONFIG_ONLY,
    DEFAULT_GRADING_SETTINGS,
    DEFAULT_ROLL_NUMBER,
    PAPER_STATUS_UPLOADED,
    PROCESSING_STEP_NAMES,
    ROLE_STUDENT,
    ROLE_TEACHER,
    STEP_COMPLETED,
    STEP_PENDING,
)

# Initialize SQLAlchemy
db = SQLAlchemy()


def get_uuid_column():
    """Get appropriate UUID column type based on database."""
    return Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class TimestampMixin:
    """Mixin for adding timestamp fields to models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(UserMixin, db.Model, TimestampMixin):
    """Teacher or student account."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", "role", name="uq_user_email_role"),
    )

    id = get_uuid_column()
    email = Column(String(120), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_STUDENT)
    roll_number = Column(String(50), nullable=False, default=DEFAULT_ROLL_NUMBER)

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def set_password(self, password: str):
        """Set password hash."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_teacher(self) -> bool:
        return self.role == ROLE_TEACHER

    def get_id(self):
        """Return the user ID as a string for Flask-Login."""
        return str(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
        }

    def to_student_dict(self) -> Dict[str, Any]:
        """Summary returned by the student listing."""
        return {
            "id": self.id,
            "email": self.email,
            "rollNumber": self.roll_number,
            "createdAt": _isoformat(self.created_at),
        }


def default_processing_steps() -> List[Dict[str, Any]]:
    """Initial step list for a new paper.

    The upload step is already completed when the record is created; the
    remaining steps wait for the background processor.
    """
    now = datetime.utcnow().isoformat()
    steps = []
    for index, name in enumerate(PROCESSING_STEP_NAMES):
        if index == 0:
            steps.append({"name": name, "status": STEP_COMPLETED, "timestamp": now})
        else:
            steps.append({"name": name, "status": STEP_PENDING, "timestamp": None})
    return steps


class Paper(db.Model, TimestampMixin):
    """Uploaded answer script or answer key together with its processing state."""

    __tablename__ = "papers"
    __table_args__ = (
        Index("idx_paper_user_created", "user_id", "created_at"),
        Index("idx_paper_student_created", "student_id", "created_at"),
    )

    id = get_uuid_column()
    user_id = Column(String(36), nullable=False, index=True)
    student_id = Column(String(36), nullable=True)
    subject = Column(String(200), nullable=False)
    file_name = Column(String(255), nullable=False)
    original_file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    processed_file_path = Column(String(500))
    sections = Column(JSON, nullable=False, default=list)
    total_marks = Column(Integer, nullable=False, default=0)
    grading_settings = Column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_GRADING_SETTINGS)
    )
    status = Column(String(20), nullable=False, default=PAPER_STATUS_UPLOADED)
    processing_progress = Column(Integer, nullable=False, default=0)
    processing_steps = Column(JSON, nullable=False, default=default_processing_steps)
    analysis_results = Column(JSON)

    @property
    def is_config_only(self) -> bool:
        return self.file_path == CONFIG_ONLY

    def mark_steps_modified(self):
        """Flag the step list as changed after an in-place edit."""
        flag_modified(self, "processing_steps")

    def mark_analysis_modified(self):
        """Flag the analysis results as changed after an in-place edit."""
        flag_modified(self, "analysis_results")

    def to_status_dict(self) -> Dict[str, Any]:
        """Payload polled by clients while the paper is processed."""
        return {
            "id": self.id,
            "fileName": self.original_file_name,
            "status": self.status,
            "progress": self.processing_progress,
            "steps": self.processing_steps,
            "analysisResults": self.analysis_results,
            "processedFilePath": self.processed_file_path,
            "createdAt": _isoformat(self.created_at),
        }

    def to_summary_dict(self) -> Dict[str, Any]:
        """Fields returned when listing a user's papers."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "studentId": self.student_id,
            "originalFileName": self.original_file_name,
            "subject": self.subject,
            "status": self.status,
            "processingProgress": self.processing_progress,
            "analysisResults": self.analysis_results,
            "sections": self.sections,
            "totalMarks": self.total_marks,
            "gradingSettings": self.grading_settings,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = self.to_summary_dict()
        data.update(
            {
                "fileName": self.file_name,
                "filePath": self.file_path,
                "processedFilePath": self.processed_file_path,
                "processingSteps": self.processing_steps,
            }
        )
        return data
