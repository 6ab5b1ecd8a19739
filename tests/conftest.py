"""
Test configuration and fixtures for the Answer Paper Grader test suite.
"""

import io
import shutil
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from src.constants import ROLE_STUDENT, ROLE_TEACHER
from src.database.models import Paper, db, default_processing_steps
from src.database.utils import DatabaseUtils
from src.security.auth_tokens import generate_token
from src.services.base_service import ServiceRegistry
from src.services.ocr_service import OCRResult
from webapp.app_factory import create_app

SEED_VARIABLES = ("TEACHER_EMAIL", "TEACHER_PASSWORD", "STUDENT_EMAIL", "STUDENT_PASSWORD")


@pytest.fixture
def app(monkeypatch):
    """Create test application with a fresh in-memory database."""
    for name in SEED_VARIABLES:
        monkeypatch.delenv(name, raising=False)

    app = create_app("testing")
    app.config.update({"SECRET_KEY": "test-secret-key", "JWT_SECRET": "test-jwt-secret"})

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()

    shutil.rmtree(app.config["UPLOAD_FOLDER"], ignore_errors=True)


@pytest.fixture(autouse=True)
def clear_service_registry():
    """Provider services never outlive a test."""
    ServiceRegistry.clear()
    yield
    ServiceRegistry.clear()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def create_test_user(email, role, password="password123"):
    """Create and commit an account."""
    return DatabaseUtils.create_user(email, password, role)


def auth_headers(app, user):
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {generate_token(user, app.config['JWT_SECRET'])}"}


@pytest.fixture
def teacher(app):
    return create_test_user("teacher@testing.local", ROLE_TEACHER)


@pytest.fixture
def student(app):
    return create_test_user("student@testing.local", ROLE_STUDENT)


@pytest.fixture
def teacher_headers(app, teacher):
    return auth_headers(app, teacher)


@pytest.fixture
def student_headers(app, student):
    return auth_headers(app, student)


@pytest.fixture
def sections():
    return [
        {"name": "Section A", "marks": 10},
        {"name": "Section B", "marks": 15},
    ]


def create_test_paper(owner, file_path, **overrides):
    """Create and commit a paper record."""
    values = {
        "user_id": owner.id,
        "subject": "Physics",
        "file_name": Path(file_path).name,
        "original_file_name": Path(file_path).name,
        "file_path": str(file_path),
        "sections": [{"name": "Section A", "marks": 10}],
        "total_marks": 10,
        "processing_steps": default_processing_steps(),
    }
    values.update(overrides)
    paper = Paper(**values)
    db.session.add(paper)
    db.session.commit()
    return paper


@pytest.fixture
def scan_file(app):
    """An image file inside the upload folder."""
    path = Path(app.config["UPLOAD_FOLDER"]) / "1700000000000-abcd1234-scan.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n fake image data")
    return path


@pytest.fixture
def paper(teacher, scan_file):
    return create_test_paper(teacher, scan_file)


def upload_file(name="scan.png", content=b"\x89PNG\r\n\x1a\n fake image data"):
    """A ``(stream, filename)`` tuple for multipart test requests."""
    return (io.BytesIO(content), name)


def make_ocr_result(text="Newton's first law states that a body stays at rest", **overrides):
    values = {
        "extracted_text": text,
        "confidence": 90,
        "word_count": len(text.split()),
        "pages": 1,
        "has_handwriting": True,
        "handwriting_score": 85,
        "readability_score": 85,
        "provider": "groq",
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
    }
    values.update(overrides)
    return OCRResult(**values)


@pytest.fixture
def mock_ocr():
    """Replace the OCR call made by the background processor."""
    with patch("src.services.background_tasks.extract_text") as mock:
        mock.return_value = make_ocr_result()
        yield mock


@pytest.fixture
def mock_grading_service():
    """Replace the configured grading provider."""
    with patch("src.services.grading_service.get_grading_service") as factory:
        service = Mock()
        service.grade.return_value = {
            "sections": [
                {"sectionName": "Section A", "maxMarks": 10, "obtainedMarks": 8, "feedback": "Good"}
            ],
            "totalMarks": 10,
            "obtainedMarks": 8,
            "percentage": 80,
            "grade": "A",
            "overallFeedback": "Well done.",
        }
        factory.return_value = service
        yield service
