"""Tests for paper record operations."""

import io
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from werkzeug.datastructures import FileStorage

from src.constants import (
    CONFIG_ONLY,
    DEFAULT_GRADING_SETTINGS,
    PAPER_STATUS_ANALYZED,
    PAPER_STATUS_UPLOADED,
    ROLE_STUDENT,
)
from src.database.models import Paper, db
from src.exceptions.application_errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.services.paper_service import (
    create_uploaded_papers,
    delete_paper,
    get_paper,
    list_user_papers,
    parse_json_field,
    parse_total_marks,
    processed_file_summary,
    resolve_owner_id,
    save_grading_result,
    save_paper_config,
)
from tests.conftest import create_test_paper, create_test_user


def file_storage(name="scan.png"):
    return FileStorage(stream=io.BytesIO(b"\x89PNG data"), filename=name)


class TestFieldParsing:
    """Test cases for form field parsing."""

    def test_json_string_decoded(self):
        assert parse_json_field('[{"name": "A"}]', "sections") == [{"name": "A"}]

    def test_decoded_value_passed_through(self):
        assert parse_json_field([{"name": "A"}], "sections") == [{"name": "A"}]

    def test_empty_uses_default(self):
        assert parse_json_field("", "sections", default=[]) == []
        assert parse_json_field(None, "sections", default=[]) == []

    def test_invalid_json(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_field("[not json", "sections")
        assert exc_info.value.field == "sections"

    @pytest.mark.parametrize("value, expected", [("50", 50), (25, 25), ("12.7", 12), ("", 0), (None, 0)])
    def test_total_marks(self, value, expected):
        assert parse_total_marks(value) == expected

    def test_total_marks_not_a_number(self):
        with pytest.raises(ValidationError):
            parse_total_marks("fifty")


class TestOwnership:
    """Test cases for choosing the owner of a new paper."""

    def test_defaults_to_caller(self, app, student):
        assert resolve_owner_id(None, student) == student.id
        assert resolve_owner_id(student.id, student) == student.id

    def test_teacher_may_name_owner(self, app, teacher, student):
        assert resolve_owner_id(student.id, teacher) == student.id

    def test_student_may_not_name_owner(self, app, teacher, student):
        with pytest.raises(AuthorizationError):
            resolve_owner_id(teacher.id, student)


class TestCreateUploadedPapers:
    """Test cases for creating papers from uploads."""

    def test_one_paper_per_file(self, app, teacher, student, sections):
        form = {
            "subject": " Physics ",
            "totalMarks": "25",
            "sections": '[{"name": "Section A", "marks": 10}, {"name": "Section B", "marks": 15}]',
            "studentId": student.id,
        }

        papers = create_uploaded_papers(
            [file_storage("a.png"), file_storage("b.pdf")],
            form,
            teacher,
            app.config["UPLOAD_FOLDER"],
        )

        assert len(papers) == 2
        assert Paper.query.count() == 2
        first = papers[0]
        assert first.user_id == teacher.id
        assert first.student_id == student.id
        assert first.subject == "Physics"
        assert first.total_marks == 25
        assert first.sections == sections
        assert first.grading_settings == DEFAULT_GRADING_SETTINGS
        assert first.status == PAPER_STATUS_UPLOADED
        assert first.original_file_name == "a.png"
        assert Path(first.file_path).exists()
        assert papers[1].original_file_name == "b.pdf"

    def test_invalid_sections_create_nothing(self, app, teacher):
        with pytest.raises(ValidationError):
            create_uploaded_papers(
                [file_storage()], {"sections": "{oops"}, teacher, app.config["UPLOAD_FOLDER"]
            )
        assert Paper.query.count() == 0


class TestSavePaperConfig:
    """Test cases for configuration-only papers."""

    def test_saves_config_paper(self, app, teacher, sections):
        paper = save_paper_config(
            {"subject": "Chemistry", "sections": sections, "totalMarks": 25}, teacher
        )

        assert paper.user_id == teacher.id
        assert paper.original_file_name == "Chemistry-config"
        assert paper.file_name == CONFIG_ONLY
        assert paper.file_path == CONFIG_ONLY
        assert paper.is_config_only
        assert paper.total_marks == 25
        assert paper.sections == sections

    @pytest.mark.parametrize("missing", ["subject", "sections", "totalMarks"])
    def test_missing_fields(self, app, teacher, sections, missing):
        data = {"subject": "Chemistry", "sections": sections, "totalMarks": 25}
        del data[missing]

        with pytest.raises(ValidationError, match="Missing required fields"):
            save_paper_config(data, teacher)


class TestQueries:
    """Test cases for loading and listing papers."""

    def test_get_paper(self, app, paper):
        assert get_paper(paper.id) == paper
        with pytest.raises(NotFoundError, match="Paper not found"):
            get_paper("missing")

    def test_list_includes_assigned_papers_newest_first(self, app, teacher, student, scan_file):
        older = create_test_paper(
            student, scan_file, created_at=datetime.utcnow() - timedelta(hours=1)
        )
        newer = create_test_paper(teacher, scan_file, student_id=student.id)
        create_test_paper(teacher, scan_file)

        assert list_user_papers(student.id, student) == [newer, older]

    def test_student_cannot_list_others(self, app, teacher, student):
        with pytest.raises(AuthorizationError):
            list_user_papers(teacher.id, student)

    def test_teacher_can_list_anyone(self, app, teacher, student, scan_file):
        paper = create_test_paper(student, scan_file)
        assert list_user_papers(student.id, teacher) == [paper]


class TestDeletePaper:
    """Test cases for deleting papers."""

    def test_owner_deletes_paper_and_files(self, app, teacher, paper, scan_file, tmp_path):
        processed = tmp_path / "processed.json"
        processed.write_text("{}")
        paper.processed_file_path = str(processed)
        db.session.commit()

        delete_paper(paper, teacher)

        assert Paper.query.count() == 0
        assert not scan_file.exists()
        assert not processed.exists()

    def test_missing_files_do_not_block_delete(self, app, teacher, paper, scan_file):
        scan_file.unlink()
        delete_paper(paper, teacher)
        assert Paper.query.count() == 0

    def test_non_owner_rejected(self, app, paper):
        other = create_test_user("other@testing.local", ROLE_STUDENT)
        with pytest.raises(AuthorizationError):
            delete_paper(paper, other)
        assert Paper.query.count() == 1


class TestResults:
    """Test cases for grading results and processed summaries."""

    def test_save_grading_result_keeps_analysis(self, app, paper, student):
        paper.analysis_results = {"wordCount": 40, "detailedAnalysis": None}
        db.session.commit()

        save_grading_result(paper, {"percentage": 80}, student.id)
        db.session.expire_all()

        reloaded = db.session.get(Paper, paper.id)
        assert reloaded.analysis_results == {"wordCount": 40, "detailedAnalysis": {"percentage": 80}}
        assert reloaded.student_id == student.id
        assert reloaded.status == PAPER_STATUS_ANALYZED

    def test_save_grading_result_without_prior_analysis(self, app, paper):
        save_grading_result(paper, {"percentage": 55})
        assert paper.analysis_results == {"detailedAnalysis": {"percentage": 55}}
        assert paper.student_id is None

    def test_summary_requires_analysis(self, app, paper):
        with pytest.raises(ValidationError, match="Paper processing not complete"):
            processed_file_summary(paper)

    def test_summary(self, app, paper):
        paper.status = PAPER_STATUS_ANALYZED
        paper.analysis_results = {
            "handwritingScore": 85,
            "readabilityScore": 85,
            "wordCount": 120,
            "estimatedTime": 5,
        }

        summary = processed_file_summary(paper)

        assert summary["message"] == "File processed successfully"
        assert summary["metadata"]["fileName"] == paper.original_file_name
        assert summary["metadata"]["canBeUsedForGrading"] is True
        assert summary["analysisSummary"] == {
            "handwritingScore": 85,
            "readabilityScore": 85,
            "wordCount": 120,
            "estimatedGradingTime": 5,
        }
