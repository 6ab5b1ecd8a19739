"""Tests for the grading providers."""

import json
from unittest.mock import Mock, patch

import pytest

from src.constants import DEFAULT_REQUEST_GRADING_SETTINGS
from src.services.grading_service import (
    GeminiGradingService,
    GradingServiceError,
    GroqGradingService,
    build_evaluator_prompt_parts,
    build_grading_prompt,
    build_paper_config,
    combine_student_answers,
    get_grading_service,
    grade_paper,
    parse_grading_response,
)

GRADE = {
    "sections": [
        {"sectionName": "A", "maxMarks": 10, "obtainedMarks": 8, "feedback": "Good"}
    ],
    "totalMarks": 10,
    "obtainedMarks": 8,
    "percentage": 80,
    "grade": "A",
    "overallFeedback": "Well done",
}


def chat_response(content):
    return Mock(choices=[Mock(message=Mock(content=content))])


@pytest.fixture
def paper_config():
    return build_paper_config(
        {
            "sections": [{"name": "A", "maxMarks": 10}],
            "totalMarks": 10,
            "gradingSettings": {"negativeMarking": True, "passingPercentage": 50},
        }
    )


class TestCombineStudentAnswers:
    """Test cases for joining per-section answers."""

    def test_sections_joined_with_headers(self):
        text = combine_student_answers({"A": "gravity", "B": "inertia"})
        assert text == "\n--- A ---\ngravity\n\n--- B ---\ninertia\n"

    def test_string_passed_through(self):
        assert combine_student_answers("all my answers") == "all my answers"

    def test_missing_answers(self):
        assert combine_student_answers(None) == ""
        assert combine_student_answers({}) == ""


class TestPaperConfig:
    """Test cases for the grading configuration taken from a request."""

    def test_defaults(self):
        config = build_paper_config({})

        assert config["sections"] == []
        assert config["totalMarks"] is None
        assert config["gradingSettings"] == DEFAULT_REQUEST_GRADING_SETTINGS
        assert config["gradingMode"] == "section"
        assert config["aiOptions"] == {}

    def test_request_values_kept(self):
        config = build_paper_config(
            {"totalMarks": 50, "gradingMode": "holistic", "aiOptions": {"strictGrammar": True}}
        )

        assert config["totalMarks"] == 50
        assert config["gradingMode"] == "holistic"
        assert config["aiOptions"] == {"strictGrammar": True}


class TestPrompts:
    """Test cases for prompt construction."""

    def test_grading_prompt_contents(self, paper_config):
        prompt = build_grading_prompt("my answer", {"A": "key"}, paper_config)

        assert "my answer" in prompt
        assert json.dumps({"A": "key"}, indent=2) in prompt
        assert "- Total Marks: 10" in prompt
        assert "- Negative Marking: Yes" in prompt
        assert "Return ONLY the JSON object" in prompt

    def test_string_answer_key_used_verbatim(self, paper_config):
        prompt = build_grading_prompt("answer", "Key text", paper_config)
        assert "Key text" in prompt

    def test_evaluator_parts(self, paper_config):
        system_role, inputs, output_format = build_evaluator_prompt_parts(
            "student text", "answer key", paper_config
        )

        assert "Negative marking: Enabled" in system_role
        assert "pass/fail at 50%" in system_role
        assert "student text" in inputs
        assert "answer key" in inputs
        assert "Passing Percentage: 50%" in inputs
        assert "JSON ONLY" in output_format


class TestParseGradingResponse:
    """Test cases for reading the model reply."""

    def test_plain_json(self):
        assert parse_grading_response(json.dumps(GRADE)) == GRADE

    def test_markdown_fences_removed(self):
        text = "```json\n" + json.dumps(GRADE) + "\n```"
        assert parse_grading_response(text) == GRADE

    def test_invalid_json(self):
        with pytest.raises(GradingServiceError) as exc_info:
            parse_grading_response("The student did well.")
        assert exc_info.value.error_code == "INVALID_JSON"

    def test_non_object_json(self):
        with pytest.raises(GradingServiceError) as exc_info:
            parse_grading_response("[1, 2, 3]")
        assert exc_info.value.error_code == "INVALID_JSON"

    @pytest.mark.parametrize("text", ["", None, "```json\n```"])
    def test_empty_reply(self, text):
        with pytest.raises(GradingServiceError) as exc_info:
            parse_grading_response(text)
        assert exc_info.value.error_code == "EMPTY_RESPONSE"


class TestGroqGradingService:
    """Test cases for the Groq grading provider."""

    def test_request_uses_json_mode(self, paper_config):
        client = Mock()
        client.chat.completions.create.return_value = chat_response(json.dumps(GRADE))
        service = GroqGradingService(api_key=None, model="grader", client=client)

        result = service.grade("answer", "key", paper_config)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "grader"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 2048
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0]["role"] == "user"
        assert result == GRADE

    def test_empty_choices_give_empty_object(self, paper_config):
        client = Mock()
        client.chat.completions.create.return_value = Mock(choices=[])

        result = GroqGradingService(api_key=None, client=client).grade("a", "k", paper_config)

        assert result == {}

    def test_api_failure_is_wrapped(self, paper_config):
        client = Mock()
        client.chat.completions.create.side_effect = RuntimeError("503 from upstream")
        service = GroqGradingService(api_key=None, client=client)

        with pytest.raises(GradingServiceError) as exc_info:
            service.grade("a", "k", paper_config)

        assert exc_info.value.error_code == "API_ERROR"
        assert service.get_metrics().failed_requests == 1

    def test_missing_api_key(self, paper_config):
        service = GroqGradingService(api_key=None)

        assert service.is_available() is False
        with pytest.raises(GradingServiceError) as exc_info:
            service.grade("a", "k", paper_config)
        assert exc_info.value.error_code == "NO_API_KEY"


class TestGeminiGradingService:
    """Test cases for the Gemini grading provider."""

    def test_prompt_sent_as_three_parts(self, paper_config):
        model = Mock()
        model.generate_content.return_value = Mock(text="```json\n{\"percentage\": 70}\n```")

        result = GeminiGradingService(api_key=None, model=model).grade(
            "answer", "key", paper_config
        )

        assert len(model.generate_content.call_args.args[0]) == 3
        assert result == {"percentage": 70}

    def test_sdk_failure_is_wrapped(self, paper_config):
        model = Mock()
        model.generate_content.side_effect = RuntimeError("blocked")

        with pytest.raises(GradingServiceError) as exc_info:
            GeminiGradingService(api_key=None, model=model).grade("a", "k", paper_config)
        assert exc_info.value.error_code == "API_ERROR"


class TestGradePaper:
    """Test cases for grading a request body."""

    def test_provider_selection(self):
        assert isinstance(get_grading_service({}), GroqGradingService)
        assert isinstance(
            get_grading_service({"GRADING_PROVIDER": "gemini"}), GeminiGradingService
        )
        with pytest.raises(GradingServiceError) as exc_info:
            get_grading_service({"GRADING_PROVIDER": "other"})
        assert exc_info.value.error_code == "CONFIG_ERROR"

    def test_grade_paper_passes_combined_answers(self):
        service = Mock()
        service.grade.return_value = GRADE
        payload = {
            "studentAnswers": {"A": "gravity"},
            "answerKey": {"A": "gravity pulls"},
            "sections": [{"name": "A", "maxMarks": 10}],
            "totalMarks": 10,
        }

        with patch(
            "src.services.grading_service.get_grading_service", return_value=service
        ) as factory:
            result = grade_paper(payload, {"GRADING_PROVIDER": "groq"})

        factory.assert_called_once_with({"GRADING_PROVIDER": "groq"})
        student_text, answer_key, paper_config = service.grade.call_args.args
        assert student_text == "\n--- A ---\ngravity\n"
        assert answer_key == {"A": "gravity pulls"}
        assert paper_config["totalMarks"] == 10
        assert result == GRADE
