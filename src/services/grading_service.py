"""
Grading Service for evaluating student answers against an answer key.

The whole paper is graded with one prompt sent to a hosted LLM: a Groq chat
model (through the OpenAI-compatible client) or Google Gemini. The model's
JSON reply is returned as-is.
"""

import json
import re
import time
from typing import Any, Dict, List, Mapping, Optional, Union

import google.generativeai as genai
from openai import OpenAI

from src.constants import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GRADING_MODE,
    DEFAULT_GROQ_GRADING_MODEL,
    DEFAULT_REQUEST_GRADING_SETTINGS,
    ERROR_NO_API_KEY,
    GROQ_DEFAULT_BASE_URL,
    PROVIDER_GEMINI,
    PROVIDER_GROQ,
)
from src.services.base_service import BaseService, ServiceRegistry
from utils.logger import logger

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class GradingServiceError(Exception):
    """Exception raised for errors in the grading service."""

    def __init__(
        self, message: str, error_code: str = None, original_error: Exception = None
    ):
        """Initialize grading service error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.original_error = original_error

    def __str__(self):
        """Return string representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


def combine_student_answers(student_answers: Union[Dict[str, Any], str, None]) -> str:
    """Join per-section answers into one text block.

    Each section becomes ``\\n--- <section> ---\\n<text>\\n``; a plain string
    is passed through unchanged.
    """
    if student_answers is None:
        return ""
    if isinstance(student_answers, dict):
        return "".join(
            f"\n--- {section} ---\n{text}\n" for section, text in student_answers.items()
        )
    return str(student_answers)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2)


def build_paper_config(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Grading configuration taken from a grading request body."""
    return {
        "sections": payload.get("sections") or [],
        "totalMarks": payload.get("totalMarks"),
        "gradingSettings": payload.get("gradingSettings")
        or dict(DEFAULT_REQUEST_GRADING_SETTINGS),
        "gradingMode": payload.get("gradingMode") or DEFAULT_GRADING_MODE,
        "aiOptions": payload.get("aiOptions") or {},
    }


def build_grading_prompt(
    student_text: str, answer_key: Any, paper_config: Mapping[str, Any]
) -> str:
    """Prompt asking the model to grade every section and reply with JSON."""
    settings = paper_config.get("gradingSettings") or {}
    total_marks = paper_config.get("totalMarks")
    return f"""You are an expert academic evaluator. Your task is to grade a student's answer paper against an answer key.

Input Data:
1. Student's Answers (Extracted Text):
{student_text}

2. Answer Key (Reference):
{_as_text(answer_key)}

3. Grading Configuration:
- Total Marks: {total_marks}
- Sections: {json.dumps(paper_config.get("sections") or [])}
- Negative Marking: {"Yes" if settings.get("negativeMarking") else "No"}
- Grading Mode: {paper_config.get("gradingMode") or DEFAULT_GRADING_MODE}
- Analysis Options: {json.dumps(paper_config.get("aiOptions") or {})}

Task:
- For each section defined in the configuration, locate the corresponding answer in the student's text.
- Compare the student's answer with the answer key for that section.
- Evaluate based on conceptual clarity, correctness, and completeness.
- Apply the specified Analysis Options (e.g. if strict grammar is enabled, deduct marks for grammar).
- Assign marks for each section. Marks cannot exceed the section's max marks.
- Provide brief feedback for each section.
- Calculate the total obtained marks and percentage.

Output Format:
Return a valid JSON object with the following structure:
{{
    "sections": [
        {{
            "sectionName": "Section A",
            "maxMarks": 10,
            "obtainedMarks": 8,
            "feedback": "Good understanding, missed one keyword."
        }}
    ],
    "totalMarks": {total_marks},
    "obtainedMarks": 45,
    "percentage": 90,
    "grade": "A",
    "overallFeedback": "Excellent performance."
}}

IMPORTANT: Return ONLY the JSON object. Do not include markdown code blocks or additional text."""


def build_evaluator_prompt_parts(
    student_text: str, answer_key: Any, paper_config: Mapping[str, Any]
) -> List[str]:
    """Evaluator role, inputs and output format sent to Gemini as three parts."""
    settings = paper_config.get("gradingSettings") or {}
    negative = bool(settings.get("negativeMarking"))
    passing = settings.get("passingPercentage", DEFAULT_REQUEST_GRADING_SETTINGS["passingPercentage"])

    system_role = f"""SYSTEM ROLE
You are an AI exam evaluator.
Evaluate student answer papers by comparing them with an official answer key, using section-wise marking, and produce fair, explainable marks.

You must support handwritten answers (already transcribed), partial answers and concept-based evaluation (not exact wording).

EVALUATION INSTRUCTIONS
1. Read the student answer carefully. Ignore spelling errors, handwriting artifacts and minor grammatical mistakes. Focus on meaning and intent.
2. Split the student answer into sections based on section titles or question numbers. If labels are missing, infer boundaries logically.
3. Compare each section with the answer key using keyword coverage, concept similarity, logical correctness and completeness.
4. Scoring per section, starting from 0 marks:
   - 90-100% correct: full marks
   - 70-89% correct: high marks
   - 40-69% correct: partial marks
   - below 40%: low marks
   - irrelevant or incorrect: 0 marks
   - Negative marking: {"Enabled" if negative else "Disabled"}
   - Final marks must never go below 0.
5. Do not penalize poor handwriting or OCR errors. Reduce marks for extremely short explanations and reward clarity.
6. Calculate section-wise marks, total marks and percentage, and decide pass/fail at {passing}%."""

    inputs = f"""INPUTS

--- Extracted Student Answer Text ---
{student_text}

--- Answer Key ---
{_as_text(answer_key)}

--- Section Configuration ---
{json.dumps(paper_config.get("sections") or [], indent=2)}

--- Grading Rules ---
Total Marks: {paper_config.get("totalMarks")}
Passing Percentage: {passing}%
Negative Marking: {negative}"""

    output_format = """OUTPUT FORMAT (STRICT, JSON ONLY)
{
  "sections": [
    {
      "sectionName": "Section A",
      "maxMarks": 25,
      "awardedMarks": 18,
      "reason": "Student covered main concepts but missed one key point."
    }
  ],
  "totalMarks": 60,
  "percentage": 60,
  "pass": true,
  "overallFeedback": "Good conceptual understanding..."
}

Never hallucinate answers. Marks must match section limits. Output must always be valid JSON."""

    return [system_role, inputs, output_format]


def parse_grading_response(response_text: Optional[str]) -> Dict[str, Any]:
    """Parse the model reply as one JSON object, ignoring markdown fences.

    Raises:
        GradingServiceError: when the reply is not a JSON object
    """
    cleaned = _CODE_FENCE.sub("", response_text or "").strip()
    if not cleaned:
        raise GradingServiceError("Empty response from grading model", error_code="EMPTY_RESPONSE")
    try:
        result = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GradingServiceError(
            f"Failed to parse grading response: {e}",
            error_code="INVALID_JSON",
            original_error=e,
        )
    if not isinstance(result, dict):
        raise GradingServiceError(
            "Grading response is not a JSON object", error_code="INVALID_JSON"
        )
    return result


class GroqGradingService(BaseService):
    """Grades a paper with a Groq chat model in JSON mode."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = GROQ_DEFAULT_BASE_URL,
        model: str = DEFAULT_GROQ_GRADING_MODEL,
        timeout: float = 120,
        client: Optional[OpenAI] = None,
    ):
        super().__init__(
            "groq_grading", api_key=api_key, base_url=base_url, model=model, timeout=timeout
        )
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self._client = client

    def is_available(self) -> bool:
        return bool(self._client or self.api_key)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise GradingServiceError(
                    f"Groq {ERROR_NO_API_KEY}. Set GROQ_API_KEY in .env",
                    error_code="NO_API_KEY",
                )
            self._client = OpenAI(
                api_key=self.api_key, base_url=self.base_url, timeout=self.timeout
            )
        return self._client

    def grade(
        self, student_text: str, answer_key: Any, paper_config: Mapping[str, Any]
    ) -> Dict[str, Any]:
        prompt = build_grading_prompt(student_text, answer_key, paper_config)
        with self.track_request("grade"):
            client = self.client
            try:
                response = client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=0.1,
                    max_tokens=2048,
                    top_p=1,
                    stream=False,
                    response_format={"type": "json_object"},
                )
            except Exception as e:
                raise GradingServiceError(
                    f"Groq API error: {e}", error_code="API_ERROR", original_error=e
                )
            content = response.choices[0].message.content if response.choices else None
            return parse_grading_response(content or "{}")


class GeminiGradingService(BaseService):
    """Grades a paper with Google Gemini using the evaluator prompt."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = DEFAULT_GEMINI_MODEL,
        model: Optional[Any] = None,
    ):
        super().__init__("gemini_grading", api_key=api_key, model_name=model_name)
        self.api_key = api_key
        self.model_name = model_name
        self._model = model

    def is_available(self) -> bool:
        return bool(self._model or self.api_key)

    @property
    def model(self):
        if self._model is None:
            if not self.api_key:
                raise GradingServiceError(
                    f"Gemini {ERROR_NO_API_KEY}. Set GEMINI_API_KEY in .env",
                    error_code="NO_API_KEY",
                )
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def grade(
        self, student_text: str, answer_key: Any, paper_config: Mapping[str, Any]
    ) -> Dict[str, Any]:
        parts = build_evaluator_prompt_parts(student_text, answer_key, paper_config)
        with self.track_request("grade"):
            model = self.model
            try:
                response = model.generate_content(parts)
                text = response.text
            except Exception as e:
                raise GradingServiceError(
                    f"Gemini API error: {e}", error_code="API_ERROR", original_error=e
                )
            return parse_grading_response(text)


def get_grading_service(config: Mapping[str, Any]):
    """Registered grading service selected by ``GRADING_PROVIDER``."""
    provider = (config.get("GRADING_PROVIDER") or PROVIDER_GROQ).lower()
    if provider == PROVIDER_GEMINI:
        return ServiceRegistry.get_or_create(
            GeminiGradingService,
            api_key=config.get("GEMINI_API_KEY"),
            model_name=config.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        )
    if provider == PROVIDER_GROQ:
        return ServiceRegistry.get_or_create(
            GroqGradingService,
            api_key=config.get("GROQ_API_KEY"),
            base_url=config.get("GROQ_BASE_URL") or GROQ_DEFAULT_BASE_URL,
            model=config.get("GROQ_GRADING_MODEL") or DEFAULT_GROQ_GRADING_MODEL,
            timeout=config.get("API_TIMEOUT") or 120,
        )
    raise GradingServiceError(
        f"Unknown grading provider: {provider}", error_code="CONFIG_ERROR"
    )


def grade_paper(payload: Mapping[str, Any], config: Mapping[str, Any]) -> Dict[str, Any]:
    """Grade the answers in a grading request body.

    Raises:
        GradingServiceError: on a missing key, API failure or unparseable reply
    """
    student_text = combine_student_answers(payload.get("studentAnswers"))
    paper_config = build_paper_config(payload)
    service = get_grading_service(config)

    start = time.time()
    result = service.grade(student_text, payload.get("answerKey"), paper_config)
    logger.log_grading_operation(len(paper_config["sections"]), time.time() - start)
    return result
