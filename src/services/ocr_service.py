"""
OCR Service for extracting text from uploaded answer papers.

Scanned pages are transcribed by a hosted vision model: Groq (through its
OpenAI-compatible chat completions endpoint) or Google Gemini. Word documents
are read directly with python-docx.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

import base64
import time
from dataclasses import dataclass
from pathlib import Path

import docx
import fitz  # PyMuPDF
import google.generativeai as genai
from openai import OpenAI

from src.constants import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GROQ_VISION_MODEL,
    DEFAULT_HANDWRITING_SCORE,
    DOCX_CONFIDENCE,
    ERROR_NO_API_KEY,
    GEMINI_TEXT_CONFIDENCE,
    GROQ_DEFAULT_BASE_URL,
    GROQ_PAGE_CONFIDENCE,
    MIME_TYPES,
    PDF_RENDER_DPI,
    PROVIDER_DOCX,
    PROVIDER_GEMINI,
    PROVIDER_GROQ,
    SUPPORTED_EXTENSIONS,
)
from src.services.base_service import BaseService, ServiceRegistry
from utils.logger import logger

GROQ_EXTRACTION_PROMPT = (
    "Extract all text from this image given below. Return ONLY the extracted text. "
    "Do not add any conversational filler. Maintain the structure (newlines) as much as possible."
)

GEMINI_EXTRACTION_PROMPT = """Extract all text from this image. Include both handwritten and printed text.
Return the text exactly as it appears, preserving line breaks and structure.
If there is handwriting, transcribe it accurately.
If the image contains no text, return an empty string."""


class OCRServiceError(Exception):
    """Exception raised for errors in the OCR service."""

    def __init__(
        self, message: str, error_code: str = None, original_error: Exception = None
    ):
        """Initialize OCR service error.

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


@dataclass
class OCRResult:
    """Text extracted from one file, with the scores derived from it."""

    extracted_text: str
    confidence: float
    word_count: int
    pages: int
    has_handwriting: bool
    handwriting_score: float
    readability_score: float
    provider: str
    model: Optional[str] = None

    def to_metadata(self) -> Dict[str, Any]:
        """Summary stored next to the extracted text in the processed file."""
        return {
            "provider": self.provider,
            "confidence": self.confidence,
            "wordCount": self.word_count,
            "pages": self.pages,
            "hasHandwriting": self.has_handwriting,
            "model": self.model,
        }


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split()) if text else 0


def _validate_file(file_path: Path) -> str:
    """Check the file exists and has a supported extension.

    Returns:
        The lower-cased extension.
    """
    if not file_path.exists():
        raise OCRServiceError(f"File not found: {file_path}", error_code="FILE_NOT_FOUND")

    ext = file_path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise OCRServiceError(
            f"Unsupported file format: {ext}", error_code="UNSUPPORTED_FORMAT"
        )
    return ext


def extract_docx_text(file_path: Path) -> OCRResult:
    """Read the paragraphs of a Word document without an AI call."""
    try:
        document = docx.Document(str(file_path))
    except Exception as e:
        raise OCRServiceError(
            f"Failed to read Word document: {e}", error_code="DOCX_ERROR", original_error=e
        )

    text = "\n".join(p.text for p in document.paragraphs if p.text.strip())
    return OCRResult(
        extracted_text=text,
        confidence=DOCX_CONFIDENCE,
        word_count=count_words(text),
        pages=1,
        has_handwriting=False,
        handwriting_score=0,
        readability_score=DOCX_CONFIDENCE,
        provider=PROVIDER_DOCX,
    )


class GroqVisionOCRService(BaseService):
    """OCR through a Groq-hosted vision model, one request per page."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = GROQ_DEFAULT_BASE_URL,
        model: str = DEFAULT_GROQ_VISION_MODEL,
        timeout: float = 120,
        client: Optional[OpenAI] = None,
    ):
        super().__init__(
            "groq_ocr", api_key=api_key, base_url=base_url, model=model, timeout=timeout
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
                raise OCRServiceError(
                    f"Groq {ERROR_NO_API_KEY}. Set GROQ_API_KEY in .env",
                    error_code="NO_API_KEY",
                )
            self._client = OpenAI(
                api_key=self.api_key, base_url=self.base_url, timeout=self.timeout
            )
        return self._client

    def _page_images(self, file_path: Path, ext: str) -> List[Tuple[str, bytes]]:
        """Return ``(mime_type, bytes)`` for every page of the file.

        PDF pages are rendered to PNG in memory.
        """
        if ext != ".pdf":
            return [(MIME_TYPES.get(ext, "image/jpeg"), file_path.read_bytes())]

        try:
            with fitz.open(str(file_path)) as pdf:
                return [
                    ("image/png", page.get_pixmap(dpi=PDF_RENDER_DPI).tobytes("png"))
                    for page in pdf
                ]
        except Exception as e:
            raise OCRServiceError(
                f"Failed to convert PDF to images: {e}",
                error_code="PDF_CONVERSION_ERROR",
                original_error=e,
            )

    def _extract_page(self, mime_type: str, image_bytes: bytes) -> str:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": GROQ_EXTRACTION_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
                        },
                    ],
                }
            ],
            temperature=0.5,
            max_tokens=1024,
            top_p=1,
            stream=False,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def extract_text(self, file_path) -> OCRResult:
        """Transcribe every page of an image or PDF file.

        Raises:
            OCRServiceError: on a missing key, unreadable file or API failure
        """
        file_path = Path(file_path)
        ext = _validate_file(file_path)

        with self.track_request("extract_text"):
            pages = self._page_images(file_path, ext)
            texts = []
            start = time.time()
            for index, (mime_type, image_bytes) in enumerate(pages, start=1):
                logger.debug(f"Groq OCR page {index}/{len(pages)} of {file_path.name}")
                try:
                    texts.append(self._extract_page(mime_type, image_bytes))
                except OCRServiceError:
                    raise
                except Exception as e:
                    logger.log_ocr_operation(str(file_path), success=False)
                    raise OCRServiceError(
                        f"Groq API error: {e}", error_code="API_ERROR", original_error=e
                    )
            logger.log_api_call(self.base_url, "POST", 200, time.time() - start)

        extracted_text = "\n\n".join(texts).strip()
        confidence = GROQ_PAGE_CONFIDENCE if pages else 0
        logger.log_ocr_operation(str(file_path), success=True, confidence=confidence)

        return OCRResult(
            extracted_text=extracted_text,
            confidence=confidence,
            word_count=sum(count_words(text) for text in texts),
            pages=len(pages),
            has_handwriting=True,
            handwriting_score=DEFAULT_HANDWRITING_SCORE,
            readability_score=DEFAULT_HANDWRITING_SCORE,
            provider=PROVIDER_GROQ,
            model=self.model,
        )


class GeminiOCRService(BaseService):
    """OCR through Google Gemini; the whole file is sent inline in one request."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = DEFAULT_GEMINI_MODEL,
        model: Optional[Any] = None,
    ):
        super().__init__("gemini_ocr", api_key=api_key, model_name=model_name)
        self.api_key = api_key
        self.model_name = model_name
        self._model = model

    def is_available(self) -> bool:
        return bool(self._model or self.api_key)

    @property
    def model(self):
        if self._model is None:
            if not self.api_key:
                raise OCRServiceError(
                    f"Gemini {ERROR_NO_API_KEY}. Set GEMINI_API_KEY in .env",
                    error_code="NO_API_KEY",
                )
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def extract_text(self, file_path) -> OCRResult:
        """Transcribe an image or PDF file in a single request.

        Raises:
            OCRServiceError: on a missing key, unreadable file or API failure
        """
        file_path = Path(file_path)
        ext = _validate_file(file_path)
        mime_type = MIME_TYPES.get(ext, "image/jpeg")

        with self.track_request("extract_text"):
            model = self.model
            start = time.time()
            try:
                response = model.generate_content(
                    [
                        {"mime_type": mime_type, "data": file_path.read_bytes()},
                        GEMINI_EXTRACTION_PROMPT,
                    ]
                )
                extracted_text = response.text or ""
            except Exception as e:
                logger.log_ocr_operation(str(file_path), success=False)
                raise OCRServiceError(
                    f"Gemini OCR processing failed: {e}",
                    error_code="API_ERROR",
                    original_error=e,
                )
            logger.log_api_call(self.model_name, "POST", 200, time.time() - start)

        word_count = count_words(extracted_text)
        confidence = GEMINI_TEXT_CONFIDENCE if extracted_text else 0
        logger.log_ocr_operation(str(file_path), success=True, confidence=confidence)

        return OCRResult(
            extracted_text=extracted_text,
            confidence=confidence,
            word_count=word_count,
            pages=1,
            has_handwriting=word_count > 0,
            handwriting_score=confidence,
            readability_score=confidence,
            provider=PROVIDER_GEMINI,
            model=self.model_name,
        )


def get_ocr_service(config: Mapping[str, Any]):
    """Registered OCR service selected by ``OCR_PROVIDER``."""
    provider = (config.get("OCR_PROVIDER") or PROVIDER_GROQ).lower()
    if provider == PROVIDER_GEMINI:
        return ServiceRegistry.get_or_create(
            GeminiOCRService,
            api_key=config.get("GEMINI_API_KEY"),
            model_name=config.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        )
    if provider == PROVIDER_GROQ:
        return ServiceRegistry.get_or_create(
            GroqVisionOCRService,
            api_key=config.get("GROQ_API_KEY"),
            base_url=config.get("GROQ_BASE_URL") or GROQ_DEFAULT_BASE_URL,
            model=config.get("GROQ_VISION_MODEL") or DEFAULT_GROQ_VISION_MODEL,
            timeout=config.get("API_TIMEOUT") or 120,
        )
    raise OCRServiceError(f"Unknown OCR provider: {provider}", error_code="CONFIG_ERROR")


def extract_text(file_path, config: Mapping[str, Any]) -> OCRResult:
    """Extract text from any supported upload.

    Word documents are read locally; everything else goes to the configured
    vision provider.
    """
    file_path = Path(file_path)
    if file_path.suffix.lower() == ".docx":
        _validate_file(file_path)
        result = extract_docx_text(file_path)
        logger.log_ocr_operation(str(file_path), success=True, confidence=result.confidence)
        return result
    return get_ocr_service(config).extract_text(file_path)
