"""
Service modules for external integrations.
"""

# Import service classes only (no initialization)
from .grading_service import (
    GeminiGradingService,
    GradingServiceError,
    GroqGradingService,
    get_grading_service,
    grade_paper,
)
from .ocr_service import (
    GeminiOCRService,
    GroqVisionOCRService,
    OCRResult,
    OCRServiceError,
    extract_text,
    get_ocr_service,
)

__all__ = [
    "OCRResult",
    "OCRServiceError",
    "GroqVisionOCRService",
    "GeminiOCRService",
    "get_ocr_service",
    "extract_text",
    "GradingServiceError",
    "GroqGradingService",
    "GeminiGradingService",
    "get_grading_service",
    "grade_paper",
]
