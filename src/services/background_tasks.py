"""
Background paper processing.

Each uploaded paper is processed by its own daemon thread running inside a
Flask application context: the file is checked, its text extracted by the
configured OCR provider, the analysis results written to the paper and a
processed JSON file saved next to the uploads. Progress is written to the
paper record so clients can poll it.
"""
from typing import Any, Dict, Optional

import math
import threading
from datetime import datetime
from pathlib import Path

from flask import Flask, current_app, has_app_context

from src.constants import (
    ERROR_FILE_NOT_FOUND,
    PAPER_STATUS_ANALYZED,
    PAPER_STATUS_ERROR,
    PAPER_STATUS_PROCESSING,
    STEP_COMPLETED,
    STEP_FAILED,
    STEP_IN_PROGRESS,
)
from src.database.models import Paper, db
from src.exceptions.application_errors import ProcessingError
from src.models.api_responses import ErrorCode
from src.services.ocr_service import OCRResult, extract_text
from src.services.storage_service import write_processed_file
from utils.logger import logger

# Step indexes in the processing step list
STEP_INDEX_UPLOAD = 0
STEP_INDEX_PREPROCESSING = 1
STEP_INDEX_OCR = 2
STEP_INDEX_SAVING = 3

PENDING_EVALUATION_FEEDBACK = "Text extraction complete. Evaluation pending."

# Step statuses that are always persisted immediately
_SAVE_ON_STATUS = (STEP_COMPLETED, STEP_FAILED, STEP_IN_PROGRESS)


def _now() -> str:
    return datetime.utcnow().isoformat()


class ProgressWriter:
    """Writes progress and step transitions to a paper with batched commits.

    A commit happens when the progress is a multiple of 10 or the step status
    is completed, failed or in-progress. Other updates stay pending in the
    session until the next qualifying one.
    """

    def __init__(self, paper: Paper):
        self.paper = paper

    @staticmethod
    def should_save(progress: int, status: Optional[str]) -> bool:
        return progress % 10 == 0 or status in _SAVE_ON_STATUS

    def update(self, progress: int, step_index: int, status: Optional[str]) -> bool:
        """Record progress and, for ``step_index >= 0``, a step transition.

        Returns:
            True if the change was committed.
        """
        paper = self.paper
        paper.processing_progress = progress

        steps = paper.processing_steps or []
        if 0 <= step_index < len(steps):
            steps[step_index]["status"] = status
            steps[step_index]["timestamp"] = _now()
            paper.mark_steps_modified()

        if not self.should_save(progress, status):
            return False

        db.session.commit()
        logger.debug(
            f"Paper {paper.id} progress updated: {progress}% - Step "
            f"{step_index if step_index >= 0 else 'N/A'} - {status}"
        )
        return True


def estimate_grading_time(word_count: int) -> int:
    """Estimated grading time in minutes: one per hundred words, at least five."""
    return max(5, math.ceil(word_count / 100))


def build_analysis_results(ocr_result: OCRResult) -> Dict[str, Any]:
    """Analysis stored on the paper once text extraction finished.

    Grading has not happened yet, so ``detailedAnalysis`` stays empty.
    """
    return {
        "extractedText": ocr_result.extracted_text,
        "handwritingScore": round(ocr_result.handwriting_score),
        "readabilityScore": round(ocr_result.readability_score),
        "estimatedTime": estimate_grading_time(ocr_result.word_count),
        "wordCount": ocr_result.word_count,
        "sectionMarks": {},
        "overallFeedback": PENDING_EVALUATION_FEEDBACK,
        "accuracyScore": round(ocr_result.confidence),
        "detailedAnalysis": None,
    }


def build_processed_data(paper: Paper, ocr_result: OCRResult) -> Dict[str, Any]:
    """Content of the processed JSON file for a paper."""
    return {
        "paperId": paper.id,
        "originalFileName": paper.original_file_name,
        "extractedText": ocr_result.extracted_text,
        "sections": paper.sections,
        "analysisResults": paper.analysis_results,
        "processedAt": _now(),
        "ocrResults": ocr_result.to_metadata(),
    }


def process_paper(paper_id: str) -> bool:
    """Run the processing pipeline for one paper.

    Must be called inside an application context. Failures never propagate:
    they are written to the paper as status ``error``.

    Returns:
        True if the paper reached ``analyzed``.
    """
    logger.info(f"Starting background processing for paper {paper_id}")
    try:
        paper = db.session.get(Paper, paper_id)
        if paper is None:
            logger.error(f"Paper {paper_id} not found")
            return False

        writer = ProgressWriter(paper)
        config = current_app.config

        paper.status = PAPER_STATUS_PROCESSING
        writer.update(10, STEP_INDEX_UPLOAD, STEP_COMPLETED)

        # Preprocessing: the file must exist on disk
        writer.update(20, STEP_INDEX_PREPROCESSING, STEP_IN_PROGRESS)
        if paper.is_config_only:
            raise FileNotFoundError(ERROR_FILE_NOT_FOUND)
        if not Path(paper.file_path).exists():
            raise FileNotFoundError(f"{ERROR_FILE_NOT_FOUND}: {paper.file_path}")
        writer.update(20, STEP_INDEX_PREPROCESSING, STEP_COMPLETED)

        writer.update(50, STEP_INDEX_OCR, STEP_IN_PROGRESS)
        try:
            ocr_result = extract_text(paper.file_path, config)
        except Exception as e:
            writer.update(50, STEP_INDEX_OCR, STEP_FAILED)
            raise ProcessingError(
                f"OCR processing failed: {e}",
                operation="ocr",
                error_code=ErrorCode.OCR_ERROR,
                original_error=e,
            ) from e
        logger.info(
            f"Paper {paper_id}: extracted {ocr_result.word_count} words "
            f"with {ocr_result.provider}"
        )
        writer.update(50, STEP_INDEX_OCR, STEP_COMPLETED)

        writer.update(90, STEP_INDEX_SAVING, STEP_IN_PROGRESS)
        paper.analysis_results = build_analysis_results(ocr_result)
        paper.processed_file_path = write_processed_file(
            config["PROCESSED_FOLDER"], paper.id, build_processed_data(paper, ocr_result)
        )

        paper.status = PAPER_STATUS_ANALYZED
        for step in paper.processing_steps:
            step["status"] = STEP_COMPLETED
            if not step.get("timestamp"):
                step["timestamp"] = _now()
        paper.mark_steps_modified()
        writer.update(100, -1, STEP_COMPLETED)

        logger.info(f"Paper {paper_id} processing completed")
        return True

    except Exception as e:
        logger.log_error_with_context(e, {"paper_id": paper_id, "operation": "process_paper"})
        mark_paper_failed(paper_id)
        return False


def mark_paper_failed(paper_id: str) -> None:
    """Set a paper to ``error`` and fail every step still in progress."""
    try:
        db.session.rollback()
        paper = db.session.get(Paper, paper_id)
        if paper is None:
            logger.error(f"Paper {paper_id} not found when trying to update error status")
            return

        paper.status = PAPER_STATUS_ERROR
        paper.processing_progress = paper.processing_progress or 0
        for step in paper.processing_steps or []:
            if step.get("status") == STEP_IN_PROGRESS:
                step["status"] = STEP_FAILED
                step["timestamp"] = _now()
        paper.mark_steps_modified()
        db.session.commit()
        logger.info(f"Paper {paper_id} status updated to error")
    except Exception as save_error:
        db.session.rollback()
        logger.error(f"Failed to save error status for paper {paper_id}: {save_error}")


class BackgroundTaskService:
    """Starts paper processing without blocking the request."""

    def __init__(self, app: Flask):
        self.app = app

    @property
    def run_in_background(self) -> bool:
        return bool(self.app.config.get("PROCESS_IN_BACKGROUND", True))

    def submit(self, paper_id: str) -> Optional[threading.Thread]:
        """Process a paper on a daemon thread, or inline when background
        processing is disabled.

        Returns:
            The started thread, or None when processing ran inline.
        """
        if not self.run_in_background:
            self._run_inline(paper_id)
            return None

        thread = threading.Thread(
            target=self._run,
            args=(paper_id,),
            name=f"paper-{paper_id[:8]}",
            daemon=True,
        )
        thread.start()
        return thread

    def _run_inline(self, paper_id: str) -> None:
        # Reuse the caller's context (and session) when it belongs to this app
        if has_app_context() and current_app._get_current_object() is self.app:
            process_paper(paper_id)
            return
        with self.app.app_context():
            process_paper(paper_id)

    def _run(self, paper_id: str) -> None:
        with self.app.app_context():
            try:
                process_paper(paper_id)
            finally:
                db.session.remove()
