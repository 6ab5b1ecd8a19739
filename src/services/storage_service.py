"""Storage Service - upload files and processed OCR output on disk."""

import json
import os
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from src.constants import ENCODING_UTF8
from utils.logger import logger


def build_stored_filename(original_name: str) -> str:
    """Unique on-disk name that keeps the original extension."""
    safe_name = secure_filename(original_name or "") or "upload"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"


def save_upload(file: FileStorage, upload_dir: Union[str, Path]) -> Dict[str, str]:
    """Save an uploaded file under a unique name.

    Returns:
        ``file_name`` (stored name), ``original_file_name`` and ``file_path``.
    """
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    stored_name = build_stored_filename(file.filename)
    file_path = upload_dir / stored_name
    file.save(str(file_path))
    logger.log_file_operation("save", str(file_path))

    return {
        "file_name": stored_name,
        "original_file_name": file.filename or stored_name,
        "file_path": str(file_path),
    }


def remove_file(file_path: Optional[str], description: str = "file") -> bool:
    """Delete a file, logging a warning instead of raising on failure.

    Returns:
        True if the file was removed.
    """
    if not file_path:
        return False
    try:
        os.remove(file_path)
        logger.log_file_operation("delete", file_path)
        return True
    except OSError as e:
        logger.warning(f"Error deleting {description} {file_path}: {e}")
        return False


def processed_file_path(processed_dir: Union[str, Path], paper_id: str) -> Path:
    """Location of the processed JSON for a paper."""
    return Path(processed_dir) / f"{paper_id}_processed.json"


def write_processed_file(
    processed_dir: Union[str, Path], paper_id: str, data: Dict[str, Any]
) -> str:
    """Write the processed OCR output for a paper as indented JSON.

    Returns:
        The path of the written file.
    """
    processed_dir = Path(processed_dir)
    processed_dir.mkdir(parents=True, exist_ok=True)

    path = processed_file_path(processed_dir, paper_id)
    with open(path, "w", encoding=ENCODING_UTF8) as f:
        json.dump(data, f, indent=2, default=str)
    logger.log_file_operation("write", str(path))
    return str(path)

