"""
API client for uploading answer papers and following their processing.

Mirrors the upload-and-poll workflow of the web client: log in, upload the
files with their grading configuration, then poll each paper's status until
it is analyzed or failed.
"""

import json
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import requests

from src.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    MIME_TYPES,
    TERMINAL_PAPER_STATUSES,
    UPLOAD_FIELD_NAME,
)
from utils.logger import logger

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class PaperClientError(Exception):
    """Exception raised when the API answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


def _mime_type(path: Path) -> str:
    ext = path.suffix.lower()
    if ext == ".docx":
        return DOCX_MIME_TYPE
    return MIME_TYPES.get(ext, "application/octet-stream")


class PaperClient:
    """Thin wrapper around the REST API."""

    def __init__(self, base_url: str, token: Optional[str] = None, request_timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.request_timeout = request_timeout

    @property
    def headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _handle(self, response: requests.Response) -> Any:
        """Return the decoded body or raise ``PaperClientError``."""
        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            raise PaperClientError(
                message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        return body

    def login(self, email: str, password: str, role: str) -> Dict[str, Any]:
        """Log in and keep the returned token for later requests."""
        response = requests.post(
            self._url("/api/auth/login"),
            json={"email": email, "password": password, "role": role},
            timeout=self.request_timeout,
        )
        body = self._handle(response)
        self.token = body["token"]
        logger.info(f"Logged in as {body['user']['email']} ({role})")
        return body["user"]

    def upload_papers(
        self,
        file_paths: Sequence[Union[str, Path]],
        subject: str,
        total_marks: int,
        sections: List[Dict[str, Any]],
        grading_settings: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Upload files as one multipart request.

        Returns:
            ``{id, fileName, status, progress}`` for every created paper.
        """
        data = {
            "subject": subject,
            "totalMarks": str(total_marks),
            "sections": json.dumps(sections),
        }
        if grading_settings is not None:
            data["gradingSettings"] = json.dumps(grading_settings)
        if user_id:
            data["userId"] = user_id
        if student_id:
            data["studentId"] = student_id

        handles = []
        try:
            files = []
            for file_path in file_paths:
                path = Path(file_path)
                handle = open(path, "rb")
                handles.append(handle)
                files.append((UPLOAD_FIELD_NAME, (path.name, handle, _mime_type(path))))

            response = requests.post(
                self._url("/api/papers/upload/student-papers"),
                headers=self.headers,
                files=files,
                data=data,
                timeout=self.request_timeout,
            )
        finally:
            for handle in handles:
                handle.close()

        body = self._handle(response)
        return body.get("papers", [])

    def get_status(self, paper_id: str) -> Dict[str, Any]:
        """Current processing status of a paper."""
        response = requests.get(
            self._url(f"/api/papers/{paper_id}/status"),
            headers=self.headers,
            timeout=self.request_timeout,
        )
        return self._handle(response)

    def wait_for_paper(
        self,
        paper_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """Poll a paper until it is analyzed or failed.

        Raises:
            TimeoutError: when the paper is still processing after ``timeout``
                seconds
        """
        deadline = time.monotonic() + timeout
        while True:
            status = self.get_status(paper_id)
            if on_update:
                on_update(status)
            if status.get("status") in TERMINAL_PAPER_STATUSES:
                return status
            if time.monotonic() >= deadline:
                raise TimeoutError(
                    f"Paper {paper_id} still {status.get('status')} after {timeout:g}s"
                )
            time.sleep(interval)

    def grade(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a grading request and return the model's evaluation."""
        response = requests.post(
            self._url("/api/grading/grade"),
            headers=self.headers,
            json=payload,
            timeout=self.request_timeout,
        )
        return self._handle(response)

    def save_result(
        self, paper_id: str, result: Any, student_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Attach a grading result to a paper."""
        body = {"result": result}
        if student_id:
            body["studentId"] = student_id
        response = requests.put(
            self._url(f"/api/papers/{paper_id}/result"),
            headers=self.headers,
            json=body,
            timeout=self.request_timeout,
        )
        return self._handle(response)
