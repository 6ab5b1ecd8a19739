"""
Python client for the Answer Paper Grader API.
"""

from .paper_client import PaperClient, PaperClientError

__all__ = ["PaperClient", "PaperClientError"]
