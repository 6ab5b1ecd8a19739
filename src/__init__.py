"""
Answer Paper Grader - backend for uploading and grading exam answer papers.

This package provides functionality for:
- Storing uploaded answer scripts and answer keys
- Extracting text from scans with hosted vision models
- Grading answers against an answer key with a hosted LLM
"""

__version__ = "0.1.0"
__author__ = "Answer Paper Grader Team"
__license__ = "MIT"

# Configuration is loaded by src.config.unified_config when the app is created
