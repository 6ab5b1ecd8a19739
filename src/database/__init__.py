"""
Database package for the Answer Paper Grader.

This package provides the database models and seeding utilities.
"""

from .models import Paper, User, db, default_processing_steps
from .utils import SAMPLE_USERS, DatabaseUtils

__all__ = [
    "db",
    "User",
    "Paper",
    "default_processing_steps",
    "DatabaseUtils",
    "SAMPLE_USERS",
]
