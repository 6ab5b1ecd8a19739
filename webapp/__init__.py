"""
Webapp package for the Answer Paper Grader API.

This package contains the Flask application factory, the blueprints and
the API-wide error handling and authentication.
"""

__version__ = "1.0.0"
__author__ = "Answer Paper Grader Team"

from .app_factory import create_app, create_database_tables

__all__ = ["create_app", "create_database_tables"]
