"""
WSGI entry point.

Exposes ``app`` for servers such as ``flask --app webapp.app run`` or
gunicorn (``webapp.app:app``).
"""

import os

from src.constants import DEFAULT_FLASK_ENV, ENV_FLASK_ENV
from webapp.app_factory import create_app

app = create_app(os.getenv(ENV_FLASK_ENV, DEFAULT_FLASK_ENV))
