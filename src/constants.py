"""
Application Constants

This module contains the hard-coded strings and configuration constants
used throughout the paper grader to keep them in one place.
"""

# Environment variable names
ENV_FLASK_APP = "FLASK_APP"
ENV_FLASK_ENV = "FLASK_ENV"
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_DEBUG = "DEBUG"
ENV_DATABASE_URL = "DATABASE_URL"
ENV_SECRET_KEY = "SECRET_KEY"
ENV_JWT_SECRET = "JWT_SECRET"
ENV_GROQ_API_KEY = "GROQ_API_KEY"
ENV_GEMINI_API_KEY = "GEMINI_API_KEY"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_PYTHONIOENCODING = "PYTHONIOENCODING"

# Default values
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = "5000"
DEFAULT_DEBUG = "False"
DEFAULT_DATABASE_URL = "sqlite:///paper_grader.db"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ENCODING = "utf-8"

# Flask application defaults
DEFAULT_FLASK_APP = "webapp.app"
DEFAULT_FLASK_ENV = "development"

# User roles
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
USER_ROLES = [ROLE_TEACHER, ROLE_STUDENT]
DEFAULT_ROLL_NUMBER = "N/A"

# Paper status values
PAPER_STATUS_UPLOADED = "uploaded"
PAPER_STATUS_PROCESSING = "processing"
PAPER_STATUS_ANALYZED = "analyzed"
PAPER_STATUS_ERROR = "error"
PAPER_STATUSES = [
    PAPER_STATUS_UPLOADED,
    PAPER_STATUS_PROCESSING,
    PAPER_STATUS_ANALYZED,
    PAPER_STATUS_ERROR,
]
TERMINAL_PAPER_STATUSES = [PAPER_STATUS_ANALYZED, PAPER_STATUS_ERROR]

# Processing step status values
STEP_PENDING = "pending"
STEP_IN_PROGRESS = "in-progress"
STEP_COMPLETED = "completed"
STEP_FAILED = "failed"
STEP_STATUSES = [STEP_PENDING, STEP_IN_PROGRESS, STEP_COMPLETED, STEP_FAILED]

# Processing step names, in pipeline order
STEP_UPLOAD = "Uploading File"
STEP_PREPROCESSING = "Image Preprocessing"
STEP_OCR = "Text Extraction (OCR)"
STEP_SAVING = "Saving Results"
PROCESSING_STEP_NAMES = [STEP_UPLOAD, STEP_PREPROCESSING, STEP_OCR, STEP_SAVING]

# Marker used for papers saved without a file
CONFIG_ONLY = "config-only"

# Grading defaults
DEFAULT_GRADING_SETTINGS = {
    "autoDistribute": True,
    "includeSubsections": False,
    "negativeMarking": False,
    "passingPercentage": 40,
}
DEFAULT_GRADING_MODE = "section"
# Settings assumed by the grading endpoint when the request sends none
DEFAULT_REQUEST_GRADING_SETTINGS = {"passingPercentage": 40, "negativeMarking": False}

# File processing constants
SUPPORTED_IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
SUPPORTED_DOCUMENT_EXTENSIONS = [".pdf", ".docx"]
SUPPORTED_EXTENSIONS = SUPPORTED_IMAGE_EXTENSIONS + SUPPORTED_DOCUMENT_EXTENSIONS
MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
}

# Directory names
DIR_UPLOADS = "uploads"
DIR_PROCESSED = "processed"
DIR_LOGS = "logs"
DIR_INSTANCE = "instance"

# Upload form field name
UPLOAD_FIELD_NAME = "files"

# AI providers
PROVIDER_GROQ = "groq"
PROVIDER_GEMINI = "gemini"
PROVIDER_DOCX = "docx"
AI_PROVIDERS = [PROVIDER_GROQ, PROVIDER_GEMINI]

# API endpoints and models
GROQ_DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_VISION_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"
DEFAULT_GROQ_GRADING_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"

# OCR heuristics; hosted models report no confidence of their own
GROQ_PAGE_CONFIDENCE = 90
GEMINI_TEXT_CONFIDENCE = 85
DOCX_CONFIDENCE = 100
DEFAULT_HANDWRITING_SCORE = 85
PDF_RENDER_DPI = 150

# Size limits
DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_MAX_FILES_PER_UPLOAD = 10

# Token settings
DEFAULT_JWT_EXPIRY_HOURS = 2
JWT_ALGORITHM = "HS256"

# Logging settings
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_LOG_BACKUP_COUNT = 5

# Client polling
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_POLL_TIMEOUT = 600.0

# Error messages
ERROR_NO_API_KEY = "API key not configured"
ERROR_GRADING_FAILED = "AI grading failed"
ERROR_FILE_NOT_FOUND = "File not found for processing"

# Status indicators
STATUS_HEALTHY = "healthy"
STATUS_UNHEALTHY = "unhealthy"

# User interface messages
UI_SHUTDOWN_MESSAGE = "Shutting down server..."
UI_STARTUP_MESSAGE = "Starting Answer Paper Grader API..."
UI_PRESS_CTRL_C = "Press Ctrl+C to stop the server"

# Encoding
ENCODING_UTF8 = "utf-8"
