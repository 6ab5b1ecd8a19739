"""
Unified Configuration Management for the Answer Paper Grader.

This module consolidates all configuration settings into a single, centralized
system built from environment variables, with environment-specific overrides
and validation.
"""

import os
import secrets
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from src.constants import (
    AI_PROVIDERS,
    DEFAULT_DATABASE_URL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GROQ_GRADING_MODEL,
    DEFAULT_GROQ_VISION_MODEL,
    DEFAULT_HOST,
    DEFAULT_JWT_EXPIRY_HOURS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_MAX_FILES_PER_UPLOAD,
    DEFAULT_PORT,
    DIR_PROCESSED,
    DIR_UPLOADS,
    GROQ_DEFAULT_BASE_URL,
    PROVIDER_GEMINI,
    PROVIDER_GROQ,
    SUPPORTED_EXTENSIONS,
)
from utils.logger import logger


def load_environment_variables():
    """Load environment variables from multiple .env files with priority."""
    instance_env = Path("instance/.env")
    if instance_env.exists():
        load_dotenv(instance_env, override=False)

    root_env = Path(".env")
    if root_env.exists():
        load_dotenv(root_env, override=False)  # Don't override instance settings


load_environment_variables()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class SecurityConfig:
    """Security-related configuration settings."""

    secret_key: str = ""
    jwt_secret: str = ""
    jwt_expiry_hours: int = DEFAULT_JWT_EXPIRY_HOURS

    def __post_init__(self):
        """Validate security configuration."""
        if not self.jwt_secret:
            self.jwt_secret = self.secret_key
        if self.jwt_expiry_hours <= 0:
            raise ValueError("JWT_EXPIRY_HOURS must be positive")


@dataclass
class DatabaseConfig:
    """Database configuration settings."""

    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False

    def __post_init__(self):
        """Validate database configuration."""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required")


@dataclass
class FileConfig:
    """Upload and processed-output file settings."""

    upload_dir: Path = field(default_factory=lambda: Path(DIR_UPLOADS))
    processed_dir: Optional[Path] = None
    max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    max_files_per_upload: int = DEFAULT_MAX_FILES_PER_UPLOAD
    supported_formats: List[str] = field(
        default_factory=lambda: list(SUPPORTED_EXTENSIONS)
    )
    max_file_size: int = field(init=False)
    max_content_length: int = field(init=False)

    def __post_init__(self):
        """Validate and derive file configuration."""
        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")
        if self.max_files_per_upload <= 0:
            raise ValueError("max_files_per_upload must be positive")

        if self.processed_dir is None:
            self.processed_dir = self.upload_dir / DIR_PROCESSED

        self.max_file_size = self.max_file_size_mb * 1024 * 1024
        # All files of one upload plus room for the form fields
        self.max_content_length = (
            self.max_file_size * self.max_files_per_upload + 1024 * 1024
        )


@dataclass
class APIConfig:
    """External AI provider configuration settings."""

    ocr_provider: str = PROVIDER_GROQ
    grading_provider: str = PROVIDER_GROQ
    groq_api_key: str = ""
    groq_base_url: str = GROQ_DEFAULT_BASE_URL
    groq_vision_model: str = DEFAULT_GROQ_VISION_MODEL
    groq_grading_model: str = DEFAULT_GROQ_GRADING_MODEL
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    api_timeout: int = 120

    def __post_init__(self):
        """Validate API configuration."""
        self.ocr_provider = self.ocr_provider.lower()
        self.grading_provider = self.grading_provider.lower()
        for name, value in (
            ("OCR_PROVIDER", self.ocr_provider),
            ("GRADING_PROVIDER", self.grading_provider),
        ):
            if value not in AI_PROVIDERS:
                raise ValueError(f"{name} must be one of {AI_PROVIDERS}")

    def key_for(self, provider: str) -> str:
        return self.gemini_api_key if provider == PROVIDER_GEMINI else self.groq_api_key


@dataclass
class ProcessingConfig:
    """Background processing settings."""

    process_in_background: bool = True


@dataclass
class SeedConfig:
    """Credentials for the default accounts created at startup."""

    teacher_email: str = ""
    teacher_password: str = ""
    student_email: str = ""
    student_password: str = ""

    @property
    def complete(self) -> bool:
        return all(
            [
                self.teacher_email,
                self.teacher_password,
                self.student_email,
                self.student_password,
            ]
        )


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")


@dataclass
class ServerConfig:
    """Server configuration settings."""

    host: str = DEFAULT_HOST
    port: int = int(DEFAULT_PORT)
    debug: bool = False
    testing: bool = False
    client_url: str = "*"

    def __post_init__(self):
        """Validate server configuration."""
        if not (1 <= self.port <= 65535):
            raise ValueError("port must be between 1 and 65535")


class UnifiedConfig:
    """
    Unified configuration manager that consolidates all application settings.

    Each concern lives in its own dataclass section; ``get_flask_config``
    flattens them into the keys the Flask application reads.
    """

    def __init__(self, environment: str = None):
        """
        Initialize unified configuration.

        Args:
            environment: Environment name (development, testing, production)
        """
        self.environment = environment or os.getenv("FLASK_ENV", "production")
        self._load_configuration()
        self._validate_configuration()

    def _load_configuration(self):
        """Load configuration based on environment."""
        testing = self.environment == "testing"
        secret_key = self._get_secret_key()

        self.security = SecurityConfig(
            secret_key=secret_key,
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_expiry_hours=int(
                os.getenv("JWT_EXPIRY_HOURS", str(DEFAULT_JWT_EXPIRY_HOURS))
            ),
        )

        if testing:
            database_url = "sqlite:///:memory:"
        else:
            database_url = self._resolve_database_url(
                os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
            )
        self.database = DatabaseConfig(
            database_url=database_url,
            database_echo=_env_bool("DATABASE_ECHO", "False"),
        )

        if testing:
            upload_dir = Path(tempfile.mkdtemp(prefix="paper_grader_"))
        else:
            upload_dir = Path(os.getenv("UPLOAD_FOLDER", DIR_UPLOADS))
        self.files = FileConfig(
            upload_dir=upload_dir,
            max_file_size_mb=int(
                os.getenv("MAX_FILE_SIZE_MB", str(DEFAULT_MAX_FILE_SIZE_MB))
            ),
            max_files_per_upload=int(
                os.getenv("MAX_FILES_PER_UPLOAD", str(DEFAULT_MAX_FILES_PER_UPLOAD))
            ),
        )

        self.api = APIConfig(
            ocr_provider=os.getenv("OCR_PROVIDER", PROVIDER_GROQ),
            grading_provider=os.getenv("GRADING_PROVIDER", PROVIDER_GROQ),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            groq_base_url=os.getenv("GROQ_BASE_URL", GROQ_DEFAULT_BASE_URL),
            groq_vision_model=os.getenv("GROQ_VISION_MODEL", DEFAULT_GROQ_VISION_MODEL),
            groq_grading_model=os.getenv(
                "GROQ_GRADING_MODEL", DEFAULT_GROQ_GRADING_MODEL
            ),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            api_timeout=int(os.getenv("API_TIMEOUT", "120")),
        )

        self.processing = ProcessingConfig(
            process_in_background=False
            if testing
            else _env_bool("PROCESS_IN_BACKGROUND", "True"),
        )

        self.seed = SeedConfig(
            teacher_email=os.getenv("TEACHER_EMAIL", ""),
            teacher_password=os.getenv("TEACHER_PASSWORD", ""),
            student_email=os.getenv("STUDENT_EMAIL", ""),
            student_password=os.getenv("STUDENT_PASSWORD", ""),
        )

        self.logging = LoggingConfig(
            log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

        self.server = ServerConfig(
            host=os.getenv("HOST", DEFAULT_HOST),
            port=int(os.getenv("PORT", DEFAULT_PORT)),
            debug=_env_bool("DEBUG", "False"),
            testing=testing,
            client_url=os.getenv("CLIENT_URL", "*"),
        )

    def _get_secret_key(self) -> str:
        """Get or generate a secure secret key."""
        secret_key = os.getenv("SECRET_KEY")
        if not secret_key:
            if self.environment == "production":
                raise ValueError("SECRET_KEY must be set in production environment")
            secret_key = secrets.token_hex(32)
            if self.environment != "testing":
                logger.warning(
                    "Using generated SECRET_KEY. Set SECRET_KEY for stable tokens across restarts."
                )
        return secret_key

    def _resolve_database_url(self, database_url: str) -> str:
        """Resolve relative SQLite paths against the project root."""
        if not database_url.startswith("sqlite:///"):
            return database_url

        db_path = database_url[len("sqlite:///"):]
        if db_path == ":memory:" or os.path.isabs(db_path):
            return database_url

        project_root = Path(__file__).parent.parent.parent
        resolved_path = os.path.abspath(os.path.join(project_root, db_path))
        os.makedirs(os.path.dirname(resolved_path), exist_ok=True)
        return f"sqlite:///{resolved_path}"

    def _validate_configuration(self):
        """Log warnings for settings that limit functionality."""
        if self.environment == "testing":
            return

        warnings = []
        if not self.api.key_for(self.api.ocr_provider):
            warnings.append(
                f"{self.api.ocr_provider} API key not configured - OCR will fail"
            )
        if not self.api.key_for(self.api.grading_provider):
            warnings.append(
                f"{self.api.grading_provider} API key not configured - grading will fail"
            )
        if not self.seed.complete:
            warnings.append("Default user credentials incomplete - seeding skipped")

        for warning in warnings:
            logger.warning(warning)

        if warnings:
            logger.info(f"Configuration loaded with {len(warnings)} warnings")
        else:
            logger.info("Configuration loaded successfully with no warnings")

    def get_flask_config(self) -> Dict[str, Any]:
        """
        Get Flask-compatible configuration dictionary.

        Returns:
            Dictionary of Flask configuration settings
        """
        engine_options: Dict[str, Any] = {"echo": self.database.database_echo}
        if self.database.database_url.startswith("sqlite"):
            # Worker threads share the database with request threads
            engine_options["connect_args"] = {
                "check_same_thread": False,
                "timeout": 30,
            }

        return {
            "ENV_NAME": self.environment,
            "SECRET_KEY": self.security.secret_key,
            "JWT_SECRET": self.security.jwt_secret,
            "JWT_EXPIRY_HOURS": self.security.jwt_expiry_hours,
            "DEBUG": self.server.debug,
            "TESTING": self.server.testing,
            "CLIENT_URL": self.server.client_url,
            "SQLALCHEMY_DATABASE_URI": self.database.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SQLALCHEMY_ENGINE_OPTIONS": engine_options,
            "WTF_CSRF_ENABLED": False,
            "MAX_CONTENT_LENGTH": self.files.max_content_length,
            "UPLOAD_FOLDER": str(self.files.upload_dir),
            "PROCESSED_FOLDER": str(self.files.processed_dir),
            "MAX_FILE_SIZE": self.files.max_file_size,
            "MAX_FILES_PER_UPLOAD": self.files.max_files_per_upload,
            "SUPPORTED_FORMATS": self.files.supported_formats,
            "OCR_PROVIDER": self.api.ocr_provider,
            "GRADING_PROVIDER": self.api.grading_provider,
            "GROQ_API_KEY": self.api.groq_api_key,
            "GROQ_BASE_URL": self.api.groq_base_url,
            "GROQ_VISION_MODEL": self.api.groq_vision_model,
            "GROQ_GRADING_MODEL": self.api.groq_grading_model,
            "GEMINI_API_KEY": self.api.gemini_api_key,
            "GEMINI_MODEL": self.api.gemini_model,
            "API_TIMEOUT": self.api.api_timeout,
            "PROCESS_IN_BACKGROUND": self.processing.process_in_background,
            "TEACHER_EMAIL": self.seed.teacher_email,
            "TEACHER_PASSWORD": self.seed.teacher_password,
            "STUDENT_EMAIL": self.seed.student_email,
            "STUDENT_PASSWORD": self.seed.student_password,
        }

    def get_configuration_summary(self) -> Dict[str, Any]:
        """
        Get a summary of current configuration settings without secrets.

        Returns:
            Dictionary containing configuration summary
        """
        return {
            "environment": self.environment,
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "debug": self.server.debug,
            },
            "database": {
                "type": "sqlite"
                if self.database.database_url.startswith("sqlite")
                else "other",
            },
            "files": {
                "max_size_mb": self.files.max_file_size_mb,
                "max_files": self.files.max_files_per_upload,
            },
            "api": {
                "ocr_provider": self.api.ocr_provider,
                "grading_provider": self.api.grading_provider,
                "ocr_configured": bool(self.api.key_for(self.api.ocr_provider)),
                "grading_configured": bool(
                    self.api.key_for(self.api.grading_provider)
                ),
            },
            "processing": {
                "background": self.processing.process_in_background,
            },
        }
