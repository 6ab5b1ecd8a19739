#!/usr/bin/env python3
"""
Centralized environment variable loading utility.

This module provides a consistent way to load environment variables
from .env files throughout the application.
"""

import shutil
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_environment(env_file: Optional[str] = None, project_root: Optional[Path] = None) -> Optional[Path]:
    """
    Load environment variables from .env file(s) with proper precedence.

    This function loads the first file found in the following order:
    1. instance/.env (highest priority)
    2. .env (project root)

    Variables already present in the process environment are kept.

    Args:
        env_file: Specific .env file to load. If None, uses standard precedence.
        project_root: Project root directory. If None, auto-detects.

    Returns:
        The path that was loaded, or None when no file was found.
    """
    if project_root is None:
        project_root = _get_project_root()

    if env_file:
        env_files = [Path(env_file)]
    else:
        env_files = [
            project_root / "instance" / ".env",
            project_root / ".env",
        ]

    for env_path in env_files:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return env_path

    return None


def ensure_env_file_exists(project_root: Optional[Path] = None) -> bool:
    """
    Ensure a .env file exists, creating it from .env.example if needed.

    Args:
        project_root: Project root directory. If None, auto-detects.

    Returns:
        bool: True if .env file exists or was created, False otherwise.
    """
    if project_root is None:
        project_root = _get_project_root()

    env_file = project_root / ".env"
    env_example = project_root / ".env.example"

    if env_file.exists():
        return True

    if env_example.exists():
        shutil.copy2(env_example, env_file)
        return True

    return False


def ensure_instance_folder(project_root: Optional[Path] = None) -> Path:
    """
    Ensure the instance folder exists for Flask app configuration.

    Args:
        project_root: Project root directory. If None, auto-detects.
    """
    if project_root is None:
        project_root = _get_project_root()

    instance_folder = project_root / "instance"
    instance_folder.mkdir(exist_ok=True)
    return instance_folder


def setup_environment(project_root: Optional[Path] = None) -> None:
    """
    Complete environment setup: create folders and load .env files.

    Args:
        project_root: Project root directory. If None, auto-detects.
    """
    if project_root is None:
        project_root = _get_project_root()

    ensure_instance_folder(project_root)
    ensure_env_file_exists(project_root)
    load_environment(project_root=project_root)


def _get_project_root() -> Path:
    """
    Get the project root directory.

    Returns:
        Path: The project root directory path.
    """
    indicators = [
        "setup.py",
        "run_app.py",
        ".gitignore",
        "README.md",
    ]

    current_path = Path.cwd()
    for path in [current_path] + list(current_path.parents):
        if any((path / indicator).exists() for indicator in indicators):
            return path

    return current_path
