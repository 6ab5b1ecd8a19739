"""
Utils package for common utilities.
"""

from utils.env_loader import load_environment, setup_environment
from utils.logger import Logger, logger, setup_logger

__all__ = ["Logger", "logger", "setup_logger", "load_environment", "setup_environment"]
