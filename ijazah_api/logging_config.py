"""Logging configuration for the ijazah_api application.

This module provides centralized logging configuration for the API
server, its services and the admin tooling.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from .config import config


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    """Create the console handler and, when configured, a rotating file handler."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
        )
    return handlers


def setup_logging(name) -> logging.Logger:
    """Configure logging for the application.
    
    Sets up the root logger with the configured level and a standard format,
    then reduces verbosity for noisy third-party loggers.
    
    Args:
        name: Logger name, typically ``__name__`` of the calling module
    
    Returns:
        Logger instance for the calling module
    """
    numeric_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    
    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        format=config.LOG_FORMAT,
        handlers=_build_handlers(config.LOG_FILE),
        force=True
    )
    
    # Reduce verbosity of noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    
    # Return logger for the calling module
    return logging.getLogger(name)
