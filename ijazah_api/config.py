"""Configuration management using environment variables.

This module loads configuration from .env file and provides
typed access to configuration values with sensible defaults.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import os
from pathlib import Path
from typing import Optional, List
from dotenv import load_dotenv

# Load .env file from project root
load_dotenv()


class Config:
    """Configuration class for the ijazah platform API.
    
    Loads configuration from environment variables with fallback defaults.
    All values are loaded once at module import time.
    
    Example:
        >>> from ijazah_api.config import config
        >>> print(config.CERTIFICATE_PREFIX)
        'GH'
        >>> print(config.TOKEN_EXPIRY_HOURS)
        24
    """
    
    # Storage Configuration
    DATA_DIR: Path = Path(os.getenv("DATA_DIR", "data"))
    PLATFORM_CONFIG_FILE: Path = Path(os.getenv("PLATFORM_CONFIG_FILE", "config/platform.yml"))
    SCHEMAS_DIR: Path = Path(os.getenv("SCHEMAS_DIR", "schemas"))
    
    # Public URLs
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "https://ijazah.app").rstrip("/")
    MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "http://localhost:8300/media").rstrip("/")
    
    # Uploads
    MEDIA_MAX_BYTES: int = int(os.getenv("MEDIA_MAX_BYTES", str(5 * 1024 * 1024)))
    
    # Authentication
    TOKEN_EXPIRY_HOURS: int = int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))
    PASSWORD_HASH_ITERATIONS: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "260000"))
    
    # Certificates
    CERTIFICATE_PREFIX: str = os.getenv("CERTIFICATE_PREFIX", "GH")
    CERTIFICATE_SECRET_KEY: str = os.getenv("CERTIFICATE_SECRET_KEY", "ijazah-dev-secret")
    QR_DARK_COLOR: str = os.getenv("QR_DARK_COLOR", "#1B4332")
    QR_LIGHT_COLOR: str = os.getenv("QR_LIGHT_COLOR", "#FFFFFF")
    
    # Application workflow
    APPLICATION_EXPIRY_DAYS: int = int(os.getenv("APPLICATION_EXPIRY_DAYS", "180"))
    
    # Email (Resend)
    RESEND_API_KEY: Optional[str] = os.getenv("RESEND_API_KEY")
    RESEND_API_URL: str = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "نظام الإجازة <noreply@ijazah.app>")
    EMAIL_REPLY_TO: str = os.getenv("EMAIL_REPLY_TO", "support@ijazah.app")
    EMAIL_TIMEOUT_SECONDS: float = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    
    # HTTP layer
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    CACHE_ENABLED: bool = os.getenv("CACHE_ENABLED", "true").lower() == "true"
    CACHE_EXPIRE_SECONDS: int = int(os.getenv("CACHE_EXPIRE_SECONDS", "300"))
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    
    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "logs/ijazah_api.log") or None
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    
    @classmethod
    def validate(cls) -> List[str]:
        """Validate configuration and return list of issues.
        
        Returns:
            List of validation error messages. Empty list if all valid.
        
        Example:
            >>> errors = Config.validate()
            >>> if errors:
            ...     print("Configuration errors:", errors)
        """
        errors = []
        
        if cls.TOKEN_EXPIRY_HOURS < 1:
            errors.append(f"TOKEN_EXPIRY_HOURS must be >= 1, got {cls.TOKEN_EXPIRY_HOURS}")
        
        if cls.MEDIA_MAX_BYTES < 1:
            errors.append(f"MEDIA_MAX_BYTES must be >= 1, got {cls.MEDIA_MAX_BYTES}")
        
        if cls.APPLICATION_EXPIRY_DAYS < 1:
            errors.append(f"APPLICATION_EXPIRY_DAYS must be >= 1, got {cls.APPLICATION_EXPIRY_DAYS}")
        
        if not cls.CERTIFICATE_PREFIX.isalnum():
            errors.append(f"CERTIFICATE_PREFIX must be alphanumeric, got {cls.CERTIFICATE_PREFIX!r}")
        
        if cls.CERTIFICATE_SECRET_KEY == "ijazah-dev-secret" and cls.ENVIRONMENT == "production":
            errors.append("CERTIFICATE_SECRET_KEY must be set in production")
        
        return errors
    
    @classmethod
    def print_config(cls):
        """Print current configuration (for debugging)."""
        print("Configuration:")
        print(f"  DATA_DIR: {cls.DATA_DIR}")
        print(f"  PLATFORM_CONFIG_FILE: {cls.PLATFORM_CONFIG_FILE}")
        print(f"  PUBLIC_BASE_URL: {cls.PUBLIC_BASE_URL}")
        print(f"  MEDIA_BASE_URL: {cls.MEDIA_BASE_URL}")
        print(f"  TOKEN_EXPIRY_HOURS: {cls.TOKEN_EXPIRY_HOURS}")
        print(f"  CERTIFICATE_PREFIX: {cls.CERTIFICATE_PREFIX}")
        print(f"  APPLICATION_EXPIRY_DAYS: {cls.APPLICATION_EXPIRY_DAYS}")
        print(f"  EMAIL: {'configured' if cls.RESEND_API_KEY else 'disabled'}")
        print(f"  CACHE_ENABLED: {cls.CACHE_ENABLED}")
        print(f"  RATE_LIMIT_ENABLED: {cls.RATE_LIMIT_ENABLED}")
        print(f"  LOG_LEVEL: {cls.LOG_LEVEL}")


# Global config instance
config = Config()


# Validate configuration on import
_validation_errors = config.validate()
if _validation_errors:
    import warnings
    for error in _validation_errors:
        warnings.warn(f"Configuration warning: {error}")
