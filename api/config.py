"""
Application configuration using Pydantic Settings.

This module manages all configuration from environment variables.
"""

import os
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "3GPP Excel Table Converter API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "REST API converting bordered 3GPP table workbooks to JSON or CSV"
    API_PREFIX: str = "/api"

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    RELOAD: bool = False

    # File Upload Configuration
    TEMP_UPLOAD_DIR: str = "/tmp/excel_uploads"
    MAX_FILE_SIZE_MB: int = 20
    ALLOWED_EXTENSIONS: List[str] = [".xlsx", ".xlsm"]

    # Workbook Layout
    METADATA_SHEET_NAME: str = "Metadata"
    TABLE_SHEET_NAME: str = "Table"

    # Output
    CSV_VALUE_SEPARATOR: str = "\n"  # Joins multi-cell leaf values in CSV records

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "api.log"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    # Security Configuration
    API_KEY_HEADER: str = "X-API-Key"
    ENABLE_API_KEY_AUTH: bool = False  # Set to True in production
    API_KEYS: List[str] = []

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Create global settings instance
settings = get_settings()


# Ensure temp upload directory exists
def ensure_temp_dir():
    """Ensure temporary upload directory exists."""
    os.makedirs(settings.TEMP_UPLOAD_DIR, exist_ok=True)


ensure_temp_dir()
