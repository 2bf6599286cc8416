"""
Configuration management using environment variables.
Handles storage, catalog and logging settings with validation and defaults.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class BookshelfConfig(BaseSettings):
    """
    Configuration class for the bookshelf core.
    Uses pydantic BaseSettings for environment variable management.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="my_bookshelf")

    # Catalog Configuration
    catalog_base_url: str = Field(default="https://openlibrary.org")
    catalog_timeout: float = Field(default=10.0)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    @field_validator("catalog_timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Ensure the catalog timeout is bounded."""
        if v <= 0 or v > 120:
            raise ValueError("catalog_timeout must be between 0 and 120 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_user_agent(self) -> str:
        """Get user agent string for catalog requests."""
        return "MyBookshelf-Backend/1.0"

    def get_headers(self) -> dict:
        """Get default headers for catalog HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "application/json",
        }


# Global configuration instance
config = BookshelfConfig()
