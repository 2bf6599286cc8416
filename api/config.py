"""
API configuration settings.
"""

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "My Bookshelf API"
    api_version: str = "1.0.0"
    api_description: str = "REST backend for tracking a personal book collection"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"

    # Security Settings
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration: int = 3600  # seconds

    # CORS Settings
    frontend_url: str = "http://localhost:5173"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    def is_development(self) -> bool:
        """Whether error responses may carry diagnostic detail."""
        return self.environment.lower() == "development"


# Global config instance
config = APIConfig()
