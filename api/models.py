"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _required(v: Any, message: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(message)
    return v.strip()


def _check_username(v: Any) -> str:
    v = _required(v, "Username is required.")
    if not (v.isascii() and v.isalnum()):
        raise ValueError("Username must only contain alphanumeric characters (letters and numbers).")
    if not 4 <= len(v) <= 30:
        raise ValueError("Username must be between 4 and 30 characters.")
    return v


def _check_password(v: Any) -> str:
    v = _required(v, "Password is required.")
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters.")
    return v


class UsernameField(BaseModel):
    """Username as submitted for registration or profile update."""
    username: str = Field(None, validate_default=True, description="4-30 letters and digits")

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v):
        return _check_username(v)


class EmailField(BaseModel):
    """Email address as submitted for registration or profile update."""
    email: EmailStr = Field(None, validate_default=True, description="Valid email address")

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v):
        return _required(v, "Email is required.")


class PasswordField(BaseModel):
    """Password as submitted for registration."""
    password: str = Field(None, validate_default=True, description="At least 8 characters")

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)


class RegisterRequest(UsernameField, EmailField, PasswordField):
    """Registration request body."""


class LoginRequest(BaseModel):
    """Login request body."""
    username: str = Field(None, validate_default=True)
    password: str = Field(None, validate_default=True)

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v):
        return _required(v, "Username is required.")

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _required(v, "Password is required.")


class TokenResponse(BaseModel):
    """Issued access token."""
    token: str = Field(..., description="Bearer token")
    expiresIn: int = Field(..., description="Token lifetime in seconds")


class ProfileResponse(BaseModel):
    """Public profile of the current user."""
    username: str
    email: str


class ProfileUpdateRequest(UsernameField, EmailField):
    """Profile update request body."""
    oldPassword: str = Field(None, validate_default=True, description="Current password")
    newPassword: Optional[str] = Field(None, description="Replacement password")

    @field_validator("oldPassword", mode="before")
    @classmethod
    def validate_old_password(cls, v):
        return _required(v, "Password is required.")

    @field_validator("newPassword", mode="before")
    @classmethod
    def validate_new_password(cls, v):
        if v is None:
            return v
        return _check_password(v)


class ErrorResponse(BaseModel):
    """Error response envelope."""
    status: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Error message")
    error: Dict[str, Any] = Field(default_factory=dict, description="Diagnostic detail, outside production only")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
