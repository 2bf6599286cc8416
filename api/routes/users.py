"""
Login, registration and profile routes.
"""

from fastapi import APIRouter, Depends, Response, status

from api.auth import create_access_token, require_identity
from api.config import config
from api.dependencies import get_users
from api.models import (
    EmailField, LoginRequest, PasswordField, ProfileResponse,
    ProfileUpdateRequest, RegisterRequest, TokenResponse, UsernameField
)
from bookshelf.errors import ValidationError
from bookshelf.models import Identity
from bookshelf.users import UserService

router = APIRouter(prefix="/api", tags=["Users"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, users: UserService = Depends(get_users)):
    """Exchange a username and password for a bearer token."""
    user = await users.authenticate(body.username, body.password)
    return TokenResponse(token=create_access_token(user), expiresIn=config.jwt_expiration)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, users: UserService = Depends(get_users)):
    await users.register(body.username, body.email, body.password)
    return Response(status_code=status.HTTP_201_CREATED)


@router.post("/register/username", status_code=status.HTTP_204_NO_CONTENT)
async def validate_username(body: UsernameField, users: UserService = Depends(get_users)):
    """Check a username before submitting the registration form."""
    errors = await users.check_unique(username=body.username)
    if errors:
        raise ValidationError(errors, "Invalid field value")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/register/email", status_code=status.HTTP_204_NO_CONTENT)
async def validate_email(body: EmailField, users: UserService = Depends(get_users)):
    errors = await users.check_unique(email=body.email)
    if errors:
        raise ValidationError(errors, "Invalid field value")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/register/password", status_code=status.HTTP_204_NO_CONTENT)
async def validate_password(body: PasswordField):
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    identity: Identity = Depends(require_identity),
    users: UserService = Depends(get_users),
):
    user = await users.get_profile(identity)
    return ProfileResponse(username=user.username, email=user.email)


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(require_identity),
    users: UserService = Depends(get_users),
):
    user = await users.update_profile(
        identity,
        username=body.username,
        email=body.email,
        old_password=body.oldPassword,
        new_password=body.newPassword,
    )
    return ProfileResponse(username=user.username, email=user.email)


@router.delete("/profile", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    identity: Identity = Depends(require_identity),
    users: UserService = Depends(get_users),
):
    """Delete the account and every book in its collection."""
    await users.delete(identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
