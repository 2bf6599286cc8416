"""
User accounts: registration, credential checks and profile maintenance.
"""

from typing import Any, Dict, List, Optional

import structlog
from pymongo.errors import DuplicateKeyError
from werkzeug.security import check_password_hash, generate_password_hash

from .database import BookshelfStore, is_valid_id
from .errors import InvalidCredentials, NotFound, ValidationError
from .models import Identity, User

logger = structlog.get_logger(__name__)

HASH_METHOD = "pbkdf2:sha256"


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=HASH_METHOD)


def _field_error(path: str, value: Any, msg: str) -> Dict[str, Any]:
    return {"type": "field", "value": value, "msg": msg, "path": path, "location": "body"}


class UserService:
    """Operations on user accounts."""

    def __init__(self, store: BookshelfStore):
        self.store = store

    async def check_unique(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Collect errors for a username or email already taken by another user.

        Args:
            username: Username to check, if any
            email: Email to check, if any
            user_id: The caller's own id, whose records do not count as taken
        """
        errors = []
        if username is not None:
            existing = await self.store.find_user(username=username)
            if existing and existing.id != user_id:
                errors.append(_field_error("username", username, "User with username already exists."))
        if email is not None:
            existing = await self.store.find_user(email=email)
            if existing and existing.id != user_id:
                errors.append(_field_error("email", email, "User with email already exists."))
        return errors

    async def register(self, username: str, email: str, password: str) -> User:
        errors = await self.check_unique(username=username, email=email)
        if errors:
            raise ValidationError(errors)

        user = User(username=username, email=email, password=hash_password(password))
        try:
            return await self.store.insert_user(user)
        except DuplicateKeyError:
            # Registered by a concurrent request after the uniqueness check
            raise ValidationError(await self.check_unique(username=username, email=email))

    async def authenticate(self, username: str, password: str) -> User:
        """
        Check a username and password pair.

        Raises:
            InvalidCredentials: If the user is unknown or the password is wrong
        """
        user = await self.store.find_user(username=username)
        if user is None or not check_password_hash(user.password, password):
            logger.info("Failed login attempt", username=username)
            raise InvalidCredentials()
        return user

    async def get_profile(self, identity: Identity) -> User:
        if not is_valid_id(identity.id):
            raise NotFound("User not found")
        user = await self.store.get_user(identity.id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_profile(
        self,
        identity: Identity,
        username: str,
        email: str,
        old_password: str,
        new_password: Optional[str] = None,
    ) -> User:
        """Update username and email, and the password when a new one is given."""
        errors = await self.check_unique(username=username, email=email, user_id=identity.id)
        if errors:
            raise ValidationError(errors)

        user = await self.get_profile(identity)
        if not check_password_hash(user.password, old_password):
            raise ValidationError(
                [_field_error("oldPassword", None, "Password doesn't match current password.")]
            )

        changes = {"username": username, "email": email}
        if new_password:
            changes["password"] = hash_password(new_password)
        user = await self.store.update_user(user.model_copy(update=changes))
        logger.info("Updated user profile", user_id=user.id)
        return user

    async def delete(self, identity: Identity) -> None:
        """Delete the caller's account together with their collection."""
        if not is_valid_id(identity.id):
            raise NotFound("User not found")
        deleted = await self.store.delete_user(identity.id)
        if deleted != 1:
            raise NotFound("User not found")
