"""
Test cases for user account operations.
"""

import pytest
from bson import ObjectId
from werkzeug.security import check_password_hash

from bookshelf.errors import InvalidCredentials, NotFound, ValidationError
from bookshelf.models import BookStatus, Identity


class TestRegistration:
    """Test cases for registering users."""

    @pytest.mark.asyncio
    async def test_register_hashes_password(self, user_service, store):
        user = await user_service.register("carol", "carol@example.com", "secret123")

        assert user.id in store.users
        assert user.admin is False
        assert user.password != "secret123"
        assert check_password_hash(user.password, "secret123")

    @pytest.mark.asyncio
    async def test_taken_username_and_email(self, user_service, alice):
        with pytest.raises(ValidationError) as exc_info:
            await user_service.register("alice", "alice@example.com", "secret123")

        messages = {error["path"]: error["msg"] for error in exc_info.value.errors}
        assert messages == {
            "username": "User with username already exists.",
            "email": "User with email already exists.",
        }

    @pytest.mark.asyncio
    async def test_check_unique_ignores_own_record(self, user_service, alice):
        assert await user_service.check_unique("alice", "alice@example.com", user_id=alice.id) == []
        assert len(await user_service.check_unique("alice", None)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_registration(self, user_service, store, monkeypatch):
        """The unique index catches a user registered after the availability check."""
        insert_user = store.insert_user

        async def insert_after_rival(user):
            store.seed_user(user.username, user.email)
            return await insert_user(user)

        monkeypatch.setattr(store, "insert_user", insert_after_rival)

        with pytest.raises(ValidationError) as exc_info:
            await user_service.register("carol", "carol@example.com", "secret123")
        assert {error["path"] for error in exc_info.value.errors} == {"username", "email"}


class TestAuthentication:
    """Test cases for login credential checks."""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, user_service, alice):
        user = await user_service.authenticate("alice", "password123")
        assert user.id == alice.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("alice", "wrong-password"), ("nobody", "password123")])
    async def test_invalid_credentials(self, user_service, alice, username, password):
        with pytest.raises(InvalidCredentials) as exc_info:
            await user_service.authenticate(username, password)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Username or password is incorrect."


class TestProfile:
    """Test cases for profile maintenance."""

    @pytest.mark.asyncio
    async def test_get_profile(self, user_service, alice, alice_identity):
        user = await user_service.get_profile(alice_identity)
        assert user.username == "alice"
        assert user.email == "alice@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["garbage", str(ObjectId())])
    async def test_get_missing_profile(self, user_service, user_id):
        with pytest.raises(NotFound):
            await user_service.get_profile(Identity(id=user_id))

    @pytest.mark.asyncio
    async def test_update_profile(self, user_service, store, alice_identity):
        user = await user_service.update_profile(
            alice_identity, "alicia", "alicia@example.com", "password123", "newsecret1"
        )

        assert user.username == "alicia"
        assert store.users[user.id].email == "alicia@example.com"
        assert check_password_hash(user.password, "newsecret1")

    @pytest.mark.asyncio
    async def test_update_keeps_password_without_new_one(self, user_service, alice, alice_identity):
        user = await user_service.update_profile(alice_identity, "alice", "alice@example.org", "password123")
        assert user.password == alice.password

    @pytest.mark.asyncio
    async def test_update_with_wrong_password(self, user_service, store, alice, alice_identity):
        with pytest.raises(ValidationError) as exc_info:
            await user_service.update_profile(alice_identity, "alicia", "alice@example.com", "nope")

        assert exc_info.value.errors[0]["path"] == "oldPassword"
        assert exc_info.value.errors[0]["msg"] == "Password doesn't match current password."
        assert store.users[alice.id].username == "alice"

    @pytest.mark.asyncio
    async def test_update_to_taken_username(self, user_service, bob, alice_identity):
        with pytest.raises(ValidationError) as exc_info:
            await user_service.update_profile(alice_identity, "bobby", "alice@example.com", "password123")
        assert exc_info.value.errors[0]["msg"] == "User with username already exists."

    @pytest.mark.asyncio
    async def test_delete_removes_collection(self, user_service, store, alice, bob, alice_identity):
        book = store.seed_book("OL1W", "The Hobbit")
        store.seed_entry(alice, book)
        store.seed_entry(alice, book, BookStatus.WISHLIST)
        kept = store.seed_entry(bob, book)

        await user_service.delete(alice_identity)

        assert alice.id not in store.users
        assert list(store.entries) == [kept.id]
        assert book.id in store.books

    @pytest.mark.asyncio
    async def test_delete_twice(self, user_service, alice_identity):
        await user_service.delete(alice_identity)
        with pytest.raises(NotFound):
            await user_service.delete(alice_identity)
