"""
Pytest configuration and shared fixtures.
"""

import datetime
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash

from bookshelf.catalog import OpenLibraryClient
from bookshelf.entries import EntryService
from bookshelf.errors import BookNotFoundError
from bookshelf.listing import ListingPipeline
from bookshelf.models import Book, BookStatus, CatalogBook, CollectionEntry, Identity, User
from bookshelf.partition import Partition
from bookshelf.registry import BookRegistry
from bookshelf.users import UserService


class InMemoryStore:
    """
    Stand-in for BookshelfStore keeping documents in dictionaries.

    Mirrors the store's public coroutine methods, including the unique
    constraints on book keys and usernames/emails.
    """

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.books: Dict[str, Book] = {}
        self.entries: Dict[str, CollectionEntry] = {}

    # Synchronous seeding helpers for tests

    def seed_user(self, username: str = "alice", email: Optional[str] = None, password: str = "password123") -> User:
        user = User(
            id=str(ObjectId()),
            username=username,
            email=email or f"{username}@example.com",
            password=generate_password_hash(password, method="pbkdf2:sha256:1000"),
        )
        self.users[user.id] = user
        return user

    def seed_book(self, key: str, title: str, author: Optional[List[str]] = None) -> Book:
        book = Book(id=str(ObjectId()), key=key, title=title, author=author or [])
        self.books[book.id] = book
        return book

    def seed_entry(
        self,
        owner: User,
        book: Book,
        status: BookStatus = BookStatus.DEFAULT,
        other_name: Optional[str] = None,
        date: Optional[datetime.date] = None,
    ) -> CollectionEntry:
        entry = CollectionEntry(
            id=str(ObjectId()),
            owner=owner.id,
            book=book,
            status=status,
            other_name=other_name,
            date=date,
        )
        self.entries[entry.id] = entry
        return entry

    async def health_check(self):
        return {"status": "healthy"}

    # Books

    async def find_book_by_key(self, key: str) -> Optional[Book]:
        for book in self.books.values():
            if book.key == key:
                return book
        return None

    async def insert_book(self, book: Book) -> Book:
        if any(existing.key == book.key for existing in self.books.values()):
            raise DuplicateKeyError(f"E11000 duplicate key error: key {book.key}")
        created = book.model_copy(update={"id": str(ObjectId())})
        self.books[created.id] = created
        return created

    # Entries

    async def find_entries(self, owner_id: str, partition: Partition) -> List[CollectionEntry]:
        return [
            entry.model_copy(deep=True)
            for entry in self.entries.values()
            if entry.owner == owner_id and partition.contains(entry.status)
        ]

    async def get_entry(self, entry_id: str) -> Optional[CollectionEntry]:
        entry = self.entries.get(entry_id)
        return entry.model_copy(deep=True) if entry else None

    async def insert_entry(self, entry: CollectionEntry) -> CollectionEntry:
        created = entry.model_copy(update={"id": str(ObjectId())})
        self.entries[created.id] = created
        return created

    async def update_entry(self, entry: CollectionEntry) -> CollectionEntry:
        self.entries[entry.id] = entry
        return entry

    async def delete_entry(self, entry_id: str, owner_id: str) -> int:
        entry = self.entries.get(entry_id)
        if entry is None or entry.owner != owner_id:
            return 0
        del self.entries[entry_id]
        return 1

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def find_user(self, **fields) -> Optional[User]:
        for user in self.users.values():
            if all(getattr(user, name) == value for name, value in fields.items()):
                return user
        return None

    async def insert_user(self, user: User) -> User:
        for existing in self.users.values():
            if existing.username == user.username or existing.email == user.email:
                raise DuplicateKeyError("E11000 duplicate key error: users")
        created = user.model_copy(update={"id": str(ObjectId())})
        self.users[created.id] = created
        return created

    async def update_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def delete_user(self, user_id: str) -> int:
        if self.users.pop(user_id, None) is None:
            return 0
        for entry_id in [e.id for e in self.entries.values() if e.owner == user_id]:
            del self.entries[entry_id]
        return 1


CATALOG_BOOKS = {
    "OL1W": CatalogBook(key="/works/OL1W", title="The Hobbit", authors=["J.R.R. Tolkien"]),
    "OL2W": CatalogBook(key="/works/OL2W", title="Dune", authors=["Frank Herbert"]),
    "OL3W": CatalogBook(key="/works/OL3W", title="Good Omens", authors=["Terry Pratchett", "Neil Gaiman"]),
}


@pytest.fixture
def store():
    """Create an empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def mock_catalog():
    """Create a mock catalog client serving a few known works."""
    catalog = AsyncMock(spec=OpenLibraryClient)

    async def lookup_book(key):
        if key not in CATALOG_BOOKS:
            raise BookNotFoundError(key)
        return CATALOG_BOOKS[key]

    catalog.lookup_book.side_effect = lookup_book
    return catalog


@pytest.fixture
def registry(store, mock_catalog):
    return BookRegistry(store, mock_catalog)


@pytest.fixture
def entry_service(store, registry):
    return EntryService(store, registry)


@pytest.fixture
def listing(store):
    return ListingPipeline(store)


@pytest.fixture
def user_service(store):
    return UserService(store)


@pytest.fixture
def alice(store):
    """A registered user."""
    return store.seed_user("alice")


@pytest.fixture
def bob(store):
    """Another registered user."""
    return store.seed_user("bobby")


@pytest.fixture
def alice_identity(alice):
    return Identity(id=alice.id)


@pytest.fixture
def bob_identity(bob):
    return Identity(id=bob.id)
