"""
MongoDB database utilities for async operations.
Handles connection, indexing, and CRUD operations for users, books and
collection entries.
"""

import datetime
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from .models import Book, CollectionEntry, User
from .partition import Partition

logger = structlog.get_logger(__name__)


def is_valid_id(value: Any) -> bool:
    """Whether a value is a well-formed document identifier."""
    return isinstance(value, str) and ObjectId.is_valid(value)


def _to_book(doc: Dict[str, Any]) -> Book:
    return Book(
        id=str(doc["_id"]),
        key=doc["key"],
        title=doc["title"],
        author=doc.get("author") or [],
    )


def _to_entry(doc: Dict[str, Any], book_doc: Dict[str, Any]) -> CollectionEntry:
    stored_date = doc.get("date")
    return CollectionEntry(
        id=str(doc["_id"]),
        owner=str(doc["owner"]),
        book=_to_book(book_doc),
        status=doc["status"],
        other_name=doc.get("other_name"),
        date=stored_date.date() if isinstance(stored_date, datetime.datetime) else stored_date,
    )


def _entry_document(entry: CollectionEntry) -> Dict[str, Any]:
    """Convert an entry into its stored form; BSON has no plain date type."""
    doc = {
        "owner": ObjectId(entry.owner),
        "book": ObjectId(entry.book.id),
        "status": entry.status.value,
    }
    if entry.other_name is not None:
        doc["other_name"] = entry.other_name
    if entry.date is not None:
        doc["date"] = datetime.datetime.combine(entry.date, datetime.time.min)
    return doc


def _to_user(doc: Dict[str, Any]) -> User:
    return User(
        id=str(doc["_id"]),
        username=doc["username"],
        email=doc["email"],
        password=doc["password"],
        admin=doc.get("admin", False),
    )


class BookshelfStore:
    """
    Async MongoDB store for the bookshelf.
    Holds the users, books and bookinfos collections.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize the store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    @property
    def users(self):
        return self.database.users

    @property
    def books(self):
        return self.database.books

    @property
    def entries(self):
        return self.database.bookinfos

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique and lookup indexes the bookshelf relies on."""
        try:
            await self.users.create_index("username", unique=True)
            await self.users.create_index("email", unique=True)

            # Deduplicates canonical books under concurrent creation
            await self.books.create_index("key", unique=True)

            await self.entries.create_index([("owner", 1), ("status", 1)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """Ping the database and report its status."""
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    # Books

    async def find_book_by_key(self, key: str) -> Optional[Book]:
        doc = await self.books.find_one({"key": key})
        return _to_book(doc) if doc else None

    async def insert_book(self, book: Book) -> Book:
        """
        Insert a canonical book.

        Raises:
            DuplicateKeyError: If a book with the same key already exists
        """
        result = await self.books.insert_one(
            {"key": book.key, "title": book.title, "author": book.author}
        )
        logger.debug("Inserted book", book_key=book.key)
        return book.model_copy(update={"id": str(result.inserted_id)})

    # Collection entries

    async def _populate(self, docs: List[Dict[str, Any]]) -> List[CollectionEntry]:
        book_ids = list({doc["book"] for doc in docs})
        books = {}
        if book_ids:
            async for book_doc in self.books.find({"_id": {"$in": book_ids}}):
                books[book_doc["_id"]] = book_doc

        entries = []
        for doc in docs:
            book_doc = books.get(doc["book"])
            if book_doc is None:
                logger.warning("Entry references a missing book", entry_id=str(doc["_id"]))
                continue
            entries.append(_to_entry(doc, book_doc))
        return entries

    async def find_entries(self, owner_id: str, partition: Partition) -> List[CollectionEntry]:
        """Get all of an owner's entries in a partition, with books populated."""
        query = {"owner": ObjectId(owner_id), **partition.store_filter()}
        docs = await self.entries.find(query).to_list(length=None)
        return await self._populate(docs)

    async def get_entry(self, entry_id: str) -> Optional[CollectionEntry]:
        doc = await self.entries.find_one({"_id": ObjectId(entry_id)})
        if not doc:
            return None
        entries = await self._populate([doc])
        return entries[0] if entries else None

    async def insert_entry(self, entry: CollectionEntry) -> CollectionEntry:
        result = await self.entries.insert_one(_entry_document(entry))
        logger.debug("Inserted entry", entry_id=str(result.inserted_id), owner=entry.owner)
        return entry.model_copy(update={"id": str(result.inserted_id)})

    async def update_entry(self, entry: CollectionEntry) -> CollectionEntry:
        """Overwrite an entry's fields, unsetting the optional ones it lacks."""
        doc = _entry_document(entry)
        unset = {field: "" for field in ("other_name", "date") if field not in doc}
        update: Dict[str, Any] = {"$set": doc}
        if unset:
            update["$unset"] = unset

        await self.entries.update_one({"_id": ObjectId(entry.id)}, update)
        logger.debug("Updated entry", entry_id=entry.id)
        return entry

    async def delete_entry(self, entry_id: str, owner_id: str) -> int:
        """Delete an entry by id and owner, returning the deleted count."""
        result = await self.entries.delete_one(
            {"_id": ObjectId(entry_id), "owner": ObjectId(owner_id)}
        )
        return result.deleted_count

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        doc = await self.users.find_one({"_id": ObjectId(user_id)})
        return _to_user(doc) if doc else None

    async def find_user(self, **fields: Any) -> Optional[User]:
        """Find a user by exact field values, e.g. username or email."""
        doc = await self.users.find_one(fields)
        return _to_user(doc) if doc else None

    async def insert_user(self, user: User) -> User:
        doc = user.model_dump(exclude={"id"})
        result = await self.users.insert_one(doc)
        logger.info("Registered user", user_id=str(result.inserted_id))
        return user.model_copy(update={"id": str(result.inserted_id)})

    async def update_user(self, user: User) -> User:
        await self.users.update_one(
            {"_id": ObjectId(user.id)},
            {"$set": user.model_dump(exclude={"id"})},
        )
        return user

    async def delete_user(self, user_id: str) -> int:
        """Delete a user and every entry they own."""
        result = await self.users.delete_one({"_id": ObjectId(user_id)})
        if result.deleted_count:
            removed = await self.entries.delete_many({"owner": ObjectId(user_id)})
            logger.info("Deleted user", user_id=user_id, entries_removed=removed.deleted_count)
        return result.deleted_count
