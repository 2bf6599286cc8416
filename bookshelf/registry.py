"""
Registry of canonical book records, deduplicated by catalog key.
"""

import re

import structlog
from pymongo.errors import DuplicateKeyError

from .catalog import OpenLibraryClient
from .database import BookshelfStore
from .errors import RegistryConflictError
from .models import Book

logger = structlog.get_logger(__name__)

WORKS_PREFIX = re.compile(r"^/works/")


def strip_book_key(book_key: str) -> str:
    """Remove a leading /works/ path segment from a catalog key."""
    return WORKS_PREFIX.sub("", book_key)


class BookRegistry:
    """Looks up canonical books, creating them from the catalog on a miss."""

    def __init__(self, store: BookshelfStore, catalog: OpenLibraryClient):
        self.store = store
        self.catalog = catalog

    async def get_or_create(self, raw_key: str) -> Book:
        """
        Get the book for a catalog key, creating it if it does not exist yet.

        Two requests may race to create the same book; the unique index on
        the key lets one win and the other re-reads the winner's record.

        Args:
            raw_key: Catalog key, with or without the /works/ prefix

        Returns:
            The stored Book
        """
        key = strip_book_key(raw_key)
        book = await self.store.find_book_by_key(key)
        if book:
            return book

        catalog_book = await self.catalog.lookup_book(key)
        book = Book(
            key=strip_book_key(catalog_book.key),
            title=catalog_book.title,
            author=catalog_book.authors,
        )

        try:
            created = await self.store.insert_book(book)
            logger.info("Registered new book", book_key=created.key, title=created.title)
            return created
        except DuplicateKeyError:
            logger.info("Book created concurrently, re-reading", book_key=book.key)

        existing = await self.store.find_book_by_key(book.key)
        if existing is None:
            logger.error("Book missing after duplicate key error", book_key=book.key)
            raise RegistryConflictError()
        return existing
