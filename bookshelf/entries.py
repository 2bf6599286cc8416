"""
Add, update, delete and fetch collection entries.

One core serves both the shelf and the wishlist; the Partition passed in
decides which entries are reachable and how statuses are coerced.
"""

from typing import Optional

import structlog

from .database import BookshelfStore, is_valid_id
from .errors import Conflict, Forbidden, NotFound, Unauthorized
from .models import CollectionEntry, EntryFields, Identity, SingleEntry
from .partition import Partition
from .registry import BookRegistry, strip_book_key

logger = structlog.get_logger(__name__)


class EntryService:
    """Mutations on a user's collection entries."""

    def __init__(self, store: BookshelfStore, registry: BookRegistry):
        self.store = store
        self.registry = registry

    async def _load_owned(
        self,
        identity: Optional[Identity],
        partition: Partition,
        entry_id: str,
    ) -> CollectionEntry:
        """
        Load an entry the caller owns within a partition.

        Raises:
            Unauthorized: Without a verified identity
            NotFound: If the id is malformed, unknown, or outside the partition
            Forbidden: If the entry belongs to another user
        """
        if identity is None:
            raise Unauthorized()
        if not is_valid_id(entry_id):
            raise NotFound("Book not found")

        entry = await self.store.get_entry(entry_id)
        if entry is None or not partition.contains(entry.status):
            raise NotFound("Book not found")
        if entry.owner != identity.id:
            logger.warning("Entry access denied", entry_id=entry_id, user_id=identity.id)
            raise Forbidden()
        return entry

    async def add(
        self,
        identity: Optional[Identity],
        partition: Partition,
        fields: EntryFields,
    ) -> CollectionEntry:
        """
        Add a book to the caller's collection.

        The book is registered before the entry that references it is written.
        """
        if identity is None or not is_valid_id(identity.id):
            raise Unauthorized()
        user = await self.store.get_user(identity.id)
        if user is None:
            raise Unauthorized()

        book = await self.registry.get_or_create(fields.book_key)
        entry = CollectionEntry(
            owner=user.id,
            book=book,
            status=partition.status_for_add(fields.status),
            other_name=fields.other_name,
            date=fields.date,
        )
        entry = await self.store.insert_entry(entry)
        logger.info(
            "Added entry",
            entry_id=entry.id,
            user_id=user.id,
            book_key=book.key,
            status=entry.status.value,
        )
        return entry

    async def update(
        self,
        identity: Optional[Identity],
        partition: Partition,
        entry_id: str,
        fields: EntryFields,
    ) -> CollectionEntry:
        """Update an entry, re-linking its book when the key changes."""
        current = await self._load_owned(identity, partition, entry_id)

        book = current.book
        if strip_book_key(fields.book_key) != current.book.key:
            book = await self.registry.get_or_create(fields.book_key)

        entry = CollectionEntry(
            id=current.id,
            owner=current.owner,
            book=book,
            status=partition.status_for_update(fields.status, current.status),
            other_name=fields.other_name,
            date=fields.date,
        )
        entry = await self.store.update_entry(entry)
        logger.info(
            "Updated entry",
            entry_id=entry.id,
            book_key=book.key,
            status=entry.status.value,
        )
        return entry

    async def delete(
        self,
        identity: Optional[Identity],
        partition: Partition,
        entry_id: str,
    ) -> None:
        """
        Delete an entry.

        Raises:
            Conflict: If the entry vanished between lookup and delete
        """
        entry = await self._load_owned(identity, partition, entry_id)
        deleted = await self.store.delete_entry(entry.id, entry.owner)
        if deleted != 1:
            logger.warning("Entry already deleted", entry_id=entry_id, deleted_count=deleted)
            raise Conflict("Book was already deleted")
        logger.info("Deleted entry", entry_id=entry_id)

    async def get(
        self,
        identity: Optional[Identity],
        partition: Partition,
        entry_id: str,
    ) -> SingleEntry:
        entry = await self._load_owned(identity, partition, entry_id)
        return SingleEntry.from_entry(entry)
