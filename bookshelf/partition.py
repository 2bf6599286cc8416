"""
Shelf and wishlist partitions of a user's collection.

Both partitions share one listing pipeline and one mutation core; a
Partition tells them which entries are visible, which query options apply
and how a requested status is coerced.
"""

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel

from .models import BookStatus, EntryFields, ShelfEntryFields


class Partition(BaseModel):
    """A view over a user's entries selected by status."""
    name: str
    is_wishlist: bool

    model_config = {"frozen": True}

    @property
    def entry_fields(self) -> Type[EntryFields]:
        """Request body model accepted by this partition."""
        return EntryFields if self.is_wishlist else ShelfEntryFields

    def contains(self, status: BookStatus) -> bool:
        return (status == BookStatus.WISHLIST) == self.is_wishlist

    def store_filter(self) -> Dict[str, Any]:
        """MongoDB filter selecting this partition's statuses."""
        if self.is_wishlist:
            return {"status": BookStatus.WISHLIST.value}
        return {"status": {"$ne": BookStatus.WISHLIST.value}}

    def status_for_add(self, requested: Optional[BookStatus]) -> BookStatus:
        if self.is_wishlist:
            return BookStatus.WISHLIST
        return requested or BookStatus.DEFAULT

    def status_for_update(self, requested: Optional[BookStatus], current: BookStatus) -> BookStatus:
        """
        Status an updated entry ends up with.

        On the wishlist, any explicit non-wishlist status moves the entry onto
        the shelf as an owned copy.
        """
        if requested is None:
            return current
        if self.is_wishlist and requested != BookStatus.WISHLIST:
            return BookStatus.DEFAULT
        return requested


SHELF = Partition(name="shelf", is_wishlist=False)
WISHLIST = Partition(name="wishlist", is_wishlist=True)
