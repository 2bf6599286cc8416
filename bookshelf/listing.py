"""
Bookshelf listing pipeline.

Fetches a user's entries in one partition, projects them to listing rows,
then filters, sorts and paginates them in memory.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field
from pyuca import Collator

from .database import BookshelfStore, is_valid_id
from .errors import Unauthorized, ValidationError
from .models import BookStatus, Identity, ListedEntry, ShelfPage
from .partition import Partition

logger = structlog.get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20

LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")

collator = Collator()


class SortOrder(str, Enum):
    """Sort order options."""
    ASC = "asc"
    DESC = "desc"


def query_param_to_number(value: Any, default: int) -> int:
    """
    Parse a positive integer query value, falling back to the default.

    Leading digits are read and trailing characters ignored, so "2abc" is 2.
    """
    if value is None:
        return default
    match = LEADING_INTEGER.match(str(value))
    if match is None:
        return default
    number = int(match.group(1))
    return number if number > 0 else default


def collation_key(text: str) -> Tuple[int, ...]:
    """Unicode collation key for case-insensitive, accent-aware ordering."""
    return collator.sort_key(text.casefold())


def string_matches(text: str, token: str) -> bool:
    """Case-insensitive substring match."""
    return token.casefold() in text.casefold()


def _query_error(param: str, value: Any, msg: str) -> Dict[str, Any]:
    return {"type": "field", "value": value, "msg": msg, "path": param, "location": "query"}


class ListingQuery(BaseModel):
    """Filters, sort instructions and page selection for a listing."""
    statuses: Optional[List[BookStatus]] = Field(None, description="Statuses to include")
    owner: Optional[str] = Field(None, description="Owner name substring")
    title: Optional[str] = Field(None, description="Title substring")
    author: Optional[str] = Field(None, description="Author substring")
    owner_sort: Optional[SortOrder] = Field(None, description="Owner name sort order")
    title_sort: Optional[SortOrder] = Field(None, description="Title sort order")
    page: int = Field(DEFAULT_PAGE, ge=1, description="Page number (1-based)")
    limit: int = Field(DEFAULT_LIMIT, ge=1, description="Items per page")

    @classmethod
    def from_params(
        cls,
        partition: Partition,
        status: Optional[str] = None,
        owner: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        owner_sort: Optional[str] = None,
        title_sort: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> "ListingQuery":
        """
        Build a query from raw query string values.

        Status and owner options do not apply to the wishlist and are
        dropped there without validation.

        Raises:
            ValidationError: If a status or sort value is not allowed
        """
        errors = []

        statuses = None
        if status is not None and not partition.is_wishlist:
            try:
                statuses = [BookStatus.parse(value) for value in status.split(",")]
            except ValueError:
                errors.append(_query_error("status", status, "Status query values must be valid status values."))

        sorts = {}
        for param, value in (("owner_sort", owner_sort), ("title_sort", title_sort)):
            if value is None:
                continue
            try:
                sorts[param] = SortOrder(value)
            except ValueError:
                errors.append(_query_error(param, value, "Sort value must be 'asc' or 'desc'."))

        if errors:
            raise ValidationError(errors, "Invalid query values")

        if partition.is_wishlist:
            owner = None
            sorts.pop("owner_sort", None)

        return cls(
            statuses=statuses,
            owner=owner,
            title=title,
            author=author,
            page=query_param_to_number(page, DEFAULT_PAGE),
            limit=query_param_to_number(limit, DEFAULT_LIMIT),
            **sorts,
        )

    def matches(self, row: ListedEntry) -> bool:
        """Whether a row passes every supplied filter."""
        if self.statuses and row.status not in self.statuses:
            return False
        if self.owner and not string_matches(row.owner_name, self.owner):
            return False
        if self.title and not string_matches(row.title, self.title):
            return False
        if self.author and not any(string_matches(name, self.author) for name in row.author):
            return False
        return True


def sort_rows(rows: List[ListedEntry], query: ListingQuery) -> List[ListedEntry]:
    """
    Apply the owner sort, then the title sort.

    Each pass is a stable sort over the whole sequence, so the title order is
    primary and the owner order only breaks ties between equal titles.
    Strings compare by the Unicode collation algorithm, so accented
    letters sort next to their base letters.
    """
    passes = (
        (query.owner_sort, lambda row: collation_key(row.owner_name)),
        (query.title_sort, lambda row: collation_key(row.title)),
    )
    for order, key in passes:
        if order is not None:
            rows = sorted(rows, key=key, reverse=order == SortOrder.DESC)
    return rows


def paginate(rows: List[Any], page: int, limit: int) -> Tuple[List[Any], int, int]:
    """
    Slice one page out of a sequence.

    A page past the end is clamped to the last page.

    Returns:
        Tuple of (page rows, page number, last page number)
    """
    total = len(rows)
    last_page = total // limit + (1 if total % limit else 0)
    page = max(1, min(page, last_page))
    start = (page - 1) * limit
    return rows[start:start + limit], page, last_page


class ListingPipeline:
    """Produces one page of a user's shelf or wishlist."""

    def __init__(self, store: BookshelfStore):
        self.store = store

    async def list(
        self,
        identity: Optional[Identity],
        partition: Partition,
        query: ListingQuery,
    ) -> ShelfPage:
        """
        List a page of entries.

        Args:
            identity: Verified caller identity, if any
            partition: Shelf or wishlist
            query: Filters, sorting and page selection

        Returns:
            ShelfPage with the selected rows and page numbers

        Raises:
            Unauthorized: If there is no verified identity or its id is malformed
        """
        if identity is None or not is_valid_id(identity.id):
            raise Unauthorized()

        entries = await self.store.find_entries(identity.id, partition)
        rows = [ListedEntry.from_entry(entry) for entry in entries]
        rows = [row for row in rows if query.matches(row)]
        rows = sort_rows(rows, query)
        books, page, last_page = paginate(rows, query.page, query.limit)

        logger.debug(
            "Listed entries",
            user_id=identity.id,
            partition=partition.name,
            total=len(rows),
            page=page,
            last_page=last_page,
        )
        return ShelfPage(books=books, page=page, last_page=last_page)
