"""
Pydantic models for the bookshelf domain.

Defines the canonical book record, per-user collection entries with their
derived display fields, and the listing page returned to clients.
"""

import datetime
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BookStatus(str, Enum):
    """Status of a user's copy of a book."""
    DEFAULT = "Default"
    LENT = "Lent"
    BORROWED = "Borrowed"
    LIBRARY_BORROWED = "LibraryBorrowed"
    WISHLIST = "Wishlist"

    @classmethod
    def parse(cls, value: str) -> "BookStatus":
        """Resolve a status value case-insensitively."""
        for status in cls:
            if status.value.lower() == value.strip().lower():
                return status
        raise ValueError(f"Unknown status: {value}")

    @property
    def keeps_details(self) -> bool:
        """Whether other_name and date are meaningful for this status."""
        return self not in (BookStatus.DEFAULT, BookStatus.WISHLIST)

    def owner_name(self, other_name: Optional[str] = None) -> str:
        return OWNER_NAMES[self](other_name)

    def full_status(self, other_name: Optional[str] = None, on: Optional[datetime.date] = None) -> str:
        return FULL_STATUSES[self](other_name, on)


def format_date(value: datetime.date) -> str:
    """Format a date the way it is shown in status text (2024. 01. 05.)."""
    return value.strftime("%Y. %m. %d.")


def _describe(prefix: str, preposition: str, other_name: Optional[str], on: Optional[datetime.date]) -> str:
    text = prefix
    if other_name:
        text += f" {preposition} {other_name}"
    if on:
        text += f" on {format_date(on)}"
    return text


OWNER_NAMES: Dict[BookStatus, Callable[[Optional[str]], str]] = {
    BookStatus.DEFAULT: lambda other_name: "Me",
    BookStatus.LENT: lambda other_name: "Me",
    BookStatus.BORROWED: lambda other_name: other_name or "Other",
    BookStatus.LIBRARY_BORROWED: lambda other_name: other_name or "Library",
    BookStatus.WISHLIST: lambda other_name: "",
}

FULL_STATUSES: Dict[BookStatus, Callable[[Optional[str], Optional[datetime.date]], str]] = {
    BookStatus.DEFAULT: lambda other_name, on: "Owned",
    BookStatus.LENT: lambda other_name, on: _describe("Lent", "to", other_name, on),
    BookStatus.BORROWED: lambda other_name, on: _describe("Borrowed", "from", other_name, on),
    BookStatus.LIBRARY_BORROWED: lambda other_name, on: _describe(
        "Borrowed", "from", other_name or "library", on
    ),
    BookStatus.WISHLIST: lambda other_name, on: "Wishlist",
}


class Identity(BaseModel):
    """Verified caller identity extracted from a bearer token."""
    id: str = Field(..., description="User identifier")
    admin: bool = Field(default=False, description="Administrator flag")


class User(BaseModel):
    """Registered user account."""
    id: Optional[str] = Field(None, description="User identifier")
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="Hashed password")
    admin: bool = Field(default=False, description="Administrator flag")


class CatalogBook(BaseModel):
    """Book data as returned by the external catalog."""
    key: str = Field(..., description="Catalog work key, e.g. /works/OL1W")
    title: str = Field(..., description="Book title")
    authors: List[str] = Field(default_factory=list, alias="author_name", description="Author names")

    model_config = {"populate_by_name": True}


class Book(BaseModel):
    """Canonical book record shared by all users."""
    id: Optional[str] = Field(None, description="Book identifier")
    key: str = Field(..., description="Catalog key without the /works/ prefix")
    title: str = Field(..., description="Book title")
    author: List[str] = Field(default_factory=list, description="Author names")


class CollectionEntry(BaseModel):
    """A user's copy of a book."""
    id: Optional[str] = Field(None, description="Entry identifier")
    owner: str = Field(..., description="Owning user identifier")
    book: Book = Field(..., description="Linked canonical book")
    status: BookStatus = Field(default=BookStatus.DEFAULT, description="Copy status")
    other_name: Optional[str] = Field(None, description="Who it was lent to or borrowed from")
    date: Optional[datetime.date] = Field(None, description="When it was lent or borrowed")

    @model_validator(mode="after")
    def clear_details(self):
        """Drop other_name and date for statuses that do not use them."""
        if not self.status.keeps_details:
            self.other_name = None
            self.date = None
        return self

    @property
    def owner_name(self) -> str:
        return self.status.owner_name(self.other_name)

    @property
    def full_status(self) -> str:
        return self.status.full_status(self.other_name, self.date)


class EntryFields(BaseModel):
    """Client supplied fields of a collection entry."""

    status_required: ClassVar[bool] = False

    book_key: str = Field(None, validate_default=True, description="Catalog key of the book")
    status: Optional[BookStatus] = Field(None, validate_default=True, description="Copy status")
    other_name: Optional[str] = Field(None, description="Who it was lent to or borrowed from")
    date: Optional[datetime.date] = Field(None, description="When it was lent or borrowed")

    @field_validator("book_key", mode="before")
    @classmethod
    def validate_book_key(cls, v):
        """Book key is required and cannot be blank."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Book key is required.")
        return v.strip()

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if v is None or v == "":
            if cls.status_required:
                raise ValueError("Status is required.")
            return None
        try:
            return BookStatus(v)
        except ValueError:
            raise ValueError("Invalid status.")

    @field_validator("other_name", mode="before")
    @classmethod
    def validate_other_name(cls, v):
        """Name must be 4-30 letters, digits or spaces."""
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("Name must be a string.")
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank.")
        compact = v.replace(" ", "")
        if not (compact.isascii() and compact.isalnum()):
            raise ValueError("Name must only contain alphanumeric characters (letters and numbers).")
        if not 4 <= len(v) <= 30:
            raise ValueError("Name must be between 4 and 30 characters.")
        return v


class ShelfEntryFields(EntryFields):
    """Entry fields accepted on the shelf, where a status is mandatory."""

    status_required: ClassVar[bool] = True


class ListedEntry(BaseModel):
    """One row of a bookshelf listing."""
    id: str = Field(..., description="Entry identifier")
    title: str = Field(..., description="Book title")
    author: List[str] = Field(default_factory=list, description="Author names")
    status: BookStatus = Field(..., description="Copy status")
    full_status: str = Field(..., description="Human readable status")
    owner_name: str = Field(..., description="Who currently holds the book")

    @classmethod
    def from_entry(cls, entry: CollectionEntry) -> "ListedEntry":
        return cls(
            id=entry.id,
            title=entry.book.title,
            author=entry.book.author,
            status=entry.status,
            full_status=entry.full_status,
            owner_name=entry.owner_name,
        )


class ShelfPage(BaseModel):
    """One page of a bookshelf listing."""
    books: List[ListedEntry] = Field(..., description="Entries on this page")
    page: int = Field(..., description="Current page number (1-based)")
    last_page: int = Field(..., description="Last page number")


class SingleEntry(BaseModel):
    """Flattened view of a single entry."""
    id: str
    status: BookStatus
    book_key: str
    title: str
    author: List[str]
    other_name: Optional[str] = None
    date: Optional[datetime.date] = None

    @classmethod
    def from_entry(cls, entry: CollectionEntry) -> "SingleEntry":
        return cls(
            id=entry.id,
            status=entry.status,
            book_key=entry.book.key,
            title=entry.book.title,
            author=entry.book.author,
            other_name=entry.other_name,
            date=entry.date,
        )
