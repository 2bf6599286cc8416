"""
Exception hierarchy for the bookshelf core.

Every error carries the HTTP status the API answers with, a short message,
and optional detail that is only exposed outside production.
"""

from typing import Any, Dict, List, Optional


class BookshelfError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    message: str = "An error occurred"

    def __init__(self, message: Optional[str] = None, detail: Optional[Dict[str, Any]] = None):
        self.message = message or self.message
        self.detail = detail or {}
        super().__init__(self.message)


class ValidationError(BookshelfError):
    """Malformed or missing input fields or query parameters."""

    status_code = 400
    message = "Invalid field values"

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message, {"errors": errors})


class InvalidCredentials(BookshelfError):
    status_code = 400
    message = "Username or password is incorrect."


class Unauthorized(BookshelfError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(BookshelfError):
    """Authenticated, but the target resource belongs to someone else."""

    status_code = 401
    message = "Unauthorized"


class NotFound(BookshelfError):
    status_code = 404
    message = "Not Found"


class Conflict(BookshelfError):
    status_code = 409
    message = "Conflict"


class CatalogError(BookshelfError):
    """Failure while talking to the external catalog."""

    status_code = 502
    message = "Catalog request failed"


class BookNotFoundError(CatalogError):
    """The catalog has no work with the requested key."""

    status_code = 400
    message = "Invalid book key"

    def __init__(self, book_key: str):
        self.book_key = book_key
        super().__init__(detail={"book_key": book_key})


class UpstreamError(CatalogError):
    """The catalog answered with an error status or could not be reached."""

    def __init__(self, status_code: int = 502, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Catalog responded with status {status_code}")


class CatalogParseError(CatalogError):
    message = "Malformed catalog response"


class RegistryConflictError(BookshelfError):
    """A book could neither be created nor re-read after a duplicate key."""

    status_code = 500
    message = "Could not register book"
