"""
FastAPI dependency providers for the services held on the application state.
"""

from fastapi import Depends, Request

from bookshelf.catalog import OpenLibraryClient
from bookshelf.database import BookshelfStore
from bookshelf.entries import EntryService
from bookshelf.errors import BookshelfError
from bookshelf.listing import ListingPipeline
from bookshelf.registry import BookRegistry
from bookshelf.users import UserService


def get_store(request: Request) -> BookshelfStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise BookshelfError("Database service not available")
    return store


def get_catalog(request: Request) -> OpenLibraryClient:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise BookshelfError("Catalog service not available")
    return catalog


def get_listing(store: BookshelfStore = Depends(get_store)) -> ListingPipeline:
    return ListingPipeline(store)


def get_entries(
    store: BookshelfStore = Depends(get_store),
    catalog: OpenLibraryClient = Depends(get_catalog),
) -> EntryService:
    return EntryService(store, BookRegistry(store, catalog))


def get_users(store: BookshelfStore = Depends(get_store)) -> UserService:
    return UserService(store)
