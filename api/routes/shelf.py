"""
Routes over a user's collection.

The same handlers serve the shelf and the wishlist; build_router binds them
to one Partition.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from api.auth import require_identity
from api.dependencies import get_entries, get_listing
from bookshelf.entries import EntryService
from bookshelf.listing import ListingPipeline, ListingQuery
from bookshelf.models import CollectionEntry, Identity, ShelfPage, SingleEntry
from bookshelf.partition import SHELF, WISHLIST, Partition


def build_router(partition: Partition, prefix: str) -> APIRouter:
    """
    Create the listing and entry routes for a partition.

    Args:
        partition: Shelf or wishlist
        prefix: URL prefix the routes are mounted under

    Returns:
        APIRouter with list, add, get, update and delete routes
    """
    router = APIRouter(prefix=prefix, tags=[partition.name.capitalize()])
    fields_model = partition.entry_fields

    @router.get("", response_model=ShelfPage)
    async def list_entries(
        status_filter: Optional[str] = Query(None, alias="status", description="Comma-separated statuses"),
        owner: Optional[str] = Query(None, description="Owner name substring"),
        title: Optional[str] = Query(None, description="Title substring"),
        author: Optional[str] = Query(None, description="Author substring"),
        owner_sort: Optional[str] = Query(None, description="asc or desc"),
        title_sort: Optional[str] = Query(None, description="asc or desc"),
        page: Optional[str] = Query(None, description="Page number, starts from 1"),
        limit: Optional[str] = Query(None, description="Items per page"),
        identity: Identity = Depends(require_identity),
        listing: ListingPipeline = Depends(get_listing),
    ):
        """
        Get one page of the collection.

        Status and owner filters and the owner sort only apply to the shelf.
        """
        query = ListingQuery.from_params(
            partition,
            status=status_filter,
            owner=owner,
            title=title,
            author=author,
            owner_sort=owner_sort,
            title_sort=title_sort,
            page=page,
            limit=limit,
        )
        return await listing.list(identity, partition, query)

    @router.post("", response_model=CollectionEntry, status_code=status.HTTP_201_CREATED)
    async def add_entry(
        fields: fields_model,
        identity: Identity = Depends(require_identity),
        entries: EntryService = Depends(get_entries),
    ):
        """Add a book, registering it from the catalog when it is new."""
        return await entries.add(identity, partition, fields)

    @router.get("/book/{entry_id}", response_model=SingleEntry)
    async def get_entry(
        entry_id: str,
        identity: Identity = Depends(require_identity),
        entries: EntryService = Depends(get_entries),
    ):
        return await entries.get(identity, partition, entry_id)

    @router.patch("/book/{entry_id}", response_model=CollectionEntry)
    async def update_entry(
        entry_id: str,
        fields: fields_model,
        identity: Identity = Depends(require_identity),
        entries: EntryService = Depends(get_entries),
    ):
        return await entries.update(identity, partition, entry_id, fields)

    @router.delete("/book/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(
        entry_id: str,
        identity: Identity = Depends(require_identity),
        entries: EntryService = Depends(get_entries),
    ):
        await entries.delete(identity, partition, entry_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


shelf_router = build_router(SHELF, "/api")
wishlist_router = build_router(WISHLIST, "/api/wishlist")
