"""
Catalog search proxy for search-as-you-type on the client.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from api.auth import require_identity
from api.dependencies import get_catalog
from bookshelf.catalog import OpenLibraryClient
from bookshelf.models import Identity

router = APIRouter(prefix="/api", tags=["Search"])


@router.get("/search")
async def search_catalog(
    q: Optional[str] = Query(None, description="Search text"),
    identity: Identity = Depends(require_identity),
    catalog: OpenLibraryClient = Depends(get_catalog),
):
    """Forward a search to the catalog and relay its answer unmodified."""
    upstream = await catalog.search(q)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/json"),
    )
