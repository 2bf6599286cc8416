"""
OpenLibrary catalog client.
Resolves work keys to canonical title/author data and proxies searches.
"""

from typing import Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from .errors import BookNotFoundError, CatalogParseError, UpstreamError
from .models import CatalogBook
from utilities.config import config

logger = structlog.get_logger(__name__)

SEARCH_PATH = "/search.json"
SEARCH_FIELDS = "key,title,author_name"


class OpenLibraryClient:
    """
    Async client for the OpenLibrary search API.

    No retries are attempted; callers decide how to handle failures.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Catalog host, defaults to the configured one
            timeout: Request timeout in seconds
            transport: Optional transport, mainly for tests
        """
        self.base_url = base_url or config.catalog_base_url
        self.timeout = timeout or config.catalog_timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=config.get_headers(),
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def search(self, query: Optional[str]) -> httpx.Response:
        """
        Run a catalog search and return the raw response.

        Raises:
            UpstreamError: If the catalog cannot be reached in time
        """
        params = {"q": query or "", "fields": SEARCH_FIELDS}
        try:
            response = await self.client.get(SEARCH_PATH, params=params)
        except httpx.TimeoutException as e:
            logger.error("Catalog request timed out", query=query, error=str(e))
            raise UpstreamError(504, "Catalog request timed out")
        except httpx.HTTPError as e:
            logger.error("Catalog request failed", query=query, error=str(e))
            raise UpstreamError(502)

        logger.debug("Catalog search", url=str(response.request.url), status_code=response.status_code)
        return response

    async def lookup_book(self, key: str) -> CatalogBook:
        """
        Resolve a work key to its catalog record.

        Args:
            key: Work key without the /works/ prefix

        Returns:
            CatalogBook with title and authors

        Raises:
            UpstreamError: On transport failure or a non-2xx response
            CatalogParseError: If the payload is malformed
            BookNotFoundError: If no document matches /works/{key} exactly
        """
        response = await self.search(key)

        if not response.is_success:
            logger.warning("Catalog returned an error", book_key=key, status_code=response.status_code)
            raise UpstreamError(response.status_code)

        try:
            docs = response.json()["docs"]
            match = next((doc for doc in docs if doc.get("key") == f"/works/{key}"), None)
            if match is None:
                raise BookNotFoundError(key)
            return CatalogBook.model_validate(match)
        except BookNotFoundError:
            logger.info("Book key not found in catalog", book_key=key)
            raise
        except (ValueError, KeyError, TypeError, AttributeError, PydanticValidationError) as e:
            logger.error("Malformed catalog response", book_key=key, error=str(e))
            raise CatalogParseError()
