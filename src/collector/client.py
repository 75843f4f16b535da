"""
Google Custom Search API Client

Async HTTP client used as the search-ranking oracle:
- Connection pooling shared across concurrent keyword lookups
- One request per query, top N organic results
- Typed errors (configuration vs. transient)
- Request/response logging (credentials redacted)

Retry is NOT done here. The batch scheduler wraps calls with the retry
policy, so the client stays a plain request/response mapping.
"""

import httpx
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One organic result as returned by the oracle."""
    url: str
    title: str = ""
    snippet: str = ""


class SearchAPIError(Exception):
    """Custom exception for search API errors (transient, retryable)."""
    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class SearchConfigurationError(SearchAPIError):
    """Missing or unusable credentials. Fatal, never retried."""


def parse_search_items(payload: Any, limit: int) -> List[SearchResult]:
    """
    Extract ordered results from a Custom Search JSON payload.

    A payload without "items" is a valid empty result page. Anything that is
    not a JSON object, or an "items" value that is not a list, is malformed.

    Raises:
        SearchAPIError: On malformed payload
    """
    if not isinstance(payload, dict):
        raise SearchAPIError("Malformed search response: expected JSON object")

    items = payload.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise SearchAPIError("Malformed search response: 'items' is not a list", response=payload)

    results = []
    for item in items[:limit]:
        if not isinstance(item, dict) or not item.get("link"):
            # Keeps its rank slot but can't be attributed to a domain
            logger.debug(f"Search item without link: {item!r}")
            results.append(SearchResult(url=""))
            continue
        results.append(SearchResult(
            url=item["link"],
            title=item.get("title") or "",
            snippet=item.get("snippet") or "",
        ))

    return results


class GoogleSearchClient:
    """
    Async client for the Google Custom Search JSON API.

    Usage:
        client = GoogleSearchClient(api_key="...", engine_id="...")

        results = await client.search("running shoes")

        await client.close()
    """

    BASE_URL = "https://www.googleapis.com/customsearch/v1"
    MAX_RESULTS = 10  # API hard limit per request

    def __init__(
        self,
        api_key: Optional[str],
        engine_id: Optional[str],
        max_connections: int = 10,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize search client.

        Args:
            api_key: Google API key
            engine_id: Programmable Search Engine ID (cx)
            max_connections: Maximum concurrent connections
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)

        Raises:
            SearchConfigurationError: If credentials are missing
        """
        if not api_key or not engine_id:
            raise SearchConfigurationError(
                "Google Custom Search credentials not configured "
                "(GOOGLE_SEARCH_API_KEY / GOOGLE_SEARCH_ENGINE_ID)"
            )

        self._api_key = api_key
        self._engine_id = engine_id

        self._client = httpx.AsyncClient(
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

        self._closed = False

    async def search(self, query: str, num: int = 10) -> List[SearchResult]:
        """
        Run one search query.

        Args:
            query: Search query
            num: Number of results to request (1-10)

        Returns:
            Ordered list of results, position 1 first

        Raises:
            SearchAPIError: On HTTP failure, timeout or malformed payload
        """
        if self._closed:
            raise SearchAPIError("Client is closed")

        num = max(1, min(num, self.MAX_RESULTS))
        params = {
            "key": self._api_key,
            "cx": self._engine_id,
            "q": query,
            "num": num,
        }

        logger.debug(f"GET {self.BASE_URL} q={query!r} num={num}")

        try:
            response = await self._client.get(self.BASE_URL, params=params)
        except httpx.TimeoutException as e:
            raise SearchAPIError(f"Request timed out: {e}")
        except httpx.HTTPError as e:
            raise SearchAPIError(f"HTTP error: {e}")

        if response.status_code != 200:
            raise SearchAPIError(
                f"Search API request failed: {response.status_code}",
                status_code=response.status_code,
                response=self._safe_json(response),
            )

        payload = self._safe_json(response)
        if payload is None:
            raise SearchAPIError(
                "Malformed search response: body is not JSON",
                status_code=response.status_code,
            )

        results = parse_search_items(payload, limit=num)
        logger.debug(f"Search for {query!r} returned {len(results)} results")
        return results

    @staticmethod
    def _safe_json(response: httpx.Response) -> Optional[Dict[str, Any]]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def create_client_from_settings(settings=None) -> GoogleSearchClient:
    """Create a search client from application settings."""
    if settings is None:
        from src.utils.config import get_settings
        settings = get_settings()

    return GoogleSearchClient(
        api_key=settings.GOOGLE_SEARCH_API_KEY,
        engine_id=settings.GOOGLE_SEARCH_ENGINE_ID,
        max_connections=max(1, settings.KEYWORD_BATCH_SIZE * 2),
        timeout=settings.API_TIMEOUT,
    )
