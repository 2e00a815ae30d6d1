"""
Yelp Fusion client with rate limiting using aiolimiter.
"""
from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from typing import Any, Dict, List, Optional
from loguru import logger

from menulens.config import CONCURRENCY, REQUEST_TIMEOUT, YELP_API_KEY, YELP_API_URL
from menulens.errors import ExternalServiceError


class YelpClient:
    """
    Client for the Yelp Fusion places directory: business search, details and reviews.

    Constructed explicitly and passed to whatever needs it; each instance owns
    its own aiohttp session and rate limiter.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = YELP_API_URL,
        max_rate: int = CONCURRENCY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or YELP_API_KEY
        if not self.api_key:
            raise ValueError("YELP_API_KEY must be set in environment or config")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Token bucket: max_rate requests per second
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        return self._session

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a GET request to the Yelp API and return the parsed JSON body.

        Raises:
            ExternalServiceError: On transport errors, non-200 statuses or non-JSON bodies.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            url = f"{self.base_url}{path}"
            try:
                async with session.get(url, params=params) as resp:
                    if resp.status != 200:
                        detail = await resp.text()
                        raise ExternalServiceError(
                            f"Yelp API error for {path}: status {resp.status}, body {detail[:200]}"
                        )
                    data = await resp.json()
            except ClientError as e:
                logger.debug(f"⚠️ Yelp GET {path} failed: {e}")
                raise ExternalServiceError(f"Yelp request failed for {path}: {e}") from e
            except ValueError as e:
                logger.debug(f"⚠️ Yelp GET {path} returned invalid JSON: {e}")
                raise ExternalServiceError(f"Invalid JSON from Yelp for {path}") from e

            if not isinstance(data, dict):
                raise ExternalServiceError(f"Unexpected Yelp response shape for {path}: {type(data).__name__}")
            return data

    async def search(
        self,
        term: str,
        latitude: float,
        longitude: float,
        limit: int = 5,
        categories: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search businesses near a point.

        Args:
            term: Search term (usually a business name).
            latitude: Latitude of the search center.
            longitude: Longitude of the search center.
            limit: Maximum number of businesses to return.
            categories: Optional comma-separated Yelp category filter.

        Returns:
            Raw business dictionaries in the provider's relevance order.
        """
        params: Dict[str, Any] = {
            "term": term,
            "latitude": latitude,
            "longitude": longitude,
            "limit": limit,
            "sort_by": "best_match",
        }
        if categories:
            params["categories"] = categories

        data = await self._get("/businesses/search", params=params)
        businesses = data.get("businesses", [])
        return businesses if isinstance(businesses, list) else []

    async def business_details(self, business_id: str) -> Dict[str, Any]:
        """Fetch the full details record for a business."""
        return await self._get(f"/businesses/{business_id}")

    async def reviews(self, business_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Fetch up to `limit` reviews for a business."""
        data = await self._get(f"/businesses/{business_id}/reviews", params={"limit": limit})
        reviews = data.get("reviews", [])
        return reviews if isinstance(reviews, list) else []

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
