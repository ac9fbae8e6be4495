import logging
from typing import Any, Dict, List

from ..errors import ProviderError
from ..http import HttpClient

logger = logging.getLogger(__name__)

BASE_URL = "https://news.treeofalpha.com/api"
DEFAULT_LIMIT = 1500


class TreeNewsClient:
    """
    Tree of Alpha news feed.
    Reference: GET /api/news?limit=N -> [{time, source, title, body, url, ...}, ...]
    """

    def __init__(self, http: HttpClient, base_url: str = BASE_URL):
        self._http = http
        self._base_url = base_url.rstrip("/")

    async def fetch(self, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """Latest raw records. Failures raise ProviderError: the run cannot continue without news."""
        if limit < 1:
            raise ProviderError("limit must be >= 1", details={"limit": limit})

        try:
            data = await self._http.get_json(f"{self._base_url}/news", params={"limit": limit})
        except ProviderError as e:
            logger.error(f"News feed request failed: {e.message}")
            raise ProviderError(f"News feed unavailable: {e.message}", details=e.details)

        if not isinstance(data, list):
            logger.error(f"News feed returned {type(data).__name__}, expected a list")
            raise ProviderError("News feed returned an unexpected payload")

        records = [r for r in data if isinstance(r, dict)]
        logger.info(f"Fetched {len(records)} news records")
        return records
