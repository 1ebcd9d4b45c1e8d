"""
Address search (V-World search API)

Runs the ROAD and PARCEL address categories and merges them, keyed by
PNU so the same parcel found by both searches appears once.
"""

from typing import Dict, Any, List, Optional
from loguru import logger

from .api_client import VWorldAPIClient
from ...errors import UpstreamStatusError
from ...models import AddressResult, SearchPoint


SEARCH_CATEGORIES = ("ROAD", "PARCEL")


class AddressSearcher:
    """Search addresses and return parcel candidates"""

    def __init__(self, client: Optional[VWorldAPIClient] = None):
        self.client = client or VWorldAPIClient()
        self.url = self.client.config.api.vworld_search_url
        self.page_size = self.client.config.api.search_page_size

    def search(self, query: str) -> List[AddressResult]:
        """
        Search both address categories and deduplicate by id (PNU)

        The two category requests run one after the other on the client's
        shared requests session, ROAD first. A ROAD failure stops the
        search before PARCEL is requested.

        Raises:
            UpstreamError: if either category search fails
        """
        items: List[Dict[str, Any]] = []
        for category in SEARCH_CATEGORIES:
            items.extend(self._fetch_category(query, category))

        # Later duplicates overwrite earlier ones; first-seen order is kept
        unique: Dict[str, Dict[str, Any]] = {}
        for item in items:
            unique[item.get("id")] = item

        results = [self._to_result(item) for item in unique.values() if item.get("id")]
        logger.info(f"Address search '{query}': {len(results)} unique results")
        return results

    def _fetch_category(self, query: str, category: str) -> List[Dict[str, Any]]:
        params = {
            "service": "search",
            "request": "search",
            "version": "2.0",
            "crs": "EPSG:4326",
            "size": str(self.page_size),
            "page": "1",
            "query": query,
            "type": "ADDRESS",
            "category": category,
            "format": "json",
            "errorformat": "json",
            "key": self.client.api_key,
        }
        data = self.client.get_json(self.url, params)
        response = data.get("response", {}) if isinstance(data, dict) else {}
        status = response.get("status")

        if status == "NOT_FOUND":
            return []
        if status != "OK":
            message = (response.get("error") or {}).get("text") or "Unknown V-World API Error"
            logger.error(f"V-World search error ({category}): {message}")
            raise UpstreamStatusError(message, code=status, url=self.url)

        return (response.get("result") or {}).get("items") or []

    @staticmethod
    def _to_result(item: Dict[str, Any]) -> AddressResult:
        address = item.get("address") or {}
        point = item.get("point") or {}
        road = address.get("road") or ""
        parcel = address.get("parcel") or ""
        return AddressResult(
            id=item["id"],
            title=road or parcel,
            road_address=road,
            parcel_address=parcel,
            point=SearchPoint(x=str(point.get("x", "")), y=str(point.get("y", ""))),
        )
