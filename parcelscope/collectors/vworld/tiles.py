"""
Map tile pass-through (V-World WMS GetMap)
"""

from typing import Dict, Optional, Tuple
from loguru import logger

from .api_client import VWorldAPIClient


TILE_CACHE_SECONDS = 86400


class TileClient:
    """Fetch raster tiles with the server-side credential appended"""

    def __init__(self, client: Optional[VWorldAPIClient] = None):
        self.client = client or VWorldAPIClient()
        self.url = self.client.config.api.vworld_wms_url

    def fetch_tile(self, params: Dict[str, str]) -> Tuple[bytes, str]:
        """
        Forward WMS parameters and return (image bytes, content type)

        Client-supplied KEY/DOMAIN values are replaced.
        """
        forwarded = {k: v for k, v in params.items() if k.upper() not in ("KEY", "DOMAIN")}
        forwarded["KEY"] = self.client.api_key
        forwarded["DOMAIN"] = self.client.domain

        response = self.client.get(self.url, forwarded)
        content_type = response.headers.get("Content-Type", "image/png")
        logger.debug(f"WMS tile {forwarded.get('LAYERS', '?')}: {len(response.content)} bytes ({content_type})")
        return response.content, content_type
