"""
V-World spatial service module

- API client: request/credential handling and error mapping
- Geometry: WFS feature queries (by PNU, bbox, CQL filter)
- Search: address search across road and parcel categories
- Tiles: WMS raster pass-through
"""

from .api_client import VWorldAPIClient
from .geometry import GeometryFetcher, Feature
from .search import AddressSearcher
from .tiles import TileClient, TILE_CACHE_SECONDS

__all__ = [
    "VWorldAPIClient",
    "GeometryFetcher",
    "Feature",
    "AddressSearcher",
    "TileClient",
    "TILE_CACHE_SECONDS",
]
