"""
Data collectors for ParcelScope

- vworld: V-World spatial features, address search, map tiles (sync, requests)
- registry: public-data registries with fallback records (async, httpx)
"""

from .vworld import VWorldAPIClient, GeometryFetcher, AddressSearcher, TileClient
from .registry import RegistrySource, build_sources

__all__ = [
    "VWorldAPIClient",
    "GeometryFetcher",
    "AddressSearcher",
    "TileClient",
    "RegistrySource",
    "build_sources",
]
