"""
Public-data registry module (data.go.kr, Toji-eum, heritage)

- Parser: XML/JSON envelope decoding, result-code check, item normalization
- Sources: one fetch per registry domain, fallback on any failure
- Fallback: static sample records
"""

from .sources import RegistrySource, RegistrySpec, REGISTRY_SPECS, build_sources
from .fallback import fallback_payload
from .parser import decode_body, check_status, extract_items, normalize_item, normalize_items

__all__ = [
    "RegistrySource",
    "RegistrySpec",
    "REGISTRY_SPECS",
    "build_sources",
    "fallback_payload",
    "decode_body",
    "check_status",
    "extract_items",
    "normalize_item",
    "normalize_items",
]
