"""
Geometry utilities for coordinate transformations and calculations
"""

from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import shapely
from pyproj import Transformer
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from ..errors import UpstreamFormatError


BBox = Tuple[float, float, float, float]


@lru_cache(maxsize=8)
def get_transformer(source_crs: str, target_crs: str) -> Transformer:
    """Cached transformer; always_xy keeps (lon, lat) ordering"""
    return Transformer.from_crs(source_crs, target_crs, always_xy=True)


class GeometryUtils:
    """Utility functions for geometric operations"""

    @staticmethod
    def feature_geometry(feature: Dict[str, Any]) -> Optional[BaseGeometry]:
        """
        Shapely geometry of a GeoJSON feature

        Returns None for features without geometry. Raises
        UpstreamFormatError if the geometry cannot be built.
        """
        geometry = feature.get("geometry")
        if not geometry:
            return None
        try:
            geom = shape(geometry)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamFormatError(f"Invalid feature geometry: {e}") from e
        if geom.is_empty:
            return None
        return geom

    @staticmethod
    def expanded_bounds(geom: BaseGeometry, margin: float) -> BBox:
        """Bounding box of a geometry grown by margin on every side"""
        min_x, min_y, max_x, max_y = geom.bounds
        return (min_x - margin, min_y - margin, max_x + margin, max_y + margin)

    @staticmethod
    def project(geom: BaseGeometry, source_crs: str, target_crs: str) -> BaseGeometry:
        """Reproject a geometry, e.g. WGS84 degrees to a metric CRS"""
        if source_crs == target_crs:
            return geom
        transformer = get_transformer(source_crs, target_crs)
        # Vectorised: transformer receives x and y coordinate arrays
        return shapely.transform(geom, transformer.transform, interleaved=False)

    @staticmethod
    def is_areal(geom: BaseGeometry) -> bool:
        return geom.geom_type in ("Polygon", "MultiPolygon")
