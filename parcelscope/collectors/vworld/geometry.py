"""
Spatial feature queries (V-World WFS GetFeature)

Three selectors over one endpoint: feature by PNU, features in a
bounding box, features matching a CQL filter. Responses are GeoJSON
feature collections.
"""

from typing import Dict, Any, List, Optional, Sequence, Union
from loguru import logger

from .api_client import VWorldAPIClient
from ...errors import UpstreamFormatError


Feature = Dict[str, Any]
BBox = Union[str, Sequence[float]]


def pnu_filter(pnu: str) -> str:
    """OGC filter selecting one parcel by PNU"""
    return (
        "<Filter><PropertyIsEqualTo><PropertyName>pnu</PropertyName>"
        f"<Literal>{pnu}</Literal></PropertyIsEqualTo></Filter>"
    )


def format_bbox(bbox: BBox) -> str:
    if isinstance(bbox, str):
        return bbox
    if len(bbox) != 4:
        raise ValueError(f"bbox needs 4 values (minx, miny, maxx, maxy), got {len(bbox)}")
    return ",".join(repr(float(v)) for v in bbox)


class GeometryFetcher:
    """Uniform typed access to the spatial query service; holds no state"""

    def __init__(self, client: Optional[VWorldAPIClient] = None):
        self.client = client or VWorldAPIClient()
        self.url = self.client.config.api.vworld_wfs_url

    def _base_params(self, layer: str) -> Dict[str, str]:
        return {
            "SERVICE": "WFS",
            "REQUEST": "GetFeature",
            "TYPENAME": layer,
            "OUTPUT": "application/json",
            "VERSION": "1.1.0",
            "KEY": self.client.api_key,
            "DOMAIN": self.client.domain,
        }

    def fetch_collection(
        self,
        layer: str,
        pnu: Optional[str] = None,
        bbox: Optional[BBox] = None,
        cql_filter: Optional[str] = None,
        property_names: Optional[str] = None,
        srs_name: str = "EPSG:4326",
    ) -> Dict[str, Any]:
        """
        Run one GetFeature query and return the raw feature collection

        Exactly one of pnu, bbox, cql_filter must be given.
        """
        selectors = [s for s in (pnu, bbox, cql_filter) if s]
        if len(selectors) != 1:
            raise ValueError("Exactly one of pnu, bbox, or cql_filter is required")

        params = self._base_params(layer)
        if pnu:
            params["MAXFEATURES"] = "1"
            params["FILTER"] = pnu_filter(pnu)
        elif cql_filter:
            params["CQL_FILTER"] = cql_filter
        else:
            params["BBOX"] = format_bbox(bbox)
            params["SRSNAME"] = srs_name
            if property_names:
                params["PROPERTYNAME"] = property_names

        logger.debug(f"WFS GetFeature {layer}: {({k: v for k, v in params.items() if k != 'KEY'})}")
        data = self.client.get_json(self.url, params)

        if not isinstance(data, dict):
            raise UpstreamFormatError(f"Expected a feature collection, got {type(data).__name__}", url=self.url)
        features = data.get("features", [])
        if not isinstance(features, list):
            raise UpstreamFormatError("Feature collection 'features' is not a list", url=self.url)
        return data

    def fetch_by_identifier(self, layer: str, pnu: str) -> Optional[Feature]:
        """Feature for one parcel, or None if the layer has no match"""
        features = self.fetch_collection(layer, pnu=pnu).get("features", [])
        return features[0] if features else None

    def fetch_by_bbox(
        self,
        layer: str,
        bbox: BBox,
        property_names: Optional[str] = None,
        srs_name: str = "EPSG:4326",
    ) -> List[Feature]:
        collection = self.fetch_collection(
            layer, bbox=bbox, property_names=property_names, srs_name=srs_name
        )
        return collection.get("features", [])

    def fetch_by_attribute_filter(self, layer: str, cql_expression: str) -> List[Feature]:
        return self.fetch_collection(layer, cql_filter=cql_expression).get("features", [])
