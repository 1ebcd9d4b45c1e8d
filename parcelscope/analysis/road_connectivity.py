"""
Road connectivity - does the parcel touch an urban-planning road?

Used as a proxy for legal road access. Two sequential geometry calls:
the parcel polygon by PNU, then road features inside the parcel's
bounding box grown by a small margin. The parcel is buffered in a
metric CRS to tolerate digitization gaps between parcel and road
boundaries.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from pyproj.exceptions import ProjError
from shapely.errors import GEOSException
from shapely.geometry.base import BaseGeometry

from .geometry_utils import GeometryUtils
from ..collectors.vworld import GeometryFetcher, VWorldAPIClient
from ..config import get_config, PipelineConfig
from ..errors import AnalysisFailed, ParcelNotFound, UpstreamError
from ..models import RoadConnectivityResult
from ..pnu import ParcelIdentifier, parse_identifier


@dataclass
class RoadContact:
    """One road that intersects the buffered parcel"""
    width: str
    name: str
    contact_length_m: float


class RoadConnectivityAnalyzer:
    """
    Determine whether a parcel is connected to the road network

    Tie-break when several roads intersect (config.road.tie_break):
      last             keep the last intersecting road that declares a width
      longest_contact  keep the road with the longest contact run
    """

    def __init__(
        self,
        fetcher: Optional[GeometryFetcher] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.config = config or get_config()
        self.road_config = self.config.road
        self._fetcher = fetcher

    @property
    def fetcher(self) -> GeometryFetcher:
        # Built lazily so a missing V-World key surfaces as an analysis failure
        if self._fetcher is None:
            self._fetcher = GeometryFetcher(VWorldAPIClient(self.config))
        return self._fetcher

    def analyze(self, identifier: Union[str, ParcelIdentifier]) -> RoadConnectivityResult:
        """
        Analyze road connectivity for one parcel

        Raises:
            InvalidIdentifier: malformed PNU
            ParcelNotFound: no parcel polygon for the PNU
            AnalysisFailed: any upstream or geometry failure
        """
        if not isinstance(identifier, ParcelIdentifier):
            identifier = parse_identifier(identifier)

        try:
            return self._analyze(identifier)
        except ParcelNotFound:
            raise
        except UpstreamError as e:
            logger.error(f"Road analysis failed for {identifier.pnu}: {e}")
            raise AnalysisFailed(f"Road analysis failed: {e}") from e
        except (GEOSException, ProjError) as e:
            logger.error(f"Geometry error in road analysis for {identifier.pnu}: {e}")
            raise AnalysisFailed(f"Geometry error: {e}") from e

    def _analyze(self, identifier: ParcelIdentifier) -> RoadConnectivityResult:
        cfg = self.road_config

        # Step 1: parcel polygon
        parcel_feature = self.fetcher.fetch_by_identifier(cfg.parcel_layer, identifier.pnu)
        if parcel_feature is None:
            raise ParcelNotFound(identifier.pnu)
        parcel = GeometryUtils.feature_geometry(parcel_feature)
        if parcel is None:
            raise ParcelNotFound(identifier.pnu)

        # Step 2: road candidates near the parcel
        bbox = GeometryUtils.expanded_bounds(parcel, cfg.bbox_margin_deg)
        roads = self.fetcher.fetch_by_bbox(cfg.road_layer, bbox, srs_name=cfg.source_crs)
        logger.debug(f"{identifier.pnu}: {len(roads)} road candidates in {bbox}")

        # Step 3: intersect in metric space
        parcel_m = GeometryUtils.project(parcel, cfg.source_crs, cfg.metric_crs)
        buffered = parcel_m.buffer(cfg.buffer_distance_m)
        contacts = self._find_contacts(parcel_m, buffered, roads)

        result = self._select(contacts)
        logger.info(
            f"Road connectivity {identifier.pnu}: connected={result.is_connected}, "
            f"width={result.road_width}, name={result.road_name!r} ({len(contacts)} contacts)"
        )
        return result

    def _find_contacts(
        self,
        parcel_m: BaseGeometry,
        buffered: BaseGeometry,
        roads: List[Dict[str, Any]],
    ) -> List[RoadContact]:
        contacts = []
        for road in roads:
            geom = GeometryUtils.feature_geometry(road)
            if geom is None:
                continue
            road_m = GeometryUtils.project(geom, self.road_config.source_crs, self.road_config.metric_crs)
            if not buffered.intersects(road_m):
                continue

            properties = road.get("properties") or {}
            contacts.append(RoadContact(
                width=self._road_width(properties),
                name=str(properties.get(self.road_config.name_attribute) or ""),
                contact_length_m=self._contact_length(parcel_m, buffered, road_m),
            ))
        return contacts

    def _road_width(self, properties: Dict[str, Any]) -> str:
        for attribute in self.road_config.width_attributes:
            value = properties.get(attribute)
            if value not in (None, ""):
                return str(value).strip()
        return ""

    def _contact_length(self, parcel_m: BaseGeometry, buffered: BaseGeometry, road_m: BaseGeometry) -> float:
        """Length of parcel boundary running along the road, in meters"""
        if GeometryUtils.is_areal(road_m):
            shared = parcel_m.boundary.intersection(road_m.buffer(self.road_config.buffer_distance_m))
        else:
            shared = buffered.intersection(road_m)
        return shared.length

    def _select(self, contacts: List[RoadContact]) -> RoadConnectivityResult:
        cfg = self.road_config
        if not contacts:
            return RoadConnectivityResult(is_connected=False, road_width=cfg.unknown_width, road_name="")

        if cfg.tie_break == "longest_contact":
            best = max(contacts, key=lambda c: c.contact_length_m)
            return RoadConnectivityResult(
                is_connected=True,
                road_width=best.width or cfg.unknown_width,
                road_name=best.name or cfg.default_road_name,
                contact_length=round(best.contact_length_m, 1),
            )

        # "last": width from the last road declaring one, name from the last road seen
        width = cfg.unknown_width
        for contact in contacts:
            if contact.width:
                width = contact.width
        return RoadConnectivityResult(
            is_connected=True,
            road_width=width,
            road_name=contacts[-1].name or cfg.default_road_name,
            contact_length=0.0,
        )
