"""
HTTP API for parcel reports

Endpoints:
- GET /api/land/comprehensive  full report (optionally with diagnosis)
- GET /api/land/regulation     land use, urban plan, regulations
- GET /api/building/info       building ledger, price history
- GET /api/land/special        mountain and heritage zones
- GET /api/business/risk       commercial, permits, unsold housing
- GET /api/road/connectivity   road access analysis
- GET /api/vworld/search       address search
- GET /api/vworld/wfs          spatial feature pass-through
- GET /api/vworld/wms          map tile pass-through
- GET /health

Registry failures never reach the client (fallback records instead).
Spatial failures do: there is no safe default for geometry.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger

from . import __version__
from .analysis import RoadConnectivityAnalyzer
from .collectors.vworld import AddressSearcher, GeometryFetcher, TileClient, TILE_CACHE_SECONDS
from .errors import InvalidIdentifier, ParcelScopeError
from .pipeline import ReportAggregator
from .pnu import parse_identifier


DEFAULT_WFS_LAYER = "lp_pa_cbnd_bubun"
WFS_BBOX_SRS = "EPSG:3857"

app = FastAPI(title="ParcelScope", version=__version__)


# --------------------------------------------------------------------------- #
# Dependencies (overridable in tests via app.dependency_overrides)
# --------------------------------------------------------------------------- #

def get_aggregator() -> ReportAggregator:
    return ReportAggregator()


def get_road_analyzer() -> RoadConnectivityAnalyzer:
    return RoadConnectivityAnalyzer()


def get_geometry_fetcher() -> GeometryFetcher:
    return GeometryFetcher()


def get_address_searcher() -> AddressSearcher:
    return AddressSearcher()


def get_tile_client() -> TileClient:
    return TileClient()


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(InvalidIdentifier)
async def invalid_identifier_handler(request: Request, exc: InvalidIdentifier) -> JSONResponse:
    logger.info(f"{request.url.path}: {exc}")
    return _error(400, str(exc))


@app.exception_handler(ParcelScopeError)
async def parcelscope_error_handler(request: Request, exc: ParcelScopeError) -> JSONResponse:
    logger.error(f"{request.url.path}: {exc.error_code} {exc}")
    return _error(500, exc.error_code, str(exc))


# --------------------------------------------------------------------------- #
# Reports
# --------------------------------------------------------------------------- #

@app.get("/api/land/comprehensive")
async def land_comprehensive(
    pnu: Optional[str] = Query(None),
    diagnose: bool = Query(False),
    aggregator: ReportAggregator = Depends(get_aggregator),
) -> JSONResponse:
    report = await aggregator.build_report(parse_identifier(pnu))
    content = report.to_json_dict()
    if diagnose:
        content["diagnosis"] = aggregator.diagnose(report).to_json_dict()
    return JSONResponse(content=content)


@app.get("/api/land/regulation")
async def land_regulation(
    pnu: Optional[str] = Query(None),
    aggregator: ReportAggregator = Depends(get_aggregator),
) -> Dict[str, Any]:
    records = await aggregator.fetch_domains(parse_identifier(pnu), ("land_use", "urban_plan", "regulations"))
    land_use = records["land_use"].data
    return {
        "landUse": land_use.to_json_dict() if land_use else None,
        "urbanPlan": [entry.to_json_dict() for entry in records["urban_plan"].data],
        "regulations": [entry.to_json_dict() for entry in records["regulations"].data],
        "provenance": {domain: record.provenance for domain, record in records.items()},
    }


@app.get("/api/building/info")
async def building_info(
    pnu: Optional[str] = Query(None),
    aggregator: ReportAggregator = Depends(get_aggregator),
) -> Dict[str, Any]:
    records = await aggregator.fetch_domains(parse_identifier(pnu), ("building", "price_history"))
    return {
        "building": [entry.to_json_dict() for entry in records["building"].data],
        "priceHistory": [entry.to_json_dict() for entry in records["price_history"].data],
        "provenance": {domain: record.provenance for domain, record in records.items()},
    }


@app.get("/api/land/special")
async def land_special(
    pnu: Optional[str] = Query(None),
    aggregator: ReportAggregator = Depends(get_aggregator),
) -> Dict[str, Any]:
    records = await aggregator.fetch_domains(parse_identifier(pnu), ("mountain", "heritage"))
    return {
        "mountain": [entry.to_json_dict() for entry in records["mountain"].data],
        "heritage": [entry.to_json_dict() for entry in records["heritage"].data],
        "provenance": {domain: record.provenance for domain, record in records.items()},
    }


@app.get("/api/business/risk")
async def business_risk(
    pnu: Optional[str] = Query(None),
    aggregator: ReportAggregator = Depends(get_aggregator),
) -> Dict[str, Any]:
    report = await aggregator.build_business_report(parse_identifier(pnu))
    return report.to_json_dict()


# --------------------------------------------------------------------------- #
# Spatial
# --------------------------------------------------------------------------- #

@app.get("/api/road/connectivity")
def road_connectivity(
    pnu: Optional[str] = Query(None),
    analyzer: RoadConnectivityAnalyzer = Depends(get_road_analyzer),
) -> Dict[str, Any]:
    # ParcelNotFound / AnalysisFailed go to the 500 handler
    return analyzer.analyze(parse_identifier(pnu)).to_json_dict()


@app.get("/api/vworld/search")
def vworld_search(
    query: Optional[str] = Query(None),
    searcher: AddressSearcher = Depends(get_address_searcher),
):
    if not query or not query.strip():
        return _error(400, "Query is required")
    try:
        results = searcher.search(query.strip())
    except ParcelScopeError as e:
        logger.error(f"Address search failed: {e}")
        return _error(500, "Failed to search address", str(e))
    return {"results": [result.to_json_dict() for result in results]}


@app.get("/api/vworld/wfs")
def vworld_wfs(
    typeName: str = Query(DEFAULT_WFS_LAYER),
    pnu: Optional[str] = Query(None),
    bbox: Optional[str] = Query(None),
    cql_filter: Optional[str] = Query(None),
    propertyName: Optional[str] = Query(None),
    fetcher: GeometryFetcher = Depends(get_geometry_fetcher),
):
    selectors = [s for s in (pnu, bbox, cql_filter) if s]
    if len(selectors) != 1:
        return _error(400, "Exactly one of pnu, bbox, or cql_filter is required")

    try:
        collection = fetcher.fetch_collection(
            typeName,
            pnu=pnu,
            bbox=bbox,
            cql_filter=cql_filter,
            property_names=propertyName,
            srs_name=WFS_BBOX_SRS,
        )
    except ParcelScopeError as e:
        logger.error(f"WFS proxy failed for {typeName}: {e}")
        return _error(500, "Failed to fetch WFS data", str(e))
    return JSONResponse(content=collection)


@app.get("/api/vworld/wms")
def vworld_wms(request: Request, tiles: TileClient = Depends(get_tile_client)) -> Response:
    try:
        content, content_type = tiles.fetch_tile(dict(request.query_params))
    except ParcelScopeError as e:
        logger.error(f"WMS proxy failed: {e}")
        return _error(500, "Failed to fetch WMS image", str(e))
    return Response(
        content=content,
        media_type=content_type,
        headers={"Cache-Control": f"public, max-age={TILE_CACHE_SECONDS}"},
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "service": "parcelscope", "version": __version__}
