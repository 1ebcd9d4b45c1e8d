import httpx
import pytest
from fastapi.testclient import TestClient

from parcelscope import api
from parcelscope.errors import AnalysisFailed, MissingCredential, ParcelNotFound, UpstreamFormatError
from parcelscope.models import AddressResult, RoadConnectivityResult, SearchPoint
from parcelscope.pipeline import ReportAggregator

from conftest import PNU, make_config, registry_xml


def offline(request):
    raise httpx.ConnectError("offline", request=request)


class FakeAnalyzer:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def analyze(self, identifier):
        if self.error:
            raise self.error
        return self.result


class FakeFetcher:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def fetch_collection(self, layer, **kwargs):
        self.calls.append((layer, kwargs))
        if self.error:
            raise self.error
        return {"type": "FeatureCollection", "features": []}


class FakeTiles:
    def __init__(self, error=None):
        self.error = error
        self.params = None

    def fetch_tile(self, params):
        self.params = params
        if self.error:
            raise self.error
        return b"\x89PNG", "image/png"


class FakeSearcher:
    def search(self, query):
        return [AddressResult(id=PNU, title="테헤란로 1", road_address="테헤란로 1", point=SearchPoint(x="127", y="37"))]


@pytest.fixture
def client():
    config = make_config()
    api.app.dependency_overrides[api.get_aggregator] = lambda: ReportAggregator(
        config=config, transport=httpx.MockTransport(offline)
    )
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


def override(dependency, value):
    api.app.dependency_overrides[dependency] = lambda: value


def test_comprehensive_report_under_total_outage(client):
    response = client.get("/api/land/comprehensive", params={"pnu": PNU})

    assert response.status_code == 200
    data = response.json()
    assert data["pnu"] == PNU
    assert data["landUse"]["pnu"] == PNU
    assert set(data["provenance"].values()) == {"fallback"}
    assert "diagnosis" not in data


def test_comprehensive_report_with_diagnosis(client):
    data = client.get("/api/land/comprehensive", params={"pnu": PNU, "diagnose": "true"}).json()

    assert data["diagnosis"]["level"] in ("SAFE", "CAUTION", "DANGER")
    assert "swot" in data["diagnosis"]


@pytest.mark.parametrize("params", [{"pnu": PNU[:18]}, {}])
def test_malformed_pnu_is_400(client, params):
    response = client.get("/api/land/comprehensive", params=params)

    assert response.status_code == 400
    assert "error" in response.json()


def test_regulation_route(client):
    data = client.get("/api/land/regulation", params={"pnu": PNU}).json()

    assert set(data) == {"landUse", "urbanPlan", "regulations", "provenance"}
    assert data["regulations"][0]["lawName"] == "국토의 계획 및 이용에 관한 법률"


def test_building_and_special_routes(client):
    building = client.get("/api/building/info", params={"pnu": PNU}).json()
    special = client.get("/api/land/special", params={"pnu": PNU}).json()

    assert len(building["priceHistory"]) == 5
    assert special["mountain"] == []
    assert special["heritage"] == []


def test_business_route(client):
    data = client.get("/api/business/risk", params={"pnu": PNU}).json()

    assert set(data["provenance"]) == {"commercial", "permits", "unsold_housing"}


def test_sourced_regulation_route():
    def handler(request):
        return httpx.Response(200, text=registry_xml([{"luseLawNm": "개발제한구역법", "content": "개발제한구역"}]))

    override(api.get_aggregator, ReportAggregator(config=make_config(), transport=httpx.MockTransport(handler)))
    try:
        data = TestClient(api.app).get("/api/land/regulation", params={"pnu": PNU}).json()
    finally:
        api.app.dependency_overrides.clear()

    assert data["provenance"]["regulations"] == "sourced"
    assert data["regulations"] == [{"lawName": "개발제한구역법", "content": "개발제한구역"}]


def test_road_connectivity_route(client):
    override(api.get_road_analyzer, FakeAnalyzer(RoadConnectivityResult(is_connected=True, road_width="10m", road_name="테헤란로")))

    data = client.get("/api/road/connectivity", params={"pnu": PNU}).json()

    assert data == {"isConnected": True, "roadWidth": "10m", "roadName": "테헤란로", "contactLength": 0.0}


@pytest.mark.parametrize("error", [ParcelNotFound(PNU), AnalysisFailed("boom")])
def test_road_connectivity_failures_are_500(client, error):
    override(api.get_road_analyzer, FakeAnalyzer(error=error))

    response = client.get("/api/road/connectivity", params={"pnu": PNU})

    assert response.status_code == 500
    assert response.json()["error"] == error.error_code


def test_road_connectivity_bad_pnu_is_400(client):
    override(api.get_road_analyzer, FakeAnalyzer())

    assert client.get("/api/road/connectivity", params={"pnu": "123"}).status_code == 400


def test_search_route(client):
    override(api.get_address_searcher, FakeSearcher())

    assert client.get("/api/vworld/search", params={"query": " "}).status_code == 400
    data = client.get("/api/vworld/search", params={"query": "테헤란로"}).json()
    assert data["results"][0]["roadAddress"] == "테헤란로 1"


@pytest.mark.parametrize("params", [{}, {"pnu": PNU, "bbox": "1,2,3,4"}, {"bbox": "1,2,3,4", "cql_filter": "x=1"}])
def test_wfs_requires_exactly_one_selector(client, params):
    fetcher = FakeFetcher()
    override(api.get_geometry_fetcher, fetcher)

    response = client.get("/api/vworld/wfs", params=params)

    assert response.status_code == 400
    assert fetcher.calls == []


def test_wfs_passes_through_collection(client):
    fetcher = FakeFetcher()
    override(api.get_geometry_fetcher, fetcher)

    response = client.get("/api/vworld/wfs", params={"bbox": "1,2,3,4", "propertyName": "pnu"})

    assert response.status_code == 200
    assert response.json()["type"] == "FeatureCollection"
    layer, kwargs = fetcher.calls[0]
    assert layer == "lp_pa_cbnd_bubun"
    assert kwargs["srs_name"] == "EPSG:3857"
    assert kwargs["property_names"] == "pnu"


def test_wfs_upstream_error_is_500(client):
    override(api.get_geometry_fetcher, FakeFetcher(error=UpstreamFormatError("Received XML response")))

    response = client.get("/api/vworld/wfs", params={"pnu": PNU})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch WFS data", "details": "Received XML response"}


def test_wms_sets_cache_header(client):
    tiles = FakeTiles()
    override(api.get_tile_client, tiles)

    response = client.get("/api/vworld/wms", params={"LAYERS": "lt_c_uq111", "BBOX": "1,2,3,4"})

    assert response.status_code == 200
    assert response.content == b"\x89PNG"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=86400"
    assert tiles.params["LAYERS"] == "lt_c_uq111"


def test_wms_missing_key_is_500(client):
    override(api.get_tile_client, FakeTiles(error=MissingCredential("V-World API Key is missing")))

    response = client.get("/api/vworld/wms", params={"LAYERS": "lt_c_uq111"})

    assert response.status_code == 500
    assert response.json()["details"] == "V-World API Key is missing"


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
