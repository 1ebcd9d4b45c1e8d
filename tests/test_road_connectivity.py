import pytest

from parcelscope.analysis import RoadConnectivityAnalyzer
from parcelscope.errors import AnalysisFailed, InvalidIdentifier, ParcelNotFound, UpstreamTimeout

from conftest import PNU, make_config


# Roughly 18m x 22m parcel in Seoul
WEST, SOUTH, EAST, NORTH = 127.0, 37.5, 127.0002, 37.5002

PARCEL = {
    "type": "Feature",
    "geometry": {
        "type": "Polygon",
        "coordinates": [[[WEST, SOUTH], [EAST, SOUTH], [EAST, NORTH], [WEST, NORTH], [WEST, SOUTH]]],
    },
    "properties": {"pnu": PNU},
}


def road(coords, **properties):
    return {"type": "Feature", "geometry": {"type": "LineString", "coordinates": coords}, "properties": properties}


# ~0.4m east of the parcel, inside the 1m buffer, short run along the east edge
EAST_ROAD = road([[EAST + 0.000005, SOUTH + 0.00005], [EAST + 0.000005, SOUTH + 0.0001]], rvw_nam="10m", fac_nam="동측로")
# ~0.4m south of the parcel, runs past the whole south edge
SOUTH_ROAD = road([[WEST - 0.0001, SOUTH - 0.000004], [EAST + 0.0001, SOUTH - 0.000004]], dwk_nam="8m", fac_nam="남측로")
# ~90m away
FAR_ROAD = road([[WEST + 0.001, SOUTH], [WEST + 0.001, NORTH]], rvw_nam="20m", fac_nam="원거리로")


class FakeFetcher:
    def __init__(self, parcel=PARCEL, roads=(), road_error=None):
        self.parcel = parcel
        self.roads = list(roads)
        self.road_error = road_error
        self.calls = []

    def fetch_by_identifier(self, layer, pnu):
        self.calls.append(("identifier", layer, pnu))
        return self.parcel

    def fetch_by_bbox(self, layer, bbox, property_names=None, srs_name="EPSG:4326"):
        self.calls.append(("bbox", layer, bbox))
        if self.road_error:
            raise self.road_error
        return self.roads


def analyze(fetcher, tie_break="last"):
    return RoadConnectivityAnalyzer(fetcher=fetcher, config=make_config(tie_break=tie_break)).analyze(PNU)


def test_no_intersecting_road_is_not_connected():
    result = analyze(FakeFetcher(roads=[FAR_ROAD]))

    assert result.is_connected is False
    assert result.road_width == "unknown"
    assert result.road_name == ""
    assert result.contact_length == 0.0


def test_road_within_buffer_is_connected():
    result = analyze(FakeFetcher(roads=[EAST_ROAD]))

    assert result.is_connected is True
    assert result.road_width == "10m"
    assert result.road_name == "동측로"


def test_second_width_attribute_is_used():
    result = analyze(FakeFetcher(roads=[SOUTH_ROAD]))

    assert result.road_width == "8m"


def test_road_without_name_gets_default_name():
    unnamed = road(EAST_ROAD["geometry"]["coordinates"], rvw_nam="6m")

    result = analyze(FakeFetcher(roads=[unnamed]))

    assert result.road_name == "도로"


def test_road_without_width_is_connected_with_unknown_width():
    no_width = road(EAST_ROAD["geometry"]["coordinates"], fac_nam="소로")

    result = analyze(FakeFetcher(roads=[no_width]))

    assert result.is_connected is True
    assert result.road_width == "unknown"


def test_bbox_is_expanded_by_margin():
    fetcher = FakeFetcher(roads=[])

    analyze(fetcher)

    _, layer, bbox = fetcher.calls[1]
    assert layer == "lt_l_upis_uq151"
    assert bbox == pytest.approx((WEST - 0.0001, SOUTH - 0.0001, EAST + 0.0001, NORTH + 0.0001))


def test_last_policy_keeps_last_road_with_width():
    result = analyze(FakeFetcher(roads=[SOUTH_ROAD, EAST_ROAD, FAR_ROAD]))

    assert result.road_width == "10m"
    assert result.road_name == "동측로"
    assert result.contact_length == 0.0


def test_longest_contact_policy_prefers_longer_frontage():
    result = analyze(FakeFetcher(roads=[SOUTH_ROAD, EAST_ROAD]), tie_break="longest_contact")

    assert result.is_connected is True
    assert result.road_width == "8m"
    assert result.road_name == "남측로"
    assert result.contact_length > 15.0


def test_missing_parcel_raises_parcel_not_found():
    with pytest.raises(ParcelNotFound):
        analyze(FakeFetcher(parcel=None))


def test_upstream_failure_aborts_analysis():
    with pytest.raises(AnalysisFailed):
        analyze(FakeFetcher(road_error=UpstreamTimeout("slow")))


def test_invalid_identifier_is_rejected_before_fetching():
    fetcher = FakeFetcher()
    analyzer = RoadConnectivityAnalyzer(fetcher=fetcher, config=make_config())

    with pytest.raises(InvalidIdentifier):
        analyzer.analyze(PNU[:18])
    assert fetcher.calls == []
