import pytest

from parcelscope.collectors.vworld import AddressSearcher, VWorldAPIClient
from parcelscope.errors import UpstreamStatusError

from conftest import FakeSession, json_response, make_config


def search_payload(items):
    return {"response": {"status": "OK", "result": {"items": items}}}


def item(pnu, road="", parcel="", x="127.0", y="37.5"):
    return {"id": pnu, "address": {"road": road, "parcel": parcel}, "point": {"x": x, "y": y}}


def make_searcher(session):
    return AddressSearcher(VWorldAPIClient(make_config(), session=session))


def test_results_are_deduplicated_by_id():
    session = FakeSession([
        json_response(search_payload([item("A", road="테헤란로 1"), item("B", road="테헤란로 2")])),
        json_response(search_payload([item("A", road="테헤란로 1", parcel="역삼동 1"), item("C", parcel="역삼동 3")])),
    ])

    results = make_searcher(session).search("테헤란로")

    assert [r.id for r in results] == ["A", "B", "C"]
    # later duplicate wins
    assert results[0].parcel_address == "역삼동 1"
    assert results[2].title == "역삼동 3"
    assert [c["params"]["category"] for c in session.calls] == ["ROAD", "PARCEL"]


def test_not_found_is_empty():
    session = FakeSession([
        json_response({"response": {"status": "NOT_FOUND"}}),
        json_response({"response": {"status": "NOT_FOUND"}}),
    ])

    assert make_searcher(session).search("없는주소") == []


def test_error_status_raises():
    session = FakeSession([
        json_response({"response": {"status": "ERROR", "error": {"text": "인증키 정보가 올바르지 않습니다."}}}),
    ])

    with pytest.raises(UpstreamStatusError, match="인증키"):
        make_searcher(session).search("테헤란로")


def test_road_failure_skips_parcel_search():
    session = FakeSession([
        json_response({"response": {"status": "ERROR", "error": {"text": "LIMITED"}}}),
        json_response(search_payload([item("A", parcel="역삼동 1")])),
    ])

    with pytest.raises(UpstreamStatusError):
        make_searcher(session).search("테헤란로")
    assert [c["params"]["category"] for c in session.calls] == ["ROAD"]


def test_result_json_shape():
    session = FakeSession([
        json_response(search_payload([item("A", road="테헤란로 1", x="127.03", y="37.50")])),
        json_response({"response": {"status": "NOT_FOUND"}}),
    ])

    data = make_searcher(session).search("테헤란로")[0].to_json_dict()

    assert data == {
        "id": "A",
        "title": "테헤란로 1",
        "roadAddress": "테헤란로 1",
        "parcelAddress": "",
        "point": {"x": "127.03", "y": "37.50"},
    }
