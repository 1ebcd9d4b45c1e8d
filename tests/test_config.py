import json

import pytest

from parcelscope.config import (
    Credentials,
    MarketIndicators,
    load_market_indicators,
    validate_config,
)

from conftest import make_config


def test_market_indicators_from_file(tmp_path):
    path = tmp_path / "market.json"
    path.write_text(json.dumps({"pf_interest_rate": 6.5, "market_sentiment": "NEUTRAL"}), encoding="utf-8")

    market = load_market_indicators(path)

    assert market.pf_interest_rate == 6.5
    assert market.market_sentiment == "NEUTRAL"
    assert market.pf_rate_high == MarketIndicators().pf_rate_high


def test_unknown_market_keys_are_rejected(tmp_path):
    path = tmp_path / "market.json"
    path.write_text(json.dumps({"pf_intrest_rate": 6.5}), encoding="utf-8")

    with pytest.raises(ValueError, match="pf_intrest_rate"):
        load_market_indicators(path)


def test_missing_market_file_gives_defaults(tmp_path):
    assert load_market_indicators(tmp_path / "absent.json") == MarketIndicators()


def test_market_file_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "ops.json"
    path.write_text(json.dumps({"pf_interest_rate": 7.0}), encoding="utf-8")
    monkeypatch.setenv("PARCELSCOPE_MARKET_FILE", str(path))

    assert load_market_indicators().pf_interest_rate == 7.0


def test_credentials_from_env(monkeypatch):
    monkeypatch.setenv("DATA_GO_KR_API_KEY", "data")
    monkeypatch.delenv("TOJI_EUM_API_KEY", raising=False)
    monkeypatch.setenv("VWORLD_API_KEY", "vworld")

    credentials = Credentials.from_env()

    assert credentials.toji_eum_api_key == "data"
    assert credentials.vworld_api_key == "vworld"


@pytest.mark.parametrize("key, usable", [("abc", True), ("", False), (None, False), ("ab********cd", False)])
def test_key_usability(key, usable):
    assert Credentials.is_usable(key) is usable


def test_validate_config_accepts_defaults():
    validate_config(make_config())


def test_validate_config_collects_errors():
    config = make_config(tie_break="widest")
    config.road.buffer_distance_m = 0

    with pytest.raises(ValueError) as exc_info:
        validate_config(config)
    message = str(exc_info.value)
    assert "tie_break" in message
    assert "buffer_distance_m" in message
