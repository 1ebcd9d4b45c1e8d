import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from parcelscope.config import (
    APIConfig,
    Credentials,
    MarketIndicators,
    PipelineConfig,
    RoadAnalysisConfig,
    set_config,
)


PNU = "1168010100100010000"
MOUNTAIN_PNU = "4113510900200120003"


def make_config(
    data_key: str = "test-data-key",
    vworld_key: str = "test-vworld-key",
    deadline_s: float = 8.0,
    tie_break: str = "last",
) -> PipelineConfig:
    return PipelineConfig(
        api=APIConfig(report_deadline_s=deadline_s),
        credentials=Credentials(
            data_go_kr_api_key=data_key,
            toji_eum_api_key=data_key,
            vworld_api_key=vworld_key,
        ),
        road=RoadAnalysisConfig(tie_break=tie_break),
        market=MarketIndicators(),
    )


@pytest.fixture(autouse=True)
def isolated_config():
    """Keep tests independent of the developer's .env and market file"""
    config = make_config()
    set_config(config)
    yield config
    set_config(None)


def registry_xml(items: List[Dict[str, Any]], code: str = "00", message: str = "NORMAL SERVICE.") -> str:
    """Minimal data.go.kr style XML body"""
    body = "".join(
        "<item>" + "".join(f"<{k}>{v}</{k}>" for k, v in item.items()) + "</item>"
        for item in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<response><header><resultCode>{code}</resultCode><resultMsg>{message}</resultMsg></header>"
        f"<body><items>{body}</items><totalCount>{len(items)}</totalCount></body></response>"
    )


def json_response(payload: Any = None, status: int = 200, text: Optional[str] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    if text is None:
        text = json.dumps(payload, ensure_ascii=False)
        response.headers["Content-Type"] = "application/json"
    response._content = text.encode("utf-8")
    return response


class FakeSession:
    """requests.Session stand-in returning queued responses and recording calls"""

    def __init__(self, responses=None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {})})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)
