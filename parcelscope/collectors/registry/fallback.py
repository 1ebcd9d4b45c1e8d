"""
Static fallback data per registry domain

Used when a registry is unreachable or misconfigured so that a report
always has a complete, renderable shape. The sample describes a
natural-green-zone forest lot with a single warehouse.
"""

from typing import Dict, Any, List


FALLBACK_LAND_USE: Dict[str, Any] = {
    "land_category": "임야",
    "area_sqm": 15420,
    "official_price": 12500,
    "land_use_laws": (
        "국토의 계획 및 이용에 관한 법률: 자연녹지지역, "
        "가축분뇨의 관리 및 이용에 관한 법률: 가축사육제한구역(절대제한구역), "
        "산지관리법: 준보전산지, 수도법: 공장설립승인지역"
    ),
}

FALLBACK_LAND_CHARACTERISTICS: Dict[str, Any] = {
    "land_category": "임야",
    "land_class": "일반산지",
    "topography_height": "완경사",
    "topography_shape": "부정형",
    "road_side": "세로(불)",
}

FALLBACK_URBAN_PLAN: List[Dict[str, Any]] = [
    {"name": "자연녹지지역", "type": "용도지역"},
    {"name": "가축사육제한구역", "type": "기타"},
    {"name": "준보전산지", "type": "산지"},
    {"name": "공장설립승인지역", "type": "수도"},
    {"name": "대로3류(폭 25m~30m)(접합)", "type": "도시계획시설"},
]

FALLBACK_REGULATIONS: List[Dict[str, Any]] = [
    {"law_name": "국토의 계획 및 이용에 관한 법률", "content": "자연녹지지역"},
    {"law_name": "가축분뇨의 관리 및 이용에 관한 법률", "content": "가축사육제한구역(절대제한구역)"},
    {"law_name": "산지관리법", "content": "준보전산지"},
    {"law_name": "수도법", "content": "공장설립승인지역(수도법시행령 제14조의3 1호)"},
]

FALLBACK_BUILDING: List[Dict[str, Any]] = [
    {
        "building_name": "양호동 물류창고",
        "main_purpose": "창고시설",
        "total_area_sqm": 450.5,
        "structure": "일반철골구조",
        "use_approval_date": "20180615",
        "ground_floors": 1,
        "underground_floors": 0,
    },
]

# Most recent first
FALLBACK_PRICE_HISTORY: List[Dict[str, Any]] = [
    {"year": 2024, "price": 12500},
    {"year": 2023, "price": 12800},
    {"year": 2022, "price": 13500},
    {"year": 2021, "price": 11000},
    {"year": 2020, "price": 10500},
]


def fallback_payload(domain: str, pnu: str) -> Any:
    """
    Fresh fallback data for a domain

    Single-item domains return a dict, list domains a list. Domains
    without a sample (mountain, heritage, business registries) fall back
    to an empty list.
    """
    if domain == "land_use":
        return {"pnu": pnu, **FALLBACK_LAND_USE}
    if domain == "land_characteristics":
        return {"pnu": pnu, **FALLBACK_LAND_CHARACTERISTICS}

    samples = {
        "urban_plan": FALLBACK_URBAN_PLAN,
        "regulations": FALLBACK_REGULATIONS,
        "building": FALLBACK_BUILDING,
        "price_history": FALLBACK_PRICE_HISTORY,
    }
    return [dict(item) for item in samples.get(domain, [])]
