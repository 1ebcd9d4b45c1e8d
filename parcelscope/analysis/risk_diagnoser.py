"""
Risk diagnosis for a parcel report

Additive scoring from a base of 85 against regulation, zone, market
and price-trend signals. Deterministic: the same report and market
indicators always give the same diagnosis.
"""

from typing import List, Optional

from loguru import logger

from ..config import MarketIndicators, get_config
from ..models import Diagnosis, PriceEntry, Report, Swot


BASE_SCORE = 85
GREENBELT_KEYWORD = "개발제한구역"

LEVEL_ORDER = {"SAFE": 0, "CAUTION": 1, "DANGER": 2}

SUMMARIES = {
    "SAFE": "전반적으로 양호한 입지입니다. 개발 가능성이 높으며, 투자 가치가 충분합니다.",
    "CAUTION": "일부 규제 사항 및 시장 위험이 존재하므로, 신중한 검토가 필요합니다.",
    "DANGER": "개발이 제한되거나 사업성이 낮은 위험 지역입니다. 전문가 상담이 필수적입니다.",
}


def _raise_level(current: str, minimum: str) -> str:
    """Never downgrades: DANGER > CAUTION > SAFE"""
    return minimum if LEVEL_ORDER[minimum] > LEVEL_ORDER[current] else current


def _latest_two(prices: List[PriceEntry]) -> Optional[List[PriceEntry]]:
    """Most recent and prior entries; registry order is most recent first"""
    if len(prices) < 2:
        return None
    if all(p.year is not None for p in prices):
        prices = sorted(prices, key=lambda p: p.year, reverse=True)
    return prices[:2]


class RiskDiagnoser:
    """Score a report and build its SWOT narrative"""

    def __init__(self, market: Optional[MarketIndicators] = None):
        self.market = market or get_config().market

    def diagnose(self, report: Report) -> Diagnosis:
        score = BASE_SCORE
        level = "SAFE"
        details: List[str] = []
        swot = Swot(
            strengths=["기반시설 양호", "교통 접근성 우수"],
            opportunities=["주변 개발 호재", "지가 상승 여력 보유"],
        )

        # 1. Greenbelt
        if any(GREENBELT_KEYWORD in (r.law_name or "") for r in report.regulations):
            score -= 30
            level = "DANGER"
            details.append("개발제한구역 포함 (건축 제한)")
            swot.threats.append("개발제한구역으로 인한 행위 제한")
        else:
            swot.strengths.append("건축 규제 사항 적음")

        # 2. Mountain zone
        if report.special_zones.mountain:
            details.append("산지 구역 포함 (산지전용 허가 필요)")
            swot.weaknesses.append("경사도 및 산지 규제 검토 필요")

        # 3. Financing cost
        rate = self.market.pf_interest_rate
        if rate > self.market.pf_rate_high:
            score -= 10
            level = _raise_level(level, "CAUTION")
            details.append(f"높은 PF 금리 ({rate}%) - 금융 비용 부담")
            swot.threats.append("고금리 기조로 인한 금융 비용 증가")

        # 4. Official price trend
        latest = _latest_two(report.price_history)
        if latest and latest[0].price is not None and latest[1].price is not None \
                and latest[0].price < latest[1].price:
            score -= 5
            level = _raise_level(level, "CAUTION")
            details.append("공시지가 하락 추세")
            swot.weaknesses.append("최근 공시지가 하락세")
        else:
            swot.strengths.append("지가 안정적 유지")

        logger.debug(f"Diagnosis {report.pnu}: {level} ({score})")
        return Diagnosis(level=level, score=score, summary=SUMMARIES[level], details=details, swot=swot)
