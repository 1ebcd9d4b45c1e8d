"""
Special-zone classification from regulation text

Substring heuristic over regulation law names and content. The keyword
table is data so it can be extended without touching the aggregator.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set

from ..models import Regulation


DEFAULT_KEYWORDS: Dict[str, Sequence[str]] = {
    "education": ("교육환경보호구역", "상대보호구역", "절대보호구역"),
    "district_plan": ("지구단위계획구역",),
    "cultural": ("문화재", "역사문화환경"),
}


@dataclass
class ZoneMatches:
    education: bool = False
    district_plan: bool = False
    cultural: bool = False
    matched: Set[str] = field(default_factory=set)   # every zone name that matched


class SpecialZoneClassifier:
    """Flag special zones mentioned anywhere in a parcel's regulations"""

    def __init__(self, keywords: Optional[Mapping[str, Sequence[str]]] = None):
        self.keywords = dict(keywords or DEFAULT_KEYWORDS)

    def matched_zones(self, regulations: Iterable[Regulation]) -> Set[str]:
        texts = [f"{r.law_name or ''}\n{r.content or ''}" for r in regulations]
        return {
            zone
            for zone, words in self.keywords.items()
            if any(word in text for text in texts for word in words)
        }

    def classify(self, regulations: Iterable[Regulation]) -> ZoneMatches:
        matched = self.matched_zones(regulations)
        return ZoneMatches(
            education="education" in matched,
            district_plan="district_plan" in matched,
            cultural="cultural" in matched,
            matched=matched,
        )
