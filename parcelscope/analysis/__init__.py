"""
Analysis modules for the parcel report
"""

from .geometry_utils import GeometryUtils
from .road_connectivity import RoadConnectivityAnalyzer
from .zone_classifier import SpecialZoneClassifier, ZoneMatches, DEFAULT_KEYWORDS
from .risk_diagnoser import RiskDiagnoser

__all__ = [
    "GeometryUtils",
    "RoadConnectivityAnalyzer",
    "SpecialZoneClassifier",
    "ZoneMatches",
    "DEFAULT_KEYWORDS",
    "RiskDiagnoser",
]
