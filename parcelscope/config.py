"""
Configuration settings for the Parcel Report Generator
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional
import json
import os

from dotenv import load_dotenv
from loguru import logger


PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_MARKET_FILE = PROJECT_ROOT / "config" / "market_indicators.json"

# Keys copied from the public-data portal are sometimes pasted masked
MASKED_KEY_MARKER = "********"


@dataclass
class APIConfig:
    """API endpoints and request settings"""
    # V-World (spatial features, tiles, address search)
    vworld_wfs_url: str = "https://api.vworld.kr/req/wfs"
    vworld_wms_url: str = "https://api.vworld.kr/req/wms"
    vworld_search_url: str = "https://api.vworld.kr/req/search"
    vworld_domain: str = "localhost"

    # data.go.kr registries
    land_use_url: str = "https://apis.data.go.kr/1613000/NSOLandUseInfoService"
    land_characteristics_url: str = "https://apis.data.go.kr/1613000/LandCharacteristicsService"
    building_url: str = "https://apis.data.go.kr/1613000/BldRgstService_v2"
    mountain_url: str = "https://apis.data.go.kr/1400000/ForestInfoService"
    heritage_url: str = "https://www.cha.go.kr/cha/SearchKindOpenapi.do"
    commercial_url: str = "https://apis.data.go.kr/B553077/api/open/sdsc2"
    permit_url: str = "https://apis.data.go.kr/1613000/ArchPmsService_v2"
    unsold_url: str = "https://apis.data.go.kr/1613000/MIFHService"

    # Request settings
    registry_timeout_s: float = 5.0      # per registry call
    report_deadline_s: float = 8.0       # whole fan-out, cancels stragglers
    geometry_timeout_s: float = 10.0
    search_page_size: int = 10

    user_agent: str = "ParcelScope/1.0"


@dataclass
class Credentials:
    """API keys, read from the environment (optionally via .env)"""
    data_go_kr_api_key: str = ""
    toji_eum_api_key: str = ""
    vworld_api_key: str = ""

    @staticmethod
    def is_usable(key: Optional[str]) -> bool:
        return bool(key) and MASKED_KEY_MARKER not in key

    @classmethod
    def from_env(cls) -> "Credentials":
        data_key = os.getenv("DATA_GO_KR_API_KEY", "")
        return cls(
            data_go_kr_api_key=data_key,
            toji_eum_api_key=os.getenv("TOJI_EUM_API_KEY", "") or data_key,
            vworld_api_key=os.getenv("VWORLD_API_KEY", ""),
        )


@dataclass
class RoadAnalysisConfig:
    """Road connectivity settings"""
    parcel_layer: str = "lp_pa_cbnd_bubun"     # continuous cadastral map
    road_layer: str = "lt_l_upis_uq151"        # urban planning road facility
    bbox_margin_deg: float = 0.0001            # ~11m at Korean latitudes
    buffer_distance_m: float = 1.0
    metric_crs: str = "EPSG:5179"
    source_crs: str = "EPSG:4326"
    width_attributes: List[str] = field(default_factory=lambda: ["rvw_nam", "dwk_nam"])
    name_attribute: str = "fac_nam"
    default_road_name: str = "도로"
    unknown_width: str = "unknown"
    # "last" keeps the last intersecting road with a width,
    # "longest_contact" picks the road with the longest run inside the buffer
    tie_break: str = "last"


@dataclass
class MarketIndicators:
    """Market constants used by the diagnosis; operator edited"""
    # Financial
    pf_interest_rate: float = 8.5        # project financing rate (%)
    mortgage_rate: float = 4.5

    # Market risk
    unsold_risk_level: str = "HIGH"      # HIGH, MEDIUM, LOW
    vacancy_rate_seoul_office: float = 2.1
    vacancy_rate_seoul_retail: float = 8.5

    # Construction
    construction_cost_per_py: int = 8_500_000   # KRW per pyeong

    # Sentiment
    market_sentiment: str = "BEARISH"    # BULLISH, NEUTRAL, BEARISH

    # Thresholds
    pf_rate_high: float = 8.0
    vacancy_rate_high: float = 10.0


@dataclass
class PipelineConfig:
    """Pipeline configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    credentials: Credentials = field(default_factory=Credentials)
    road: RoadAnalysisConfig = field(default_factory=RoadAnalysisConfig)
    market: MarketIndicators = field(default_factory=MarketIndicators)


TIE_BREAK_POLICIES = ("last", "longest_contact")


def load_env() -> None:
    """Load a .env file from the project root or working directory"""
    for env_path in (PROJECT_ROOT / ".env", Path.cwd() / ".env"):
        if env_path.exists():
            load_dotenv(env_path, override=False)  # Don't override existing env vars
            logger.debug(f"Loaded .env file from {env_path}")
            return


def load_market_indicators(path: Optional[Path] = None) -> MarketIndicators:
    """
    Read market indicators from an operator-edited JSON file.

    Missing file means defaults. Unknown keys raise ValueError so typos
    in the file do not silently fall back to defaults.
    """
    if path is None:
        env_path = os.getenv("PARCELSCOPE_MARKET_FILE")
        path = Path(env_path) if env_path else DEFAULT_MARKET_FILE

    path = Path(path)
    if not path.exists():
        logger.debug(f"Market indicator file not found at {path}, using defaults")
        return MarketIndicators()

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    known = {f.name for f in fields(MarketIndicators)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown market indicator keys in {path}: {', '.join(unknown)}")

    logger.info(f"Loaded market indicators from {path}")
    return MarketIndicators(**data)


def build_config() -> PipelineConfig:
    """Assemble configuration from environment and operator files"""
    load_env()
    config = PipelineConfig(
        credentials=Credentials.from_env(),
        market=load_market_indicators(),
    )
    validate_config(config)
    return config


_config: Optional[PipelineConfig] = None


def get_config() -> PipelineConfig:
    """Get global configuration"""
    global _config
    if _config is None:
        _config = build_config()
    return _config


def set_config(config: Optional[PipelineConfig]) -> None:
    """Replace the global configuration (None forces a rebuild on next access)"""
    global _config
    _config = config


def validate_config(config: PipelineConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []

    if config.api.registry_timeout_s <= 0:
        errors.append(f"api.registry_timeout_s must be positive, got {config.api.registry_timeout_s}")
    if config.api.report_deadline_s <= 0:
        errors.append(f"api.report_deadline_s must be positive, got {config.api.report_deadline_s}")
    if config.api.geometry_timeout_s <= 0:
        errors.append(f"api.geometry_timeout_s must be positive, got {config.api.geometry_timeout_s}")

    if config.road.buffer_distance_m <= 0:
        errors.append(f"road.buffer_distance_m must be positive, got {config.road.buffer_distance_m}")
    if config.road.bbox_margin_deg < 0:
        errors.append(f"road.bbox_margin_deg must not be negative, got {config.road.bbox_margin_deg}")
    if not config.road.width_attributes:
        errors.append("road.width_attributes must name at least one attribute")
    if config.road.tie_break not in TIE_BREAK_POLICIES:
        errors.append(f"road.tie_break must be one of {TIE_BREAK_POLICIES}, got {config.road.tie_break!r}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
