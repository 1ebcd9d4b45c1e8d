"""
Pydantic models for the parcel report
JSON output uses camelCase keys; Python attributes are snake_case
"""

from typing import Annotated, List, Optional, Dict, Literal, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Provenance = Literal["sourced", "fallback"]
RiskLevel = Literal["SAFE", "CAUTION", "DANGER"]

RegistryDomain = Literal[
    "land_use",
    "land_characteristics",
    "urban_plan",
    "regulations",
    "building",
    "price_history",
    "mountain",
    "heritage",
    "commercial",
    "permits",
    "unsold_housing",
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================
# Registry items
# ============================================================

class LandUsePlan(CamelModel):
    pnu: Optional[str] = None
    land_category: Optional[str] = None       # jimok
    area_sqm: Optional[float] = None
    official_price: Optional[int] = None      # KRW/m2
    land_use_laws: Optional[str] = None


class LandCharacteristics(CamelModel):
    pnu: Optional[str] = None
    land_category: Optional[str] = None
    land_class: Optional[str] = None
    topography_height: Optional[str] = None   # e.g. flat, gentle slope
    topography_shape: Optional[str] = None    # e.g. rectangular, irregular
    road_side: Optional[str] = None           # road frontage class


class UrbanPlanEntry(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None


class Regulation(CamelModel):
    law_name: str = ""
    content: str = ""


class BuildingRecord(CamelModel):
    building_name: Optional[str] = None
    main_purpose: Optional[str] = None
    total_area_sqm: Optional[float] = None
    structure: Optional[str] = None
    use_approval_date: Optional[str] = None
    ground_floors: Optional[int] = None
    underground_floors: Optional[int] = None


class PriceEntry(CamelModel):
    year: Optional[int] = None
    price: Optional[int] = None


class MountainZone(CamelModel):
    zone_name: Optional[str] = None
    zone_class: Optional[str] = None
    area_sqm: Optional[float] = None


class HeritageZone(CamelModel):
    name: Optional[str] = None
    kind_code: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None


class CommercialStore(CamelModel):
    store_name: Optional[str] = None
    category_large: Optional[str] = None
    category_medium: Optional[str] = None
    road_address: Optional[str] = None


class PermitRecord(CamelModel):
    site_address: Optional[str] = None
    main_purpose: Optional[str] = None
    permit_date: Optional[str] = None
    total_area_sqm: Optional[float] = None


class UnsoldHousingRecord(CamelModel):
    region_name: Optional[str] = None
    unsold_units: Optional[int] = None
    base_month: Optional[str] = None


# ============================================================
# Registry records (tagged by domain)
# ============================================================

class RecordBase(CamelModel):
    provenance: Provenance
    warnings: List[str] = Field(default_factory=list)
    reason: Optional[str] = None    # why the fallback was used


class LandUseRecord(RecordBase):
    domain: Literal["land_use"] = "land_use"
    data: Optional[LandUsePlan] = None


class LandCharacteristicsRecord(RecordBase):
    domain: Literal["land_characteristics"] = "land_characteristics"
    data: Optional[LandCharacteristics] = None


class UrbanPlanRecord(RecordBase):
    domain: Literal["urban_plan"] = "urban_plan"
    data: List[UrbanPlanEntry] = Field(default_factory=list)


class RegulationRecord(RecordBase):
    domain: Literal["regulations"] = "regulations"
    data: List[Regulation] = Field(default_factory=list)


class BuildingLedgerRecord(RecordBase):
    domain: Literal["building"] = "building"
    data: List[BuildingRecord] = Field(default_factory=list)


class PriceHistoryRecord(RecordBase):
    domain: Literal["price_history"] = "price_history"
    data: List[PriceEntry] = Field(default_factory=list)


class MountainRecord(RecordBase):
    domain: Literal["mountain"] = "mountain"
    data: List[MountainZone] = Field(default_factory=list)


class HeritageRecord(RecordBase):
    domain: Literal["heritage"] = "heritage"
    data: List[HeritageZone] = Field(default_factory=list)


class CommercialRecord(RecordBase):
    domain: Literal["commercial"] = "commercial"
    data: List[CommercialStore] = Field(default_factory=list)


class PermitsRecord(RecordBase):
    domain: Literal["permits"] = "permits"
    data: List[PermitRecord] = Field(default_factory=list)


class UnsoldHousingRegistryRecord(RecordBase):
    domain: Literal["unsold_housing"] = "unsold_housing"
    data: List[UnsoldHousingRecord] = Field(default_factory=list)


RegistryRecord = Annotated[
    Union[
        LandUseRecord,
        LandCharacteristicsRecord,
        UrbanPlanRecord,
        RegulationRecord,
        BuildingLedgerRecord,
        PriceHistoryRecord,
        MountainRecord,
        HeritageRecord,
        CommercialRecord,
        PermitsRecord,
        UnsoldHousingRegistryRecord,
    ],
    Field(discriminator="domain"),
]


# ============================================================
# Report
# ============================================================

class SpecialZones(CamelModel):
    mountain: List[MountainZone] = Field(default_factory=list)
    heritage: List[HeritageZone] = Field(default_factory=list)
    education: bool = False
    district_plan: bool = False
    cultural_check: bool = False


class Report(CamelModel):
    """Aggregated per-parcel report"""
    pnu: str
    land_use: Optional[LandUsePlan] = None
    land_characteristics: Optional[LandCharacteristics] = None
    urban_plan: List[UrbanPlanEntry] = Field(default_factory=list)
    regulations: List[Regulation] = Field(default_factory=list)
    building: List[BuildingRecord] = Field(default_factory=list)
    price_history: List[PriceEntry] = Field(default_factory=list)
    special_zones: SpecialZones = Field(default_factory=SpecialZones)

    # Per-domain provenance; fallback means static sample data
    provenance: Dict[str, Provenance] = Field(default_factory=dict)
    warnings: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def fallback_domains(self) -> List[str]:
        return sorted(d for d, p in self.provenance.items() if p == "fallback")


class BusinessReport(CamelModel):
    pnu: str
    commercial: List[CommercialStore] = Field(default_factory=list)
    permits: List[PermitRecord] = Field(default_factory=list)
    unsold: List[UnsoldHousingRecord] = Field(default_factory=list)
    provenance: Dict[str, Provenance] = Field(default_factory=dict)


# ============================================================
# Analysis results
# ============================================================

class RoadConnectivityResult(CamelModel):
    is_connected: bool
    road_width: str = "unknown"
    road_name: str = ""
    contact_length: float = 0.0


class Swot(CamelModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    threats: List[str] = Field(default_factory=list)


class Diagnosis(CamelModel):
    level: RiskLevel
    score: int
    summary: str
    details: List[str] = Field(default_factory=list)
    swot: Swot = Field(default_factory=Swot)


# ============================================================
# Address search
# ============================================================

class SearchPoint(CamelModel):
    x: str
    y: str


class AddressResult(CamelModel):
    id: str
    title: str
    road_address: str = ""
    parcel_address: str = ""
    point: SearchPoint
