"""
Registry sources

One RegistrySource per registry domain. Each derives its request
parameters from the parcel identifier, issues exactly one call with a
bounded timeout, and normalizes the body into a typed record.

Every failure (missing key, transport error, non-success result code,
malformed body, no items) resolves to the domain's fallback record
tagged 'fallback'. fetch() never raises.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type
from urllib.parse import unquote

import httpx
from loguru import logger
from pydantic import BaseModel

from .fallback import fallback_payload
from .parser import FieldMap, decode_body, check_status, extract_items, normalize_items
from ...config import get_config, PipelineConfig, Credentials
from ...errors import UpstreamError, UpstreamTimeout, UpstreamStatusError, MissingCredential
from ...pnu import ParcelIdentifier
from ...models import (
    RecordBase,
    LandUsePlan, LandUseRecord,
    LandCharacteristics, LandCharacteristicsRecord,
    UrbanPlanEntry, UrbanPlanRecord,
    Regulation, RegulationRecord,
    BuildingRecord, BuildingLedgerRecord,
    PriceEntry, PriceHistoryRecord,
    MountainZone, MountainRecord,
    HeritageZone, HeritageRecord,
    CommercialStore, CommercialRecord,
    PermitRecord, PermitsRecord,
    UnsoldHousingRecord, UnsoldHousingRegistryRecord,
)


ParamsBuilder = Callable[[ParcelIdentifier], Dict[str, str]]


@dataclass(frozen=True)
class RegistrySpec:
    """Static description of one registry endpoint"""
    domain: str
    base_url_attr: str            # attribute of APIConfig
    operation: str
    params: ParamsBuilder
    item_model: Type[BaseModel]
    field_map: FieldMap
    record_model: Type[RecordBase]
    many: bool = True             # list of items vs. single item
    credential: str = "data"      # "data" or "toji_eum"


def _pnu_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {"pnu": identifier.pnu}


def _pnu_page_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {"pnu": identifier.pnu, "numOfRows": "10"}


def _ledger_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {
        "sigunguCd": identifier.region_code,
        "bjdongCd": identifier.subregion_code,
        "platGbCd": identifier.plat_gb_code,
        "bun": identifier.main_lot,
        "ji": identifier.sub_lot,
        "numOfRows": "10",
    }


def _mountain_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {
        "sigunguCd": identifier.region_code,
        "bjdongCd": identifier.subregion_code,
        "bun": identifier.main_lot,
        "ji": identifier.sub_lot,
        "mountainGb": "1" if identifier.is_mountain_lot else "0",
        "numOfRows": "10",
    }


def _heritage_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {
        "ccbaKdcd": "11",   # national treasures
        "ctprvnCd": identifier.province_code,
        "gugunCd": identifier.district_code,
        "numOfRows": "10",
    }


def _commercial_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {"divId": "ctprvnCd", "key": identifier.subregion_code}


def _permit_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {
        "sigunguCd": identifier.region_code,
        "bjdongCd": identifier.subregion_code,
        "bun": identifier.main_lot,
        "ji": identifier.sub_lot,
        "numOfRows": "10",
    }


def _unsold_params(identifier: ParcelIdentifier) -> Dict[str, str]:
    return {"sigunguCd": identifier.region_code, "numOfRows": "10"}


REGISTRY_SPECS: Dict[str, RegistrySpec] = {
    spec.domain: spec for spec in (
        RegistrySpec(
            domain="land_use",
            base_url_attr="land_use_url",
            operation="getLandUsePlan",
            params=_pnu_params,
            item_model=LandUsePlan,
            field_map={
                "pnu": ("pnu",),
                "land_category": ("lndcNm",),
                "area_sqm": ("ar",),
                "official_price": ("indivOalp",),
                "land_use_laws": ("luseLawNm",),
            },
            record_model=LandUseRecord,
            many=False,
            credential="toji_eum",
        ),
        RegistrySpec(
            domain="land_characteristics",
            base_url_attr="land_characteristics_url",
            operation="getLandCharacteristics",
            params=_pnu_params,
            item_model=LandCharacteristics,
            field_map={
                "pnu": ("pnu",),
                "land_category": ("lndcNm",),
                "land_class": ("lndSeCdNm",),
                "topography_height": ("tpgrphPitcSeCdNm",),
                "topography_shape": ("tpgrphFrmSeCdNm",),
                "road_side": ("roadSideSeCdNm",),
            },
            record_model=LandCharacteristicsRecord,
            many=False,
            credential="toji_eum",
        ),
        RegistrySpec(
            domain="urban_plan",
            base_url_attr="land_use_url",
            operation="getUrbPlanInfo",
            params=_pnu_params,
            item_model=UrbanPlanEntry,
            field_map={"name": ("upisuName", "jiyukNm"), "type": ("type",)},
            record_model=UrbanPlanRecord,
            credential="toji_eum",
        ),
        RegistrySpec(
            domain="regulations",
            base_url_attr="land_use_url",
            operation="getRegulationInfo",
            params=_pnu_params,
            item_model=Regulation,
            field_map={"law_name": ("luseLawNm",), "content": ("content",)},
            record_model=RegulationRecord,
            credential="toji_eum",
        ),
        RegistrySpec(
            domain="building",
            base_url_attr="building_url",
            operation="getBrTitleInfo",
            params=_ledger_params,
            item_model=BuildingRecord,
            field_map={
                "building_name": ("bldNm",),
                "main_purpose": ("mainPurpsCdNm",),
                "total_area_sqm": ("totArea",),
                "structure": ("strctCdNm",),
                "use_approval_date": ("useAprDay",),
                "ground_floors": ("grndFlrCnt",),
                "underground_floors": ("ugrndFlrCnt",),
            },
            record_model=BuildingLedgerRecord,
        ),
        RegistrySpec(
            domain="price_history",
            base_url_attr="land_use_url",
            operation="getIndivOalp",
            params=_pnu_page_params,
            item_model=PriceEntry,
            field_map={"year": ("stdrYear",), "price": ("indivOalp", "pblntfPclnd")},
            record_model=PriceHistoryRecord,
        ),
        RegistrySpec(
            domain="mountain",
            base_url_attr="mountain_url",
            operation="getSanjiInfo",
            params=_mountain_params,
            item_model=MountainZone,
            field_map={
                "zone_name": ("sanjiNm", "prposAreaDstrcCodeNm"),
                "zone_class": ("sanjiGbNm",),
                "area_sqm": ("ar",),
            },
            record_model=MountainRecord,
        ),
        RegistrySpec(
            domain="heritage",
            base_url_attr="heritage_url",
            operation="getCcbaCtgryList",
            params=_heritage_params,
            item_model=HeritageZone,
            field_map={
                "name": ("ccbaMnm1",),
                "kind_code": ("ccbaKdcd",),
                "province": ("ccbaCtcdNm",),
                "district": ("ccsiName",),
            },
            record_model=HeritageRecord,
        ),
        RegistrySpec(
            domain="commercial",
            base_url_attr="commercial_url",
            operation="storeListInDong",
            params=_commercial_params,
            item_model=CommercialStore,
            field_map={
                "store_name": ("bizesNm",),
                "category_large": ("indsLclsNm",),
                "category_medium": ("indsMclsNm",),
                "road_address": ("rdnmAdr",),
            },
            record_model=CommercialRecord,
        ),
        RegistrySpec(
            domain="permits",
            base_url_attr="permit_url",
            operation="getApBasisOulnInfo",
            params=_permit_params,
            item_model=PermitRecord,
            field_map={
                "site_address": ("platPlc",),
                "main_purpose": ("mainPurpsCdNm",),
                "permit_date": ("archPmsDay",),
                "total_area_sqm": ("totArea",),
            },
            record_model=PermitsRecord,
        ),
        RegistrySpec(
            domain="unsold_housing",
            base_url_attr="unsold_url",
            operation="getUnsoldHouseInfo",
            params=_unsold_params,
            item_model=UnsoldHousingRecord,
            field_map={
                "region_name": ("sigunguNm",),
                "unsold_units": ("unsoldCnt",),
                "base_month": ("stdrYm",),
            },
            record_model=UnsoldHousingRegistryRecord,
        ),
    )
}


class RegistrySource:
    """Fetch one registry domain with fallback on any failure"""

    def __init__(self, spec: RegistrySpec, config: Optional[PipelineConfig] = None):
        self.spec = spec
        self.config = config or get_config()
        self.url = f"{getattr(self.config.api, spec.base_url_attr)}/{spec.operation}"
        self.timeout = self.config.api.registry_timeout_s

    @property
    def domain(self) -> str:
        return self.spec.domain

    def _api_key(self) -> str:
        credentials = self.config.credentials
        key = credentials.toji_eum_api_key if self.spec.credential == "toji_eum" else credentials.data_go_kr_api_key
        if not Credentials.is_usable(key):
            raise MissingCredential(f"API key missing or masked for {self.spec.operation}")
        # Keys pasted from the portal are often already URL-encoded
        return unquote(key)

    async def fetch(
        self,
        identifier: ParcelIdentifier,
        client: Optional[httpx.AsyncClient] = None,
    ) -> RecordBase:
        """Return a sourced record, or the fallback record on any failure"""
        try:
            if client is None:
                async with httpx.AsyncClient() as own_client:
                    return await self._fetch_sourced(identifier, own_client)
            return await self._fetch_sourced(identifier, client)
        except MissingCredential as e:
            logger.warning(f"[{self.domain}] {e}. Using fallback data.")
            return self.fallback(identifier, reason=str(e))
        except UpstreamError as e:
            logger.warning(f"[{self.domain}] {type(e).__name__}: {e}. Using fallback data.")
            return self.fallback(identifier, reason=str(e))
        except Exception as e:
            logger.exception(f"[{self.domain}] Unexpected registry failure: {e}. Using fallback data.")
            return self.fallback(identifier, reason=f"unexpected error: {e}")

    async def _fetch_sourced(self, identifier: ParcelIdentifier, client: httpx.AsyncClient) -> RecordBase:
        params = {
            **self.spec.params(identifier),
            "serviceKey": self._api_key(),
            "format": "xml",
        }
        logger.debug(f"[{self.domain}] GET {self.url} ({identifier.pnu})")

        try:
            response = await client.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"timed out after {self.timeout}s", url=self.url) from e
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise UpstreamStatusError(f"HTTP error {code}", code=str(code), url=self.url) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"request failed: {e}", url=self.url) from e

        data = decode_body(response.text)
        check_status(data)
        raw_items = extract_items(data)
        if not raw_items:
            raise UpstreamError("response contained no items", url=self.url)

        if not self.spec.many:
            raw_items = raw_items[:1]
        items, warnings = normalize_items(self.spec.item_model, self.spec.field_map, raw_items, self.domain)
        for warning in warnings:
            logger.debug(f"[{self.domain}] partial record: {warning}")

        logger.info(f"[{self.domain}] {len(items)} item(s) from registry")
        data_value: Any = items if self.spec.many else items[0]
        return self.spec.record_model(provenance="sourced", data=data_value, warnings=warnings)

    def fallback(self, identifier: ParcelIdentifier, reason: Optional[str] = None) -> RecordBase:
        """Static fallback record for this domain"""
        payload = fallback_payload(self.domain, identifier.pnu)
        if self.spec.many:
            data: Any = [self.spec.item_model.model_validate(item) for item in payload]
        else:
            data = self.spec.item_model.model_validate(payload)
        return self.spec.record_model(provenance="fallback", data=data, reason=reason)


def build_sources(config: Optional[PipelineConfig] = None) -> Dict[str, RegistrySource]:
    """One RegistrySource per known domain"""
    config = config or get_config()
    return {domain: RegistrySource(spec, config) for domain, spec in REGISTRY_SPECS.items()}
