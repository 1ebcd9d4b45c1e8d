"""
Report Aggregator for Parcel Reports

Fans out to the registry sources for one parcel and merges the results:

  1. Input: PNU (parsed and validated)
  2. Fetch all registry domains concurrently (shared HTTP client)
  3. Fan in, bounded by the overall report deadline
  4. Classify special zones from the merged regulations
  5. Assemble the report with per-domain provenance

Every domain resolves to sourced data or its fallback record, so a
report is always fully shaped. The only fatal error is a malformed PNU.

Data Sources:
  - Toji-eum land-use registries: land use, characteristics, urban plan, regulations
  - data.go.kr: building ledger, official price, mountain, permits, unsold housing
  - Cultural Heritage Administration: heritage zones
  - SEMAS commercial district: store density
"""

import asyncio
import json
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import httpx
from loguru import logger

from .analysis import RiskDiagnoser, SpecialZoneClassifier
from .collectors.registry import RegistrySource, build_sources
from .config import get_config, PipelineConfig
from .models import BusinessReport, Diagnosis, RecordBase, Report, SpecialZones
from .pnu import ParcelIdentifier, parse_identifier


CORE_DOMAINS = (
    "land_use",
    "land_characteristics",
    "urban_plan",
    "regulations",
    "building",
    "price_history",
    "mountain",
    "heritage",
)
BUSINESS_DOMAINS = ("commercial", "permits", "unsold_housing")

DEADLINE_REASON = "report deadline exceeded"


class ReportAggregator:
    """
    Build parcel reports from the registry sources

    Usage:
        aggregator = ReportAggregator()
        report = asyncio.run(aggregator.build_report("1168010100100010000"))
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        sources: Optional[Dict[str, RegistrySource]] = None,
        classifier: Optional[SpecialZoneClassifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config()
        self.sources = sources if sources is not None else build_sources(self.config)
        self.classifier = classifier or SpecialZoneClassifier()
        self.transport = transport  # override for tests
        self.deadline = self.config.api.report_deadline_s

    async def fetch_domains(
        self,
        identifier: Union[str, ParcelIdentifier],
        domains: Iterable[str],
    ) -> Dict[str, RecordBase]:
        """
        Fetch a subset of registry domains concurrently

        Sources still running at the report deadline are cancelled
        together and resolve to their fallback records.

        Raises:
            InvalidIdentifier: malformed PNU
            ValueError: unknown domain name
        """
        if not isinstance(identifier, ParcelIdentifier):
            identifier = parse_identifier(identifier)

        wanted = list(dict.fromkeys(domains))
        unknown = [d for d in wanted if d not in self.sources]
        if unknown:
            raise ValueError(f"Unknown registry domains: {', '.join(unknown)}")
        if not wanted:
            return {}

        async with httpx.AsyncClient(transport=self.transport) as client:
            tasks = {
                asyncio.ensure_future(self.sources[domain].fetch(identifier, client)): domain
                for domain in wanted
            }
            done, pending = await asyncio.wait(tasks, timeout=self.deadline)

            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        records: Dict[str, RecordBase] = {}
        for task, domain in tasks.items():
            source = self.sources[domain]
            if task in done and not task.cancelled():
                error = task.exception()
                if error is None:
                    records[domain] = task.result()
                else:
                    logger.error(f"[{domain}] source raised past its boundary: {error!r}")
                    records[domain] = source.fallback(identifier, reason=f"unexpected error: {error}")
            else:
                logger.warning(f"[{domain}] not settled after {self.deadline}s, cancelled")
                records[domain] = source.fallback(identifier, reason=DEADLINE_REASON)

        return {domain: records[domain] for domain in wanted}

    async def build_report(self, pnu: Union[str, ParcelIdentifier]) -> Report:
        """
        Build the full per-parcel report

        Raises:
            InvalidIdentifier: malformed PNU
        """
        identifier = pnu if isinstance(pnu, ParcelIdentifier) else parse_identifier(pnu)
        logger.info(f"Building report for {identifier.pnu}")

        records = await self.fetch_domains(identifier, CORE_DOMAINS)
        zones = self.classifier.classify(records["regulations"].data)

        report = Report(
            pnu=identifier.pnu,
            land_use=records["land_use"].data,
            land_characteristics=records["land_characteristics"].data,
            urban_plan=records["urban_plan"].data,
            regulations=records["regulations"].data,
            building=records["building"].data,
            price_history=records["price_history"].data,
            special_zones=SpecialZones(
                mountain=records["mountain"].data,
                heritage=records["heritage"].data,
                education=zones.education,
                district_plan=zones.district_plan,
                cultural_check=zones.cultural,
            ),
            provenance={domain: record.provenance for domain, record in records.items()},
            warnings={domain: record.warnings for domain, record in records.items() if record.warnings},
        )

        if report.fallback_domains:
            logger.warning(f"Report {identifier.pnu} uses fallback data for: {', '.join(report.fallback_domains)}")
        logger.success(f"Report ready for {identifier.pnu}")
        return report

    async def build_business_report(self, pnu: Union[str, ParcelIdentifier]) -> BusinessReport:
        """Commercial density, nearby permits and unsold housing for one parcel"""
        identifier = pnu if isinstance(pnu, ParcelIdentifier) else parse_identifier(pnu)
        records = await self.fetch_domains(identifier, BUSINESS_DOMAINS)
        return BusinessReport(
            pnu=identifier.pnu,
            commercial=records["commercial"].data,
            permits=records["permits"].data,
            unsold=records["unsold_housing"].data,
            provenance={domain: record.provenance for domain, record in records.items()},
        )

    def diagnose(self, report: Report) -> Diagnosis:
        return RiskDiagnoser(self.config.market).diagnose(report)

    def run(self, pnu: str, diagnose: bool = False) -> Dict:
        """Synchronous entry point: report JSON, optionally with a diagnosis"""
        report = asyncio.run(self.build_report(pnu))
        result = report.to_json_dict()
        if diagnose:
            result["diagnosis"] = self.diagnose(report).to_json_dict()
        return result

    def save(self, result: Dict, output_path: str) -> None:
        """Save report JSON to file"""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved report to {path}")
