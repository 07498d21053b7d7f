"""Scan processing: extraction, carrier lookup and scoring for one scan."""

import logging
from typing import Callable, Iterable

from .config import ScoringProfile
from .extractor import extract_fields
from .models import PackageAttributes, RawScan, ScanRecord, ScanStatus
from .scorer import RiskScorer

logger = logging.getLogger(__name__)

CarrierLookup = Callable[[str], PackageAttributes | None]


def process_scan(
    scan: RawScan,
    profile: ScoringProfile,
    carrier_lookup: CarrierLookup | None = None,
) -> ScanRecord:
    """Turn a raw scan into a scored package record.

    A failing carrier lookup is logged and treated as absent package data.
    """
    fields = extract_fields(scan.payload)
    if fields.is_empty:
        logger.info("Extraction miss for scan from device %s", scan.device_id)
        return ScanRecord(
            raw_barcode=scan.payload,
            status=ScanStatus.ERROR,
            device_id=scan.device_id,
            captured_at=scan.captured_at,
        )

    package = None
    if fields.tracking_number and carrier_lookup is not None:
        try:
            package = carrier_lookup(fields.tracking_number)
        except Exception:
            logger.warning(
                "Carrier lookup failed for %s; scoring without package data",
                fields.tracking_number,
                exc_info=True,
            )

    result = RiskScorer(profile.scoring).score(fields, package, profile.rules)

    status = ScanStatus.SUCCESS
    if fields.tracking_number and package is None:
        status = ScanStatus.PENDING

    return ScanRecord(
        raw_barcode=scan.payload,
        status=status,
        total_score=result.score,
        triggered_indices=list(result.triggered_indices),
        tracking_number=fields.tracking_number,
        ani=fields.ani,
        vai=(fields.ani in profile.rules.safe_accounts) if fields.ani else None,
        adi=fields.adi,
        rsi=fields.rsi,
        osi=(package.origin_descriptor or None) if package is not None else None,
        pdi=package.dimensions if package is not None else None,
        pwi=package.weight if package is not None else None,
        cii=package.cubic_index if package is not None else None,
        device_id=scan.device_id,
        captured_at=scan.captured_at,
        result=result,
    )


def process_many(
    scans: Iterable[RawScan],
    profile: ScoringProfile,
    carrier_lookup: CarrierLookup | None = None,
) -> list[ScanRecord]:
    """Process a sequence of scans."""
    return [process_scan(scan, profile, carrier_lookup) for scan in scans]
