"""parcel-risk-scoring: Decode shipping-label barcodes and score them against rule tables."""

from .extractor import extract_fields
from .models import (
    ExtractedFields,
    PackageAttributes,
    RawScan,
    RiskScoreDisplay,
    RiskScoreResult,
    RuleSet,
    ScanRecord,
    SummaryStats,
)
from .pipeline import process_scan
from .scorer import RiskScorer, score_risk
from .stats import summarize

__all__ = [
    "extract_fields",
    "score_risk",
    "process_scan",
    "RiskScorer",
    "RawScan",
    "ExtractedFields",
    "PackageAttributes",
    "RuleSet",
    "RiskScoreResult",
    "RiskScoreDisplay",
    "ScanRecord",
    "SummaryStats",
    "summarize",
]
