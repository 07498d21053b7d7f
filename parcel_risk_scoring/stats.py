"""Summary statistics for processed scans."""

import statistics

from .models import INDEX_ORDER, RiskLevel, ScanRecord, ScanStatus, SummaryStats

HISTOGRAM_BUCKETS = [level.value for level in RiskLevel]


def summarize(records: list[ScanRecord]) -> SummaryStats:
    """Compute aggregate statistics over a list of scan records.

    Extraction misses are counted but excluded from score statistics.
    """
    misses = sum(1 for r in records if r.status is ScanStatus.ERROR)
    scored = [r for r in records if r.status is not ScanStatus.ERROR]

    if not scored:
        return SummaryStats(
            total_scans=len(records),
            extraction_misses=misses,
            mean_score=0.0,
            median_score=0.0,
            min_score=0,
            max_score=0,
            level_histogram={b: 0 for b in HISTOGRAM_BUCKETS},
            index_counts={i: 0 for i in INDEX_ORDER},
        )

    scores = [r.total_score for r in scored]

    return SummaryStats(
        total_scans=len(records),
        extraction_misses=misses,
        mean_score=round(statistics.mean(scores), 1),
        median_score=round(statistics.median(scores), 1),
        min_score=min(scores),
        max_score=max(scores),
        level_histogram=_build_histogram(scores),
        index_counts=_count_indices(scored),
    )


def _build_histogram(values: list[int]) -> dict[str, int]:
    """Bucket scores by risk level."""
    buckets = {b: 0 for b in HISTOGRAM_BUCKETS}
    for v in values:
        buckets[RiskLevel.from_score(v).value] += 1
    return buckets


def _count_indices(records: list[ScanRecord]) -> dict[str, int]:
    counts = {i: 0 for i in INDEX_ORDER}
    for r in records:
        for index in r.triggered_indices:
            counts[index] += 1
    return counts
