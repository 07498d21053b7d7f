"""Core scoring orchestration."""

import logging
from pathlib import Path
from typing import Any, Iterable, Self

from .config import ScoringConfig, load_profile
from .criteria import evaluate_ani, evaluate_cii, evaluate_patterns
from .models import (
    INDEX_ORDER,
    OSI,
    RSI,
    ExtractedFields,
    IndexHit,
    PackageAttributes,
    RiskScoreResult,
    RuleFault,
    RuleSet,
)

logger = logging.getLogger(__name__)


class RiskScorer:
    """Scores extracted barcode fields against a snapshot of rule tables."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @classmethod
    def from_config(cls, path: str | Path) -> Self:
        """Create a scorer from the tunables of a YAML profile."""
        profile = load_profile(path)
        return cls(config=profile.scoring)

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(
        self,
        fields: ExtractedFields,
        package: PackageAttributes | None,
        rules: RuleSet,
    ) -> RiskScoreResult:
        """Score a single scan. Every index is evaluated; points are additive."""
        hits: list[IndexHit] = []
        faults: list[RuleFault] = []

        hits.extend(evaluate_ani(fields, rules, self._config))
        hits.extend(evaluate_cii(package, rules))

        origin = package.origin_descriptor if package is not None else None
        for index, table, text in (
            (OSI, rules.osi_rules, origin),
            (RSI, rules.rsi_rules, fields.rsi),
        ):
            index_hits, index_faults = evaluate_patterns(index, table, text, self._config)
            hits.extend(index_hits)
            faults.extend(index_faults)

        totals = {index: 0 for index in INDEX_ORDER}
        for hit in hits:
            totals[hit.index] += hit.points

        triggered = [index for index in INDEX_ORDER if totals[index] != 0]
        score = self._clamp(sum(totals.values()), self._config)

        logger.debug(
            "Risk score %d (raw=%d, triggered=%s, faults=%d)",
            score, sum(totals.values()), triggered, len(faults),
        )
        return RiskScoreResult(
            score=score,
            triggered_indices=triggered,
            hits=hits,
            faults=faults,
        )

    @staticmethod
    def _clamp(value: int, cfg: ScoringConfig) -> int:
        """Clamp a score within the configured bounds."""
        if value < cfg.min_score:
            value = cfg.min_score
        if value > cfg.max_score:
            value = cfg.max_score
        return value


def score_risk(
    fields: ExtractedFields,
    package_attrs: PackageAttributes | None,
    ani_watchlist: Iterable[Any] = (),
    vai_safe_list: Iterable[Any] = (),
    cii_ranges: Iterable[Any] = (),
    osi_rules: Iterable[Any] = (),
    rsi_rules: Iterable[Any] = (),
    config: ScoringConfig | None = None,
) -> RiskScoreResult:
    """Score fields against rule tables passed as plain values.

    ``cii_ranges`` take ``(min, max, points)`` and pattern rules take
    ``(pattern, points, active)``; model instances are accepted as well.
    """
    rules = RuleSet.build(
        ani_watchlist=ani_watchlist,
        vai_safe_list=vai_safe_list,
        cii_ranges=cii_ranges,
        osi_rules=osi_rules,
        rsi_rules=rsi_rules,
    )
    return RiskScorer(config).score(fields, package_attrs, rules)
