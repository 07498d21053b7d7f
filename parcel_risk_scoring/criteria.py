"""Per-index rule evaluation against extracted fields and package attributes."""

import logging
from functools import lru_cache

import regex

from .config import ScoringConfig
from .models import (
    ANI,
    CII,
    ExtractedFields,
    IndexHit,
    PackageAttributes,
    PatternRule,
    RuleFault,
    RuleSet,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str, ignore_case: bool = False) -> "regex.Pattern":
    """Compile an admin-supplied pattern. Raises ``regex.error`` if malformed."""
    flags = regex.IGNORECASE if ignore_case else 0
    return regex.compile(pattern, flags)


def evaluate_ani(fields: ExtractedFields, rules: RuleSet, config: ScoringConfig) -> list[IndexHit]:
    """Check the account number against the safe list, then the watchlist.

    A safe-listed account suppresses the watchlist check entirely.
    """
    ani = fields.ani
    if not ani:
        return []
    if ani in rules.safe_accounts:
        logger.debug("Account %s is on the VAI safe list; watchlist skipped", ani)
        return []
    if ani in rules.watchlist_accounts:
        return [IndexHit(
            index=ANI,
            points=config.ani_watchlist_points,
            reason=f"Account {ani} is on the ANI watchlist",
        )]
    return []


def evaluate_cii(package: PackageAttributes | None, rules: RuleSet) -> list[IndexHit]:
    """Score the cubic index against the first range that contains it."""
    if package is None:
        return []
    cubic = package.cubic_index
    if cubic is None:
        return []
    for r in rules.cii_ranges:
        if r.contains(cubic):
            return [IndexHit(
                index=CII,
                points=r.points,
                reason=f"Cubic index {cubic:g} within [{r.min_value:g}, {r.max_value:g}]",
            )]
    return []


def evaluate_patterns(
    index: str,
    rules: tuple[PatternRule, ...],
    text: str | None,
    config: ScoringConfig,
) -> tuple[list[IndexHit], list[RuleFault]]:
    """Search ``text`` with every active rule; each match adds its points.

    A rule whose pattern does not compile, or whose search exceeds the
    configured timeout, is reported as a fault and treated as non-matching.
    """
    hits: list[IndexHit] = []
    faults: list[RuleFault] = []
    if not text:
        return hits, faults

    for rule in rules:
        if not rule.active:
            continue
        try:
            compiled = compile_pattern(rule.pattern, config.ignore_case)
            matched = compiled.search(text, timeout=config.regex_timeout) is not None
        except regex.error as exc:
            faults.append(_fault(index, rule, f"invalid pattern: {exc}"))
            continue
        except TimeoutError:
            faults.append(_fault(index, rule, f"search exceeded {config.regex_timeout}s"))
            continue

        if matched:
            hits.append(IndexHit(
                index=index,
                points=rule.points,
                reason=f"Pattern {rule.pattern!r} matched {text!r}",
            ))
    return hits, faults


def _fault(index: str, rule: PatternRule, reason: str) -> RuleFault:
    logger.warning("%s rule %r skipped: %s", index, rule.pattern, reason)
    return RuleFault(index=index, pattern=rule.pattern, reason=reason)
