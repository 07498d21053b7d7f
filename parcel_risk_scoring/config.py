"""YAML scoring profile loading and validation."""

import importlib.resources
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from .models import (
    AccountEntry,
    CIIRange,
    PackageAttributes,
    PackageDimensions,
    PackageWeight,
    PatternRule,
    RuleSet,
)

DEFAULT_ANI_WATCHLIST_POINTS = 50
DEFAULT_REGEX_TIMEOUT = 0.05  # seconds, per rule


@dataclass(frozen=True)
class ScoringConfig:
    """Tunables for the scoring engine."""

    ani_watchlist_points: int = DEFAULT_ANI_WATCHLIST_POINTS
    min_score: int = 0
    max_score: int = 100
    regex_timeout: float = DEFAULT_REGEX_TIMEOUT
    ignore_case: bool = False

    def __post_init__(self) -> None:
        if self.min_score > self.max_score:
            raise ValueError(
                f"Score bounds are inverted: min {self.min_score} > max {self.max_score}"
            )
        if self.regex_timeout <= 0:
            raise ValueError(f"regex_timeout must be positive, got {self.regex_timeout}")


@dataclass
class ScoringProfile:
    """Complete scoring profile loaded from YAML."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    rules: RuleSet = field(default_factory=RuleSet)


RULE_TABLES = {"ani_watchlist", "vai_safe_accounts", "cii_ranges", "osi_rules", "rsi_rules"}


def load_profile(path: str | Path) -> ScoringProfile:
    """Load a scoring profile from a YAML file."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _build_profile(data or {})


def load_default_profile() -> ScoringProfile:
    """Load the bundled default scoring profile."""
    pkg = importlib.resources.files("parcel_risk_scoring") / "scoring_profiles" / "default.yaml"
    text = pkg.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return _build_profile(data or {})


def load_package_catalog(path: str | Path) -> dict[str, PackageAttributes]:
    """Load carrier package attributes keyed by tracking number."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    packages = data.get("packages", {})
    if not isinstance(packages, dict):
        raise ValueError("'packages' must be a mapping of tracking number to attributes")
    return {str(tracking): _parse_package(attrs or {}) for tracking, attrs in packages.items()}


def _build_profile(data: dict) -> ScoringProfile:
    """Build a ScoringProfile from parsed YAML data."""
    scoring = _parse_scoring(data.get("scoring") or {})

    rules_data = data.get("rules") or {}
    unknown = set(rules_data) - RULE_TABLES
    if unknown:
        raise ValueError(f"Unknown rule tables: {unknown}. Must be among: {RULE_TABLES}")

    rules = RuleSet(
        ani_watchlist=tuple(_parse_account(a) for a in rules_data.get("ani_watchlist") or []),
        vai_safe_accounts=tuple(_parse_account(a) for a in rules_data.get("vai_safe_accounts") or []),
        cii_ranges=tuple(_parse_range(r) for r in rules_data.get("cii_ranges") or []),
        osi_rules=tuple(_parse_pattern_rule(r) for r in rules_data.get("osi_rules") or []),
        rsi_rules=tuple(_parse_pattern_rule(r) for r in rules_data.get("rsi_rules") or []),
    )

    profile = ScoringProfile(scoring=scoring, rules=rules)
    _validate_profile(profile)
    return profile


def _parse_scoring(data: dict) -> ScoringConfig:
    """Parse the scoring tunables block."""
    return ScoringConfig(
        ani_watchlist_points=int(data.get("ani_watchlist_points", DEFAULT_ANI_WATCHLIST_POINTS)),
        min_score=int(data.get("min", 0)),
        max_score=int(data.get("max", 100)),
        regex_timeout=float(data.get("regex_timeout", DEFAULT_REGEX_TIMEOUT)),
        ignore_case=bool(data.get("ignore_case", False)),
    )


def _require(data: dict, required: set[str], kind: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{kind} entry must be a mapping, got {data!r}")
    missing = required - set(data.keys())
    if missing:
        raise ValueError(f"{kind} entry missing required fields: {missing}")


def _parse_account(data: Any) -> AccountEntry:
    """Parse a watchlist or safe-list entry; bare strings are accepted."""
    if isinstance(data, (str, int)):
        return AccountEntry(account_number=str(data))
    _require(data, {"account_number"}, "Account")
    return AccountEntry(
        account_number=str(data["account_number"]),
        **_parse_provenance(data),
    )


def _parse_range(data: dict) -> CIIRange:
    _require(data, {"min_value", "max_value", "points"}, "CII range")
    return CIIRange(
        min_value=float(data["min_value"]),
        max_value=float(data["max_value"]),
        points=int(data["points"]),
        **_parse_provenance(data),
    )


def _parse_pattern_rule(data: dict) -> PatternRule:
    # Patterns are not compiled here; a bad pattern is a per-rule fault at
    # scoring time, not a load failure.
    _require(data, {"pattern", "points"}, "Pattern rule")
    return PatternRule(
        pattern=str(data["pattern"]),
        points=int(data["points"]),
        active=bool(data.get("active", True)),
        **_parse_provenance(data),
    )


def _parse_provenance(data: dict) -> dict[str, Any]:
    created_by = data.get("created_by")
    return {
        "notes": data.get("notes"),
        "created_by": str(created_by) if created_by is not None else None,
        "created_at": _parse_timestamp(data.get("created_at")),
    }


def _parse_timestamp(value: Any) -> datetime | None:
    """Accept YAML timestamps (already datetimes) or ISO 8601 strings."""
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid created_at timestamp: {value!r}") from None


def _parse_package(data: dict) -> PackageAttributes:
    """Parse one carrier package record."""
    dims = data.get("dimensions")
    weight = data.get("weight")
    return PackageAttributes(
        dimensions=PackageDimensions(
            length=float(dims["length"]),
            width=float(dims["width"]),
            height=float(dims["height"]),
            unit=dims.get("unit", "in"),
        ) if dims else None,
        weight=PackageWeight(
            value=float(weight["value"]),
            unit=weight.get("unit", "lb"),
        ) if weight else None,
        origin_city=data.get("origin_city"),
        origin_state=data.get("origin_state"),
        origin_country=data.get("origin_country"),
        address_type=data.get("address_type"),
        shipping_type=data.get("shipping_type"),
    )


def _validate_profile(profile: ScoringProfile) -> None:
    """Validate a scoring profile for correctness."""
    for table, entries in (
        ("ani_watchlist", profile.rules.ani_watchlist),
        ("vai_safe_accounts", profile.rules.vai_safe_accounts),
    ):
        seen = set()
        for entry in entries:
            if entry.account_number in seen:
                raise ValueError(f"Duplicate account number in {table}: {entry.account_number!r}")
            seen.add(entry.account_number)

    for r in profile.rules.cii_ranges:
        if r.min_value > r.max_value:
            raise ValueError(
                f"CII range has min_value {r.min_value} greater than max_value {r.max_value}"
            )
