"""Data models for parcel-risk-scoring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping

# Stable index names, in evaluation order.
ANI = "ANI"
CII = "CII"
OSI = "OSI"
RSI = "RSI"
INDEX_ORDER = (ANI, CII, OSI, RSI)


@dataclass(frozen=True)
class RawScan:
    """Decoded text payload of a single scan event plus capture metadata."""

    payload: str
    symbology: str | None = None
    captured_at: datetime | None = None
    device_id: str | None = None


@dataclass(frozen=True)
class ExtractedFields:
    """Shipment identifiers pulled out of a barcode payload."""

    tracking_number: str | None = None
    ani: str | None = None  # account number
    adi: str | None = None  # full address
    rsi: str | None = None  # street only

    @property
    def is_empty(self) -> bool:
        return not (self.tracking_number or self.ani or self.adi or self.rsi)


@dataclass(frozen=True)
class PackageDimensions:
    length: float
    width: float
    height: float
    unit: str = "in"

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass(frozen=True)
class PackageWeight:
    value: float
    unit: str = "lb"


@dataclass(frozen=True)
class PackageAttributes:
    """Carrier-sourced facts about a shipment.

    Dimensions are expected to be unit-normalized by the caller; the cubic
    index is computed as-is.
    """

    dimensions: PackageDimensions | None = None
    weight: PackageWeight | None = None
    origin_city: str | None = None
    origin_state: str | None = None
    origin_country: str | None = None
    address_type: str | None = None
    shipping_type: str | None = None

    @property
    def origin_descriptor(self) -> str:
        """City, state and country joined by single spaces, blanks skipped."""
        parts = (self.origin_city, self.origin_state, self.origin_country)
        return " ".join(p.strip() for p in parts if p and p.strip())

    @property
    def cubic_index(self) -> float | None:
        if self.dimensions is None:
            return None
        return self.dimensions.volume


@dataclass(frozen=True)
class AccountEntry:
    """An account number on the ANI watchlist or the VAI safe list."""

    account_number: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class CIIRange:
    """A cubic-index band, inclusive on both ends."""

    min_value: float
    max_value: float
    points: int
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value


@dataclass(frozen=True)
class PatternRule:
    """A regex rule scored against origin (OSI) or street (RSI) text."""

    pattern: str
    points: int
    active: bool = True
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class RuleSet:
    """Read-only snapshot of the admin-managed rule tables."""

    ani_watchlist: tuple[AccountEntry, ...] = ()
    vai_safe_accounts: tuple[AccountEntry, ...] = ()
    cii_ranges: tuple[CIIRange, ...] = ()
    osi_rules: tuple[PatternRule, ...] = ()
    rsi_rules: tuple[PatternRule, ...] = ()

    @property
    def watchlist_accounts(self) -> frozenset[str]:
        return frozenset(e.account_number for e in self.ani_watchlist)

    @property
    def safe_accounts(self) -> frozenset[str]:
        return frozenset(e.account_number for e in self.vai_safe_accounts)

    @classmethod
    def build(
        cls,
        ani_watchlist: Iterable[Any] = (),
        vai_safe_list: Iterable[Any] = (),
        cii_ranges: Iterable[Any] = (),
        osi_rules: Iterable[Any] = (),
        rsi_rules: Iterable[Any] = (),
    ) -> "RuleSet":
        """Build a snapshot from plain values or model instances.

        Accounts may be strings or AccountEntry; ranges may be
        ``(min, max, points)`` tuples, mappings or CIIRange; pattern rules may
        be ``(pattern, points, active)`` tuples, mappings or PatternRule.
        """
        tables = {
            "ani_watchlist": ani_watchlist,
            "vai_safe_list": vai_safe_list,
            "cii_ranges": cii_ranges,
            "osi_rules": osi_rules,
            "rsi_rules": rsi_rules,
        }
        for name, table in tables.items():
            if isinstance(table, (str, bytes)):
                raise TypeError(f"{name} must be a collection of entries, not a single string: {table!r}")
        return cls(
            ani_watchlist=tuple(_coerce_account(a) for a in ani_watchlist),
            vai_safe_accounts=tuple(_coerce_account(a) for a in vai_safe_list),
            cii_ranges=tuple(_coerce_range(r) for r in cii_ranges),
            osi_rules=tuple(_coerce_pattern_rule(r) for r in osi_rules),
            rsi_rules=tuple(_coerce_pattern_rule(r) for r in rsi_rules),
        )


def _coerce_account(value: Any) -> AccountEntry:
    if isinstance(value, AccountEntry):
        return value
    if isinstance(value, Mapping):
        return AccountEntry(**value)
    return AccountEntry(account_number=str(value))


def _coerce_range(value: Any) -> CIIRange:
    if isinstance(value, CIIRange):
        return value
    if isinstance(value, Mapping):
        return CIIRange(**value)
    min_value, max_value, points = value
    return CIIRange(min_value=float(min_value), max_value=float(max_value), points=int(points))


def _coerce_pattern_rule(value: Any) -> PatternRule:
    if isinstance(value, PatternRule):
        return value
    if isinstance(value, Mapping):
        return PatternRule(**value)
    pattern, points, *rest = value
    active = bool(rest[0]) if rest else True
    return PatternRule(pattern=str(pattern), points=int(points), active=active)


@dataclass(frozen=True)
class IndexHit:
    """A single rule that contributed points to a score."""

    index: str  # one of INDEX_ORDER
    points: int
    reason: str


@dataclass(frozen=True)
class RuleFault:
    """A rule that could not be evaluated and was treated as non-matching."""

    index: str
    pattern: str
    reason: str


@dataclass
class RiskScoreResult:
    """Complete scoring result for a single scan."""

    score: int
    triggered_indices: list[str] = field(default_factory=list)
    hits: list[IndexHit] = field(default_factory=list)
    faults: list[RuleFault] = field(default_factory=list)


class RiskLevel(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        if score <= 25:
            return cls.GREEN
        if score <= 75:
            return cls.AMBER
        return cls.RED


@dataclass(frozen=True)
class RiskScoreDisplay:
    """Presentation summary of a score: color band and short message."""

    score: int
    triggered_indices: tuple[str, ...]
    level: RiskLevel
    message: str

    @classmethod
    def from_result(cls, result: RiskScoreResult) -> "RiskScoreDisplay":
        message = "Safe" if result.score == 0 else f"Risk Level: {result.score}"
        return cls(
            score=result.score,
            triggered_indices=tuple(result.triggered_indices),
            level=RiskLevel.from_score(result.score),
            message=message,
        )


class ScanStatus(str, Enum):
    PENDING = "pending"  # fields found, carrier data unavailable
    SUCCESS = "success"
    ERROR = "error"  # nothing recognizable in the payload


@dataclass
class ScanRecord:
    """Assembled package record for one processed scan."""

    raw_barcode: str
    status: ScanStatus
    total_score: int = 0
    triggered_indices: list[str] = field(default_factory=list)
    tracking_number: str | None = None
    ani: str | None = None
    vai: bool | None = None
    adi: str | None = None
    rsi: str | None = None
    osi: str | None = None
    pdi: PackageDimensions | None = None
    pwi: PackageWeight | None = None
    cii: float | None = None
    device_id: str | None = None
    captured_at: datetime | None = None
    result: RiskScoreResult | None = None


@dataclass
class SummaryStats:
    """Aggregate statistics over a collection of processed scans."""

    total_scans: int
    extraction_misses: int
    mean_score: float
    median_score: float
    min_score: int
    max_score: int
    level_histogram: dict[str, int] = field(default_factory=dict)
    index_counts: dict[str, int] = field(default_factory=dict)
