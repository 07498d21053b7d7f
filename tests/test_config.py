"""Tests for config loading and validation."""

from datetime import datetime
from pathlib import Path

import pytest

from parcel_risk_scoring.config import (
    ScoringConfig,
    ScoringProfile,
    _build_profile,
    _validate_profile,
    load_default_profile,
    load_package_catalog,
    load_profile,
)
from parcel_risk_scoring.models import AccountEntry, CIIRange, RuleSet

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestLoadProfile:
    def test_load_custom_profile(self):
        profile = load_profile(FIXTURES_DIR / "test_rules.yaml")
        assert profile.scoring.ani_watchlist_points == 40
        assert profile.scoring.min_score == 0
        assert profile.scoring.max_score == 100
        assert profile.scoring.regex_timeout == 0.1
        assert profile.scoring.ignore_case is True
        assert profile.rules.watchlist_accounts == frozenset({"1012345678", "5550001111"})
        assert profile.rules.safe_accounts == frozenset({"5550001111"})
        assert len(profile.rules.cii_ranges) == 3
        assert [r.pattern for r in profile.rules.osi_rules] == ["MIAMI", r"\bFL\b", "LAGOS"]
        assert profile.rules.osi_rules[2].active is False

    def test_provenance_parsed(self):
        profile = load_profile(FIXTURES_DIR / "test_rules.yaml")
        entry = profile.rules.ani_watchlist[0]
        assert entry.notes == "Repeat chargeback account"
        assert entry.created_by == "3f1c2a9e-5b7d-4c1e-9a0f-2d8e6b4c7a11"
        assert isinstance(entry.created_at, datetime)

    def test_malformed_pattern_loads(self):
        profile = load_profile(FIXTURES_DIR / "test_rules.yaml")
        assert "([" in [r.pattern for r in profile.rules.rsi_rules]

    def test_load_default_profile(self):
        profile = load_default_profile()
        assert profile.scoring == ScoringConfig()
        assert profile.rules == RuleSet()

    def test_empty_document(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        profile = load_profile(path)
        assert profile.scoring == ScoringConfig()


class TestBuildProfile:
    def test_string_timestamp(self):
        profile = _build_profile({
            "rules": {"ani_watchlist": [
                {"account_number": "1", "created_at": "2024-05-01T12:00:00Z"},
            ]},
        })
        assert profile.rules.ani_watchlist[0].created_at.year == 2024

    def test_invalid_timestamp(self):
        with pytest.raises(ValueError, match="Invalid created_at"):
            _build_profile({
                "rules": {"ani_watchlist": [{"account_number": "1", "created_at": "yesterday"}]},
            })

    def test_missing_range_field(self):
        with pytest.raises(ValueError, match="missing required fields"):
            _build_profile({"rules": {"cii_ranges": [{"min_value": 0, "points": 5}]}})

    def test_missing_pattern(self):
        with pytest.raises(ValueError, match="missing required fields"):
            _build_profile({"rules": {"osi_rules": [{"points": 5}]}})

    def test_non_mapping_entry(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            _build_profile({"rules": {"rsi_rules": ["POBOX"]}})

    def test_unknown_table(self):
        with pytest.raises(ValueError, match="Unknown rule tables"):
            _build_profile({"rules": {"pdi_rules": []}})

    def test_active_defaults_true(self):
        profile = _build_profile({"rules": {"rsi_rules": [{"pattern": "X", "points": 1}]}})
        assert profile.rules.rsi_rules[0].active is True


class TestValidation:
    def test_duplicate_account(self):
        profile = ScoringProfile(rules=RuleSet(
            ani_watchlist=(AccountEntry("1"), AccountEntry("1")),
        ))
        with pytest.raises(ValueError, match="Duplicate account number"):
            _validate_profile(profile)

    def test_inverted_range(self):
        profile = ScoringProfile(rules=RuleSet(cii_ranges=(CIIRange(10, 5, 1),)))
        with pytest.raises(ValueError, match="greater than max_value"):
            _validate_profile(profile)

    def test_inverted_bounds(self):
        with pytest.raises(ValueError, match="inverted"):
            ScoringConfig(min_score=50, max_score=10)

    def test_non_positive_timeout(self):
        with pytest.raises(ValueError, match="regex_timeout"):
            ScoringConfig(regex_timeout=0)

    def test_inverted_bounds_in_yaml(self):
        with pytest.raises(ValueError, match="inverted"):
            _build_profile({"scoring": {"min": 50, "max": 10}})


class TestPackageCatalog:
    def test_load(self):
        catalog = load_package_catalog(FIXTURES_DIR / "packages.yaml")
        attrs = catalog["1Z999AA10123456784"]
        assert attrs.cubic_index == 2000.0
        assert attrs.weight.value == 12.5
        assert attrs.origin_descriptor == "Miami FL US"
        assert attrs.shipping_type == "ground"

    def test_partial_record(self, tmp_path):
        path = tmp_path / "packages.yaml"
        path.write_text("packages:\n  ABC:\n    origin_country: US\n", encoding="utf-8")
        attrs = load_package_catalog(path)["ABC"]
        assert attrs.dimensions is None
        assert attrs.origin_descriptor == "US"

    def test_invalid_layout(self, tmp_path):
        path = tmp_path / "packages.yaml"
        path.write_text("packages:\n  - ABC\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_package_catalog(path)
