"""Tests for per-index rule evaluation."""

import logging

import pytest
import regex

from parcel_risk_scoring.config import ScoringConfig
from parcel_risk_scoring.criteria import (
    compile_pattern,
    evaluate_ani,
    evaluate_cii,
    evaluate_patterns,
)
from parcel_risk_scoring.models import (
    ExtractedFields,
    PackageAttributes,
    PackageDimensions,
    PatternRule,
    RuleSet,
)


@pytest.fixture
def config():
    return ScoringConfig()


class TestCompilePattern:
    def test_compiles(self):
        assert compile_pattern("MAIN").search("123MAINST")

    def test_ignore_case(self):
        assert compile_pattern("miami", True).search("MIAMI FL")
        assert not compile_pattern("miami", False).search("MIAMI FL")

    def test_malformed_raises(self):
        with pytest.raises(regex.error):
            compile_pattern("([")


class TestEvaluateANI:
    def test_watchlist_hit(self, config):
        rules = RuleSet.build(ani_watchlist=["111111111"])
        hits = evaluate_ani(ExtractedFields(ani="111111111"), rules, config)
        assert len(hits) == 1
        assert hits[0].index == "ANI"
        assert hits[0].points == config.ani_watchlist_points

    def test_configured_points(self):
        rules = RuleSet.build(ani_watchlist=["111111111"])
        hits = evaluate_ani(ExtractedFields(ani="111111111"), rules, ScoringConfig(ani_watchlist_points=35))
        assert hits[0].points == 35

    def test_exact_match_only(self, config):
        rules = RuleSet.build(ani_watchlist=["111111111"])
        assert evaluate_ani(ExtractedFields(ani="1111111110"), rules, config) == []

    def test_safe_list_overrides(self, config):
        rules = RuleSet.build(ani_watchlist=["111111111"], vai_safe_list=["111111111"])
        assert evaluate_ani(ExtractedFields(ani="111111111"), rules, config) == []

    def test_no_account(self, config):
        rules = RuleSet.build(ani_watchlist=["111111111"])
        assert evaluate_ani(ExtractedFields(tracking_number="X"), rules, config) == []


class TestEvaluateCII:
    def test_first_matching_range(self):
        rules = RuleSet.build(cii_ranges=[(0, 999, 1), (1000, 4999, 10), (1500, 3000, 99)])
        attrs = PackageAttributes(dimensions=PackageDimensions(20, 10, 10))
        hits = evaluate_cii(attrs, rules)
        assert [h.points for h in hits] == [10]

    def test_inclusive_bound(self):
        rules = RuleSet.build(cii_ranges=[(1000, 2000, 7)])
        attrs = PackageAttributes(dimensions=PackageDimensions(10, 10, 10))
        assert evaluate_cii(attrs, rules)[0].points == 7

    def test_no_range_matches(self):
        rules = RuleSet.build(cii_ranges=[(0, 10, 5)])
        attrs = PackageAttributes(dimensions=PackageDimensions(10, 10, 10))
        assert evaluate_cii(attrs, rules) == []

    def test_missing_package(self):
        rules = RuleSet.build(cii_ranges=[(0, 10, 5)])
        assert evaluate_cii(None, rules) == []

    def test_missing_dimensions(self):
        rules = RuleSet.build(cii_ranges=[(0, 10, 5)])
        assert evaluate_cii(PackageAttributes(origin_city="Miami"), rules) == []


class TestEvaluatePatterns:
    def test_every_match_counts(self, config):
        rules = (PatternRule("Miami", 15), PatternRule("FL", 5), PatternRule("Lagos", 30))
        hits, faults = evaluate_patterns("OSI", rules, "Miami FL US", config)
        assert [h.points for h in hits] == [15, 5]
        assert faults == []

    def test_inactive_rule_skipped(self, config):
        rules = (PatternRule("Miami", 15, active=False),)
        hits, faults = evaluate_patterns("OSI", rules, "Miami FL US", config)
        assert hits == []

    def test_search_not_anchored(self, config):
        rules = (PatternRule("BOX", 20),)
        hits, _ = evaluate_patterns("RSI", rules, "POBOX12MAINST", config)
        assert len(hits) == 1

    def test_empty_text_skipped(self, config):
        rules = (PatternRule(".*", 10),)
        assert evaluate_patterns("RSI", rules, None, config) == ([], [])
        assert evaluate_patterns("OSI", rules, "", config) == ([], [])

    def test_malformed_pattern_isolated(self, config, caplog):
        rules = (PatternRule("([", 50), PatternRule("POBOX", 20))
        with caplog.at_level(logging.WARNING, logger="parcel_risk_scoring.criteria"):
            hits, faults = evaluate_patterns("RSI", rules, "POBOX12MAINST", config)
        assert [h.points for h in hits] == [20]
        assert len(faults) == 1
        assert faults[0].index == "RSI"
        assert faults[0].pattern == "(["
        assert "invalid pattern" in faults[0].reason
        assert "skipped" in caplog.text

    def test_timeout_isolated(self, config):
        rules = (PatternRule(r"(A|AA)+$", 50), PatternRule("X", 5))
        hits, faults = evaluate_patterns("RSI", rules, "A" * 40 + "X", config)
        assert [h.points for h in hits] == [5]
        assert len(faults) == 1
        assert faults[0].pattern == r"(A|AA)+$"
        assert "exceeded" in faults[0].reason
