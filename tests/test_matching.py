"""Tests for configuration name match rules."""

from addonval.api_models import OfferingReferenceDetail
from addonval.reconcile.matching import (
    ConfigurationMatcher,
    MatchRule,
    MatchStrategy,
    match_expected,
)


class TestMatchRule:
    """Single rule evaluation."""

    def test_exact(self):
        rule = MatchRule(MatchStrategy.EXACT, "kms", 80, "")
        assert rule.is_match("kms")
        assert not rule.is_match("kms-config")

    def test_contains(self):
        rule = MatchRule(MatchStrategy.CONTAINS, "kms", 70, "")
        assert rule.is_match("abc-kms-config")

    def test_base_name_drops_qualifier(self):
        rule = MatchRule(MatchStrategy.BASE_NAME, "kms:fully-configurable", 60, "")
        assert rule.is_match("my-kms-project")


class TestConfigurationMatcher:
    """Priority ordering of the rule table."""

    def test_rule_table_order(self):
        matcher = ConfigurationMatcher.for_offering("kms", "abc-kms")
        assert [r.priority for r in matcher.rules] == [100, 90, 80, 70, 60]

    def test_without_config_name(self):
        matcher = ConfigurationMatcher.for_offering("kms")
        assert [r.priority for r in matcher.rules] == [80, 70, 60]

    def test_highest_priority_wins(self):
        matcher = ConfigurationMatcher.for_offering("kms", "abc-kms")
        assert matcher.best_match("abc-kms").priority == 100
        assert matcher.best_match("abc-kms-2").priority == 90
        assert matcher.best_match("kms").priority == 80
        assert matcher.best_match("x-kms").priority == 70

    def test_no_match(self):
        assert ConfigurationMatcher.for_offering("kms").best_match("cos") is None


class TestMatchExpected:
    """Choosing among expected descriptors."""

    def test_most_specific_candidate(self):
        candidates = [OfferingReferenceDetail(name="kms"), OfferingReferenceDetail(name="abc-kms")]
        detail, rule = match_expected("abc-kms", candidates)

        assert detail.name == "abc-kms"
        assert rule.priority == 80

    def test_known_config_names(self):
        candidates = [OfferingReferenceDetail(name="deploy-arch-ibm-kms")]
        detail, rule = match_expected(
            "ab12-kms-config", candidates, {"deploy-arch-ibm-kms": "ab12-kms-config"}
        )
        assert detail.name == "deploy-arch-ibm-kms"
        assert rule.priority == 100

    def test_nothing_matches(self):
        assert match_expected("cos", [OfferingReferenceDetail(name="kms")]) is None
