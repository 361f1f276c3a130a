"""Configuration name matching.

Deployed project configurations are named by the deployment service, not
by us. When a configuration cannot be correlated through its version
locator, its name is matched against the expected offering using a table
of rules evaluated from highest to lowest priority.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from addonval.api_models import OfferingReferenceDetail


class MatchStrategy(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    BASE_NAME = "base_name"


@dataclass(frozen=True)
class MatchRule:
    strategy: MatchStrategy
    pattern: str
    priority: int
    description: str

    def is_match(self, config_name: str) -> bool:
        if self.strategy == MatchStrategy.EXACT:
            return config_name == self.pattern
        if self.strategy == MatchStrategy.CONTAINS:
            return self.pattern in config_name
        if self.strategy == MatchStrategy.BASE_NAME:
            # Drop ":flavor" / ":version" qualifiers
            return self.pattern.split(":")[0] in config_name
        return False


class ConfigurationMatcher:
    """Ordered match rules for one expected configuration."""

    def __init__(self, rules: Sequence[MatchRule]):
        self.rules = sorted(rules, key=lambda r: r.priority, reverse=True)

    @classmethod
    def for_offering(cls, offering_name: str, config_name: str = "") -> "ConfigurationMatcher":
        rules: List[MatchRule] = []
        if config_name:
            rules.append(MatchRule(MatchStrategy.EXACT, config_name, 100,
                                   f"Exact match for config name: {config_name}"))
            rules.append(MatchRule(MatchStrategy.CONTAINS, config_name, 90,
                                   f"Contains match for config name: {config_name}"))
        if offering_name:
            rules.append(MatchRule(MatchStrategy.EXACT, offering_name, 80,
                                   f"Exact match for offering name: {offering_name}"))
            rules.append(MatchRule(MatchStrategy.CONTAINS, offering_name, 70,
                                   f"Contains match for offering name: {offering_name}"))
            rules.append(MatchRule(MatchStrategy.BASE_NAME, offering_name, 60,
                                   f"Base name match for offering: {offering_name}"))
        return cls(rules)

    def best_match(self, config_name: str) -> Optional[MatchRule]:
        for rule in self.rules:
            if rule.is_match(config_name):
                return rule
        return None


def match_expected(
    config_name: str,
    candidates: Sequence[OfferingReferenceDetail],
    known_config_names: Optional[Dict[str, str]] = None,
) -> Optional[Tuple[OfferingReferenceDetail, MatchRule]]:
    """Expected descriptor whose rules match `config_name` most specifically.

    known_config_names maps offering name to the configuration name it was
    created with, enabling the config-name rules. Ties keep the earlier
    candidate.
    """
    known_config_names = known_config_names or {}
    best: Optional[Tuple[OfferingReferenceDetail, MatchRule]] = None
    for candidate in candidates:
        rule = ConfigurationMatcher.for_offering(
            candidate.name, known_config_names.get(candidate.name, "")
        ).best_match(config_name)
        if rule is not None and (best is None or rule.priority > best[1].priority):
            best = (candidate, rule)
    return best
