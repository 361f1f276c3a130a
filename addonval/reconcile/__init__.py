"""Expected vs. actually deployed reconciliation."""

from .deployed import DeployedConfig, DeployedListResult, build_actually_deployed_list
from .matching import ConfigurationMatcher, MatchRule, MatchStrategy, match_expected
from .reconciler import validate_dependencies, validate_deployment

__all__ = [
    "DeployedConfig",
    "DeployedListResult",
    "build_actually_deployed_list",
    "ConfigurationMatcher",
    "MatchRule",
    "MatchStrategy",
    "match_expected",
    "validate_dependencies",
    "validate_deployment",
]
