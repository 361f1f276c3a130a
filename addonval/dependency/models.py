"""Addon tree and test case models.

AddonConfig forms a tree owned by its test case: children belong to exactly
one parent and the tree never contains cycles. Cycles among provisioned
configurations are tracked separately by addonval.circular.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from addonval.api_models import OfferingReferenceDetail


@dataclass
class AddonConfig:
    """One deployable unit and its direct dependencies.

    Attributes:
        offering_name: Catalog offering name.
        offering_flavor: Selected flavor name.
        enabled: Tri-state; None means "use the catalog default".
        on_by_default: Catalog default for this dependency.
        is_required: Set when the dependency was force-enabled.
        required_by: Offering names that require this dependency.
        catalog_id: Catalog containing the offering.
        offering_id: Offering ID within the catalog.
        version_locator: "<catalog_id>.<version_id>" of the chosen version.
        resolved_version: Version string after constraint resolution.
        install_kind: "terraform" or "stack" (checked on the root only).
        prefix: Resource naming prefix for this config.
        config_name: Project configuration name once created.
        config_id: Project configuration ID once created.
        inputs: Free-form input values.
        dependencies: Direct child dependencies.
    """
    offering_name: str
    offering_flavor: str = ""
    enabled: Optional[bool] = None
    on_by_default: Optional[bool] = None
    is_required: bool = False
    required_by: List[str] = field(default_factory=list)
    catalog_id: str = ""
    offering_id: str = ""
    version_locator: str = ""
    resolved_version: str = ""
    install_kind: Optional[str] = None
    prefix: str = ""
    config_name: str = ""
    config_id: str = ""
    inputs: Dict[str, Any] = field(default_factory=dict)
    dependencies: List["AddonConfig"] = field(default_factory=list)

    @property
    def is_enabled(self) -> bool:
        return self.enabled is True

    @property
    def is_disabled(self) -> bool:
        """Explicitly disabled (None is not disabled)."""
        return self.enabled is False

    def find_dependency(self, name: str, flavor: Optional[str] = None) -> Optional["AddonConfig"]:
        for dep in self.dependencies:
            if dep.offering_name == name and (flavor is None or dep.offering_flavor == flavor):
                return dep
        return None


@dataclass(frozen=True)
class AddonTestCase:
    """One permutation. Immutable once generated.

    Attributes:
        name: Display/test name, at most MAX_TEST_NAME_LENGTH characters.
        prefix: Resource naming prefix, at most MAX_PREFIX_LENGTH characters.
        dependencies: Enabled dependencies first, then disabled ones.
        skip_infrastructure_deployment: Permutation runs validate only.
    """
    name: str
    prefix: str
    dependencies: Tuple[AddonConfig, ...]
    skip_infrastructure_deployment: bool = True

    @property
    def enabled_dependencies(self) -> List[AddonConfig]:
        return [d for d in self.dependencies if d.is_enabled]

    @property
    def disabled_dependencies(self) -> List[AddonConfig]:
        return [d for d in self.dependencies if d.is_disabled]


@dataclass
class DependencyWithFlavors:
    name: str
    flavors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SkipEntry:
    """One member of a skip set. An empty flavor matches any flavor."""
    name: str
    flavor: str = ""


@dataclass
class DependencyGraphResult:
    """Output of a graph build.

    Attributes:
        graph: Parent key ("name:version:flavor") -> immediate children.
        expected_deployed_list: Every node expected to be deployed, once each.
        visited: Version locators already expanded.
    """
    graph: Dict[str, List[OfferingReferenceDetail]] = field(default_factory=dict)
    expected_deployed_list: List[OfferingReferenceDetail] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)

