"""Catalog management response models.

Only the fields the validator reads are modelled; everything else in the
catalog payload is ignored. Most fields are optional because published
offerings are frequently incomplete.
"""

from typing import List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field

from addonval.core.config import DEFAULT_FLAVOR


class _CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FlavorInfo(_CatalogModel):
    name: Optional[str] = None
    label: Optional[str] = None


class CatalogDependency(_CatalogModel):
    """A dependency declared in a version's solution_info."""
    catalog_id: Optional[str] = None
    id: Optional[str] = None
    name: str
    version: str = ""  # constraint, e.g. "^v1.2.0"
    flavors: List[str] = Field(default_factory=list)
    default_flavor: Optional[str] = None
    on_by_default: Optional[bool] = None
    optional: Optional[bool] = None
    install_type: Optional[str] = None

    @property
    def chosen_flavor(self) -> str:
        """Explicit default flavor, else the first declared one."""
        if self.default_flavor:
            return self.default_flavor
        if self.flavors:
            return self.flavors[0]
        return DEFAULT_FLAVOR


class SolutionInfo(_CatalogModel):
    dependencies: List[CatalogDependency] = Field(default_factory=list)


class CatalogVersion(_CatalogModel):
    version: Optional[str] = None
    version_locator: Optional[str] = None
    catalog_id: Optional[str] = None
    offering_id: Optional[str] = None
    flavor: Optional[FlavorInfo] = None
    solution_info: SolutionInfo = Field(default_factory=SolutionInfo)

    @property
    def flavor_name(self) -> str:
        return (self.flavor.name if self.flavor else None) or ""

    @property
    def dependencies(self) -> List[CatalogDependency]:
        return self.solution_info.dependencies


class OfferingKind(_CatalogModel):
    install_kind: Optional[str] = None
    versions: List[CatalogVersion] = Field(default_factory=list)


class Offering(_CatalogModel):
    id: Optional[str] = None
    name: Optional[str] = None
    label: Optional[str] = None
    catalog_id: Optional[str] = None
    kinds: List[OfferingKind] = Field(default_factory=list)

    def versions_of_kind(self, install_kind: str) -> List[CatalogVersion]:
        return [
            v
            for kind in self.kinds
            if kind.install_kind == install_kind
            for v in kind.versions
        ]

    def find_version(self, version_locator: str, install_kind: str) -> Optional[CatalogVersion]:
        for v in self.versions_of_kind(install_kind):
            if v.version_locator == version_locator:
                return v
        return None


class MetadataSource(Protocol):
    """Catalog lookups consumed by the graph builder and the deployed-list builder.

    Implementations own retrying; a raised MetadataLookupError is final.
    """

    def get_offering(self, catalog_id: str, offering_id: str) -> Offering: ...

    def get_version_locator_by_constraint(
        self, catalog_id: str, offering_id: str, constraint: str, flavor: str
    ) -> Tuple[str, str]: ...

    def get_version_by_locator(self, version_locator: str) -> CatalogVersion: ...
