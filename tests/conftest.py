"""Root conftest for all tests - provides shared fixtures."""

import os

# Keep policy flags deterministic and the log file off
# (must be set before addonval.core.config is imported)
os.environ.setdefault("ADDONVAL_STRICT_MODE", "true")
os.environ.setdefault("ADDONVAL_OPTIONAL_FALLBACK_TO_ON_BY_DEFAULT", "false")
os.environ.setdefault("ADDONVAL_LOG_FILE", "")

from typing import Dict, List, Optional, Tuple

import pytest

from addonval.catalog.models import (
    CatalogDependency,
    CatalogVersion,
    FlavorInfo,
    Offering,
    OfferingKind,
)
from addonval.catalog.versions import latest_version_by_constraint
from addonval.exceptions import MetadataLookupError

CATALOG_ID = "cat-1"


def make_dep(
    name: str,
    version: str = "^v1.0.0",
    flavors: Optional[List[str]] = None,
    on_by_default: Optional[bool] = True,
    optional: Optional[bool] = True,
) -> CatalogDependency:
    """Catalog dependency declaration pointing at an offering in FakeCatalog."""
    return CatalogDependency(
        catalog_id=CATALOG_ID,
        id=f"{name}-id",
        name=name,
        version=version,
        flavors=flavors if flavors is not None else ["fully-configurable"],
        on_by_default=on_by_default,
        optional=optional,
    )


class FakeCatalog:
    """In-memory MetadataSource.

    Offerings live under CATALOG_ID with ID "{name}-id"; version locators
    are "{catalog}.{name}-{version}-{flavor}".
    """

    def __init__(self):
        self.offerings: Dict[Tuple[str, str], Offering] = {}
        self.failing: set = set()
        self.calls: List[str] = []

    def add(
        self,
        name: str,
        version: str = "v1.0.0",
        flavor: str = "fully-configurable",
        dependencies: Optional[List[CatalogDependency]] = None,
        install_kind: str = "terraform",
    ) -> str:
        key = (CATALOG_ID, f"{name}-id")
        offering = self.offerings.setdefault(
            key, Offering(id=f"{name}-id", name=name, catalog_id=CATALOG_ID)
        )
        kind = next((k for k in offering.kinds if k.install_kind == install_kind), None)
        if kind is None:
            kind = OfferingKind(install_kind=install_kind)
            offering.kinds.append(kind)
        locator = f"{CATALOG_ID}.{name}-{version}-{flavor}"
        kind.versions.append(CatalogVersion(
            version=version,
            version_locator=locator,
            catalog_id=CATALOG_ID,
            offering_id=f"{name}-id",
            flavor=FlavorInfo(name=flavor),
            solution_info={"dependencies": dependencies or []},
        ))
        return locator

    def get_offering(self, catalog_id: str, offering_id: str) -> Offering:
        self.calls.append(f"offering:{offering_id}")
        if offering_id in self.failing or (catalog_id, offering_id) not in self.offerings:
            raise MetadataLookupError.lookup_failed(catalog_id, offering_id, "not found")
        return self.offerings[(catalog_id, offering_id)]

    def get_version_locator_by_constraint(
        self, catalog_id: str, offering_id: str, constraint: str, flavor: str
    ) -> Tuple[str, str]:
        offering = self.get_offering(catalog_id, offering_id)
        locators = {
            v.version: v.version_locator
            for v in offering.versions_of_kind("terraform")
            if v.flavor_name == flavor
        }
        best = latest_version_by_constraint(list(locators), constraint)
        if best is None:
            raise MetadataLookupError.no_matching_version(catalog_id, offering_id, constraint, flavor)
        return best, locators[best]

    def get_version_by_locator(self, version_locator: str) -> CatalogVersion:
        self.calls.append(f"version:{version_locator}")
        for offering in self.offerings.values():
            for kind in offering.kinds:
                for v in kind.versions:
                    if v.version_locator == version_locator:
                        return v
        raise MetadataLookupError.version_not_found(version_locator)


@pytest.fixture
def catalog():
    """Fresh in-memory catalog for each test."""
    return FakeCatalog()


@pytest.fixture
def dep():
    """Factory for catalog dependency declarations."""
    return make_dep
