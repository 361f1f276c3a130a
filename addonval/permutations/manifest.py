"""Local catalog manifest (ibm_catalog.json) reader.

Only the parts needed for permutation generation are modelled:
products -> flavors -> dependencies (name, flavors, version constraint ...).
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from addonval.catalog.models import CatalogDependency
from addonval.dependency.models import DependencyWithFlavors
from addonval.exceptions import ManifestError, PermutationInputError

logger = logging.getLogger("addonval.permutations.manifest")


class ManifestFlavor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    label: str = ""
    install_type: str = ""
    dependencies: List[CatalogDependency] = Field(default_factory=list)

    def dependencies_with_flavors(self) -> List[DependencyWithFlavors]:
        return [DependencyWithFlavors(name=d.name, flavors=list(d.flavors)) for d in self.dependencies]

    def select(self, names: Iterable[str], offering: str) -> List[DependencyWithFlavors]:
        """Restrict permutation inputs to `names`, in declaration order.

        Raises:
            PermutationInputError: A name is not declared by this flavor.
        """
        wanted = list(names)
        declared = {d.name for d in self.dependencies}
        for name in wanted:
            if name not in declared:
                raise PermutationInputError.undeclared_dependency(name, offering)
        return [d for d in self.dependencies_with_flavors() if d.name in set(wanted)]


class ManifestProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    label: str = ""
    flavors: List[ManifestFlavor] = Field(default_factory=list)


class CatalogManifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    products: List[ManifestProduct] = Field(default_factory=list)

    def find_product(self, offering: str) -> ManifestProduct:
        for product in self.products:
            if product.name == offering:
                return product
        raise ManifestError.offering_missing(offering)

    def find_flavor(self, offering: str, flavor: str) -> ManifestFlavor:
        for f in self.find_product(offering).flavors:
            if f.name == flavor:
                return f
        raise ManifestError.flavor_missing(offering, flavor)


def load_manifest(path: Union[str, Path]) -> CatalogManifest:
    path = Path(path)
    if not path.is_file():
        raise ManifestError.not_found(str(path))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestError.invalid(str(path), f"invalid JSON: {e}") from e
    try:
        manifest = CatalogManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError.invalid(str(path), str(e)) from e
    logger.debug(f"Loaded catalog manifest {path} with {len(manifest.products)} products")
    return manifest
