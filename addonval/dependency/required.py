"""Required-dependency enforcement.

A dependency the catalog marks as required cannot really be disabled: the
platform deploys it anyway. Before a graph build, disabled-but-required
dependencies of the root, and of nested configs whose catalog metadata can
be read, are force-enabled so the expected list matches what will actually
be provisioned. Whether that is a failure or a warning
depends on strict mode.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from addonval.api_models import ValidationResult
from addonval.catalog.models import CatalogDependency, MetadataSource
from addonval.core import config as cfg
from addonval.core.logging import log_extra
from addonval.dependency.models import AddonConfig
from addonval.exceptions import MetadataLookupError

logger = logging.getLogger("addonval.dependency.required")


def is_dependency_required(
    dep: CatalogDependency,
    fallback_to_on_by_default: Optional[bool] = None,
) -> bool:
    """Required status from the catalog's "optional" flag.

    Without an explicit flag the dependency counts as optional unless the
    OPTIONAL_FALLBACK_TO_ON_BY_DEFAULT policy says to infer it from
    "on_by_default".
    """
    if dep.optional is not None:
        return not dep.optional
    if fallback_to_on_by_default is None:
        fallback_to_on_by_default = cfg.OPTIONAL_FALLBACK_TO_ON_BY_DEFAULT
    if fallback_to_on_by_default and dep.on_by_default is not None:
        return dep.on_by_default
    return False


@dataclass
class RequiredDependencyResult:
    """Root config after enforcement plus the findings it produced."""
    config: AddonConfig
    validation: ValidationResult = field(default_factory=ValidationResult)
    forced: List[str] = field(default_factory=list)


def declared_dependencies(source: MetadataSource, root: AddonConfig) -> List[CatalogDependency]:
    """Dependencies the catalog declares for the root's selected version."""
    offering = source.get_offering(root.catalog_id, root.offering_id)
    version = offering.find_version(root.version_locator, cfg.VERSION_INSTALL_KIND)
    if version is None:
        raise MetadataLookupError.version_not_found(
            root.version_locator, catalog_id=root.catalog_id, offering_id=root.offering_id
        )
    return version.dependencies


def enforce_required_dependencies(
    root: AddonConfig,
    declared: List[CatalogDependency],
    strict: Optional[bool] = None,
    lookup: Optional[Callable[[AddonConfig], List[CatalogDependency]]] = None,
) -> RequiredDependencyResult:
    """Force-enable disabled dependencies that the catalog requires.

    The input config is not modified; a copy with updated dependencies is
    returned. Strict mode records each forced dependency as an error,
    permissive mode as a warning.

    With `lookup`, nested dependency trees are enforced too: each child
    config that carries catalog identity has its own declared dependencies
    read through `lookup` and checked against them. A child whose metadata
    cannot be read is left as it is and a warning is logged.
    """
    if strict is None:
        strict = cfg.STRICT_MODE

    result = RequiredDependencyResult(config=root)
    result.config = _enforce(root, declared, strict, lookup, result)
    return result


def _enforce(
    parent: AddonConfig,
    declared: List[CatalogDependency],
    strict: bool,
    lookup: Optional[Callable[[AddonConfig], List[CatalogDependency]]],
    result: RequiredDependencyResult,
) -> AddonConfig:
    required_names = {d.name for d in declared if is_dependency_required(d)}
    dependencies: List[AddonConfig] = []

    for dep in parent.dependencies:
        if dep.is_disabled and dep.offering_name in required_names:
            dep = dataclasses.replace(
                dep,
                enabled=True,
                is_required=True,
                required_by=dep.required_by + [parent.offering_name],
            )
            message = (
                f"Required dependency {dep.offering_name} was force-enabled despite "
                f"being disabled (required by {parent.offering_name})"
            )
            result.forced.append(dep.offering_name)
            if strict:
                result.validation.add_error(message)
            else:
                result.validation.add_warning(message)
            logger.warning(message, extra=log_extra(config_id=dep.config_id))

        if dep.dependencies:
            nested = _declared_for(dep, lookup)
            dep = _enforce(dep, nested, strict, lookup, result)
        dependencies.append(dep)

    return dataclasses.replace(parent, dependencies=dependencies)


def _declared_for(
    config: AddonConfig,
    lookup: Optional[Callable[[AddonConfig], List[CatalogDependency]]],
) -> List[CatalogDependency]:
    if lookup is None:
        return []
    if not (config.catalog_id and config.offering_id and config.version_locator):
        return []
    try:
        return lookup(config)
    except MetadataLookupError as e:
        logger.warning(
            f"Could not check required dependencies of {config.offering_name}: {e}",
            extra=log_extra(config_id=config.config_id),
        )
        return []
