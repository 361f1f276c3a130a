"""Expected dependency graph construction.

Walks catalog metadata from a root addon and records:
1. graph: each expanded node's key -> its immediate children
2. expected_deployed_list: root plus every transitively enabled descendant

A node is expanded at most once. The visited set is keyed by version
locator, so diamonds are walked once and cyclic metadata terminates.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set

from addonval.api_models import OfferingReferenceDetail
from addonval.catalog.models import CatalogDependency, CatalogVersion, MetadataSource
from addonval.core.config import VALID_INSTALL_KINDS, VERSION_INSTALL_KIND
from addonval.dependency.models import AddonConfig, DependencyGraphResult
from addonval.dependency.required import is_dependency_required
from addonval.exceptions import MetadataLookupError, PermutationInputError

logger = logging.getLogger("addonval.dependency.graph")


@dataclass(frozen=True)
class _Frame:
    """A node waiting to be expanded."""
    catalog_id: str
    offering_id: str
    version_locator: str
    flavor: str
    config: AddonConfig


class DependencyGraphBuilder:
    """Builds the expected dependency graph for one root addon.

    Any metadata lookup failure aborts the whole build; the raised
    MetadataLookupError identifies the offending node.
    """

    def __init__(self, source: MetadataSource):
        self._source = source

    def build(self, root: AddonConfig) -> DependencyGraphResult:
        if root.install_kind not in VALID_INSTALL_KINDS:
            raise MetadataLookupError.invalid_install_kind(root.offering_name, root.install_kind)

        # Disabled offerings apply to the whole tree, not just direct children
        disabled = {
            d.offering_name
            for d in root.dependencies
            if d.is_disabled and not d.is_required
        }

        result = DependencyGraphResult()
        root_frame = _Frame(
            root.catalog_id, root.offering_id, root.version_locator, root.offering_flavor, root
        )

        # Depth-first over an explicit stack of suspended expansions. A parent
        # resumes only after the child it yielded is fully expanded.
        stack: List[Iterator[_Frame]] = [self._expand(root_frame, result, disabled)]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
            else:
                stack.append(self._expand(child, result, disabled))

        logger.info(
            f"Built dependency graph for {root.offering_name}: "
            f"{len(result.expected_deployed_list)} expected, {len(result.graph)} parents"
        )
        return result

    def _expand(
        self,
        frame: _Frame,
        result: DependencyGraphResult,
        disabled: Set[str],
    ) -> Iterator[_Frame]:
        """Expand one node, yielding each child that still needs expanding."""
        catalog_id, offering_id = frame.catalog_id, frame.offering_id
        version_locator, flavor, config = frame.version_locator, frame.flavor, frame.config
        if version_locator in result.visited:
            return
        result.visited.add(version_locator)

        offering = self._source.get_offering(catalog_id, offering_id)
        version = offering.find_version(version_locator, VERSION_INSTALL_KIND)
        if version is None:
            raise MetadataLookupError.version_not_found(
                version_locator, catalog_id=catalog_id, offering_id=offering_id
            )

        node = OfferingReferenceDetail(
            name=offering.name or config.offering_name,
            version=version.version or "",
            flavor=flavor,
            on_by_default=config.on_by_default,
            catalog_id=catalog_id,
            offering_id=offering_id,
        )
        result.expected_deployed_list.append(node)
        key = node.key

        covered: Set[str] = set()

        # Catalog-declared dependencies that deploy by default (or must deploy)
        for dep in version.dependencies:
            required = is_dependency_required(dep)
            if not dep.on_by_default and not required:
                continue

            requested = config.find_dependency(dep.name)
            if not required and (
                dep.name in disabled or (requested is not None and requested.is_disabled)
            ):
                logger.info(f"Skipping catalog dependency {dep.name}: disabled in dependency tree")
                continue

            dep_flavor = dep.chosen_flavor
            if requested is not None and requested.is_enabled and requested.offering_flavor:
                dep_flavor = requested.offering_flavor
            covered.add(dep.name)

            dep_version, dep_locator = self._source.get_version_locator_by_constraint(
                dep.catalog_id or "", dep.id or "", dep.version, dep_flavor
            )
            child = OfferingReferenceDetail(
                name=dep.name,
                version=dep_version,
                flavor=dep_flavor,
                on_by_default=dep.on_by_default,
                catalog_id=dep.catalog_id,
                offering_id=dep.id,
            )
            result.graph.setdefault(key, []).append(child)

            child_config = config.find_dependency(dep.name, dep_flavor) or AddonConfig(
                offering_name=dep.name,
                offering_flavor=dep_flavor,
                on_by_default=dep.on_by_default,
                catalog_id=dep.catalog_id or "",
                offering_id=dep.id or "",
                version_locator=dep_locator,
                resolved_version=dep_version,
            )
            yield _Frame(dep.catalog_id or "", dep.id or "", dep_locator, dep_flavor, child_config)

        # Dependencies enabled explicitly that the catalog does not deploy by default
        for requested in config.dependencies:
            if not requested.is_enabled or requested.offering_name in covered:
                continue
            if requested.offering_name in disabled:
                continue

            requested = self._complete_requested(requested, version, node.name)
            if requested.version_locator in result.visited:
                continue

            logger.info(
                f"Processing manually enabled dependency {requested.offering_name} for addon {node.name}"
            )
            child = OfferingReferenceDetail(
                name=requested.offering_name,
                version=requested.resolved_version,
                flavor=requested.offering_flavor,
                on_by_default=requested.on_by_default,
                catalog_id=requested.catalog_id,
                offering_id=requested.offering_id,
            )
            result.graph.setdefault(key, []).append(child)
            yield _Frame(
                requested.catalog_id, requested.offering_id, requested.version_locator,
                requested.offering_flavor, requested,
            )

    def _complete_requested(
        self, requested: AddonConfig, version: CatalogVersion, parent_name: str
    ) -> AddonConfig:
        """Fill catalog identity and resolved version for an explicitly enabled dependency.

        Permutation test cases only carry name, flavor and enabled state; the
        rest comes from the parent's declaration of that dependency.
        """
        if requested.catalog_id and requested.offering_id and requested.version_locator:
            return requested

        declared = _find_declared(version.dependencies, requested.offering_name)
        if declared is None:
            raise PermutationInputError.undeclared_dependency(requested.offering_name, parent_name)

        catalog_id = requested.catalog_id or declared.catalog_id or ""
        offering_id = requested.offering_id or declared.id or ""
        flavor = requested.offering_flavor or declared.chosen_flavor
        resolved_version, locator = requested.resolved_version, requested.version_locator
        if not locator:
            resolved_version, locator = self._source.get_version_locator_by_constraint(
                catalog_id, offering_id, declared.version, flavor
            )
        return dataclasses.replace(
            requested,
            catalog_id=catalog_id,
            offering_id=offering_id,
            offering_flavor=flavor,
            version_locator=locator,
            resolved_version=resolved_version,
            on_by_default=(
                requested.on_by_default
                if requested.on_by_default is not None
                else declared.on_by_default
            ),
        )


def _find_declared(deps: List[CatalogDependency], name: str) -> Optional[CatalogDependency]:
    for dep in deps:
        if dep.name == name:
            return dep
    return None


def build_dependency_graph(source: MetadataSource, root: AddonConfig) -> DependencyGraphResult:
    """Convenience wrapper around DependencyGraphBuilder.build()."""
    return DependencyGraphBuilder(source).build(root)
