"""Permutation test case generation.

For n direct dependencies every enabled/disabled assignment is emitted
except the all-enabled one (the default configuration, covered by the
regular addon test): 2^n - 1 cases. The flavor-aware variant expands each
assignment into the Cartesian product of the enabled dependencies' flavors.

Bit j of the assignment mask set means dependency j is enabled. Within a
case, enabled dependencies come first, then disabled ones.
"""

import logging
import secrets
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from addonval.core.config import (
    DEFAULT_FLAVOR,
    MAX_PREFIX_LENGTH,
    MAX_TEST_NAME_LENGTH,
    PREFIX_SUFFIX_ROOM,
    PREFIX_TAG_LENGTH,
    RANDOM_TAG_ALPHABET,
    RANDOM_TAG_LENGTH,
)
from addonval.dependency.models import (
    AddonConfig,
    AddonTestCase,
    DependencyWithFlavors,
    SkipEntry,
)
from addonval.naming.abbreviator import (
    abbreviate_flavor,
    abbreviate_with_collision_resolution,
    create_initial_abbreviation,
    shorten_prefix,
)
from addonval.permutations.manifest import load_manifest

logger = logging.getLogger("addonval.permutations")


def generate_random_tag(length: int = RANDOM_TAG_LENGTH) -> str:
    """Random base36 tag grouping every test case of one run."""
    return "".join(secrets.choice(RANDOM_TAG_ALPHABET) for _ in range(length))


def _default_flavor(dep: DependencyWithFlavors) -> str:
    return dep.flavors[0] if dep.flavors else DEFAULT_FLAVOR


def should_skip_permutation(
    enabled: Sequence[AddonConfig],
    skip_permutations: Sequence[Sequence[SkipEntry]],
) -> bool:
    """True when the enabled set matches any skip set exactly.

    The skip set must name exactly the enabled dependencies (order does not
    matter). A non-empty flavor in a skip entry must equal the chosen one.
    """
    if not skip_permutations:
        return False

    chosen = {cfg.offering_name: cfg.offering_flavor for cfg in enabled}
    for skip_set in skip_permutations:
        if len(skip_set) != len(enabled):
            continue
        if all(
            s.name in chosen and (not s.flavor or s.flavor == chosen[s.name])
            for s in skip_set
        ):
            return True
    return False


class PermutationGenerator:
    """Generates AddonTestCase permutations for one root offering.

    Args:
        offering_name: Root offering, abbreviated into every case name.
        base_prefix: Caller prefix, shortened into every case prefix.
        skip_permutations: Enabled sets to exclude.
        random_tag: Run grouping tag; generated when omitted.
    """

    def __init__(
        self,
        offering_name: str,
        base_prefix: str,
        skip_permutations: Optional[Iterable[Sequence[SkipEntry]]] = None,
        random_tag: Optional[str] = None,
    ):
        self.offering_name = offering_name
        self.base_prefix = shorten_prefix(base_prefix)
        self.skip_permutations = [list(s) for s in (skip_permutations or [])]
        self.random_tag = random_tag or generate_random_tag()
        self._main_abbrev = create_initial_abbreviation(offering_name)

    def generate(self, dependency_names: Sequence[str]) -> List[AddonTestCase]:
        """Enabled/disabled permutations without flavor selection."""
        n = len(dependency_names)
        if n == 0:
            return []

        width = self._index_width((1 << n) - 1)
        cases: List[AddonTestCase] = []

        for mask in range(1 << n):
            enabled = [name for j, name in enumerate(dependency_names) if mask & (1 << j)]
            disabled = [name for j, name in enumerate(dependency_names) if not mask & (1 << j)]
            if not disabled:
                continue

            deps = [AddonConfig(offering_name=name, enabled=True) for name in enabled]
            deps += [AddonConfig(offering_name=name, enabled=False) for name in disabled]

            case = self._make_case(len(cases), width, deps, disabled, [])
            if case is not None:
                cases.append(case)

        logger.info(f"Generated {len(cases)} permutations for {self.offering_name}")
        return cases

    def generate_with_flavors(self, dependencies: Sequence[DependencyWithFlavors]) -> List[AddonTestCase]:
        """Enabled/disabled permutations expanded over enabled dependencies' flavors.

        A dependency without declared flavors counts as one implicit default
        flavor. Disabled dependencies carry their first (or default) flavor.
        """
        n = len(dependencies)
        if n == 0:
            return []

        width = self._index_width(self._case_count(dependencies))
        cases: List[AddonTestCase] = []

        for mask in range(1 << n):
            enabled = [d for j, d in enumerate(dependencies) if mask & (1 << j)]
            disabled = [d for j, d in enumerate(dependencies) if not mask & (1 << j)]
            if not disabled:
                continue

            combinations = 1
            for dep in enabled:
                combinations *= max(1, len(dep.flavors))

            for comb in range(combinations):
                # Mixed-radix expansion over the enabled dependencies
                deps: List[AddonConfig] = []
                tmp = comb
                for dep in enabled:
                    if dep.flavors:
                        flavor = dep.flavors[tmp % len(dep.flavors)]
                        tmp //= len(dep.flavors)
                    else:
                        flavor = _default_flavor(dep)
                    deps.append(AddonConfig(offering_name=dep.name, offering_flavor=flavor, enabled=True))
                for dep in disabled:
                    deps.append(AddonConfig(offering_name=dep.name, offering_flavor=_default_flavor(dep), enabled=False))

                # Annotate only multi-flavor choices
                flavor_parts = [
                    f"{create_initial_abbreviation(dep.name)}-{abbreviate_flavor(cfg.offering_flavor)}"
                    for dep, cfg in zip(enabled, deps)
                    if len(dep.flavors) > 1
                ]

                case = self._make_case(len(cases), width, deps, [d.name for d in disabled], flavor_parts)
                if case is not None:
                    cases.append(case)

        logger.info(f"Generated {len(cases)} flavor permutations for {self.offering_name}")
        return cases

    def _make_case(
        self,
        index: int,
        width: int,
        deps: List[AddonConfig],
        disabled_names: List[str],
        flavor_parts: List[str],
    ) -> Optional[AddonTestCase]:
        name = self._case_name(index, disabled_names, flavor_parts)

        if should_skip_permutation([d for d in deps if d.is_enabled], self.skip_permutations):
            logger.info(f"Skipping permutation: {name}")
            return None

        return AddonTestCase(
            name=name,
            prefix=self._case_prefix(index, width),
            dependencies=tuple(deps),
            skip_infrastructure_deployment=True,
        )

    def _case_name(self, index: int, disabled_names: List[str], flavor_parts: List[str]) -> str:
        name = f"{self.random_tag}-{self._main_abbrev}-{index}"
        if disabled_names:
            abbrevs = abbreviate_with_collision_resolution(disabled_names)
            name = f"{name}-disable-{'-'.join(abbrevs)}"
        if flavor_parts:
            name = f"{name}[{','.join(flavor_parts)}]"
        # The index precedes everything truncated here, so names stay unique
        return name[:MAX_TEST_NAME_LENGTH]

    def _case_prefix(self, index: int, width: int) -> str:
        # Leaves PREFIX_SUFFIX_ROOM characters for the per-resource suffix
        suffix = str(index).zfill(width)
        limit = MAX_PREFIX_LENGTH - PREFIX_SUFFIX_ROOM
        head = (self.random_tag[:PREFIX_TAG_LENGTH] + self.base_prefix)[:max(limit - width, 0)]
        return head + suffix

    @staticmethod
    def _index_width(max_cases: int) -> int:
        return max(PREFIX_SUFFIX_ROOM, len(str(max(max_cases - 1, 0))))

    @staticmethod
    def _case_count(dependencies: Sequence[DependencyWithFlavors]) -> int:
        """Upper bound on emitted cases: sum over non-full masks of flavor products."""
        with_disabled, all_enabled = 1, 1
        for dep in dependencies:
            f = max(1, len(dep.flavors))
            with_disabled *= 1 + f
            all_enabled *= f
        return with_disabled - all_enabled


def generate_for_manifest(
    path: Union[str, Path],
    offering: str,
    flavor: str,
    base_prefix: str,
    dependency_names: Optional[Sequence[str]] = None,
    skip_permutations: Optional[Iterable[Sequence[SkipEntry]]] = None,
    random_tag: Optional[str] = None,
) -> List[AddonTestCase]:
    """Flavor-aware permutations for one offering flavor of a local catalog manifest.

    Args:
        path: ibm_catalog.json to read.
        offering: Product name in the manifest; also the root offering name.
        flavor: Flavor of that product whose dependencies are permuted.
        base_prefix: Caller prefix, shortened into every case prefix.
        dependency_names: Restrict permutations to these declared
            dependencies; all declared dependencies when omitted.
        skip_permutations: Enabled sets to exclude.
        random_tag: Run grouping tag; generated when omitted.

    Raises:
        ManifestError: The manifest, offering or flavor could not be found.
        PermutationInputError: A requested dependency is not declared.
    """
    manifest_flavor = load_manifest(path).find_flavor(offering, flavor)
    if dependency_names is None:
        dependencies = manifest_flavor.dependencies_with_flavors()
    else:
        dependencies = manifest_flavor.select(dependency_names, offering)

    generator = PermutationGenerator(
        offering, base_prefix, skip_permutations=skip_permutations, random_tag=random_tag
    )
    return generator.generate_with_flavors(dependencies)
