"""Expected vs. actually deployed reconciliation.

Classifies differences into three kinds:
- dependency errors: a graph edge whose child was not deployed
- missing configs: expected but not deployed
- unexpected configs: deployed but not expected

Identity is the (name, version, flavor) triple. Descriptors with an empty
version or flavor are matched on the fields both sides carry, so partial
metadata from early failures is reported rather than raising.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from addonval.api_models import (
    DependencyError,
    OfferingReferenceDetail,
    ValidationResult,
    parse_addon_key,
)
from addonval.dependency.models import DependencyGraphResult
from addonval.reconcile.deployed import DeployedListResult

logger = logging.getLogger("addonval.reconcile")

SUCCESS_MESSAGE = "actually deployed configs are same as expected deployed configs"


def _dedupe(details: Sequence[OfferingReferenceDetail]) -> List[OfferingReferenceDetail]:
    seen = set()
    unique = []
    for d in details:
        if d.identity not in seen:
            seen.add(d.identity)
            unique.append(d)
    return unique


def _pair(
    expected: List[OfferingReferenceDetail],
    actual: List[OfferingReferenceDetail],
) -> Tuple[List[OfferingReferenceDetail], List[OfferingReferenceDetail]]:
    """Return (unmatched expected, unmatched actual).

    Exact identity matches are taken first; leftovers are paired on partial
    identity, each actual entry satisfying at most one expected entry.
    """
    actual_ids = {a.identity for a in actual}
    expected_ids = {e.identity for e in expected}
    rest_expected = [e for e in expected if e.identity not in actual_ids]
    rest_actual = [a for a in actual if a.identity not in expected_ids]

    unmatched_expected = []
    for e in rest_expected:
        partner = next(
            (a for a in rest_actual if (a.is_partial or e.is_partial) and e.matches_partially(a)),
            None,
        )
        if partner is None:
            unmatched_expected.append(e)
        else:
            rest_actual.remove(partner)
    return unmatched_expected, rest_actual


def _is_deployed(dep: OfferingReferenceDetail, actual: Sequence[OfferingReferenceDetail]) -> bool:
    for a in actual:
        if a.identity == dep.identity:
            return True
        if (a.is_partial or dep.is_partial) and dep.matches_partially(a):
            return True
    return False


def validate_dependencies(
    graph: Dict[str, List[OfferingReferenceDetail]],
    expected_deployed_list: Sequence[OfferingReferenceDetail],
    actually_deployed_list: Sequence[OfferingReferenceDetail],
) -> ValidationResult:
    """Compare the expected graph and list against what was deployed.

    Every finding is collected; the function never stops at the first one.
    """
    result = ValidationResult()
    expected = _dedupe(expected_deployed_list)
    actual = _dedupe(actually_deployed_list)

    for addon_key, dependencies in graph.items():
        addon = parse_addon_key(addon_key)
        if addon is None:
            logger.warning(f"Invalid addon key format: {addon_key}")
            continue

        for dep in dependencies:
            if _is_deployed(dep, actual):
                continue
            available = [a for a in actual if a.name == dep.name]
            reason = (
                f"{addon.describe()} requires {dep.describe()} but it was not deployed"
                if not available
                else f"{addon.describe()} requires {dep.describe()} but only "
                     + ", ".join(a.describe() for a in available) + " was deployed"
            )
            result.dependency_errors.append(DependencyError(
                addon=addon,
                dependency_required=dep,
                dependencies_available=available,
                reason=reason,
            ))

    missing, unexpected = _pair(expected, actual)
    result.missing_configs.extend(missing)
    result.unexpected_configs.extend(unexpected)

    result.is_valid = not (result.dependency_errors or result.missing_configs or result.unexpected_configs)

    if result.is_valid:
        result.messages.append(SUCCESS_MESSAGE)
        return result

    for err in result.dependency_errors:
        result.messages.append(f"dependency validation failed: {err.reason}")
    for d in result.missing_configs:
        result.messages.append(f"missing expected config: {d.describe()} was not deployed")
    for d in result.unexpected_configs:
        result.messages.append(f"unexpected config: {d.describe()} should not be deployed")

    if result.dependency_errors:
        result.messages.append(f"found {len(result.dependency_errors)} dependency errors")
    if result.unexpected_configs:
        result.messages.append(f"found {len(result.unexpected_configs)} unexpected configs")
    if result.missing_configs:
        result.messages.append(f"found {len(result.missing_configs)} missing expected configs")

    return result


def validate_deployment(
    graph_result: DependencyGraphResult,
    deployed: DeployedListResult,
) -> ValidationResult:
    """Reconcile a graph build against a deployed-list build.

    Correlation errors fail the result; correlation warnings are carried.
    """
    result = validate_dependencies(
        graph_result.graph,
        graph_result.expected_deployed_list,
        deployed.actually_deployed_list,
    )
    for warning in deployed.warnings:
        result.add_warning(warning)
    for error in deployed.errors:
        result.add_error(error)
    if not result.is_valid and SUCCESS_MESSAGE in result.messages:
        result.messages.remove(SUCCESS_MESSAGE)
    return result
