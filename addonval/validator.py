"""Validation pass for one deployed permutation.

Wires the components together in the order a permutation test needs them:

1. Force-enable disabled dependencies the catalog requires
2. Build the expected dependency graph
3. Correlate the deployment response with catalog metadata
4. Reconcile expected against actually deployed
5. Check configurations stuck awaiting prerequisites for reference cycles

Metadata lookup failures abort the pass and propagate to the caller.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence

from addonval.api_models import ERROR_RECOVERABILITY, ErrorCode, ErrorDetail, ValidationResult
from addonval.catalog.models import MetadataSource
from addonval.circular.detector import (
    ConfigDependencyInfo,
    detect_circular_dependencies,
    find_unresolved_references,
    record_cycles,
)
from addonval.core import config as cfg
from addonval.core.logging import log_extra
from addonval.dependency.graph import build_dependency_graph
from addonval.dependency.models import AddonConfig
from addonval.dependency.required import declared_dependencies, enforce_required_dependencies
from addonval.reconcile.deployed import DeployedConfig, build_actually_deployed_list
from addonval.reconcile.reconciler import SUCCESS_MESSAGE, validate_deployment

logger = logging.getLogger("addonval.validator")


def to_error_detail(exc: Exception) -> ErrorDetail:
    """Convert an exception to an ErrorDetail.

    Domain exceptions carry their own code; anything else is INTERNAL_ERROR.
    """
    code = getattr(exc, "code", ErrorCode.INTERNAL_ERROR)
    message = getattr(exc, "message", str(exc))
    recoverable = ERROR_RECOVERABILITY.get(code, True)
    return ErrorDetail(code=code, message=message, recoverable=recoverable)


def validate_permutation(
    source: MetadataSource,
    root: AddonConfig,
    deployed: Optional[Sequence[DeployedConfig]],
    waiting: Iterable[ConfigDependencyInfo] = (),
    existing_config_ids: Optional[Iterable[str]] = None,
    known_config_names: Optional[Dict[str, str]] = None,
    strict: Optional[bool] = None,
) -> ValidationResult:
    """Validate what one permutation actually deployed.

    Args:
        source: Catalog metadata lookups.
        root: Root addon with the permutation's dependency selection.
        deployed: Configurations from the deployment response.
        waiting: Configurations stuck awaiting prerequisites.
        existing_config_ids: Every configuration ID in the project; enables
            the unresolved-reference check.
        known_config_names: Offering name -> configuration name.
        strict: Overrides STRICT_MODE.

    Raises:
        MetadataLookupError: Catalog metadata could not be read.
        PermutationInputError: The permutation enables an undeclared dependency.
    """
    if strict is None:
        strict = cfg.STRICT_MODE

    enforced = enforce_required_dependencies(
        root,
        declared_dependencies(source, root),
        strict=strict,
        lookup=lambda parent: declared_dependencies(source, parent),
    )
    graph = build_dependency_graph(source, enforced.config)
    deployed_list = build_actually_deployed_list(
        source, deployed, graph.expected_deployed_list, known_config_names
    )

    result = validate_deployment(graph, deployed_list)
    result.merge(enforced.validation)

    waiting = list(waiting)
    if waiting:
        record_cycles(detect_circular_dependencies(waiting), result, strict=strict)
        if existing_config_ids is not None:
            for message in find_unresolved_references(waiting, existing_config_ids):
                result.add_warning(message)

    if not result.is_valid and SUCCESS_MESSAGE in result.messages:
        result.messages.remove(SUCCESS_MESSAGE)

    logger.info(
        f"Validated {root.offering_name}: {result.summary()}",
        extra=log_extra(offering=root.offering_name, config_id=root.config_id),
    )
    return result
