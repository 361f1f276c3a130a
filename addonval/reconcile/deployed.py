"""Actually-deployed list from a deployment response.

Each deployed configuration is correlated back to catalog metadata through
its version locator (version, flavor, catalog and offering). When that
fails the configuration name is matched against the expected descriptors;
what still cannot be identified is kept with partial identity so the
reconciler reports it instead of dropping it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from addonval.api_models import OfferingReferenceDetail
from addonval.catalog.models import MetadataSource
from addonval.core.logging import log_extra
from addonval.exceptions import MetadataLookupError
from addonval.reconcile.matching import match_expected

logger = logging.getLogger("addonval.reconcile.deployed")

OFFERING_ID_SEPARATOR = ":o:"


@dataclass
class DeployedConfig:
    """One configuration reported by the deployment response."""
    name: str
    config_id: str = ""
    version_locator: Optional[str] = None


@dataclass
class DeployedListResult:
    """Actually-deployed descriptors plus correlation findings.

    Warnings are recoverable (partial identity was used); errors mean a
    configuration's catalog metadata is inconsistent.
    """
    actually_deployed_list: List[OfferingReferenceDetail] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def split_offering_id(raw: str) -> Optional[str]:
    """Offering ID from "<sha>:o:<offering id>" (or a plain ID).

    Returns None when the separator appears but the format is wrong.
    """
    if OFFERING_ID_SEPARATOR not in raw:
        return raw
    parts = raw.split(OFFERING_ID_SEPARATOR)
    if len(parts) != 2 or not parts[1]:
        return None
    return parts[1]


class _Correlator:
    """Per-call state: findings are logged with the config they concern."""

    def __init__(
        self,
        expected: Sequence[OfferingReferenceDetail],
        known_config_names: Dict[str, str],
    ):
        self.expected = expected
        self.known_config_names = known_config_names
        self.result = DeployedListResult()

    def warn(self, config: DeployedConfig, message: str) -> None:
        self.result.warnings.append(message)
        logger.warning(message, extra=log_extra(config_id=config.config_id))

    def fail(self, config: DeployedConfig, message: str) -> None:
        self.result.errors.append(message)
        logger.error(message, extra=log_extra(config_id=config.config_id))

    def keep(self, detail: OfferingReferenceDetail) -> None:
        self.result.actually_deployed_list.append(detail)

    def keep_unidentified(self, config: DeployedConfig) -> None:
        """List a deployed config whose metadata could not be correlated.

        It was deployed all the same, so it must still reach the reconciler.
        """
        match = match_expected(config.name, self.expected, self.known_config_names)
        if match is None:
            self.warn(config, f"Could not identify offering for config {config.name}")
            self.keep(OfferingReferenceDetail(name=config.name))
            return
        detail, rule = match
        self.warn(config, f"Matched config {config.name} to {detail.name} ({rule.description})")
        self.keep(OfferingReferenceDetail(name=detail.name))

    def correlate(self, source: MetadataSource, config: DeployedConfig) -> None:
        if not config.version_locator:
            self.warn(config, f"Could not get locator ID for config {config.name}")
            self.keep_unidentified(config)
            return

        locator = config.version_locator
        try:
            version = source.get_version_by_locator(locator)
        except MetadataLookupError as e:
            self.warn(config, f"Could not get catalog version for config {config.name} (locator: {locator}): {e}")
            self.keep_unidentified(config)
            return

        if not version.version:
            self.warn(config, f"Invalid catalog version for config {config.name} (locator: {locator})")
            self.keep_unidentified(config)
            return

        if not version.catalog_id:
            self.fail(config, f"CatalogID is nil for config {config.name} (locator: {locator})")
            self.keep_unidentified(config)
            return
        if not version.offering_id:
            self.fail(config, f"OfferingID is nil for config {config.name} (locator: {locator})")
            self.keep_unidentified(config)
            return

        offering_id = split_offering_id(version.offering_id)
        if offering_id is None:
            self.fail(
                config,
                f"Invalid offering ID format for config {config.name}: {version.offering_id} "
                f"(expected format: <sha>:o:<offering_id>)",
            )
            self.keep_unidentified(config)
            return

        try:
            offering = source.get_offering(version.catalog_id, offering_id)
        except MetadataLookupError as e:
            self.fail(
                config,
                f"Could not get offering details for config {config.name} "
                f"(catalog: {version.catalog_id}, offering: {offering_id}): {e}",
            )
            self.keep_unidentified(config)
            return

        if not offering.name:
            self.fail(
                config,
                f"Offering name is nil for config {config.name} "
                f"(catalog: {version.catalog_id}, offering: {offering_id})",
            )
            self.keep_unidentified(config)
            return

        self.keep(OfferingReferenceDetail(
            name=offering.name,
            version=version.version,
            flavor=version.flavor_name,
            catalog_id=version.catalog_id,
            offering_id=offering_id,
        ))


def build_actually_deployed_list(
    source: MetadataSource,
    deployed: Optional[Sequence[DeployedConfig]],
    expected: Sequence[OfferingReferenceDetail] = (),
    known_config_names: Optional[Dict[str, str]] = None,
) -> DeployedListResult:
    """Correlate every deployed config with catalog metadata.

    Every deployed config appears in the returned list exactly once, with
    partial identity when its metadata could not be used.
    """
    correlator = _Correlator(expected, known_config_names or {})

    if deployed is None:
        correlator.result.errors.append("deployed configs is nil")
        logger.error("deployed configs is nil")
        return correlator.result

    for config in deployed:
        correlator.correlate(source, config)
    return correlator.result
