"""Catalog metadata access: response models, version constraints, retry and client."""

from .client import CatalogClient
from .models import CatalogDependency, CatalogVersion, MetadataSource, Offering
from .retry import CATALOG_RETRY, DEFAULT_RETRY, REF_RESOLUTION_RETRY, RetryConfig
from .versions import latest_version_by_constraint, match_version

__all__ = [
    "CatalogClient",
    "CatalogDependency",
    "CatalogVersion",
    "MetadataSource",
    "Offering",
    "RetryConfig",
    "DEFAULT_RETRY",
    "CATALOG_RETRY",
    "REF_RESOLUTION_RETRY",
    "latest_version_by_constraint",
    "match_version",
]
