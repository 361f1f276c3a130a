"""Catalog management API client.

Synchronous httpx client implementing MetadataSource. Transient failures
(transport errors, timeouts, 429 and 5xx) are retried per CATALOG_RETRY;
anything still failing is raised as MetadataLookupError carrying the
catalog/offering identity of the lookup.
"""

import logging
from typing import Dict, Optional, Tuple

import httpx
from pydantic import ValidationError

from addonval.catalog.models import CatalogVersion, Offering
from addonval.catalog.retry import CATALOG_RETRY, RetryConfig, retry_call
from addonval.catalog.versions import latest_version_by_constraint
from addonval.core.config import CATALOG_API_BASE, HTTP_TIMEOUT_SECONDS, VERSION_INSTALL_KIND
from addonval.exceptions import MetadataLookupError

logger = logging.getLogger("addonval.catalog")


class _TransientStatus(Exception):
    """Retryable HTTP status (429 or 5xx)."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code} from {response.request.url}")


class CatalogClient:
    """Read-only catalog metadata lookups.

    Offerings are cached per client instance: a single validation pass
    queries the same offering repeatedly while resolving constraints and
    walking the tree.
    """

    def __init__(
        self,
        base_url: str = CATALOG_API_BASE,
        token: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        retry: RetryConfig = CATALOG_RETRY,
        client: Optional[httpx.Client] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout, headers=headers)
        self._retry = retry
        self._offering_cache: Dict[Tuple[str, str], Offering] = {}

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get_json(self, path: str) -> dict:
        def do_get() -> dict:
            response = self._client.get(path)
            if response.status_code == 429 or response.status_code >= 500:
                raise _TransientStatus(response)
            response.raise_for_status()
            return response.json()

        return retry_call(
            do_get,
            self._retry,
            retryable=(httpx.TransportError, _TransientStatus),
            operation=f"GET {path}",
        )

    def get_offering(self, catalog_id: str, offering_id: str) -> Offering:
        if not catalog_id or not offering_id:
            raise MetadataLookupError.lookup_failed(
                catalog_id, offering_id, "catalog ID and offering ID are required"
            )

        cache_key = (catalog_id, offering_id)
        cached = self._offering_cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            data = self._get_json(f"/catalogs/{catalog_id}/offerings/{offering_id}")
        except httpx.HTTPStatusError as e:
            raise MetadataLookupError.lookup_failed(
                catalog_id, offering_id, f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.TransportError, _TransientStatus) as e:
            raise MetadataLookupError.lookup_failed(catalog_id, offering_id, str(e)) from e
        except ValueError as e:
            raise MetadataLookupError.lookup_failed(
                catalog_id, offering_id, f"response is not valid JSON: {e}"
            ) from e

        try:
            offering = Offering.model_validate(data)
        except ValidationError as e:
            raise MetadataLookupError.lookup_failed(
                catalog_id, offering_id, f"unexpected offering payload: {e.error_count()} validation errors"
            ) from e
        if offering.catalog_id is None:
            offering.catalog_id = catalog_id
        self._offering_cache[cache_key] = offering
        logger.debug(f"Fetched offering {offering.name} ({catalog_id}/{offering_id})")
        return offering

    def get_version_locator_by_constraint(
        self, catalog_id: str, offering_id: str, constraint: str, flavor: str
    ) -> Tuple[str, str]:
        """Resolve a dependency version constraint to (version, version_locator)."""
        offering = self.get_offering(catalog_id, offering_id)

        locators: Dict[str, str] = {}
        for v in offering.versions_of_kind(VERSION_INSTALL_KIND):
            if v.flavor_name == flavor and v.version and v.version_locator:
                locators[v.version] = v.version_locator

        best = latest_version_by_constraint(list(locators), constraint)
        if best is None:
            raise MetadataLookupError.no_matching_version(catalog_id, offering_id, constraint, flavor)
        return best, locators[best]

    def get_version_by_locator(self, version_locator: str) -> CatalogVersion:
        try:
            data = self._get_json(f"/versions/{version_locator}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise MetadataLookupError.version_not_found(version_locator) from e
            raise MetadataLookupError.lookup_failed(
                "", "", f"version {version_locator}: HTTP {e.response.status_code}",
                version_locator=version_locator,
            ) from e
        except (httpx.TransportError, _TransientStatus) as e:
            raise MetadataLookupError.lookup_failed(
                "", "", f"version {version_locator}: {e}", version_locator=version_locator
            ) from e
        except ValueError as e:
            raise MetadataLookupError.lookup_failed(
                "", "", f"version {version_locator}: response is not valid JSON: {e}",
                version_locator=version_locator,
            ) from e

        try:
            offering = Offering.model_validate(data)
        except ValidationError as e:
            raise MetadataLookupError.version_not_found(version_locator) from e
        for kind in offering.kinds:
            for v in kind.versions:
                if v.version_locator == version_locator:
                    if v.catalog_id is None:
                        v.catalog_id = offering.catalog_id
                    if v.offering_id is None:
                        v.offering_id = offering.id
                    return v
        raise MetadataLookupError.version_not_found(
            version_locator, catalog_id=offering.catalog_id, offering_id=offering.id
        )
