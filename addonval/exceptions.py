"""
Addon validator exceptions.

Every exception carries an error code from ErrorCode plus enough identity
detail (offering, flavor, version, config) for the caller to act on.
"""

from typing import List, Optional

from addonval.api_models import ErrorCode


class AddonValidationError(Exception):
    """Base exception for validator operations.

    Carries an error code that maps to ErrorCode constants.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class ManifestError(AddonValidationError):
    """Local catalog manifest could not be used."""

    @classmethod
    def not_found(cls, path: str) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_NOT_FOUND,
            message=f"catalog manifest not found: {path}"
        )

    @classmethod
    def invalid(cls, path: str, reason: str) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_INVALID,
            message=f"catalog manifest {path} is invalid: {reason}"
        )

    @classmethod
    def offering_missing(cls, offering: str) -> "ManifestError":
        return cls(
            code=ErrorCode.OFFERING_NOT_FOUND,
            message=f"offering '{offering}' not found in catalog manifest"
        )

    @classmethod
    def flavor_missing(cls, offering: str, flavor: str) -> "ManifestError":
        return cls(
            code=ErrorCode.FLAVOR_NOT_FOUND,
            message=f"flavor '{flavor}' not found for offering '{offering}' in catalog manifest"
        )


class PermutationInputError(AddonValidationError):
    """Caller asked for permutations that the metadata cannot back."""

    @classmethod
    def undeclared_dependency(cls, name: str, offering: str) -> "PermutationInputError":
        return cls(
            code=ErrorCode.DEPENDENCY_NOT_DECLARED,
            message=f"dependency '{name}' is not declared by offering '{offering}'"
        )


class MetadataLookupError(AddonValidationError):
    """Catalog metadata lookup failed for a specific node.

    Aborts the current graph build. Identity fields are kept as attributes
    so callers can report the offending node.
    """

    def __init__(
        self,
        code: str,
        message: str,
        catalog_id: Optional[str] = None,
        offering_id: Optional[str] = None,
        version_locator: Optional[str] = None,
    ):
        super().__init__(code, message)
        self.catalog_id = catalog_id
        self.offering_id = offering_id
        self.version_locator = version_locator

    @classmethod
    def lookup_failed(
        cls,
        catalog_id: str,
        offering_id: str,
        reason: str,
        version_locator: Optional[str] = None,
    ) -> "MetadataLookupError":
        """Factory for METADATA_LOOKUP_FAILED (recoverable)."""
        return cls(
            code=ErrorCode.METADATA_LOOKUP_FAILED,
            message=(
                f"metadata lookup failed for catalog {catalog_id}, "
                f"offering {offering_id}: {reason}"
            ),
            catalog_id=catalog_id,
            offering_id=offering_id,
            version_locator=version_locator,
        )

    @classmethod
    def version_not_found(
        cls,
        version_locator: str,
        catalog_id: Optional[str] = None,
        offering_id: Optional[str] = None,
    ) -> "MetadataLookupError":
        return cls(
            code=ErrorCode.VERSION_NOT_FOUND,
            message=f"version not found for version locator: {version_locator}",
            catalog_id=catalog_id,
            offering_id=offering_id,
            version_locator=version_locator,
        )

    @classmethod
    def no_matching_version(
        cls, catalog_id: str, offering_id: str, constraint: str, flavor: str
    ) -> "MetadataLookupError":
        return cls(
            code=ErrorCode.VERSION_NOT_FOUND,
            message=(
                f"no version of offering {offering_id} in catalog {catalog_id} "
                f"satisfies '{constraint}' for flavor '{flavor}'"
            ),
            catalog_id=catalog_id,
            offering_id=offering_id,
        )

    @classmethod
    def invalid_install_kind(cls, offering: str, install_kind: Optional[str]) -> "MetadataLookupError":
        """Root addon has a missing or unsupported install kind."""
        return cls(
            code=ErrorCode.INSTALL_KIND_INVALID,
            message=f"offering '{offering}' has invalid install kind: {install_kind!r}",
        )


class ReferenceFormatError(AddonValidationError):
    """A reference string does not follow ref:/configs/{id}/{kind}/{field}."""

    @classmethod
    def malformed(cls, reference: str) -> "ReferenceFormatError":
        return cls(
            code=ErrorCode.REFERENCE_MALFORMED,
            message=f"malformed config reference: {reference}"
        )


class ReferenceResolutionError(AddonValidationError):
    """Batch reference resolution failed after retries.

    Maps to REFERENCE_RESOLUTION_FAILED (recoverable).
    """

    def __init__(self, message: str = "Reference resolution failed"):
        super().__init__(ErrorCode.REFERENCE_RESOLUTION_FAILED, message)


class CircularDependencyError(AddonValidationError):
    """Waiting configurations reference each other in a cycle.

    Raised by callers that want strict-mode findings as exceptions; the
    detector itself only returns descriptions.
    """

    def __init__(self, cycles: List[str]):
        self.cycles = cycles
        super().__init__(
            ErrorCode.CIRCULAR_DEPENDENCY,
            f"found {len(cycles)} circular dependencies: " + "; ".join(cycles),
        )
