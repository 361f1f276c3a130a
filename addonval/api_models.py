"""
Addon validator result models.

Pydantic models for everything that leaves a validation pass: flattened
offering descriptors, dependency errors and the ValidationResult verdict.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


# =============================================================================
# Offering descriptors
# =============================================================================

class OfferingReferenceDetail(BaseModel):
    """One expected (or actually deployed) unit, flattened from the addon tree.

    Identity is the (name, version, flavor) triple. Version and flavor may be
    empty when metadata was only partially available.
    """
    name: str
    version: str = ""
    flavor: str = ""
    on_by_default: Optional[bool] = None
    catalog_id: Optional[str] = None
    offering_id: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, str, str]:
        return (self.name, self.version, self.flavor)

    @property
    def key(self) -> str:
        """Graph key in "name:version:flavor" form."""
        return make_addon_key(self.name, self.version, self.flavor)

    @property
    def is_partial(self) -> bool:
        return not self.version or not self.flavor

    def matches_partially(self, other: "OfferingReferenceDetail") -> bool:
        """Compare on the identity fields both sides actually carry.

        Names must always be equal; an empty version or flavor on either side
        matches anything.
        """
        if self.name != other.name:
            return False
        if self.version and other.version and self.version != other.version:
            return False
        if self.flavor and other.flavor and self.flavor != other.flavor:
            return False
        return True

    def describe(self) -> str:
        parts = [self.name]
        if self.version:
            parts.append(f"v{self.version}" if self.version[0].isdigit() else self.version)
        if self.flavor:
            parts.append(f"({self.flavor})")
        return " ".join(parts)


def make_addon_key(name: str, version: str, flavor: str) -> str:
    return f"{name}:{version}:{flavor}"


def parse_addon_key(key: str) -> Optional[OfferingReferenceDetail]:
    """Inverse of make_addon_key. Returns None for malformed keys."""
    parts = key.split(":")
    if len(parts) != 3:
        return None
    return OfferingReferenceDetail(name=parts[0], version=parts[1], flavor=parts[2])


class DependencyError(BaseModel):
    """A dependency the graph requires that was not deployed."""
    addon: OfferingReferenceDetail
    dependency_required: OfferingReferenceDetail
    dependencies_available: List[OfferingReferenceDetail] = Field(default_factory=list)
    reason: str = ""


# =============================================================================
# Validation verdict
# =============================================================================

class ValidationResult(BaseModel):
    """Reconciliation verdict for one validation pass.

    Results of sequential passes within one test run are combined with
    merge(); validity is the conjunction of every merged pass.
    """
    is_valid: bool = True
    dependency_errors: List[DependencyError] = Field(default_factory=list)
    unexpected_configs: List[OfferingReferenceDetail] = Field(default_factory=list)
    missing_configs: List[OfferingReferenceDetail] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    missing_inputs: List[str] = Field(default_factory=list)
    configuration_errors: List[str] = Field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.is_valid = False
        self.messages.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Append another pass's findings to this one (in place)."""
        self.is_valid = self.is_valid and other.is_valid
        self.dependency_errors.extend(other.dependency_errors)
        self.unexpected_configs.extend(other.unexpected_configs)
        self.missing_configs.extend(other.missing_configs)
        self.messages.extend(other.messages)
        self.warnings.extend(other.warnings)
        self.missing_inputs.extend(other.missing_inputs)
        self.configuration_errors.extend(other.configuration_errors)
        return self

    def summary(self) -> str:
        """Single-line, counts-only summary for compact reporting."""
        if self.is_valid and not self.warnings:
            return "valid"
        status = "valid" if self.is_valid else "invalid"
        return (
            f"{status}: dependency_errors={len(self.dependency_errors)} "
            f"missing={len(self.missing_configs)} "
            f"unexpected={len(self.unexpected_configs)} "
            f"warnings={len(self.warnings)}"
        )


# =============================================================================
# Error Codes
# =============================================================================

class ErrorDetail(BaseModel):
    """Error surfaced for a failed permutation."""
    code: str
    message: str
    recoverable: bool


class ErrorCode:
    """Error code registry for validator failures."""
    # Input layer
    MANIFEST_NOT_FOUND = "MANIFEST_NOT_FOUND"
    MANIFEST_INVALID = "MANIFEST_INVALID"
    OFFERING_NOT_FOUND = "OFFERING_NOT_FOUND"
    FLAVOR_NOT_FOUND = "FLAVOR_NOT_FOUND"
    DEPENDENCY_NOT_DECLARED = "DEPENDENCY_NOT_DECLARED"

    # Metadata layer
    INSTALL_KIND_INVALID = "INSTALL_KIND_INVALID"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    METADATA_LOOKUP_FAILED = "METADATA_LOOKUP_FAILED"

    # Reference layer
    REFERENCE_MALFORMED = "REFERENCE_MALFORMED"
    REFERENCE_RESOLUTION_FAILED = "REFERENCE_RESOLUTION_FAILED"

    # Structural layer
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# Whether a retry of the same pass could plausibly succeed
ERROR_RECOVERABILITY: Dict[str, bool] = {
    ErrorCode.MANIFEST_NOT_FOUND: False,
    ErrorCode.MANIFEST_INVALID: False,
    ErrorCode.OFFERING_NOT_FOUND: False,
    ErrorCode.FLAVOR_NOT_FOUND: False,
    ErrorCode.DEPENDENCY_NOT_DECLARED: False,
    ErrorCode.INSTALL_KIND_INVALID: False,
    ErrorCode.VERSION_NOT_FOUND: False,
    ErrorCode.METADATA_LOOKUP_FAILED: True,          # Recoverable
    ErrorCode.REFERENCE_MALFORMED: False,
    ErrorCode.REFERENCE_RESOLUTION_FAILED: True,     # Recoverable
    ErrorCode.CIRCULAR_DEPENDENCY: False,
    ErrorCode.INTERNAL_ERROR: True,                  # Recoverable
}
