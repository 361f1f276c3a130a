"""
Addon validator configuration constants.

Constants are organized into:
- NORMATIVE: Platform limits and naming rules, not meant to be changed
- POLICY: Behavioural switches that decide how findings are classified
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _parse_keywords() -> frozenset[str]:
    """Parse abbreviation keywords from environment.

    Format: comma-separated words, e.g. "disable,enable,test".
    Extra keywords are added to the built-in set, never replace it.
    """
    base = {"disable", "enable", "test", "basic", "advanced", "dai", "da"}
    extra = os.getenv("ADDONVAL_ABBREVIATION_KEYWORDS", "")
    base.update(k.strip() for k in extra.split(",") if k.strip())
    return frozenset(base)


# =============================================================================
# NORMATIVE CONSTANTS (platform limits)
# =============================================================================

# Resource prefix ceiling, including any numeric uniqueness suffix
MAX_PREFIX_LENGTH: int = 8

# Characters reserved at the end of a prefix for numbering (0-99)
PREFIX_SUFFIX_ROOM: int = 2

# Project/test case names are rejected above this length
MAX_TEST_NAME_LENGTH: int = 128

# Random grouping tag shared by every test case of one run
RANDOM_TAG_LENGTH: int = 6
RANDOM_TAG_ALPHABET: str = "0123456789abcdefghijklmnopqrstuvwxyz"

# Leading characters of the random tag carried into resource prefixes
PREFIX_TAG_LENGTH: int = 2

# Segments kept verbatim by the abbreviator
ABBREVIATION_KEYWORDS: frozenset[str] = _parse_keywords()

# Long vendor/category prefixes rewritten before abbreviation (checked in order)
PREFIX_REWRITES: tuple[tuple[str, str], ...] = (
    ("deploy-arch-ibm-", "dai-"),
    ("deploy-arch-", "da-"),
)

# Flavor used for dependencies that declare none
DEFAULT_FLAVOR: str = "fully-configurable"

FLAVOR_ABBREVIATIONS: dict[str, str] = {
    "fully-configurable": "fc",
    "resource-group-only": "rgo",
    "resource-groups-with-account-settings": "rgas",
    "instance": "inst",
}

# Install kinds accepted on a root addon
VALID_INSTALL_KINDS: frozenset[str] = frozenset({"terraform", "stack"})

# Catalog kind searched when resolving a version locator
VERSION_INSTALL_KIND: str = "terraform"

# Reference strings look like ref:/configs/{id}/{inputs|outputs}/{field}
REFERENCE_PREFIX: str = "ref:/configs/"

# =============================================================================
# POLICY CONSTANTS
# =============================================================================

# Strict mode: circular dependencies and force-enabled required dependencies
# fail the run. False records them as warnings and keeps the result valid.
STRICT_MODE: bool = _env_bool("ADDONVAL_STRICT_MODE", "true")

# When a catalog dependency carries no explicit "optional" flag, decide
# required/optional from "on_by_default" instead.
# False (default): a missing flag means optional.
OPTIONAL_FALLBACK_TO_ON_BY_DEFAULT: bool = _env_bool(
    "ADDONVAL_OPTIONAL_FALLBACK_TO_ON_BY_DEFAULT", "false"
)

# =============================================================================
# OPERATIONAL CONFIGURATION (env vars)
# =============================================================================

CATALOG_API_BASE: str = os.getenv(
    "ADDONVAL_CATALOG_API_BASE", "https://cm.globalcatalog.cloud.ibm.com/api/v1-beta"
)
REF_RESOLVER_API_BASE: str = os.getenv(
    "ADDONVAL_REF_RESOLVER_API_BASE",
    "https://ref-resolver.us-east.devops.cloud.ibm.com/devops/ref-resolver/api/v1/internal",
)
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("ADDONVAL_HTTP_TIMEOUT", "30"))

# Retry policies (attempts after the first call, delays in seconds)
DEFAULT_RETRY_MAX: int = 3
DEFAULT_RETRY_INITIAL_DELAY: float = 2.0
DEFAULT_RETRY_MAX_DELAY: float = 30.0

CATALOG_RETRY_MAX: int = int(os.getenv("ADDONVAL_CATALOG_RETRY_MAX", "10"))
CATALOG_RETRY_INITIAL_DELAY: float = 5.0
CATALOG_RETRY_MAX_DELAY: float = 120.0

# Reference resolution
REF_RESOLUTION_MAX_RETRIES: int = int(os.getenv("ADDONVAL_REF_RETRY_MAX", "3"))
REF_RESOLUTION_INITIAL_DELAY: float = 2.0

# Matrix scheduling
STAGGER_DELAY_SECONDS: float = float(os.getenv("ADDONVAL_STAGGER_DELAY", "10"))
STAGGER_BATCH_SIZE: int = int(os.getenv("ADDONVAL_STAGGER_BATCH_SIZE", "8"))
WITHIN_BATCH_DELAY_SECONDS: float = float(os.getenv("ADDONVAL_WITHIN_BATCH_DELAY", "2"))

# Upper bound on waiting for in-flight cases before the report is finalized
MATRIX_COMPLETION_TIMEOUT_SECONDS: float = float(
    os.getenv("ADDONVAL_COMPLETION_TIMEOUT", "30")
)
