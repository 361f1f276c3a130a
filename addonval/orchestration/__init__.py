"""Matrix execution, error classification and reporting."""

from .classification import ErrorClassification, ErrorPattern, ErrorType, PATTERNS, classify_error
from .matrix import CatalogHandle, MatrixCoordinator, project_name, stagger_delay
from .report import PermutationReport, PermutationTestResult, categorize_error, collect_result

__all__ = [
    "CatalogHandle",
    "ErrorClassification",
    "ErrorPattern",
    "ErrorType",
    "MatrixCoordinator",
    "PATTERNS",
    "PermutationReport",
    "PermutationTestResult",
    "categorize_error",
    "classify_error",
    "collect_result",
    "project_name",
    "stagger_delay",
]
