"""Error classification for permutation test failures.

Data-driven: each ErrorPattern is a compiled regex with a category,
subtype and confidence. The highest-confidence match wins; on equal
confidence the earlier table entry wins. New patterns are added to
PATTERNS, never as branching logic.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern


class ErrorType(str, Enum):
    VALIDATION = "validation"
    TRANSIENT = "transient"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class ErrorPattern:
    pattern: Pattern
    error_type: ErrorType
    subtype: str
    confidence: float
    description: str = ""


@dataclass(frozen=True)
class ErrorClassification:
    error_type: ErrorType
    subtype: str
    confidence: float
    message: str


def _p(regex: str, error_type: ErrorType, subtype: str, confidence: float, description: str) -> ErrorPattern:
    return ErrorPattern(re.compile(regex, re.IGNORECASE), error_type, subtype, confidence, description)


PATTERNS: List[ErrorPattern] = [
    # Validation
    _p(r"missing required inputs", ErrorType.VALIDATION, "missing_inputs", 0.95,
       "Required inputs were not supplied"),
    _p(r"dependency validation failed", ErrorType.VALIDATION, "dependency_validation", 0.90,
       "Deployed set does not satisfy the dependency graph"),
    _p(r"unexpected configs", ErrorType.VALIDATION, "unexpected_configs", 0.90,
       "Configs deployed that were not expected"),
    _p(r"should not be deployed", ErrorType.VALIDATION, "unexpected_deployment", 0.85,
       "Disabled dependency was deployed"),
    _p(r"configuration validation", ErrorType.VALIDATION, "configuration", 0.80,
       "Configuration failed validation"),

    # Transient
    _p(r"deployment timeout|TriggerDeployAndWait", ErrorType.TRANSIENT, "deployment_timeout", 0.95,
       "Deployment did not finish in time"),
    _p(r"TriggerUnDeployAndWait", ErrorType.TRANSIENT, "undeploy_timeout", 0.95,
       "Undeploy did not finish in time"),
    _p(r"5\d{2}.*error", ErrorType.TRANSIENT, "server_error", 0.90,
       "Server-side error"),
    _p(r"timeout", ErrorType.TRANSIENT, "general_timeout", 0.80,
       "Operation timed out"),
    _p(r"rate limit", ErrorType.TRANSIENT, "rate_limit", 0.90,
       "Rate limited by the service"),
    _p(r"network|connection", ErrorType.TRANSIENT, "network_error", 0.85,
       "Network failure"),

    # Runtime
    _p(r"panic:|runtime error", ErrorType.RUNTIME, "panic", 0.95,
       "Unrecovered runtime failure"),
    _p(r"nil pointer|NoneType", ErrorType.RUNTIME, "nil_pointer", 0.95,
       "Dereference of a missing value"),
]


def match_pattern(message: str, patterns: Optional[List[ErrorPattern]] = None) -> Optional[ErrorPattern]:
    best = None
    for pattern in patterns if patterns is not None else PATTERNS:
        if pattern.pattern.search(message) and (best is None or pattern.confidence > best.confidence):
            best = pattern
    return best


def classify_error(message: str, patterns: Optional[List[ErrorPattern]] = None) -> ErrorClassification:
    """Classify an error message. Unmatched messages are treated as transient."""
    best = match_pattern(message, patterns)
    if best is None:
        return ErrorClassification(ErrorType.TRANSIENT, "unknown", 0.0, message)
    return ErrorClassification(best.error_type, best.subtype, best.confidence, message)
