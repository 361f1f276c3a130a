"""Reference cycle detection for configurations awaiting prerequisites."""

from .detector import (
    ConfigDependencyInfo,
    DetectedCycle,
    ReferenceDetails,
    detect_circular_dependencies,
    find_unresolved_references,
    parse_reference,
    raise_for_cycles,
    record_cycles,
)

__all__ = [
    "ConfigDependencyInfo",
    "DetectedCycle",
    "ReferenceDetails",
    "detect_circular_dependencies",
    "find_unresolved_references",
    "parse_reference",
    "raise_for_cycles",
    "record_cycles",
]
