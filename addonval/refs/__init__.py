"""Batch reference resolution."""

from .resolver import (
    ProjectInfo,
    ReferenceResolver,
    ResolvedReference,
    ResolveResponse,
    normalize_reference,
    qualify_reference,
    should_retry,
)

__all__ = [
    "ProjectInfo",
    "ReferenceResolver",
    "ResolvedReference",
    "ResolveResponse",
    "normalize_reference",
    "qualify_reference",
    "should_retry",
]
