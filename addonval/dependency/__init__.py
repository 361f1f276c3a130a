"""Expected dependency graph construction."""

from .graph import DependencyGraphBuilder, build_dependency_graph
from .models import (
    AddonConfig,
    AddonTestCase,
    DependencyGraphResult,
    DependencyWithFlavors,
    SkipEntry,
)
from .required import RequiredDependencyResult, enforce_required_dependencies, is_dependency_required

__all__ = [
    "AddonConfig",
    "AddonTestCase",
    "DependencyGraphResult",
    "DependencyWithFlavors",
    "SkipEntry",
    "DependencyGraphBuilder",
    "build_dependency_graph",
    "RequiredDependencyResult",
    "enforce_required_dependencies",
    "is_dependency_required",
]
