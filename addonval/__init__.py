"""Addon dependency graph and permutation validation engine.

Subpackages:
- naming: collision-free abbreviations for generated identifiers
- permutations: manifest reading and enabled/disabled test case generation
- dependency: expected dependency graph construction
- circular: reference cycle detection among waiting configurations
- reconcile: expected vs. actually deployed comparison
- catalog / refs: httpx clients for catalog metadata and reference resolution
- orchestration: concurrent matrix coordination and result reporting
"""

__version__ = "0.1.0"
