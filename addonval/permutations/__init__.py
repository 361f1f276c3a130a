"""Enabled/disabled dependency permutations and the manifest they are read from."""

from .generator import (
    PermutationGenerator,
    generate_for_manifest,
    generate_random_tag,
    should_skip_permutation,
)
from .manifest import CatalogManifest, ManifestFlavor, load_manifest

__all__ = [
    "PermutationGenerator",
    "generate_for_manifest",
    "generate_random_tag",
    "should_skip_permutation",
    "CatalogManifest",
    "ManifestFlavor",
    "load_manifest",
]
