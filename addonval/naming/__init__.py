"""Short, collision-free identifiers for generated test cases and prefixes."""

from .abbreviator import (
    abbreviate_flavor,
    abbreviate_with_collision_resolution,
    create_initial_abbreviation,
    shorten_prefix,
)

__all__ = [
    "abbreviate_flavor",
    "abbreviate_with_collision_resolution",
    "create_initial_abbreviation",
    "shorten_prefix",
]
