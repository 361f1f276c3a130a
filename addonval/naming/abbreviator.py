"""Identifier abbreviation.

Long dash-delimited offering names are reduced to the first character of
each segment ("deploy-arch-ibm-event-notifications" -> "dai-e-n"). Segments
containing a digit or listed in ABBREVIATION_KEYWORDS are kept verbatim.

Collisions inside one list are resolved deterministically: within each
group of equal abbreviations the first entry is kept and every later entry
reveals one more character of its last extendable segment, repeating until
the list is pairwise distinct.
"""

import re
from typing import Dict, List

from addonval.core.config import (
    ABBREVIATION_KEYWORDS,
    FLAVOR_ABBREVIATIONS,
    MAX_PREFIX_LENGTH,
    PREFIX_REWRITES,
    PREFIX_SUFFIX_ROOM,
)

_TRAILING_DIGITS = re.compile(r"\d+$")


def rewrite_prefix(name: str) -> str:
    """Collapse a recognized long prefix to its short literal form."""
    for long_prefix, short_prefix in PREFIX_REWRITES:
        if name.startswith(long_prefix):
            return short_prefix + name[len(long_prefix):]
    return name


def _segments(name: str) -> List[str]:
    return [part for part in rewrite_prefix(name).split("-") if part]


def is_numeric_or_keyword(part: str) -> bool:
    """True for segments that are never shortened (v2, 10, disable, da...)."""
    if any(ch.isdigit() for ch in part):
        return True
    return part in ABBREVIATION_KEYWORDS


def create_initial_abbreviation(name: str) -> str:
    if not name:
        return ""
    return "-".join(
        part if is_numeric_or_keyword(part) else part[0]
        for part in _segments(name)
    )


def extend_abbreviation(original_name: str, current: str) -> str:
    """Reveal one more character of the last extendable segment.

    When every segment is already complete the trailing character is
    replaced by a counter (trailing digits are incremented), so the result
    differs from `current` and keeps its length until the counter itself
    outgrows the abbreviation.
    """
    original_parts = _segments(original_name)
    abbrev_parts = current.split("-")

    for i in range(len(abbrev_parts) - 1, -1, -1):
        if i >= len(original_parts):
            continue
        original_part = original_parts[i]
        abbrev_part = abbrev_parts[i]

        if is_numeric_or_keyword(original_part):
            continue
        if abbrev_part == original_part:
            continue
        if len(abbrev_part) < len(original_part):
            abbrev_parts[i] = original_part[:len(abbrev_part) + 1]
            return "-".join(abbrev_parts)

    match = _TRAILING_DIGITS.search(current)
    counter = str(int(match.group()) + 1) if match else "1"
    taken = len(match.group()) if match else 1
    return current[:max(len(current) - max(taken, len(counter)), 0)] + counter


def find_collisions(abbreviated: List[str]) -> Dict[str, List[int]]:
    """Map each repeated abbreviation to the indices that share it."""
    groups: Dict[str, List[int]] = {}
    for i, abbrev in enumerate(abbreviated):
        groups.setdefault(abbrev, []).append(i)
    return {abbrev: idx for abbrev, idx in groups.items() if len(idx) > 1}


def resolve_collisions(original_names: List[str], abbreviated: List[str]) -> List[str]:
    result = list(abbreviated)

    while True:
        collisions = find_collisions(result)
        if not collisions:
            return result

        # Keep the first member of each group, extend the rest
        for indices in collisions.values():
            for idx in indices[1:]:
                result[idx] = extend_abbreviation(original_names[idx], result[idx])


def abbreviate_with_collision_resolution(names: List[str]) -> List[str]:
    """Abbreviate every name so that no two results are equal.

    Output order follows input order and the same input list always yields
    the same output.
    """
    if not names:
        return []
    initial = [create_initial_abbreviation(name) for name in names]
    return resolve_collisions(names, initial)


def shorten_prefix(prefix: str) -> str:
    """Truncate a prefix so a two-digit counter still fits MAX_PREFIX_LENGTH."""
    max_base = MAX_PREFIX_LENGTH - PREFIX_SUFFIX_ROOM
    return prefix[:max_base]


def abbreviate_flavor(flavor: str) -> str:
    if flavor in FLAVOR_ABBREVIATIONS:
        return FLAVOR_ABBREVIATIONS[flavor]
    return create_initial_abbreviation(flavor)
