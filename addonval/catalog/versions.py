"""Semantic version constraint matching for dependency version pins.

Supported constraints:
- "v1.2.3" / "1.2.3"   exact
- "^v1.2.3"            same major
- "~v1.2.3"            same major.minor
- ">=v1.0.0,<v2.0.0"   comma-separated comparisons (>=, >, <=, <, =)

Only versions of the form v?MAJOR.MINOR.PATCH are considered; the highest
matching version wins.
"""

import re
from typing import List, Optional, Tuple

_SEMVER_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")
_COMPARISON_RE = re.compile(r"^(>=|<=|>|<|=)\s*(.+)$")

Semver = Tuple[int, int, int]


def parse_semver(version: str) -> Optional[Semver]:
    m = _SEMVER_RE.match(version.strip())
    if not m:
        return None
    return (int(m.group(1)), int(m.group(2)), int(m.group(3)))


def _satisfies_term(candidate: Semver, term: str) -> bool:
    term = term.strip()
    if term.startswith("^"):
        target = parse_semver(term[1:])
        return target is not None and candidate[0] == target[0] and candidate >= target
    if term.startswith("~"):
        target = parse_semver(term[1:])
        return target is not None and candidate[:2] == target[:2] and candidate >= target

    m = _COMPARISON_RE.match(term)
    if m:
        op, raw = m.groups()
        target = parse_semver(raw)
        if target is None:
            return False
        return {
            ">=": candidate >= target,
            ">": candidate > target,
            "<=": candidate <= target,
            "<": candidate < target,
            "=": candidate == target,
        }[op]

    target = parse_semver(term)
    return target is not None and candidate == target


def match_version(version: str, constraint: str) -> bool:
    """Check a single version string against a constraint."""
    candidate = parse_semver(version)
    if candidate is None:
        return False
    terms = [t for t in constraint.split(",") if t.strip()]
    if not terms:
        return True
    return all(_satisfies_term(candidate, t) for t in terms)


def latest_version_by_constraint(versions: List[str], constraint: str) -> Optional[str]:
    """Highest version in `versions` satisfying `constraint`, or None."""
    best: Optional[str] = None
    best_key: Optional[Semver] = None
    for v in versions:
        if not match_version(v, constraint):
            continue
        key = parse_semver(v)
        if best_key is None or key > best_key:
            best, best_key = v, key
    return best
