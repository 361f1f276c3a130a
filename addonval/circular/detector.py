"""Circular reference detection among configurations awaiting prerequisites.

A configuration stuck in "awaiting prerequisite" has inputs referencing
other configurations (ref:/configs/{id}/{inputs|outputs}/{field}). When
those references form a cycle among waiting configurations, none of them
can ever proceed. References to configurations outside the waiting set are
ignored: an already-resolved target cannot deadlock.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from addonval.api_models import ValidationResult
from addonval.core import config as cfg
from addonval.core.config import REFERENCE_PREFIX
from addonval.core.logging import log_extra
from addonval.exceptions import CircularDependencyError, ReferenceFormatError

logger = logging.getLogger("addonval.circular")

UNKNOWN_INPUT = "unknown_input"
UNKNOWN_FIELD = "unknown_output"

RESOLUTION_GUIDANCE = (
    "\n\n💡 RESOLUTION OPTIONS:\n"
    "• Use existing resources instead of creating new ones\n"
    "• Restructure deployment order by splitting dependencies\n"
    "• Consider using data sources or external references"
)


@dataclass
class ReferenceDetails:
    """Parsed reference string.

    Attributes:
        config_id: Referenced configuration ID.
        kind: "inputs", "outputs" or any other segment found.
        field_name: Referenced field, may itself contain "/".
        is_valid: False when only the config ID could be recovered.
    """
    config_id: str
    kind: str = ""
    field_name: str = ""
    is_valid: bool = False


def parse_reference(reference: str, strict: bool = False) -> Optional[ReferenceDetails]:
    """Parse ref:/configs/{id}/{kind}/{field}.

    Returns None for values that are not config references at all. With
    strict=True any incomplete reference raises ReferenceFormatError.
    """
    if not reference.startswith(REFERENCE_PREFIX):
        if strict:
            raise ReferenceFormatError.malformed(reference)
        return None

    parts = reference.split("/")
    # ["ref:", "configs", id, kind, field...]
    if len(parts) >= 5 and parts[0] == "ref:" and parts[1] == "configs" and parts[2] and parts[4]:
        return ReferenceDetails(
            config_id=parts[2],
            kind=parts[3],
            field_name="/".join(parts[4:]),
            is_valid=True,
        )

    if strict:
        raise ReferenceFormatError.malformed(reference)

    config_id = parts[2] if len(parts) >= 3 else ""
    if not config_id:
        return None
    return ReferenceDetails(config_id=config_id)


@dataclass
class ConfigDependencyInfo:
    """A provisioned configuration waiting on a prerequisite.

    Attributes:
        config_id: Project configuration ID.
        name: Configuration name, used in messages.
        inputs: Raw input values; string values starting with the reference
            prefix are treated as references.
        references: Extra reference strings whose input field is unknown.
    """
    config_id: str
    name: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    references: List[str] = field(default_factory=list)

    def input_references(self) -> List[Tuple[str, str]]:
        """(input name, reference) pairs in input order."""
        pairs = [
            (name, value)
            for name, value in self.inputs.items()
            if isinstance(value, str) and value.startswith(REFERENCE_PREFIX)
        ]
        known = {ref for _, ref in pairs}
        pairs.extend((UNKNOWN_INPUT, ref) for ref in self.references if ref not in known)
        return pairs


@dataclass
class _Edge:
    target: str
    input_name: str
    details: ReferenceDetails


@dataclass
class DetectedCycle:
    """One cycle, starting from the member where the search entered it."""
    config_ids: List[str]
    chain: str

    @property
    def message(self) -> str:
        return f"🔍 CIRCULAR DEPENDENCY DETECTED: {self.chain}{RESOLUTION_GUIDANCE}"


def _build_graph(waiting: List[ConfigDependencyInfo]) -> Dict[str, List[_Edge]]:
    ids = {c.config_id for c in waiting}
    graph: Dict[str, List[_Edge]] = {}
    for config in waiting:
        edges = []
        for input_name, ref in config.input_references():
            details = parse_reference(ref)
            if details is None or details.config_id not in ids:
                continue
            edges.append(_Edge(details.config_id, input_name, details))
        graph[config.config_id] = edges
    return graph


def _describe_link(src: ConfigDependencyInfo, dst: ConfigDependencyInfo, edge: Optional[_Edge]) -> str:
    if edge is None:
        return src.name
    details = edge.details
    if edge.input_name == UNKNOWN_INPUT or not details.is_valid:
        return (
            f"{src.name} (circular dependency detected but field details unavailable "
            f"- check configuration references)"
        )
    if details.kind in ("outputs", ""):
        target = f"{dst.name}.output: {details.field_name}"
    elif details.kind == "inputs":
        target = f"{dst.name}.input: {details.field_name}"
    else:
        target = f"{dst.name}.{details.kind}: {details.field_name}"
    return f"{src.name} (input: {edge.input_name} needs {target})"


def _describe_cycle(
    members: List[str],
    configs: Dict[str, ConfigDependencyInfo],
    graph: Dict[str, List[_Edge]],
) -> str:
    links = []
    for i, src_id in enumerate(members):
        dst_id = members[(i + 1) % len(members)]
        edge = next((e for e in graph[src_id] if e.target == dst_id), None)
        links.append(_describe_link(configs[src_id], configs[dst_id], edge))
    links.append(configs[members[0]].name)
    return " → ".join(links)


def detect_circular_dependencies(waiting: Iterable[ConfigDependencyInfo]) -> List[DetectedCycle]:
    """Find reference cycles among waiting configurations.

    Uses three-color DFS:
    - WHITE (0): Not yet visited
    - GRAY (1): On the current DFS path
    - BLACK (2): Completely processed

    The walk keeps an explicit stack of (config, remaining edges) frames, so
    chain length is not bounded by the interpreter's recursion limit.
    Reaching a GRAY node closes a cycle. At most one cycle is reported per
    DFS tree; visiting order only changes which member is reported first.
    """
    waiting = list(waiting)
    if not waiting:
        return []

    configs = {c.config_id: c for c in waiting}
    graph = _build_graph(waiting)

    WHITE, GRAY, BLACK = 0, 1, 2
    color = {cid: WHITE for cid in graph}

    def dfs(start: str) -> Optional[List[str]]:
        path = [start]
        on_path = {start: 0}
        stack: List[Tuple[str, Iterator[_Edge]]] = [(start, iter(graph[start]))]
        color[start] = GRAY
        found = None
        while stack:
            cid, edges = stack[-1]
            edge = next(edges, None)
            if edge is None:
                stack.pop()
                path.pop()
                del on_path[cid]
                color[cid] = BLACK
                continue
            if color[edge.target] == GRAY:
                found = path[on_path[edge.target]:]
                break
            if color[edge.target] == WHITE:
                color[edge.target] = GRAY
                on_path[edge.target] = len(path)
                path.append(edge.target)
                stack.append((edge.target, iter(graph[edge.target])))
        # Abandoned frames are finished too
        for cid in path:
            color[cid] = BLACK
        return found

    cycles: List[DetectedCycle] = []
    for cid in graph:
        if color[cid] == WHITE:
            members = dfs(cid)
            if members:
                chain = _describe_cycle(members, configs, graph)
                logger.warning(
                    f"Circular dependency detected: {chain}",
                    extra=log_extra(config_id=members[0]),
                )
                cycles.append(DetectedCycle(config_ids=members, chain=chain))
    return cycles


def find_unresolved_references(
    waiting: Iterable[ConfigDependencyInfo],
    existing_config_ids: Iterable[str],
) -> List[str]:
    """References from waiting configurations to configurations that do not exist."""
    existing = set(existing_config_ids)
    unresolved = []
    for config in waiting:
        for _, ref in config.input_references():
            details = parse_reference(ref)
            if details is not None and details.config_id not in existing:
                unresolved.append(f"{config.name} → references non-existent config {details.config_id}")
    return unresolved


def record_cycles(
    cycles: List[DetectedCycle],
    result: ValidationResult,
    strict: Optional[bool] = None,
) -> ValidationResult:
    """Apply the strict/permissive policy to detected cycles.

    Strict mode fails the result; permissive mode only adds warnings.
    """
    if strict is None:
        strict = cfg.STRICT_MODE
    for cycle in cycles:
        if strict:
            result.add_error(cycle.message)
        else:
            result.add_warning(f"Circular dependency: {cycle.chain}")
    return result


def raise_for_cycles(cycles: List[DetectedCycle]) -> None:
    """Raise CircularDependencyError when any cycle was detected."""
    if cycles:
        raise CircularDependencyError([c.chain for c in cycles])
