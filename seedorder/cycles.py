# File: seedorder/cycles.py
"""
SeedOrder - Cycle Detector (Strongly Connected Components)
===========================================================
Tarjan's algorithm over the tables the sorter could not place.

The DFS is iterative (explicit VISIT / PROCESS / UPDATE_LOWLINK frames) so
deep schemas never hit the recursion limit.  Roots and neighbours are
visited in id order, which is alphabetical effective-name order, so the
output is deterministic.

A component is reported when it has two or more tables, or one table with
a self-referencing foreign key.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from seedorder.graph import DependencyGraph, Edge, OrderingPair

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.cycles")


class CycleResolution(str, Enum):
    """How the resolver dealt with a component."""

    UNRESOLVED = "unresolved"
    MANUAL_OVERRIDE = "manual_override"
    WEAK_EDGE_BREAK = "weak_edge_break"
    SELF_REFERENCE = "self_reference"


@dataclass(slots=True)
class StronglyConnectedComponent:
    """One foreign-key cycle."""

    members: List[int]
    member_names: List[str]
    edges: List[Edge]
    path: str
    is_self_loop: bool = False
    is_allowed: bool = False
    allowance_reason: Optional[str] = None
    resolution: CycleResolution = CycleResolution.UNRESOLVED
    broken_edges: List[Edge] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def first_name(self) -> str:
        return self.member_names[0] if self.member_names else ""

    @property
    def weak_edges(self) -> List[Edge]:
        return [e for e in self.edges if e.is_weak]

    @property
    def strong_edges(self) -> List[Edge]:
        return [e for e in self.edges if e.is_strong]

    @property
    def has_weak_edge(self) -> bool:
        """Necessary condition for breaking the cycle with phased loading."""
        return any(e.is_weak for e in self.edges)

    @property
    def is_resolved(self) -> bool:
        return self.resolution != CycleResolution.UNRESOLVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": list(self.member_names),
            "path": self.path,
            "is_self_loop": self.is_self_loop,
            "is_allowed": self.is_allowed,
            "allowance_reason": self.allowance_reason,
            "resolution": self.resolution.value,
            "weak_edges": len(self.weak_edges),
            "strong_edges": len(self.strong_edges),
            "constraints": [e.constraint_name for e in self.edges],
            "broken_constraints": [e.constraint_name for e in self.broken_edges],
        }

    def __repr__(self) -> str:
        return f"<SCC {self.path} resolution={self.resolution.value}>"


# ---------------------------------------------------------------------------
# Tarjan
# ---------------------------------------------------------------------------


def tarjan_scc(
    nodes: Iterable[int],
    successors: Dict[int, Iterable[int]],
) -> List[List[int]]:
    """
    Strongly connected components of the directed graph *successors*.

    Every returned component is sorted; components are returned in the
    order Tarjan completes them (reverse topological order).
    """
    index_counter: int = 0
    index: Dict[int, int] = {}
    lowlinks: Dict[int, int] = {}
    stack: List[int] = []
    on_stack: Set[int] = set()
    components: List[List[int]] = []

    for root in sorted(nodes):
        if root in index:
            continue

        call_stack: List[Tuple[str, int, Any]] = [("VISIT", root, None)]
        while call_stack:
            action, node, data = call_stack[-1]

            if action == "VISIT":
                index[node] = index_counter
                lowlinks[node] = index_counter
                index_counter += 1
                stack.append(node)
                on_stack.add(node)
                neighbours: Iterator[int] = iter(sorted(successors.get(node, ())))
                call_stack[-1] = ("PROCESS", node, neighbours)

            elif action == "PROCESS":
                neighbour: Optional[int] = next(data, None)
                if neighbour is None:
                    call_stack.pop()
                    if lowlinks[node] == index[node]:
                        component: List[int] = []
                        while True:
                            member: int = stack.pop()
                            on_stack.discard(member)
                            component.append(member)
                            if member == node:
                                break
                        components.append(sorted(component))
                elif neighbour not in index:
                    call_stack.append(("UPDATE_LOWLINK", node, neighbour))
                    call_stack.append(("VISIT", neighbour, None))
                elif neighbour in on_stack:
                    lowlinks[node] = min(lowlinks[node], index[neighbour])

            else:  # UPDATE_LOWLINK
                lowlinks[node] = min(lowlinks[node], lowlinks[data])
                call_stack.pop()

    return components


def find_cycle_path(members: Iterable[int], pairs: Iterable[OrderingPair]) -> List[int]:
    """
    Shortest closed walk from the first member back to itself, following
    child → parent pairs inside the component.
    """
    member_list: List[int] = sorted(members)
    if not member_list:
        return []
    member_set: FrozenSet[int] = frozenset(member_list)
    start: int = member_list[0]

    successors: Dict[int, List[int]] = {m: [] for m in member_list}
    for child, parent in sorted(pairs):
        if child in member_set and parent in member_set:
            successors[child].append(parent)

    if start in successors[start]:
        return [start, start]

    previous: Dict[int, int] = {}
    queue: Deque[int] = deque([start])
    seen: Set[int] = {start}
    while queue:
        current: int = queue.popleft()
        for nxt in successors[current]:
            if nxt == start:
                path: List[int] = [current]
                while path[-1] != start:
                    path.append(previous[path[-1]])
                path.reverse()
                return path + [start]
            if nxt not in seen:
                seen.add(nxt)
                previous[nxt] = current
                queue.append(nxt)
    return member_list + [start]


def format_cycle_path(names: List[str]) -> str:
    return " → ".join(names)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def find_strongly_connected_components(
    graph: DependencyGraph,
    remaining_nodes: Iterable[int],
    *,
    excluded_pairs: Iterable[OrderingPair] = (),
) -> List[StronglyConnectedComponent]:
    """
    Find the cycles among *remaining_nodes*.

    Args:
        graph: The run's dependency graph.
        remaining_nodes: Tables the sorter could not place (or any subset
            of the graph to analyse).
        excluded_pairs: Ordering pairs to ignore (already broken edges).

    Returns:
        Components sorted alphabetically by their first member, members
        sorted alphabetically inside each component.
    """
    remaining: FrozenSet[int] = frozenset(remaining_nodes)
    excluded: FrozenSet[OrderingPair] = frozenset(excluded_pairs)

    successors: Dict[int, Set[int]] = {n: set() for n in remaining}
    pairs: List[OrderingPair] = []
    for pair in graph.ordering_pairs():
        child, parent = pair
        if pair in excluded or child not in remaining or parent not in remaining:
            continue
        successors[child].add(parent)
        pairs.append(pair)

    components: List[StronglyConnectedComponent] = []
    for raw in tarjan_scc(remaining, successors):
        self_loop: bool = len(raw) == 1 and graph.has_self_loop(raw[0])
        if len(raw) < 2 and not self_loop:
            continue
        members: List[int] = sorted(raw, key=lambda i: graph.node(i).sort_key)
        walk: List[int] = [members[0], members[0]] if self_loop else find_cycle_path(members, pairs)
        internal: List[Edge] = [
            e for e in graph.internal_edges(members) if self_loop or e.pair not in excluded
        ]
        components.append(
            StronglyConnectedComponent(
                members=members,
                member_names=graph.names(members),
                edges=internal,
                path=format_cycle_path(graph.names(walk)),
                is_self_loop=self_loop,
            )
        )

    components.sort(key=lambda c: graph.node(c.members[0]).sort_key)

    for component in components:
        logger.debug(
            "Cycle found: %s (%d weak, %d strong constraint(s)).",
            component.path,
            len(component.weak_edges),
            len(component.strong_edges),
        )
    return components


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CycleResolution",
    "StronglyConnectedComponent",
    "tarjan_scc",
    "find_cycle_path",
    "format_cycle_path",
    "find_strongly_connected_components",
]

logger.debug("seedorder.cycles loaded — %d public symbols.", len(__all__))
