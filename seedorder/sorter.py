# File: seedorder/sorter.py
"""
SeedOrder - Topological Sorter
===============================
Kahn's algorithm with deterministic tie-breaks.

In-degree counts distinct parents over weak and strong edges together;
self-references never count.  Among ready tables the one with the
alphabetically smallest effective name goes first.  With
``defer_junction_tables`` set, junction tables yield to every other ready
table, so they land as late as the partial order allows.

The sorter never raises for cycles: when tables remain it reports them and
returns the whole input in alphabetical order.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Set, Tuple

from seedorder.graph import DependencyGraph, OrderingPair
from seedorder.options import DependencySortOptions

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.sorter")


class OrderingMode(str, Enum):
    """How the final table order was obtained."""

    TOPOLOGICAL = "Topological"
    MANUAL_OVERRIDE = "ManualOverride"
    ALPHABETICAL_FALLBACK = "AlphabeticalFallback"


@dataclass(slots=True)
class SortOutcome:
    """Result of one Kahn pass over a graph."""

    order: List[int] = field(default_factory=list)
    partial_order: List[int] = field(default_factory=list)
    remaining: List[int] = field(default_factory=list)
    mode: OrderingMode = OrderingMode.TOPOLOGICAL
    node_count: int = 0
    edge_count: int = 0
    cycle_detected: bool = False


# ---------------------------------------------------------------------------
# Generic Kahn
# ---------------------------------------------------------------------------


def kahn_order(
    nodes: Iterable[Hashable],
    pairs: Iterable[Tuple[Hashable, Hashable]],
    priority: Callable[[Any], Any],
) -> Tuple[List[Any], List[Any]]:
    """
    Order *nodes* so every parent precedes its children.

    Args:
        nodes: Vertices to order.
        pairs: ``(child, parent)`` dependencies; pairs touching vertices
            outside *nodes* and self-pairs are ignored.
        priority: Sort key choosing among ready vertices (smallest first).

    Returns:
        ``(ordered, remaining)``; *remaining* is non-empty only when the
        dependencies contain a cycle.
    """
    node_set: Set[Any] = set(nodes)
    children: Dict[Any, Set[Any]] = {n: set() for n in node_set}
    in_degree: Dict[Any, int] = {n: 0 for n in node_set}

    for child, parent in set(pairs):
        if child == parent or child not in node_set or parent not in node_set:
            continue
        children[parent].add(child)
        in_degree[child] += 1

    ready: List[Tuple[Any, Any]] = []
    for n in node_set:
        if in_degree[n] == 0:
            heapq.heappush(ready, (priority(n), n))

    ordered: List[Any] = []
    while ready:
        _, current = heapq.heappop(ready)
        ordered.append(current)
        for child in children[current]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                heapq.heappush(ready, (priority(child), child))

    placed: Set[Any] = set(ordered)
    remaining: List[Any] = sorted((n for n in node_set if n not in placed), key=priority)
    return ordered, remaining


def node_priority(
    graph: DependencyGraph, options: Optional[DependencySortOptions] = None
) -> Callable[[int], Tuple[int, Tuple[str, str, str]]]:
    """Tie-break key: junction deferral (if enabled), then effective name."""
    defer: bool = bool(options is not None and options.defer_junction_tables)

    def priority(node_id: int) -> Tuple[int, Tuple[str, str, str]]:
        node = graph.node(node_id)
        return (1 if defer and node.is_junction else 0, node.sort_key)

    return priority


def alphabetical_order(graph: DependencyGraph) -> List[int]:
    return sorted(range(graph.node_count), key=lambda i: graph.node(i).sort_key)


# ---------------------------------------------------------------------------
# Sort
# ---------------------------------------------------------------------------


def topological_sort(
    graph: DependencyGraph,
    options: Optional[DependencySortOptions] = None,
    *,
    excluded_pairs: Iterable[OrderingPair] = (),
    extra_pairs: Iterable[OrderingPair] = (),
) -> SortOutcome:
    """
    Sort the whole graph.

    Args:
        graph: Graph to sort.
        options: Sorter options (junction deferral).
        excluded_pairs: Ordering pairs to ignore (broken weak edges).
        extra_pairs: Additional ``(child, parent)`` constraints.
    """
    excluded: Set[OrderingPair] = set(excluded_pairs)
    pairs: Set[OrderingPair] = {p for p in graph.ordering_pairs() if p not in excluded}
    pairs.update(extra_pairs)

    ordered, remaining = kahn_order(
        range(graph.node_count), pairs, node_priority(graph, options)
    )

    outcome: SortOutcome = SortOutcome(
        partial_order=list(ordered),
        remaining=list(remaining),
        node_count=graph.node_count,
        edge_count=graph.edge_count,
    )

    if not remaining:
        outcome.order = list(ordered)
        outcome.mode = OrderingMode.TOPOLOGICAL
        outcome.cycle_detected = False
        logger.debug("Topological sort placed all %d table(s).", graph.node_count)
        return outcome

    outcome.order = alphabetical_order(graph)
    outcome.mode = OrderingMode.ALPHABETICAL_FALLBACK
    outcome.cycle_detected = True
    logger.info(
        "Topological sort blocked: %d of %d table(s) remain (%s).",
        len(remaining),
        graph.node_count,
        ", ".join(graph.names(remaining)),
    )
    return outcome


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OrderingMode",
    "SortOutcome",
    "kahn_order",
    "node_priority",
    "alphabetical_order",
    "topological_sort",
]

logger.debug("seedorder.sorter loaded — %d public symbols.", len(__all__))
