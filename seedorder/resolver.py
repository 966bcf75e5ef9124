# File: seedorder/resolver.py
"""
SeedOrder - Circular-Dependency Resolver
=========================================
Produces a final table order when the sorter found cycles.

Per component, in order:
    1. **Manual override** — a configured ordering whose table set equals
       the component is spliced in as one contiguous block.
    2. **Weak-edge break** — the alphabetically lowest breakable ordering
       pair is deferred, Kahn runs again on the component, and this repeats
       until the component is acyclic or nothing breakable is left.
    3. Otherwise the component fails, and the **entire** graph falls back
       to alphabetical order.  Partial topological results are never mixed
       with the fallback.

Nothing here raises for cycle conditions; outcomes are returned together
with human-readable diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from seedorder.cycles import (
    CycleResolution,
    StronglyConnectedComponent,
    tarjan_scc,
)
from seedorder.graph import DependencyGraph, Edge, OrderingPair
from seedorder.options import AllowedCycle, CircularDependencyOptions, DependencySortOptions
from seedorder.sorter import OrderingMode, alphabetical_order, kahn_order, node_priority
from seedorder.utils import fold_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.resolver")

MANUAL_ORDER_REASON: str = "Manual ordering configured"
ALLOWED_CYCLE_REASON: str = "Allowed cycle configured"
SELF_REFERENCE_REASON: str = "Self-referencing foreign key does not constrain table order"


@dataclass(slots=True)
class ResolutionOutcome:
    """Final order plus everything the resolver decided."""

    order: List[int] = field(default_factory=list)
    mode: OrderingMode = OrderingMode.TOPOLOGICAL
    fallback_applied: bool = False
    diagnostics: List[str] = field(default_factory=list)
    components: List[StronglyConnectedComponent] = field(default_factory=list)
    broken_pairs: Set[OrderingPair] = field(default_factory=set)
    manual_groups: List[List[int]] = field(default_factory=list)

    @property
    def deferred_edges(self) -> List[Edge]:
        edges: List[Edge] = []
        for component in self.components:
            edges.extend(component.broken_edges)
        return edges


# ---------------------------------------------------------------------------
# Manual override
# ---------------------------------------------------------------------------


def match_allowed_cycle(
    graph: DependencyGraph,
    members: Sequence[int],
    options: CircularDependencyOptions,
) -> Optional[AllowedCycle]:
    return options.find_allowed_cycle([graph.node(m).aliases for m in members])


def _manual_member_order(
    graph: DependencyGraph,
    component: StronglyConnectedComponent,
    configured: AllowedCycle,
) -> Optional[List[int]]:
    """Map the configured ordering onto node ids; None when it cannot be mapped."""
    remaining: List[int] = list(component.members)
    ordered: List[int] = []
    for name in configured.ordered_tables:
        wanted: str = fold_name(name)
        hit: Optional[int] = next(
            (m for m in remaining if wanted in {fold_name(a) for a in graph.node(m).aliases}),
            None,
        )
        if hit is None:
            return None
        ordered.append(hit)
        remaining.remove(hit)
    # Members marked allowed without a position follow the ordered ones.
    return ordered + remaining


# ---------------------------------------------------------------------------
# Weak-edge break
# ---------------------------------------------------------------------------


def _break_weak_edges(
    graph: DependencyGraph,
    component: StronglyConnectedComponent,
    options: Optional[DependencySortOptions],
) -> Optional[List[OrderingPair]]:
    """
    Defer breakable pairs until the component orders cleanly.

    Returns the deferred pairs in removal order, or None when a cycle made
    only of strong constraints remains.
    """
    members: Set[int] = set(component.members)
    active: Set[OrderingPair] = {e.pair for e in component.edges if not e.is_self_loop}
    removed: List[OrderingPair] = []
    priority = node_priority(graph, options)

    while True:
        _, remaining = kahn_order(members, active, priority)
        if not remaining:
            return removed

        successors: Dict[int, Set[int]] = {n: set() for n in remaining}
        for child, parent in active:
            if child in successors and parent in successors:
                successors[child].add(parent)
        component_of: Dict[int, int] = {}
        for index, members_of_sub in enumerate(tarjan_scc(remaining, successors)):
            if len(members_of_sub) > 1:
                for m in members_of_sub:
                    component_of[m] = index

        candidates: List[OrderingPair] = sorted(
            (
                pair
                for pair in active
                if pair[0] in component_of
                and component_of.get(pair[0]) == component_of.get(pair[1])
                and graph.is_breakable_pair(pair)
            ),
            key=lambda p: (graph.node(p[0]).sort_key, graph.node(p[1]).sort_key),
        )
        if not candidates:
            return None

        chosen: OrderingPair = candidates[0]
        active.discard(chosen)
        removed.append(chosen)
        logger.debug(
            "Deferring %s → %s to break cycle %s.",
            graph.node(chosen[0]).effective_name,
            graph.node(chosen[1]).effective_name,
            component.path,
        )


def _describe_edges(graph: DependencyGraph, edges: Sequence[Edge]) -> str:
    return ", ".join(
        f"{e.constraint_name} ({graph.node(e.source).effective_name}.{e.source_column} → "
        f"{graph.node(e.target).effective_name})"
        for e in edges
    )


# ---------------------------------------------------------------------------
# Final ordering
# ---------------------------------------------------------------------------


def _ordered_with_splices(
    graph: DependencyGraph,
    broken: Set[OrderingPair],
    manual_groups: List[List[int]],
    options: Optional[DependencySortOptions],
) -> Optional[List[int]]:
    """
    Kahn over *units*: single tables, or a manual group contracted into
    one vertex that expands to its configured order when placed.
    """
    unit_of: Dict[int, int] = {n: n for n in range(graph.node_count)}
    expansion: Dict[int, List[int]] = {n: [n] for n in range(graph.node_count)}
    for group in manual_groups:
        representative: int = min(group, key=lambda i: graph.node(i).sort_key)
        for member in group:
            unit_of[member] = representative
            if member != representative:
                expansion.pop(member, None)
        expansion[representative] = list(group)

    unit_pairs: Set[Tuple[int, int]] = set()
    for child, parent in graph.ordering_pairs():
        if (child, parent) in broken:
            continue
        child_unit, parent_unit = unit_of[child], unit_of[parent]
        if child_unit != parent_unit:
            unit_pairs.add((child_unit, parent_unit))

    ordered_units, remaining = kahn_order(expansion.keys(), unit_pairs, node_priority(graph, options))
    if remaining:
        return None

    order: List[int] = []
    for unit in ordered_units:
        order.extend(expansion[unit])
    return order


def _fallback(
    graph: DependencyGraph,
    outcome: ResolutionOutcome,
    failed: List[StronglyConnectedComponent],
) -> ResolutionOutcome:
    outcome.order = alphabetical_order(graph)
    outcome.mode = OrderingMode.ALPHABETICAL_FALLBACK
    outcome.fallback_applied = True
    outcome.broken_pairs = set()
    outcome.manual_groups = []
    message: str = (
        f"Alphabetical fallback applied to all {graph.node_count} table(s): "
        f"{len(failed)} cycle(s) could not be resolved "
        f"({'; '.join(c.path for c in failed)})."
    )
    outcome.diagnostics.append(message)
    logger.warning(message)
    return outcome


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def resolve_cycles(
    graph: DependencyGraph,
    components: List[StronglyConnectedComponent],
    circular_options: Optional[CircularDependencyOptions] = None,
    sort_options: Optional[DependencySortOptions] = None,
) -> ResolutionOutcome:
    """
    Resolve every detected cycle or fall back to alphabetical order.

    Components are annotated in place (``is_allowed``, ``allowance_reason``,
    ``resolution``, ``broken_edges``).
    """
    options: CircularDependencyOptions = circular_options or CircularDependencyOptions()
    outcome: ResolutionOutcome = ResolutionOutcome(components=components)
    failed: List[StronglyConnectedComponent] = []

    for component in components:
        configured: Optional[AllowedCycle] = match_allowed_cycle(graph, component.members, options)

        if component.is_self_loop:
            component.resolution = CycleResolution.SELF_REFERENCE
            component.allowance_reason = SELF_REFERENCE_REASON
            continue

        if options.strict_mode:
            message: str = f"Strict mode: cycle {component.path} is not permitted."
            outcome.diagnostics.append(message)
            logger.warning(message)
            failed.append(component)
            continue

        if configured is not None:
            component.is_allowed = True
            component.allowance_reason = configured.reason or (
                MANUAL_ORDER_REASON if configured.has_explicit_order else ALLOWED_CYCLE_REASON
            )

        if configured is not None and configured.has_explicit_order:
            manual: Optional[List[int]] = _manual_member_order(graph, component, configured)
            if manual is None:
                message = (
                    f"Manual ordering [{configured.label}] cannot be applied to cycle "
                    f"{component.path}."
                )
                outcome.diagnostics.append(message)
                logger.warning(message)
                failed.append(component)
                continue
            outcome.manual_groups.append(manual)
            component.resolution = CycleResolution.MANUAL_OVERRIDE
            message = (
                f"Cycle {component.path} resolved by manual ordering "
                f"[{', '.join(graph.names(manual))}]."
            )
            outcome.diagnostics.append(message)
            logger.info(message)
            continue

        removed: Optional[List[OrderingPair]] = _break_weak_edges(graph, component, sort_options)
        if removed is None:
            message = (
                f"Cycle {component.path} has no deferrable foreign key "
                f"(all remaining constraints are NOT NULL or CASCADE) and no manual ordering."
            )
            outcome.diagnostics.append(message)
            logger.warning(message)
            failed.append(component)
            continue

        broken_edges: List[Edge] = sorted(
            (e for pair in removed for e in graph.edges_between(*pair)),
            key=graph.edge_sort_key,
        )
        outcome.broken_pairs.update(removed)
        component.broken_edges = broken_edges
        component.resolution = CycleResolution.WEAK_EDGE_BREAK
        if not component.is_allowed:
            component.allowance_reason = (
                f"Auto-resolved by deferring nullable foreign key(s): "
                f"{', '.join(e.constraint_name for e in broken_edges)}"
            )
        message = (
            f"Cycle {component.path} auto-resolved by deferring "
            f"{_describe_edges(graph, broken_edges)}; phased loading required."
        )
        outcome.diagnostics.append(message)
        logger.warning(message)

    if failed:
        return _fallback(graph, outcome, failed)

    order: Optional[List[int]] = _ordered_with_splices(
        graph, outcome.broken_pairs, outcome.manual_groups, sort_options
    )
    if order is None:
        return _fallback(graph, outcome, [c for c in components if not c.is_self_loop])

    outcome.order = order
    outcome.mode = (
        OrderingMode.MANUAL_OVERRIDE if outcome.manual_groups else OrderingMode.TOPOLOGICAL
    )
    return outcome


def find_unmatched_overrides(
    graph: DependencyGraph,
    components: Sequence[StronglyConnectedComponent],
    circular_options: Optional[CircularDependencyOptions],
) -> List[str]:
    """
    Configured cycles whose tables are all in this run but which match no
    detected cycle.  Configured cycles that mention tables outside the run
    are ignored.
    """
    if circular_options is None:
        return []

    errors: List[str] = []
    for configured in circular_options.allowed_cycles:
        names: List[str] = configured.ordered_tables + list(configured.tables)
        if any(graph.find(name) is None for name in names):
            logger.debug(
                "Allowed cycle [%s] references tables outside this run; ignored.",
                configured.label,
            )
            continue
        if any(
            configured.matches([graph.node(m).aliases for m in c.members]) for c in components
        ):
            continue
        errors.append(
            f"Allowed cycle [{configured.label}] does not match any detected cycle."
        )
    return errors


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ResolutionOutcome",
    "resolve_cycles",
    "match_allowed_cycle",
    "find_unmatched_overrides",
    "ALLOWED_CYCLE_REASON",
    "MANUAL_ORDER_REASON",
    "SELF_REFERENCE_REASON",
]

logger.debug("seedorder.resolver loaded — %d public symbols.", len(__all__))
