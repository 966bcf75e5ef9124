# File: seedorder/engine.py
"""
SeedOrder - Ordering Engine Entry Point
========================================
Builder → Sorter → (if blocked) Detector → Resolver, in one call.

Every call builds its own graph from the read-only inputs and keeps all
intermediate state local, so the static-seed, dynamic-insert and bootstrap
steps may call it concurrently against the same model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from seedorder.builder import build_dependency_graph
from seedorder.cycles import (
    CycleResolution,
    StronglyConnectedComponent,
    find_strongly_connected_components,
)
from seedorder.graph import DependencyGraph, Edge, TableNode
from seedorder.models import ApplicationModel, SeedTableData
from seedorder.options import (
    CircularDependencyOptions,
    DependencySortOptions,
    NameResolver,
    NamingOverrideOptions,
)
from seedorder.resolver import ResolutionOutcome, find_unmatched_overrides, resolve_cycles
from seedorder.sorter import OrderingMode, SortOutcome, topological_sort

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.engine")


@dataclass(slots=True)
class OrderingResult:
    """Everything a script writer needs from one ordering run."""

    tables: List[TableNode] = field(default_factory=list)
    mode: OrderingMode = OrderingMode.TOPOLOGICAL
    topological_ordering_applied: bool = False
    node_count: int = 0
    edge_count: int = 0
    skipped_constraint_count: int = 0
    missing_edge_count: int = 0
    cycle_detected: bool = False
    strongly_connected_components: List[StronglyConnectedComponent] = field(default_factory=list)
    alphabetical_fallback_applied: bool = False
    diagnostics: List[str] = field(default_factory=list)
    configuration_errors: List[str] = field(default_factory=list)
    deferred_edges: List[Edge] = field(default_factory=list)
    graph: Optional[DependencyGraph] = None

    @property
    def ordered_names(self) -> List[str]:
        return [t.effective_name for t in self.tables]

    @property
    def ordered_data(self) -> List[SeedTableData]:
        return [t.data for t in self.tables if t.data is not None]

    @property
    def cycles(self) -> List[StronglyConnectedComponent]:
        """Real multi-table cycles (self-references excluded)."""
        return [c for c in self.strongly_connected_components if not c.is_self_loop]

    @property
    def unresolved_components(self) -> List[StronglyConnectedComponent]:
        return [
            c
            for c in self.strongly_connected_components
            if c.resolution == CycleResolution.UNRESOLVED
        ]

    @property
    def requires_phased_loading(self) -> bool:
        return bool(self.deferred_edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": self.ordered_names,
            "mode": self.mode.value,
            "topological_ordering_applied": self.topological_ordering_applied,
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "skipped_constraint_count": self.skipped_constraint_count,
            "missing_edge_count": self.missing_edge_count,
            "cycle_detected": self.cycle_detected,
            "alphabetical_fallback_applied": self.alphabetical_fallback_applied,
            "cycles": [c.to_dict() for c in self.strongly_connected_components],
            "diagnostics": list(self.diagnostics),
            "configuration_errors": list(self.configuration_errors),
        }


def sort_by_foreign_keys(
    tables: Sequence[SeedTableData],
    model: Optional[ApplicationModel] = None,
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
    sort_options: Optional[DependencySortOptions] = None,
    circular_options: Optional[CircularDependencyOptions] = None,
) -> OrderingResult:
    """
    Order *tables* so every foreign-key parent precedes its children.

    Never raises for cycles; see ``OrderingResult.mode``,
    ``diagnostics`` and ``configuration_errors``.

    Raises:
        GraphBuildError: On duplicate tables or effective-name collisions.
    """
    options: DependencySortOptions = sort_options or DependencySortOptions()
    graph: DependencyGraph = build_dependency_graph(
        tables,
        model,
        naming_overrides,
        detect_junctions=options.defer_junction_tables,
    )

    outcome: SortOutcome = topological_sort(graph, options)
    result: OrderingResult = OrderingResult(
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        skipped_constraint_count=graph.skipped_count,
        missing_edge_count=graph.missing_target_count,
        graph=graph,
    )

    components: List[StronglyConnectedComponent] = []
    if not outcome.remaining:
        result.tables = [graph.node(i) for i in outcome.order]
        result.mode = OrderingMode.TOPOLOGICAL
        result.cycle_detected = False
    else:
        components = find_strongly_connected_components(graph, outcome.remaining)
        resolution: ResolutionOutcome = resolve_cycles(
            graph, components, circular_options, options
        )
        result.tables = [graph.node(i) for i in resolution.order]
        result.mode = resolution.mode
        result.cycle_detected = True
        result.strongly_connected_components = components
        result.alphabetical_fallback_applied = resolution.fallback_applied
        result.diagnostics.extend(resolution.diagnostics)
        result.deferred_edges = [] if resolution.fallback_applied else resolution.deferred_edges

    result.topological_ordering_applied = (
        result.mode != OrderingMode.ALPHABETICAL_FALLBACK and model is not None
    )

    unmatched: List[str] = find_unmatched_overrides(graph, components, circular_options)
    if unmatched:
        result.configuration_errors.extend(unmatched)
        for message in unmatched:
            logger.error(message)

    if options.defer_junction_tables:
        junctions: List[str] = [n.effective_name for n in graph.nodes if n.is_junction]
        if junctions:
            result.diagnostics.append(f"Junction tables deferred: {', '.join(junctions)}.")

    logger.info(
        "Ordered %d table(s): mode=%s, cycles=%d, fallback=%s.",
        result.node_count,
        result.mode.value,
        len(result.cycles),
        result.alphabetical_fallback_applied,
    )
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OrderingResult",
    "sort_by_foreign_keys",
]

logger.debug("seedorder.engine loaded — %d public symbols.", len(__all__))
