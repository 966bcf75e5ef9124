# File: seedorder/phased.py
"""
SeedOrder - Phased Script Generator
====================================
Loads cyclic datasets without disabling constraints:

    Phase 1  every table, in an order that honours every *strong* foreign
             key, with each deferred nullable FK column forced to NULL.
    Phase 2  UPDATE statements that restore the real values once every
             referenced row exists.

The Phase-1 order keeps all strong edges plus the weak edges that lie
outside any cycle (those never conflict with anything), breaking ties by
the engine's final order.  A weak edge is deferred exactly when its parent
ends up after its child.

A cycle made only of strong edges (NOT NULL or CASCADE) cannot be loaded
this way; ``PhasedLoadingError`` is raised instead of emitting a script
that would violate the constraint.

Usage::

    from seedorder.phased import PhasedInsertGenerator
    script = PhasedInsertGenerator().generate(tables, model)
    sql = script.to_script()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Union

from seedorder.cycles import find_cycle_path, format_cycle_path, tarjan_scc
from seedorder.engine import OrderingResult, sort_by_foreign_keys
from seedorder.graph import DependencyGraph, Edge, OrderingPair, TableNode
from seedorder.models import ApplicationModel, SeedTableData, SeedTableDefinition
from seedorder.options import (
    CircularDependencyOptions,
    DependencySortOptions,
    NameResolver,
    NamingOverrideOptions,
    StaticSeedMode,
)
from seedorder.sorter import kahn_order
from seedorder.templates import SqlTemplateGenerator
from seedorder.utils import fold_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.phased")


class PhasedLoadingError(RuntimeError):
    """A cycle of strong foreign keys makes a safe load impossible."""

    def __init__(
        self,
        message: str,
        tables: Iterable[str] = (),
        constraints: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.tables: List[str] = list(tables)
        self.constraints: List[str] = list(constraints)


class PhaseOneStatement(str, Enum):
    """Statement style used for Phase 1."""

    MERGE = "MERGE"
    INSERT = "INSERT"


@dataclass(frozen=True, slots=True)
class DeferredColumn:
    table: str
    column: str
    constraint_name: str
    parent_table: str


@dataclass(slots=True)
class PhasedScript:
    """Phase-1 blocks (one per table, aligned with ``tables``) and Phase-2 UPDATE blocks."""

    phase_one: List[str] = field(default_factory=list)
    phase_two: List[str] = field(default_factory=list)
    requires_phasing: bool = False
    update_count: int = 0
    deferred_columns: List[DeferredColumn] = field(default_factory=list)
    tables: List[TableNode] = field(default_factory=list)
    statement_kind: PhaseOneStatement = PhaseOneStatement.MERGE
    ordering: Optional[OrderingResult] = field(default=None, repr=False)

    @property
    def table_order(self) -> List[str]:
        return [t.effective_name for t in self.tables]

    @property
    def phase_one_title(self) -> str:
        return f"PHASE 1: {self.statement_kind.value} with nullable FKs = NULL"

    @property
    def phase_two_title(self) -> str:
        return "PHASE 2: UPDATE nullable FKs to actual values"

    def to_script(self, banners: bool = True) -> str:
        """Phase 1 then Phase 2 as one script; Phase 2 is omitted when empty."""
        parts: List[str] = []
        if banners:
            parts.extend(SqlTemplateGenerator.phase_banner(self.phase_one_title))
            parts.append("")
        parts.extend(self.phase_one)
        if self.phase_two:
            if banners:
                parts.extend(SqlTemplateGenerator.phase_banner(self.phase_two_title))
                parts.append("")
            parts.extend(self.phase_two)
        return "\n".join(parts)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class PhasedInsertGenerator:
    """
    Build ``PhasedScript`` objects for one dataset.

    Args:
        templates: Renderer to use (batch size, banners, seed mode).
        statement_kind: Render Phase 1 as MERGE blocks (tables without a
            primary key always fall back to INSERT) or batched INSERTs.
        merge_mode: Static seed mode for MERGE blocks; defaults to the
            renderer's configured mode.
    """

    def __init__(
        self,
        templates: Optional[SqlTemplateGenerator] = None,
        *,
        statement_kind: PhaseOneStatement = PhaseOneStatement.MERGE,
        merge_mode: Optional[StaticSeedMode] = None,
    ) -> None:
        self._templates: SqlTemplateGenerator = templates or SqlTemplateGenerator()
        self._kind: PhaseOneStatement = PhaseOneStatement(statement_kind)
        self._merge_mode: Optional[StaticSeedMode] = merge_mode

    def generate(
        self,
        dataset: Sequence[SeedTableData],
        model: Optional[ApplicationModel],
        naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
        sort_options: Optional[DependencySortOptions] = None,
        circular_options: Optional[CircularDependencyOptions] = None,
    ) -> PhasedScript:
        """
        Order *dataset* and render it in two phases.

        Raises:
            PhasedLoadingError: If a cycle contains only strong foreign keys.
            GraphBuildError: On effective-name collisions.
        """
        if not dataset:
            return PhasedScript(statement_kind=self._kind)
        ordering: OrderingResult = sort_by_foreign_keys(
            dataset, model, naming_overrides, sort_options, circular_options
        )
        return self.generate_from_ordering(ordering)

    def generate_from_ordering(self, ordering: OrderingResult) -> PhasedScript:
        """Render an existing ``OrderingResult`` in two phases."""
        graph: Optional[DependencyGraph] = ordering.graph
        if graph is None or graph.node_count == 0:
            return PhasedScript(statement_kind=self._kind, ordering=ordering)

        _raise_for_strong_cycles(graph)
        order: List[int] = _phase_one_order(graph, ordering)
        position: Dict[int, int] = {node_id: i for i, node_id in enumerate(order)}

        deferred_edges: List[Edge] = sorted(
            (
                e
                for e in graph.edges
                if not e.is_self_loop and e.is_weak and position[e.target] > position[e.source]
            ),
            key=graph.edge_sort_key,
        )

        script: PhasedScript = PhasedScript(statement_kind=self._kind, ordering=ordering)
        null_indices: Dict[int, Set[int]] = {}
        for edge in deferred_edges:
            node: TableNode = graph.node(edge.source)
            definition: SeedTableDefinition = node.data.definition  # type: ignore[union-attr]
            for column in edge.owner_columns or (edge.source_column,):
                index: Optional[int] = _column_index(definition, column)
                if index is None:
                    logger.debug(
                        "Deferred column %s.%s is not emitted; nothing to defer.",
                        node.effective_name,
                        column,
                    )
                    continue
                null_indices.setdefault(edge.source, set()).add(index)
                script.deferred_columns.append(
                    DeferredColumn(
                        table=node.effective_name,
                        column=definition.columns[index].target_column_name,
                        constraint_name=edge.constraint_name,
                        parent_table=graph.node(edge.target).effective_name,
                    )
                )

        for node_id in order:
            node = graph.node(node_id)
            if node.data is None:
                continue
            nulls: FrozenSet[int] = frozenset(null_indices.get(node_id, ()))
            script.tables.append(node)
            script.phase_one.append(self._render_phase_one(node, nulls))
            if not nulls:
                continue
            updates: List[str] = self._templates.render_update_statements(
                node.data, node.effective_name, nulls
            )
            if updates:
                script.phase_two.append(
                    self._templates.render_update_block(node.data, node.effective_name, updates)
                )
                script.update_count += len(updates)

        script.requires_phasing = script.update_count > 0
        if script.requires_phasing:
            logger.info(
                "Phased loading required: %d deferred column(s), %d UPDATE statement(s).",
                len(script.deferred_columns),
                script.update_count,
            )
        else:
            logger.debug("Phased loading not required for %d table(s).", len(script.tables))
        return script

    def _render_phase_one(self, node: TableNode, nulls: FrozenSet[int]) -> str:
        data: SeedTableData = node.data  # type: ignore[assignment]
        if self._kind == PhaseOneStatement.MERGE and data.definition.primary_key_indices:
            return self._templates.render_merge_block(
                data, node.effective_name, mode=self._merge_mode, null_indices=nulls
            )
        return self._templates.render_insert_batches(data, node.effective_name, null_indices=nulls)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _column_index(definition: SeedTableDefinition, column: str) -> Optional[int]:
    wanted: str = fold_name(column)
    for i, c in enumerate(definition.columns):
        if fold_name(c.column_name) == wanted or fold_name(c.target_column_name) == wanted:
            return i
    return None


def _raise_for_strong_cycles(graph: DependencyGraph) -> None:
    strong: Set[OrderingPair] = graph.ordering_pairs(lambda e: e.is_strong)
    successors: Dict[int, Set[int]] = graph.parents_of(strong)
    for members in tarjan_scc(range(graph.node_count), successors):
        if len(members) < 2:
            continue
        ordered: List[int] = sorted(members, key=lambda i: graph.node(i).sort_key)
        path: str = format_cycle_path(graph.names(find_cycle_path(members, strong)))
        constraints: List[str] = [e.constraint_name for e in graph.internal_edges(ordered) if e.is_strong]
        message: str = (
            f"Cycle {path} consists only of NOT NULL or CASCADE foreign keys "
            f"({', '.join(constraints)}); phased loading cannot produce a safe script."
        )
        logger.error(message)
        raise PhasedLoadingError(message, graph.names(ordered), constraints)


def _phase_one_order(graph: DependencyGraph, ordering: OrderingResult) -> List[int]:
    all_pairs: Set[OrderingPair] = graph.ordering_pairs()
    component_of: Dict[int, int] = {}
    for index, members in enumerate(tarjan_scc(range(graph.node_count), graph.parents_of(all_pairs))):
        for member in members:
            component_of[member] = index

    pairs: Set[OrderingPair] = graph.ordering_pairs(
        lambda e: e.is_strong or component_of[e.source] != component_of[e.target]
    )
    rank: Dict[int, int] = {node.node_id: i for i, node in enumerate(ordering.tables)}
    ordered, remaining = kahn_order(range(graph.node_count), pairs, lambda n: rank.get(n, n))
    if remaining:
        raise PhasedLoadingError(
            f"Tables {', '.join(graph.names(remaining))} cannot be ordered by their "
            f"mandatory foreign keys.",
            graph.names(remaining),
        )
    return ordered


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PhasedLoadingError",
    "PhaseOneStatement",
    "DeferredColumn",
    "PhasedScript",
    "PhasedInsertGenerator",
]

logger.debug("seedorder.phased loaded — %d public symbols.", len(__all__))
