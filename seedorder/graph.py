# File: seedorder/graph.py
"""
SeedOrder - Dependency Graph Model
===================================
Typed nodes (tables) and edges (foreign keys) for one ordering run.

Nodes get dense integer ids when the graph is built; every algorithm
(Kahn, Tarjan, the resolver) works on adjacency lists over those ids and
never on back-pointers between node objects.  Edges point **child →
parent**: the source table holds the foreign-key column, the target table
must be loaded first.

Several constraints between the same child and parent are all kept for
diagnostics, but they form one *ordering pair*.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from seedorder.models import SeedTableData
from seedorder.utils import fold_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.graph")

OrderingPair = Tuple[int, int]  # (child id, parent id)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, order=True)
class TableKey:
    """Case-insensitive ``schema.table`` identity with total ordering."""

    schema: str
    table: str

    @classmethod
    def of(cls, schema: Optional[str], table: str) -> "TableKey":
        return cls(fold_name(schema) or "dbo", fold_name(table))

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}"


class EdgeProvenance(str, Enum):
    """Where a foreign-key edge came from."""

    HYDRATED = "hydrated"
    MODEL_ONLY = "model_only"


class SkipReason(str, Enum):
    """Why a constraint never became an ordering edge."""

    UNHYDRATED = "unhydrated"
    INVALID_CONSTRAINT = "invalid_constraint"
    MISSING_TARGET = "missing_target"


# ---------------------------------------------------------------------------
# Nodes & edges
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TableNode:
    """One emittable table."""

    node_id: int
    key: TableKey
    schema_name: str
    physical_name: str
    effective_name: str
    logical_name: str
    module: str
    is_junction: bool = False
    data: Optional[SeedTableData] = field(default=None, compare=False, repr=False)

    @property
    def sort_key(self) -> Tuple[str, str, str]:
        """Alphabetical tie-break key (effective name first)."""
        return (fold_name(self.effective_name), self.key.schema, self.key.table)

    @property
    def aliases(self) -> Tuple[str, ...]:
        return (
            self.physical_name,
            self.effective_name,
            f"{self.schema_name}.{self.physical_name}",
            f"{self.schema_name}.{self.effective_name}",
        )

    @property
    def display_name(self) -> str:
        return self.effective_name


@dataclass(frozen=True, slots=True)
class Edge:
    """A foreign-key constraint from ``source`` (child) to ``target`` (parent)."""

    constraint_name: str
    source: int
    target: int
    source_column: str
    target_column: str
    is_nullable: bool
    delete_rule: str
    provenance: EdgeProvenance = EdgeProvenance.HYDRATED
    owner_columns: Tuple[str, ...] = ()

    @property
    def is_cascade(self) -> bool:
        return "CASCADE" in self.delete_rule.upper()

    @property
    def is_weak(self) -> bool:
        """Nullable and not CASCADE: the column can be loaded as NULL first."""
        return self.is_nullable and not self.is_cascade

    @property
    def is_strong(self) -> bool:
        return not self.is_weak

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    @property
    def pair(self) -> OrderingPair:
        return (self.source, self.target)


@dataclass(frozen=True, slots=True)
class SkippedConstraint:
    """A constraint that was counted but never drives ordering."""

    table: str
    constraint_name: str
    reason: SkipReason
    referenced_table: str = ""
    provenance: EdgeProvenance = EdgeProvenance.HYDRATED


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DependencyGraph:
    """
    Node and edge set of one ordering run.

    Counts are for observability only; no control flow depends on them.
    """

    nodes: List[TableNode] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    skipped: List[SkippedConstraint] = field(default_factory=list)

    # -- Size -----------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def constraint_count(self) -> int:
        return len(self.edges)

    @property
    def edge_count(self) -> int:
        """Distinct child → parent ordering pairs (self-loops excluded)."""
        return len(self.ordering_pairs())

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def missing_target_count(self) -> int:
        return sum(1 for s in self.skipped if s.reason == SkipReason.MISSING_TARGET)

    # -- Lookup ---------------------------------------------------------------

    def node(self, node_id: int) -> TableNode:
        return self.nodes[node_id]

    def names(self, node_ids: Iterable[int]) -> List[str]:
        return [self.nodes[i].effective_name for i in node_ids]

    def find(self, name: str) -> Optional[TableNode]:
        """Find a node by effective, physical or ``schema.table`` name."""
        wanted: str = fold_name(name)
        for node in self.nodes:
            if any(fold_name(alias) == wanted for alias in node.aliases):
                return node
        return None

    # -- Edges ----------------------------------------------------------------

    def ordering_pairs(
        self, edge_filter: Optional[Callable[[Edge], bool]] = None
    ) -> Set[OrderingPair]:
        pairs: Set[OrderingPair] = set()
        for edge in self.edges:
            if edge.is_self_loop:
                continue
            if edge_filter is not None and not edge_filter(edge):
                continue
            pairs.add(edge.pair)
        return pairs

    def edges_between(self, child: int, parent: int) -> List[Edge]:
        return [e for e in self.edges if e.source == child and e.target == parent]

    def internal_edges(self, members: Iterable[int]) -> List[Edge]:
        """Edges whose endpoints are both in *members*, sorted by names."""
        member_set: FrozenSet[int] = frozenset(members)
        internal: List[Edge] = [
            e for e in self.edges if e.source in member_set and e.target in member_set
        ]
        return sorted(internal, key=self.edge_sort_key)

    def edge_sort_key(self, edge: Edge) -> Tuple[Tuple[str, str, str], Tuple[str, str, str], str]:
        return (
            self.nodes[edge.source].sort_key,
            self.nodes[edge.target].sort_key,
            fold_name(edge.constraint_name),
        )

    def is_breakable_pair(self, pair: OrderingPair) -> bool:
        """A pair can be deferred only when every constraint behind it is weak."""
        constraints: List[Edge] = self.edges_between(*pair)
        return bool(constraints) and all(e.is_weak for e in constraints)

    def has_self_loop(self, node_id: int) -> bool:
        return any(e.is_self_loop and e.source == node_id for e in self.edges)

    def parents_of(self, pairs: Iterable[OrderingPair]) -> Dict[int, Set[int]]:
        """child → parents adjacency for the given pairs."""
        adjacency: Dict[int, Set[int]] = {i: set() for i in range(len(self.nodes))}
        for child, parent in pairs:
            adjacency[child].add(parent)
        return adjacency

    def summary(self) -> str:
        return (
            f"{self.node_count} table(s), {self.edge_count} ordering edge(s) "
            f"from {self.constraint_count} constraint(s), "
            f"{self.skipped_count} skipped"
        )

    def __repr__(self) -> str:
        return f"<DependencyGraph {self.summary()}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OrderingPair",
    "TableKey",
    "EdgeProvenance",
    "SkipReason",
    "TableNode",
    "Edge",
    "SkippedConstraint",
    "DependencyGraph",
]

logger.debug("seedorder.graph loaded — %d public symbols.", len(__all__))
