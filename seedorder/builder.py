# File: seedorder/builder.py
"""
SeedOrder - Dependency Graph Builder
=====================================
Turns table definitions, the application model and the naming function into
a ``DependencyGraph``.

Rules:
    - Every table is keyed by its *effective* name, the same name the
      script writers emit, so that renamed tables still resolve.
    - Only hydrated, structurally valid constraints become edges.
      Unhydrated or malformed constraints, and constraints whose parent is
      not part of this run, are tallied as skipped.
    - Node ids follow alphabetical effective-name order, so the input
      table order never influences the result.

No I/O; the model is only read.
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from seedorder.graph import (
    DependencyGraph,
    Edge,
    EdgeProvenance,
    SkipReason,
    SkippedConstraint,
    TableKey,
    TableNode,
)
from seedorder.models import (
    ApplicationModel,
    EntityModel,
    RelationshipConstraint,
    RelationshipModel,
    SeedTableData,
    SeedTableDefinition,
)
from seedorder.options import NameResolver, NamingOverrideOptions, resolve_name_function
from seedorder.utils import fold_name, is_blank

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.builder")


class GraphBuildError(ValueError):
    """Input that cannot form a dependency graph (e.g. effective-name collisions)."""


def delete_rule_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value or "NO ACTION")


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------


class _TableLookup:
    """Resolves physical, effective and logical identities to node ids."""

    __slots__ = ("by_key", "by_effective", "by_logical")

    def __init__(self) -> None:
        self.by_key: Dict[TableKey, int] = {}
        self.by_effective: Dict[str, int] = {}
        self.by_logical: Dict[Tuple[str, str], int] = {}

    def add(self, node_id: int, key: TableKey, effective: str, module: str, logical: str) -> None:
        self.by_key[key] = node_id
        self.by_effective[fold_name(effective)] = node_id
        self.by_logical.setdefault((fold_name(module), fold_name(logical)), node_id)

    def resolve(
        self,
        key: TableKey,
        effective_candidates: Sequence[str],
        logical: Optional[Tuple[str, str]] = None,
    ) -> Optional[int]:
        if key in self.by_key:
            return self.by_key[key]
        for candidate in effective_candidates:
            if is_blank(candidate):
                continue
            found: Optional[int] = self.by_effective.get(fold_name(candidate))
            if found is not None:
                return found
        if logical is not None:
            return self.by_logical.get((fold_name(logical[0]), fold_name(logical[1])))
        return None


def _entity_index(model: Optional[ApplicationModel]) -> Dict[TableKey, Tuple[str, EntityModel]]:
    index: Dict[TableKey, Tuple[str, EntityModel]] = {}
    if model is None:
        return index
    for module_name, entity in model.iter_entities():
        index.setdefault(TableKey.of(entity.schema_name, entity.physical_name), (module_name, entity))
    return index


def _entities_by_logical(model: Optional[ApplicationModel]) -> Dict[str, Tuple[str, EntityModel]]:
    index: Dict[str, Tuple[str, EntityModel]] = {}
    if model is None:
        return index
    for module_name, entity in model.iter_entities():
        index.setdefault(fold_name(entity.logical_name), (module_name, entity))
    return index


# ---------------------------------------------------------------------------
# Node preparation
# ---------------------------------------------------------------------------


def _prepare_nodes(
    tables: Sequence[SeedTableData], naming: NameResolver
) -> List[Tuple[SeedTableData, str]]:
    prepared: List[Tuple[SeedTableData, str]] = []
    for data in tables:
        d = data.definition
        effective: str = naming(d.schema_name, d.physical_name, d.logical_name, d.module)
        if is_blank(effective):
            effective = d.physical_name
        prepared.append((data, effective.strip()))

    prepared.sort(
        key=lambda item: (
            fold_name(item[1]),
            fold_name(item[0].definition.schema_name),
            fold_name(item[0].definition.physical_name),
        )
    )

    keys: Counter = Counter(
        TableKey.of(d.definition.schema_name, d.definition.physical_name) for d, _ in prepared
    )
    duplicate_keys: List[str] = sorted(str(k) for k, n in keys.items() if n > 1)
    if duplicate_keys:
        raise GraphBuildError(
            f"Table(s) listed more than once in one ordering run: {', '.join(duplicate_keys)}."
        )

    names: Counter = Counter(fold_name(effective) for _, effective in prepared)
    collisions: List[str] = sorted(n for n, count in names.items() if count > 1)
    if collisions:
        raise GraphBuildError(
            f"Effective table name collision(s): {', '.join(collisions)}. "
            f"Each table must resolve to a unique effective name."
        )
    return prepared


# ---------------------------------------------------------------------------
# Edge discovery
# ---------------------------------------------------------------------------


def _constraint_label(constraint: RelationshipConstraint, relationship: RelationshipModel) -> str:
    if not is_blank(constraint.name):
        return constraint.name.strip()  # type: ignore[union-attr]
    return relationship.via_attribute or relationship.target_entity


def constraint_is_nullable(
    entity: EntityModel,
    definition: Optional[SeedTableDefinition],
    owner_columns: Sequence[str],
) -> bool:
    """
    A constraint is nullable only when every owner column is nullable.

    The model attribute decides; a column the model does not describe
    falls back to the seed column definition, and is NOT NULL when
    neither knows it.
    """
    for column in owner_columns:
        attribute = entity.attribute_for_column(column)
        if attribute is not None:
            if attribute.is_mandatory:
                return False
            continue
        seed_nullable: Optional[bool] = None
        if definition is not None:
            for seed_column in definition.columns:
                if fold_name(seed_column.column_name) == fold_name(column):
                    seed_nullable = seed_column.is_nullable
                    break
        if not seed_nullable:
            return False
    return bool(owner_columns)


def _resolve_parent(
    constraint: RelationshipConstraint,
    relationship: RelationshipModel,
    owner: EntityModel,
    lookup: _TableLookup,
    entities: Dict[TableKey, Tuple[str, EntityModel]],
    entities_by_logical: Dict[str, Tuple[str, EntityModel]],
    naming: NameResolver,
) -> Optional[int]:
    schema: str = (
        owner.schema_name if is_blank(constraint.referenced_schema) else constraint.referenced_schema  # type: ignore[assignment]
    )
    table: str = constraint.referenced_table.strip()
    key: TableKey = TableKey.of(schema, table)

    candidates: List[str] = []
    logical: Optional[Tuple[str, str]] = None
    identity: Optional[Tuple[str, EntityModel]] = entities.get(key)
    if identity is None:
        identity = entities_by_logical.get(fold_name(relationship.target_entity))
    if identity is not None:
        module_name, target = identity
        candidates.append(naming(schema, table, target.logical_name, module_name))
        logical = (module_name, target.logical_name)
    candidates.append(naming(schema, table, relationship.target_entity, None))
    candidates.append(table)
    return lookup.resolve(key, candidates, logical)


def build_dependency_graph(
    tables: Sequence[SeedTableData],
    model: Optional[ApplicationModel],
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
    *,
    detect_junctions: bool = False,
) -> DependencyGraph:
    """
    Build the dependency graph for one ordering run.

    Args:
        tables: Tables taking part in this run.
        model: Application model providing relationship metadata.  With no
            model the graph has nodes but no edges.
        naming_overrides: ``NamingOverrideOptions`` or any naming function.
        detect_junctions: Classify many-to-many junction tables.

    Raises:
        GraphBuildError: On duplicate tables or effective-name collisions.
    """
    naming: NameResolver = resolve_name_function(naming_overrides)
    prepared: List[Tuple[SeedTableData, str]] = _prepare_nodes(tables, naming)

    lookup: _TableLookup = _TableLookup()
    for node_id, (data, effective) in enumerate(prepared):
        d = data.definition
        lookup.add(
            node_id,
            TableKey.of(d.schema_name, d.physical_name),
            effective,
            d.module,
            d.logical_name,
        )

    entities: Dict[TableKey, Tuple[str, EntityModel]] = _entity_index(model)
    entities_by_logical: Dict[str, Tuple[str, EntityModel]] = _entities_by_logical(model)

    edges: List[Edge] = []
    skipped: List[SkippedConstraint] = []
    fk_columns: Dict[int, Set[str]] = {}
    referenced_tables: Dict[int, Set[TableKey]] = {}

    if model is None:
        logger.info("No application model supplied; graph will have no edges.")

    for module_name, entity in model.iter_entities() if model is not None else ():
        source: Optional[int] = lookup.resolve(
            TableKey.of(entity.schema_name, entity.physical_name),
            [naming(entity.schema_name, entity.physical_name, entity.logical_name, module_name)],
            (module_name, entity.logical_name),
        )
        if source is None:
            continue
        source_data: SeedTableData = prepared[source][0]
        source_name: str = prepared[source][1]

        for relationship in entity.relationships:
            if not relationship.has_database_constraint:
                continue

            if not relationship.actual_constraints:
                skipped.append(
                    SkippedConstraint(
                        table=source_name,
                        constraint_name=relationship.via_attribute or relationship.target_entity,
                        reason=SkipReason.UNHYDRATED,
                        referenced_table=relationship.target_physical_name,
                        provenance=EdgeProvenance.MODEL_ONLY,
                    )
                )
                continue

            for constraint in relationship.actual_constraints:
                label: str = _constraint_label(constraint, relationship)

                if not constraint.is_hydrated:
                    skipped.append(
                        SkippedConstraint(
                            table=source_name,
                            constraint_name=label,
                            reason=SkipReason.UNHYDRATED,
                            referenced_table=constraint.referenced_table,
                            provenance=EdgeProvenance.MODEL_ONLY,
                        )
                    )
                    continue

                if not constraint.is_structurally_valid:
                    skipped.append(
                        SkippedConstraint(
                            table=source_name,
                            constraint_name=label,
                            reason=SkipReason.INVALID_CONSTRAINT,
                            referenced_table=constraint.referenced_table,
                        )
                    )
                    continue

                columns = constraint.resolved_columns
                owner_columns: Tuple[str, ...] = tuple(c.owner_column.strip() for c in columns)
                fk_columns.setdefault(source, set()).update(fold_name(c) for c in owner_columns)
                ref_schema: str = (
                    entity.schema_name
                    if is_blank(constraint.referenced_schema)
                    else constraint.referenced_schema  # type: ignore[assignment]
                )
                referenced_tables.setdefault(source, set()).add(
                    TableKey.of(ref_schema, constraint.referenced_table)
                )

                target: Optional[int] = _resolve_parent(
                    constraint,
                    relationship,
                    entity,
                    lookup,
                    entities,
                    entities_by_logical,
                    naming,
                )
                if target is None:
                    skipped.append(
                        SkippedConstraint(
                            table=source_name,
                            constraint_name=label,
                            reason=SkipReason.MISSING_TARGET,
                            referenced_table=constraint.referenced_table,
                        )
                    )
                    logger.debug(
                        "Constraint %s on %s references %s, which is not in this run.",
                        label,
                        source_name,
                        constraint.referenced_table,
                    )
                    continue

                edge: Edge = Edge(
                    constraint_name=label,
                    source=source,
                    target=target,
                    source_column=columns[0].owner_column.strip(),
                    target_column=columns[0].referenced_column.strip(),
                    is_nullable=constraint_is_nullable(
                        entity, source_data.definition, owner_columns
                    ),
                    delete_rule=delete_rule_text(constraint.on_delete),
                    provenance=EdgeProvenance.HYDRATED,
                    owner_columns=owner_columns,
                )
                edges.append(edge)
                logger.debug(
                    "Edge %s: %s → %s (%s).",
                    label,
                    source_name,
                    prepared[target][1],
                    "weak" if edge.is_weak else "strong",
                )

    nodes: List[TableNode] = []
    for node_id, (data, effective) in enumerate(prepared):
        d = data.definition
        key: TableKey = TableKey.of(d.schema_name, d.physical_name)
        junction: bool = detect_junctions and _is_junction_table(
            data, fk_columns.get(node_id, set()), referenced_tables.get(node_id, set()), key
        )
        nodes.append(
            TableNode(
                node_id=node_id,
                key=key,
                schema_name=d.schema_name,
                physical_name=d.physical_name,
                effective_name=effective,
                logical_name=d.logical_name,
                module=d.module,
                is_junction=junction,
                data=data,
            )
        )

    edges.sort(key=lambda e: (e.source, e.target, fold_name(e.constraint_name)))
    graph: DependencyGraph = DependencyGraph(nodes=nodes, edges=edges, skipped=skipped)

    if skipped:
        reasons: Counter = Counter(s.reason.value for s in skipped)
        logger.warning(
            "Skipped %d constraint(s) while building the dependency graph: %s.",
            len(skipped),
            ", ".join(f"{reason}={count}" for reason, count in sorted(reasons.items())),
        )
    logger.info("Dependency graph built: %s.", graph.summary())
    return graph


# ---------------------------------------------------------------------------
# Junction classification
# ---------------------------------------------------------------------------


def _is_junction_table(
    data: SeedTableData,
    fk_columns: Set[str],
    referenced: Set[TableKey],
    own_key: TableKey,
) -> bool:
    """
    A junction table has at least two non-key columns, every one of them a
    foreign-key column, referencing at least two distinct other tables.
    """
    non_key: List[str] = [
        fold_name(c.column_name) for c in data.definition.columns if not c.is_primary_key
    ]
    if len(non_key) < 2:
        return False
    if any(column not in fk_columns for column in non_key):
        return False
    return len(referenced - {own_key}) >= 2


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GraphBuildError",
    "build_dependency_graph",
    "constraint_is_nullable",
    "delete_rule_text",
]

logger.debug("seedorder.builder loaded — %d public symbols.", len(__all__))
