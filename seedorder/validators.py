# File: seedorder/validators.py
"""
SeedOrder - Ordering & Input Validators
========================================
Two independent checks that run around the ordering engine:

1. ``validate_topological_order`` re-walks a *final* table order against
   the application model.  It deliberately rebuilds everything it needs
   (position index, parent resolution, its own cycle analysis) instead of
   reading sorter state, so it also catches defects introduced after
   ordering, e.g. a caller re-sorting a subset.

2. ``validate_inputs`` is a pre-flight pass over the raw inputs
   (effective-name collisions, row widths, static tables without a key,
   configuration that names unknown tables), reported through the
   accumulate-then-report ``ValidationResult``.

Usage::

    from seedorder.validators import validate_topological_order
    report = validate_topological_order(result.tables, model)
    if not report.is_valid:
        print(report.format_report())
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple, Union

from seedorder.builder import constraint_is_nullable, delete_rule_text
from seedorder.cycles import find_cycle_path, format_cycle_path, tarjan_scc
from seedorder.graph import TableKey, TableNode
from seedorder.models import (
    ApplicationModel,
    EntityModel,
    RelationshipConstraint,
    RelationshipModel,
    SeedTableData,
    SeedTableDefinition,
)
from seedorder.options import (
    AllowedCycle,
    CircularDependencyOptions,
    NameResolver,
    NamingOverrideOptions,
    resolve_name_function,
    table_aliases,
)
from seedorder.utils import fold_name, is_blank

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.validators")

UNNAMED_CONSTRAINT: str = "<unnamed>"
PHASED_LOADING_REASON: str = (
    "Manual ordering configured with nullable FK support for phased loading"
)
NO_NULLABLE_FK_REASON: str = (
    "WARNING: Manual ordering configured but no nullable FKs found - phased loading may fail"
)
ALLOWED_PHASED_LOADING_REASON: str = "Allowed cycle with nullable FK support for phased loading"
ALLOWED_NO_NULLABLE_FK_REASON: str = (
    "WARNING: Allowed cycle but no nullable FKs found - phased loading may fail"
)

OrderedTable = Union[TableNode, SeedTableData, SeedTableDefinition]


# ---------------------------------------------------------------------------
# Validation result container (pre-flight)
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the pre-flight pass."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> Set[str]:
        return {e.code for e in self._items}

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {"error": "✗", "warning": "⚠", "info": "ℹ"}.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Topological validation records
# ---------------------------------------------------------------------------


class ViolationKind(str, Enum):
    CHILD_BEFORE_PARENT = "ChildBeforeParent"
    MISSING_PARENT = "MissingParent"


@dataclass(frozen=True, slots=True)
class ForeignKeyInCycle:
    """Full detail of one foreign key, for cycle reports."""

    constraint_name: str
    source_table: str
    target_table: str
    source_column: str
    target_column: str
    is_nullable: bool
    delete_rule: str

    @property
    def is_cascade(self) -> bool:
        return "CASCADE" in self.delete_rule.upper()

    @property
    def is_weak(self) -> bool:
        return self.is_nullable and not self.is_cascade


@dataclass(frozen=True, slots=True)
class OrderingViolation:
    """One defect found while re-walking an order."""

    kind: ViolationKind
    child_table: str
    parent_table: str
    constraint_name: str
    child_position: int
    parent_position: int
    foreign_key: ForeignKeyInCycle

    @property
    def message(self) -> str:
        if self.kind == ViolationKind.MISSING_PARENT:
            return (
                f"{self.child_table} references {self.parent_table} via "
                f"{self.constraint_name}, but {self.parent_table} is not in this run."
            )
        return (
            f"{self.child_table} (position {self.child_position}) is loaded before its "
            f"parent {self.parent_table} (position {self.parent_position}) via "
            f"{self.constraint_name}."
        )

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass(slots=True)
class CycleDiagnostic:
    """A true cycle touched by at least one ChildBeforeParent violation."""

    tables_in_cycle: List[str]
    cycle_path: str
    foreign_keys: List[ForeignKeyInCycle]
    violations: List[OrderingViolation] = field(default_factory=list)
    is_allowed: bool = False
    allowance_reason: Optional[str] = None

    @property
    def weak_foreign_keys(self) -> List[ForeignKeyInCycle]:
        return [fk for fk in self.foreign_keys if fk.is_weak]

    @property
    def strong_foreign_keys(self) -> List[ForeignKeyInCycle]:
        return [fk for fk in self.foreign_keys if not fk.is_weak]

    @property
    def has_nullable_foreign_key(self) -> bool:
        return any(fk.is_nullable for fk in self.foreign_keys)

    @property
    def has_cascade(self) -> bool:
        return any(fk.is_cascade for fk in self.foreign_keys)


@dataclass(slots=True)
class TopologicalValidationResult:
    """Outcome of re-walking a final table order."""

    table_count: int = 0
    violations: List[OrderingViolation] = field(default_factory=list)
    cycles: List[CycleDiagnostic] = field(default_factory=list)
    validated_constraints: int = 0
    skipped_constraints: int = 0
    missing_edges: int = 0

    @property
    def child_before_parent(self) -> List[OrderingViolation]:
        return [v for v in self.violations if v.kind == ViolationKind.CHILD_BEFORE_PARENT]

    @property
    def missing_parents(self) -> List[OrderingViolation]:
        return [v for v in self.violations if v.kind == ViolationKind.MISSING_PARENT]

    @property
    def is_valid(self) -> bool:
        """MissingParent never affects validity."""
        return not self.child_before_parent

    def summary(self) -> str:
        return (
            f"Ordering validation: {'valid' if self.is_valid else 'INVALID'}; "
            f"{self.table_count} table(s), {self.validated_constraints} constraint(s) checked, "
            f"{len(self.child_before_parent)} ordering violation(s), "
            f"{len(self.missing_parents)} missing parent(s), "
            f"{self.skipped_constraints} skipped, {len(self.cycles)} cycle(s)."
        )

    def format_report(self) -> str:
        lines: List[str] = [self.summary()]
        for violation in self.violations:
            lines.append(f"  • {violation}")
        for cycle in self.cycles:
            status: str = "ALLOWED" if cycle.is_allowed else "DISALLOWED"
            lines.append(f"  ↻ {status} cycle {cycle.cycle_path}")
            if cycle.allowance_reason:
                lines.append(f"       {cycle.allowance_reason}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _identity(entry: OrderedTable) -> Tuple[str, str, str, str]:
    """(schema, physical, logical, module) of an ordered entry."""
    if isinstance(entry, TableNode):
        return entry.schema_name, entry.physical_name, entry.logical_name, entry.module
    definition: SeedTableDefinition = (
        entry.definition if isinstance(entry, SeedTableData) else entry
    )
    return (
        definition.schema_name,
        definition.physical_name,
        definition.logical_name,
        definition.module,
    )


def _definition(entry: OrderedTable) -> Optional[SeedTableDefinition]:
    if isinstance(entry, TableNode):
        return entry.data.definition if entry.data is not None else None
    return entry.definition if isinstance(entry, SeedTableData) else entry


def _parent_identity(
    relationship: RelationshipModel,
    constraint: RelationshipConstraint,
    owner: EntityModel,
    entities: Dict[TableKey, Tuple[str, EntityModel]],
    by_logical: Dict[str, Tuple[str, EntityModel]],
    naming: NameResolver,
) -> Tuple[str, str, str]:
    """(schema, physical, effective name) of a constraint's parent table."""
    schema: str = (
        owner.schema_name if is_blank(constraint.referenced_schema) else constraint.referenced_schema  # type: ignore[assignment]
    )
    table: str = constraint.referenced_table.strip()
    identity: Optional[Tuple[str, EntityModel]] = entities.get(TableKey.of(schema, table))
    if identity is None:
        identity = by_logical.get(fold_name(relationship.target_entity))
    if identity is not None:
        module_name, entity = identity
        return schema, table, naming(schema, table, entity.logical_name, module_name)
    return schema, table, naming(schema, table, relationship.target_entity, None)


def _cycle_allowance(
    options: Optional[CircularDependencyOptions],
    aliases: List[Tuple[str, ...]],
    foreign_keys: List[ForeignKeyInCycle],
) -> Tuple[bool, Optional[str]]:
    if options is None or not options.is_cycle_allowed(aliases):
        return False, None
    configured: Optional[AllowedCycle] = options.find_allowed_cycle(aliases)
    manual: bool = configured is not None and configured.has_explicit_order
    if not any(fk.is_nullable for fk in foreign_keys):
        return True, NO_NULLABLE_FK_REASON if manual else ALLOWED_NO_NULLABLE_FK_REASON
    phased: str = PHASED_LOADING_REASON if manual else ALLOWED_PHASED_LOADING_REASON
    if configured is not None and configured.reason:
        return True, f"{configured.reason} ({phased})"
    return True, phased


# ---------------------------------------------------------------------------
# Topological order validation
# ---------------------------------------------------------------------------


def validate_topological_order(
    ordered_tables: Sequence[OrderedTable],
    model: Optional[ApplicationModel],
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
    circular_options: Optional[CircularDependencyOptions] = None,
) -> TopologicalValidationResult:
    """
    Check that every foreign-key parent precedes its child in *ordered_tables*.

    ``ChildBeforeParent`` violations make the order invalid; ``MissingParent``
    (parent outside this run) is informational.  Violations inside true
    cycles are grouped into ``CycleDiagnostic`` records with full FK detail.
    """
    naming: NameResolver = resolve_name_function(naming_overrides)
    result: TopologicalValidationResult = TopologicalValidationResult(
        table_count=len(ordered_tables)
    )

    identities: List[Tuple[str, str, str, str]] = [_identity(t) for t in ordered_tables]
    definitions: List[Optional[SeedTableDefinition]] = [_definition(t) for t in ordered_tables]
    effective_names: List[str] = [
        naming(schema, physical, logical, module) or physical
        for schema, physical, logical, module in identities
    ]

    positions: Dict[str, int] = {}
    for position, (identity, effective) in enumerate(zip(identities, effective_names)):
        positions.setdefault(fold_name(effective), position)
        positions.setdefault(fold_name(f"{identity[0]}.{identity[1]}"), position)

    if model is None:
        logger.info("No model supplied; ordering of %d table(s) not checked.", len(ordered_tables))
        return result

    entities: Dict[TableKey, Tuple[str, EntityModel]] = {}
    by_logical: Dict[str, Tuple[str, EntityModel]] = {}
    for module_name, entity in model.iter_entities():
        entities.setdefault(TableKey.of(entity.schema_name, entity.physical_name), (module_name, entity))
        by_logical.setdefault(fold_name(entity.logical_name), (module_name, entity))

    edges: List[Tuple[int, int, ForeignKeyInCycle]] = []

    for child_position, (schema, physical, logical, module) in enumerate(identities):
        found: Optional[Tuple[str, EntityModel]] = entities.get(TableKey.of(schema, physical))
        if found is None:
            continue
        _, entity = found
        child_name: str = effective_names[child_position]

        for relationship in entity.relationships:
            if not relationship.has_database_constraint:
                continue
            if not relationship.actual_constraints:
                result.skipped_constraints += 1
                continue

            for constraint in relationship.actual_constraints:
                if not constraint.is_hydrated or not constraint.is_structurally_valid:
                    result.skipped_constraints += 1
                    continue
                result.validated_constraints += 1

                parent_schema, parent_physical, parent_name = _parent_identity(
                    relationship, constraint, entity, entities, by_logical, naming
                )
                parent_position: Optional[int] = positions.get(fold_name(parent_name))
                if parent_position is None:
                    parent_position = positions.get(fold_name(f"{parent_schema}.{parent_physical}"))
                if parent_position is not None:
                    parent_name = effective_names[parent_position]

                first = constraint.resolved_columns[0]
                foreign_key: ForeignKeyInCycle = ForeignKeyInCycle(
                    constraint_name=UNNAMED_CONSTRAINT
                    if is_blank(constraint.name)
                    else constraint.name.strip(),  # type: ignore[union-attr]
                    source_table=child_name,
                    target_table=parent_name,
                    source_column=first.owner_column.strip(),
                    target_column=first.referenced_column.strip(),
                    is_nullable=constraint_is_nullable(
                        entity,
                        definitions[child_position],
                        [c.owner_column.strip() for c in constraint.resolved_columns],
                    ),
                    delete_rule=delete_rule_text(constraint.on_delete),
                )

                if parent_position is None:
                    result.missing_edges += 1
                    result.violations.append(
                        OrderingViolation(
                            kind=ViolationKind.MISSING_PARENT,
                            child_table=child_name,
                            parent_table=parent_name,
                            constraint_name=foreign_key.constraint_name,
                            child_position=child_position,
                            parent_position=-1,
                            foreign_key=foreign_key,
                        )
                    )
                    continue

                edges.append((child_position, parent_position, foreign_key))
                if parent_position > child_position:
                    result.violations.append(
                        OrderingViolation(
                            kind=ViolationKind.CHILD_BEFORE_PARENT,
                            child_table=child_name,
                            parent_table=parent_name,
                            constraint_name=foreign_key.constraint_name,
                            child_position=child_position,
                            parent_position=parent_position,
                            foreign_key=foreign_key,
                        )
                    )

    result.cycles = _cycle_diagnostics(
        result.child_before_parent, edges, identities, effective_names, circular_options
    )

    if result.is_valid:
        logger.info("%s", result.summary())
    else:
        logger.warning("%s", result.summary())
        for violation in result.child_before_parent:
            logger.warning("  ✗ %s", violation.message)
    if result.missing_parents:
        logger.info(
            "%d foreign key(s) reference tables outside this run.", len(result.missing_parents)
        )
    return result


def _cycle_diagnostics(
    violations: List[OrderingViolation],
    edges: List[Tuple[int, int, ForeignKeyInCycle]],
    identities: List[Tuple[str, str, str, str]],
    effective_names: List[str],
    circular_options: Optional[CircularDependencyOptions],
) -> List[CycleDiagnostic]:
    """Group violations by the true cycle (SCC) their endpoints share."""
    if not violations:
        return []

    successors: Dict[int, Set[int]] = {i: set() for i in range(len(identities))}
    for child, parent, _ in edges:
        if child != parent:
            successors[child].add(parent)

    component_of: Dict[int, int] = {}
    components: List[List[int]] = [c for c in tarjan_scc(successors.keys(), successors) if len(c) > 1]
    for index, members in enumerate(components):
        for member in members:
            component_of[member] = index

    grouped: Dict[int, List[OrderingViolation]] = {}
    for violation in violations:
        child_component: Optional[int] = component_of.get(violation.child_position)
        if child_component is None or child_component != component_of.get(violation.parent_position):
            continue
        grouped.setdefault(child_component, []).append(violation)

    diagnostics: List[CycleDiagnostic] = []
    for index in sorted(grouped):
        members: List[int] = sorted(components[index], key=lambda i: fold_name(effective_names[i]))
        member_set: FrozenSet[int] = frozenset(members)
        pairs: List[Tuple[int, int]] = [
            (c, p) for c, p, _ in edges if c in member_set and p in member_set and c != p
        ]
        # find_cycle_path starts from the lowest id; remap ids to alphabetical rank.
        rank: Dict[int, int] = {m: r for r, m in enumerate(members)}
        walk: List[int] = find_cycle_path(
            range(len(members)), [(rank[c], rank[p]) for c, p in pairs]
        )
        foreign_keys: List[ForeignKeyInCycle] = sorted(
            (fk for c, p, fk in edges if c in member_set and p in member_set),
            key=lambda fk: (
                fold_name(fk.source_table),
                fold_name(fk.target_table),
                fold_name(fk.constraint_name),
            ),
        )
        aliases: List[Tuple[str, ...]] = [
            table_aliases(identities[m][0], identities[m][1], effective_names[m]) for m in members
        ]
        allowed, reason = _cycle_allowance(circular_options, aliases, foreign_keys)
        diagnostics.append(
            CycleDiagnostic(
                tables_in_cycle=[effective_names[m] for m in members],
                cycle_path=format_cycle_path([effective_names[members[r]] for r in walk]),
                foreign_keys=foreign_keys,
                violations=grouped[index],
                is_allowed=allowed,
                allowance_reason=reason,
            )
        )
    diagnostics.sort(key=lambda d: fold_name(d.tables_in_cycle[0]))
    return diagnostics


# ---------------------------------------------------------------------------
# Pre-flight input validation
# ---------------------------------------------------------------------------


def validate_table_definitions(tables: Sequence[SeedTableData], *, static: bool) -> ValidationResult:
    """Duplicate columns, row widths and (for static tables) primary keys."""
    result: ValidationResult = ValidationResult()
    for data in tables:
        d: SeedTableDefinition = data.definition
        ctx: Dict[str, Any] = {"table": d.qualified_name}

        names: Counter = Counter(fold_name(c.target_column_name) for c in d.columns)
        for name, count in sorted(names.items()):
            if count > 1:
                result.add_error(
                    "DUPLICATE_COLUMN",
                    f"Column '{name}' appears {count} times in {d.qualified_name}.",
                    ctx,
                )

        width: int = len(d.columns)
        for index, row in enumerate(data.rows):
            if len(row) != width:
                result.add_error(
                    "ROW_WIDTH_MISMATCH",
                    f"Row {index} of {d.qualified_name} has {len(row)} value(s); "
                    f"expected {width}.",
                    ctx,
                )

        if static and not d.primary_key_indices:
            result.add_error(
                "STATIC_TABLE_WITHOUT_PRIMARY_KEY",
                f"Static entity '{d.module}::{d.logical_name}' does not define a primary key.",
                ctx,
            )
    return result


def validate_effective_names(
    tables: Sequence[SeedTableData],
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
) -> ValidationResult:
    """Effective names must be unique across distinct physical tables."""
    result: ValidationResult = ValidationResult()
    naming: NameResolver = resolve_name_function(naming_overrides)
    owners: Dict[str, Set[TableKey]] = {}
    for data in tables:
        d = data.definition
        effective: str = naming(d.schema_name, d.physical_name, d.logical_name, d.module)
        owners.setdefault(fold_name(effective or d.physical_name), set()).add(
            TableKey.of(d.schema_name, d.physical_name)
        )
    for name, keys in sorted(owners.items()):
        if len(keys) > 1:
            result.add_error(
                "EFFECTIVE_NAME_COLLISION",
                f"Effective name '{name}' is shared by {', '.join(sorted(str(k) for k in keys))}.",
                {"effective_name": name},
            )
    return result


def validate_inputs(
    model: Optional[ApplicationModel],
    static_tables: Sequence[SeedTableData] = (),
    dynamic_tables: Sequence[SeedTableData] = (),
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]] = None,
    circular_options: Optional[CircularDependencyOptions] = None,
) -> ValidationResult:
    """
    **Pre-flight entry point** called by the generator and the CLI before
    any ordering run.
    """
    logger.info(
        "Starting input validation — %d static, %d dynamic table(s).",
        len(static_tables),
        len(dynamic_tables),
    )
    result: ValidationResult = ValidationResult()
    result.merge(validate_table_definitions(static_tables, static=True))
    result.merge(validate_table_definitions(dynamic_tables, static=False))
    result.merge(validate_effective_names(list(static_tables) + list(dynamic_tables), naming_overrides))

    naming: NameResolver = resolve_name_function(naming_overrides)
    known: Set[str] = set()
    for data in list(static_tables) + list(dynamic_tables):
        d = data.definition
        known.update(
            fold_name(a)
            for a in table_aliases(
                d.schema_name,
                d.physical_name,
                naming(d.schema_name, d.physical_name, d.logical_name, d.module),
            )
        )

    if model is not None:
        modeled: Set[TableKey] = {
            TableKey.of(e.schema_name, e.physical_name) for _, e in model.iter_entities()
        }
        for data in list(static_tables) + list(dynamic_tables):
            d = data.definition
            if TableKey.of(d.schema_name, d.physical_name) not in modeled:
                result.add_warning(
                    "TABLE_NOT_IN_MODEL",
                    f"Table {d.qualified_name} is not part of the application model; "
                    f"its foreign keys cannot be ordered.",
                    {"table": d.qualified_name},
                )
        for _, entity in model.iter_entities():
            known.update(
                fold_name(a) for a in (entity.physical_name, entity.logical_name)
            )

    if circular_options is not None:
        for cycle in circular_options.allowed_cycles:
            for name in sorted(cycle.member_names):
                if name not in known:
                    result.add_warning(
                        "CIRCULAR_CONFIG_UNKNOWN_TABLE",
                        f"Allowed cycle [{cycle.label}] names unknown table '{name}'.",
                        {"table": name},
                    )

    if result.has_errors:
        logger.error("Input validation FAILED. %s", result.summary())
    else:
        logger.info("Input validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "UNNAMED_CONSTRAINT",
    "PHASED_LOADING_REASON",
    "NO_NULLABLE_FK_REASON",
    "ALLOWED_PHASED_LOADING_REASON",
    "ALLOWED_NO_NULLABLE_FK_REASON",
    "ValidationError",
    "ValidationResult",
    "ViolationKind",
    "ForeignKeyInCycle",
    "OrderingViolation",
    "CycleDiagnostic",
    "TopologicalValidationResult",
    "validate_topological_order",
    "validate_table_definitions",
    "validate_effective_names",
    "validate_inputs",
]

logger.debug("seedorder.validators loaded — %d public symbols.", len(__all__))
