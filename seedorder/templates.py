# File: seedorder/templates.py
"""
SeedOrder - SQL Template Engine
================================
Pure-Python rendering of T-SQL text for the three script writers:

    1. Static seed MERGE blocks (with drift check / authoritative delete)
    2. Batched dynamic INSERT blocks
    3. Phase-two UPDATE statements for deferred foreign keys
    4. Cycle report comment blocks and validation warning banners
    5. Whole-script assembly (static seeds, dynamic inserts, bootstrap)

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Renderer methods are stateless, safe for concurrent use.

**Determinism contract:**
    - Rows are emitted in ``SeedTableData.sorted_rows()`` order.
    - No timestamps or host details are written into scripts, so the same
      inputs always produce byte-identical output.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, AbstractSet, Any, List, Optional, Sequence, Set, Tuple
from uuid import UUID

from seedorder.models import SeedTableData, SeedTableDefinition
from seedorder.options import InsertGenerationOptions, StaticSeedMode
from seedorder.utils import fold_name
from seedorder.validators import (
    CycleDiagnostic,
    OrderingViolation,
    TopologicalValidationResult,
)

if TYPE_CHECKING:
    from seedorder.engine import OrderingResult
    from seedorder.phased import PhasedScript

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RULE: str = "-" * 80
_INDENT: str = "    "

STATUS_ALLOWED: str = "ALLOWED"
STATUS_AUTO_RESOLVED: str = "AUTO-RESOLVED"
STATUS_DISALLOWED: str = "DISALLOWED"

NamePair = Tuple[str, str]  # (folded child name, folded parent name)


# ---------------------------------------------------------------------------
# Identifiers & literals
# ---------------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Bracket-quote an identifier, doubling any closing bracket."""
    return "[" + name.replace("]", "]]") + "]"


def qualified_identifier(schema: str, name: str) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(name)}"


def _sql_string(text: str) -> str:
    return text.replace("'", "''")


class SqlLiteralFormatter:
    """Render Python values as T-SQL literals."""

    def format_value(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, Enum):
            return self.format_value(value.value)
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"Cannot render non-finite float {value!r} as SQL.")
            return repr(value)
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise ValueError(f"Cannot render non-finite decimal {value!r} as SQL.")
            return format(value, "f")
        if isinstance(value, (datetime, date, time)):
            return f"'{value.isoformat()}'"
        if isinstance(value, UUID):
            return f"'{value}'"
        if isinstance(value, (bytes, bytearray, memoryview)):
            return "0x" + bytes(value).hex().upper()
        return f"N'{_sql_string(str(value))}'"

    def format_row(self, row: Sequence[Any], null_indices: AbstractSet[int] = frozenset()) -> str:
        return ", ".join(
            "NULL" if i in null_indices else self.format_value(v) for i, v in enumerate(row)
        )


# ---------------------------------------------------------------------------
# Helpers shared with the phased generator and the pipeline
# ---------------------------------------------------------------------------


def deferred_name_pairs(ordering: "OrderingResult") -> Set[NamePair]:
    """(child, parent) pairs whose weak foreign keys the resolver deferred."""
    if ordering.graph is None:
        return set()
    pairs: Set[NamePair] = set()
    for edge in ordering.deferred_edges:
        pairs.add(
            (
                fold_name(ordering.graph.node(edge.source).effective_name),
                fold_name(ordering.graph.node(edge.target).effective_name),
            )
        )
    return pairs


def _violation_pair(violation: OrderingViolation) -> NamePair:
    return fold_name(violation.child_table), fold_name(violation.parent_table)


def cycle_status(cycle: CycleDiagnostic, deferred: AbstractSet[NamePair]) -> str:
    if cycle.is_allowed:
        return STATUS_ALLOWED
    if cycle.violations and all(_violation_pair(v) in deferred for v in cycle.violations):
        return STATUS_AUTO_RESOLVED
    return STATUS_DISALLOWED


def unexplained_violations(
    validation: TopologicalValidationResult, deferred: AbstractSet[NamePair]
) -> List[OrderingViolation]:
    """ChildBeforeParent violations not covered by an allowed or auto-broken cycle."""
    explained: Set[NamePair] = set(deferred)
    for cycle in validation.cycles:
        if cycle.is_allowed:
            explained.update(_violation_pair(v) for v in cycle.violations)
    return [v for v in validation.child_before_parent if _violation_pair(v) not in explained]


def recommendation_lines(cycle: CycleDiagnostic, status: str) -> List[str]:
    nullable: List[str] = [fk.constraint_name for fk in cycle.weak_foreign_keys]
    lines: List[str] = []
    if not nullable:
        lines.append("All FKs are NOT NULL or CASCADE - circular reference cannot be auto-resolved")
        lines.append(
            "Action Required: Make at least one FK nullable or provide manual cycle ordering"
        )
    elif status == STATUS_DISALLOWED:
        lines.append("Action Required: Provide manual cycle ordering")
    else:
        lines.append(
            f"Cycle can be handled with phased loading (nullable FKs: {', '.join(nullable)})"
        )
        lines.append("Strategy: INSERT with NULL → INSERT dependents → UPDATE with FK values")
    if cycle.has_cascade:
        lines.append("WARNING: CASCADE delete detected - verify phased loading strategy!")
    return lines


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class SqlTemplateGenerator:
    """
    Stateless T-SQL renderer.

    Each ``render_*`` method returns a complete block of script text (or a
    list of lines for comment blocks that callers splice into headers).
    """

    def __init__(self, options: Optional[InsertGenerationOptions] = None) -> None:
        self._options: InsertGenerationOptions = options or InsertGenerationOptions()
        self._literals: SqlLiteralFormatter = SqlLiteralFormatter()
        logger.debug(
            "SqlTemplateGenerator initialised (batch_size=%d, static_seed_mode=%s).",
            self._options.batch_size,
            self._options.static_seed_mode,
        )

    @property
    def options(self) -> InsertGenerationOptions:
        return self._options

    @property
    def literals(self) -> SqlLiteralFormatter:
        return self._literals

    # ===================================================================
    # 1. Shared pieces
    # ===================================================================

    @staticmethod
    def target_name(definition: SeedTableDefinition, effective_name: Optional[str]) -> str:
        return (effective_name or "").strip() or definition.physical_name

    def table_banner(
        self, definition: SeedTableDefinition, effective_name: Optional[str] = None
    ) -> List[str]:
        target: str = self.target_name(definition, effective_name)
        lines: List[str] = [
            RULE,
            f"-- Module: {definition.module}",
            f"-- Entity: {definition.logical_name} ({definition.qualified_name})",
        ]
        if fold_name(target) != fold_name(definition.physical_name):
            lines.append(f"-- Target: {definition.schema_name}.{target}")
        lines.append(RULE)
        return lines

    def values_clause(
        self,
        rows: Sequence[Sequence[Any]],
        indent: str,
        null_indices: AbstractSet[int] = frozenset(),
    ) -> List[str]:
        lines: List[str] = [f"{indent}VALUES"]
        for i, row in enumerate(rows):
            separator: str = "," if i < len(rows) - 1 else ""
            lines.append(f"{indent}{_INDENT}({self._literals.format_row(row, null_indices)}){separator}")
        return lines

    @staticmethod
    def _column_names(definition: SeedTableDefinition) -> List[str]:
        return [quote_identifier(c.target_column_name) for c in definition.columns]

    @staticmethod
    def phase_banner(title: str) -> List[str]:
        return [RULE, f"-- {title}", RULE]

    # ===================================================================
    # 2. Static seed MERGE
    # ===================================================================

    def _drift_check(
        self,
        data: SeedTableData,
        rows: List[List[Any]],
        target: str,
        effective_name: Optional[str],
    ) -> List[str]:
        d: SeedTableDefinition = data.definition
        columns: List[str] = self._column_names(d)
        column_list: str = ", ".join(columns)
        message: str = _sql_string(
            f"Static entity seed data drift detected for {d.module}::{d.logical_name} "
            f"({d.schema_name}.{self.target_name(d, effective_name)})."
        )
        if not rows:
            return [
                f"IF EXISTS (SELECT 1 FROM {target})",
                "BEGIN",
                f"    THROW 50000, '{message}', 1;",
                "END;",
                "",
            ]
        source_projection: str = ", ".join(f"Source.{c}" for c in columns)
        existing_projection: str = ", ".join(f"Existing.{c}" for c in columns)
        values: List[str] = self.values_clause(rows, "        ")
        return [
            "IF EXISTS (",
            f"    SELECT {source_projection}",
            "    FROM",
            "    (",
            *values,
            f"    ) AS Source ({column_list})",
            "    EXCEPT",
            f"    SELECT {existing_projection}",
            f"    FROM {target} AS Existing",
            ")",
            "    OR EXISTS (",
            f"    SELECT {existing_projection}",
            f"    FROM {target} AS Existing",
            "    EXCEPT",
            f"    SELECT {source_projection}",
            "    FROM",
            "    (",
            *values,
            f"    ) AS Source ({column_list})",
            ")",
            "BEGIN",
            f"    THROW 50000, '{message}', 1;",
            "END;",
            "",
        ]

    def render_merge_block(
        self,
        data: SeedTableData,
        effective_name: Optional[str] = None,
        *,
        mode: Optional[StaticSeedMode] = None,
        null_indices: AbstractSet[int] = frozenset(),
        insert_only: bool = False,
    ) -> str:
        """
        One MERGE block for *data*.

        Args:
            data: Table and rows.
            effective_name: Emitted table name (naming overrides applied).
            mode: Static seed mode; defaults to the options' mode.
            null_indices: Column indices forced to NULL in the source rows
                (phase one of a phased load).
            insert_only: Omit the ``WHEN MATCHED`` clause.

        Raises:
            ValueError: If the table has no primary key.
        """
        d: SeedTableDefinition = data.definition
        seed_mode: StaticSeedMode = StaticSeedMode(mode or self._options.static_seed_mode)
        target: str = qualified_identifier(d.schema_name, self.target_name(d, effective_name))
        rows: List[List[Any]] = data.sorted_rows()
        keys: List[int] = d.primary_key_indices
        if not keys:
            raise ValueError(
                f"Static entity '{d.module}::{d.logical_name}' does not define a primary key."
            )

        lines: List[str] = self.table_banner(d, effective_name)
        if seed_mode == StaticSeedMode.VALIDATE_THEN_APPLY:
            lines.extend(self._drift_check(data, rows, target, effective_name))

        if not rows:
            lines.append("-- No data rows were returned for this entity; MERGE statement omitted.")
            lines.append("")
            return "\n".join(lines)

        columns: List[str] = self._column_names(d)
        if d.has_identity:
            lines.extend([f"SET IDENTITY_INSERT {target} ON;", "GO", ""])

        lines.append(f"MERGE INTO {target} AS Target")
        lines.append("USING")
        lines.append("(")
        lines.extend(self.values_clause(rows, _INDENT, null_indices))
        lines.append(f") AS Source ({', '.join(columns)})")
        lines.append(
            "    ON " + " AND ".join(f"Target.{columns[i]} = Source.{columns[i]}" for i in keys)
        )

        updatable: List[str] = [c for i, c in enumerate(columns) if i not in keys]
        if updatable and not insert_only:
            lines.append("WHEN MATCHED THEN UPDATE SET")
            for i, column in enumerate(updatable):
                separator: str = "," if i < len(updatable) - 1 else ""
                lines.append(f"    Target.{column} = Source.{column}{separator}")

        lines.append(f"WHEN NOT MATCHED THEN INSERT ({', '.join(columns)})")
        lines.append(f"    VALUES ({', '.join(f'Source.{c}' for c in columns)})")
        if seed_mode == StaticSeedMode.AUTHORITATIVE and not insert_only:
            lines.append("WHEN NOT MATCHED BY SOURCE THEN DELETE")
        lines[-1] += ";"
        lines.extend(["", "GO"])

        if d.has_identity:
            lines.extend(["", f"SET IDENTITY_INSERT {target} OFF;", "GO"])
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 3. Batched INSERT
    # ===================================================================

    def render_insert_batches(
        self,
        data: SeedTableData,
        effective_name: Optional[str] = None,
        *,
        null_indices: AbstractSet[int] = frozenset(),
    ) -> str:
        d: SeedTableDefinition = data.definition
        target: str = qualified_identifier(d.schema_name, self.target_name(d, effective_name))
        rows: List[List[Any]] = data.sorted_rows()
        lines: List[str] = self.table_banner(d, effective_name)
        lines.extend(["", "SET NOCOUNT ON;", ""])

        if not rows:
            lines.append("-- No data rows were returned for this entity; INSERT statement omitted.")
            lines.append("")
            return "\n".join(lines)

        if d.has_identity:
            lines.extend([f"SET IDENTITY_INSERT {target} ON;", "GO", ""])

        size: int = self._options.batch_size
        for batch_index, start in enumerate(range(0, len(rows), size)):
            batch: List[List[Any]] = rows[start : start + size]
            lines.append(
                f"PRINT 'Applying batch {batch_index + 1} for {_sql_string(target)} "
                f"({len(batch)} rows)';"
            )
            lines.append(f"INSERT INTO {target} WITH (TABLOCK)")
            lines.append(f"    ({', '.join(self._column_names(d))})")
            values: List[str] = self.values_clause(batch, "", null_indices)
            values[-1] += ";"
            lines.extend(values)
            lines.extend(["GO", ""])

        if d.has_identity:
            lines.extend([f"SET IDENTITY_INSERT {target} OFF;", "GO", ""])
        return "\n".join(lines)

    # ===================================================================
    # 4. Phase-two UPDATE
    # ===================================================================

    def render_update_statements(
        self,
        data: SeedTableData,
        effective_name: Optional[str],
        deferred_indices: AbstractSet[int],
    ) -> List[str]:
        """
        One UPDATE per row with at least one non-NULL deferred value.

        Rows are located by primary key, or by every non-deferred column
        when the table has none.
        """
        d: SeedTableDefinition = data.definition
        target: str = qualified_identifier(d.schema_name, self.target_name(d, effective_name))
        columns: List[str] = self._column_names(d)
        locator: List[int] = d.primary_key_indices or [
            i for i in range(len(columns)) if i not in deferred_indices
        ]
        deferred: List[int] = sorted(deferred_indices)

        statements: List[str] = []
        for row in data.sorted_rows():
            assignments: List[str] = [
                f"{columns[i]} = {self._literals.format_value(row[i])}"
                for i in deferred
                if i < len(row) and row[i] is not None
            ]
            if not assignments:
                continue
            predicates: List[str] = [
                f"{columns[i]} IS NULL"
                if row[i] is None
                else f"{columns[i]} = {self._literals.format_value(row[i])}"
                for i in locator
                if i < len(row)
            ]
            statements.append(
                "\n".join(
                    [
                        f"UPDATE {target}",
                        f"SET {', '.join(assignments)}",
                        f"WHERE {' AND '.join(predicates)};",
                    ]
                )
            )
        return statements

    def render_update_block(
        self, data: SeedTableData, effective_name: Optional[str], statements: List[str]
    ) -> str:
        d: SeedTableDefinition = data.definition
        lines: List[str] = [
            f"-- UPDATE nullable FKs: {d.schema_name}.{self.target_name(d, effective_name)}"
        ]
        for statement in statements:
            lines.append(statement)
        lines.extend(["GO", ""])
        return "\n".join(lines)

    # ===================================================================
    # 5. Cycle reports
    # ===================================================================

    def render_cycle_report(
        self,
        cycles: Sequence[CycleDiagnostic],
        deferred: AbstractSet[NamePair] = frozenset(),
    ) -> List[str]:
        if not cycles:
            return []
        statuses: List[str] = [cycle_status(c, deferred) for c in cycles]
        lines: List[str] = ["--"]
        if STATUS_DISALLOWED in statuses:
            lines.append("-- ⚠  CIRCULAR DEPENDENCY DETECTED")
        else:
            lines.append("-- ℹ  CIRCULAR DEPENDENCY RESOLVED")
        lines.append("--")

        for cycle, status in zip(cycles, statuses):
            lines.append(f"--   {status} Cycle: {cycle.cycle_path}")
            if cycle.allowance_reason:
                lines.append(f"--     {cycle.allowance_reason}")
            lines.append("--")
            lines.append("--   Tables Involved:")
            lines.extend(f"--     - {table}" for table in cycle.tables_in_cycle)
            lines.append("--")
            lines.append("--   Foreign Keys in Cycle:")
            for fk in cycle.foreign_keys:
                lines.append(
                    f"--     - {fk.constraint_name}: {fk.source_table}.{fk.source_column} → "
                    f"{fk.target_table}.{fk.target_column}"
                )
                lines.append(f"--       Nullable: {'YES ✓' if fk.is_nullable else 'NO'}")
                lines.append(f"--       Delete Rule: {fk.delete_rule}")
            lines.append("--")
            lines.append("--   Analysis:")
            lines.append(f"--     Weak edges (nullable, non-CASCADE): {len(cycle.weak_foreign_keys)}")
            lines.append(
                f"--     Strong edges (NOT NULL or CASCADE): {len(cycle.strong_foreign_keys)}"
            )
            lines.append("--")
            lines.append("--   Recommendation:")
            lines.extend(f"--     {line}" for line in recommendation_lines(cycle, status))
            lines.append("--")
        return lines

    def render_validation_warning(self, violations: Sequence[OrderingViolation]) -> List[str]:
        if not violations:
            return []
        lines: List[str] = [
            RULE,
            "-- !!! WARNING: TOPOLOGICAL ORDER VALIDATION FAILED !!!",
            f"-- {len(violations)} foreign key(s) load a child table before its parent:",
        ]
        lines.extend(
            f"--   - {v.child_table} → {v.parent_table} via {v.constraint_name} "
            f"(positions {v.child_position + 1} and {v.parent_position + 1})"
            for v in violations
        )
        lines.append("-- This script may fail with foreign-key violations when applied.")
        lines.append(RULE)
        return lines

    # ===================================================================
    # 6. Whole scripts
    # ===================================================================

    def _ordering_header(self, title: str, ordering: "OrderingResult") -> List[str]:
        return [
            RULE,
            f"-- {title}",
            f"-- Total Entities: {len(ordering.tables)}",
            "-- Ordering: "
            + (
                "Global topological order (FK-aware)"
                if ordering.topological_ordering_applied
                else "Alphabetical fallback"
            ),
            f"-- Mode: {ordering.mode.value}",
            f"-- Cycles Detected: {len(ordering.cycles)}",
        ]

    def render_static_seed_script(
        self,
        ordering: "OrderingResult",
        phased: Optional["PhasedScript"] = None,
        validation: Optional[TopologicalValidationResult] = None,
    ) -> str:
        lines: List[str] = self._ordering_header("Static Entity Seed Data", ordering)
        lines.append(f"-- Synchronization Mode: {StaticSeedMode(self._options.static_seed_mode).value}")
        lines.extend(self._report_lines(ordering, validation))
        lines.extend([RULE, ""])

        if phased is not None:
            lines.append(self._phased_body(phased))
        else:
            for node in ordering.tables:
                if node.data is not None:
                    lines.append(self.render_merge_block(node.data, node.effective_name))
        return "\n".join(lines).rstrip("\n") + "\n"

    def render_dynamic_insert_script(
        self,
        ordering: "OrderingResult",
        phased: Optional["PhasedScript"] = None,
        validation: Optional[TopologicalValidationResult] = None,
    ) -> str:
        lines: List[str] = self._ordering_header("Dynamic Entity Data", ordering)
        lines.append(f"-- Batch Size: {self._options.batch_size}")
        lines.extend(self._report_lines(ordering, validation))
        lines.extend([RULE, ""])

        if phased is not None:
            lines.append(self._phased_body(phased))
        else:
            for node in ordering.tables:
                if node.data is not None:
                    lines.append(self.render_insert_batches(node.data, node.effective_name))
        return "\n".join(lines).rstrip("\n") + "\n"

    def render_bootstrap_script(
        self,
        ordering: "OrderingResult",
        validation: TopologicalValidationResult,
        phased: "PhasedScript",
    ) -> str:
        total: int = len(phased.tables)
        lines: List[str] = self._ordering_header("Bootstrap Snapshot: All Entities (Static + Dynamic)", ordering)
        lines.append(
            f"-- Phased Loading: {'ENABLED' if phased.requires_phasing else 'NOT REQUIRED'}"
        )
        if phased.requires_phasing:
            lines.append("--")
            lines.append("-- Phase 1: MERGE with nullable FKs = NULL (mandatory-edge topological order)")
            lines.append("-- Phase 2: UPDATE to populate nullable FK values after all tables exist")
        lines.extend(self._report_lines(ordering, validation))
        lines.append("--")
        lines.append("-- USAGE: Apply ONCE on first deployment. Do not commit to source control.")
        lines.extend([RULE, ""])

        if phased.requires_phasing and self._options.emit_phase_banners:
            lines.extend(self.phase_banner(phased.phase_one_title))
            lines.append("")

        for i, (node, statement) in enumerate(zip(phased.tables, phased.phase_one)):
            rows: int = node.data.row_count if node.data is not None else 0
            lines.append(f"-- Entity: {node.logical_name} ({node.schema_name}.{node.physical_name})")
            lines.append(f"-- Module: {node.module}")
            lines.append(f"-- Topological Order: {i + 1} of {total}")
            lines.append("")
            lines.append(statement)
            lines.append(
                f"PRINT 'Bootstrap: Completed entity {i + 1}/{total}: "
                f"{_sql_string(node.schema_name)}.{_sql_string(node.effective_name)} ({rows} rows)';"
            )
            lines.extend(["GO", ""])

        if phased.phase_two:
            if self._options.emit_phase_banners:
                lines.extend(self.phase_banner(phased.phase_two_title))
                lines.append("")
            lines.extend(phased.phase_two)

        lines.append(RULE)
        lines.append(f"-- Bootstrap Snapshot Complete: {total} entities loaded")
        lines.append(
            f"-- Phased Loading: {'ENABLED' if phased.requires_phasing else 'NOT REQUIRED'}"
        )
        lines.append(RULE)
        return "\n".join(lines) + "\n"

    def _phased_body(self, phased: "PhasedScript") -> str:
        """
        Data blocks of a phased plan.

        Blocks always follow the Phase-1 order, which honours every
        mandatory foreign key; the engine order may not when a manual
        cycle ordering overrides one.  Banners and Phase 2 are only
        emitted when some deferred column carries a value.
        """
        if phased.requires_phasing:
            return phased.to_script(banners=self._options.emit_phase_banners)
        return "\n".join(phased.phase_one)

    def _report_lines(
        self,
        ordering: "OrderingResult",
        validation: Optional[TopologicalValidationResult],
    ) -> List[str]:
        lines: List[str] = []
        if validation is None:
            if ordering.cycle_detected:
                lines.append("--")
                lines.extend(f"-- {message}" for message in ordering.diagnostics)
            return lines
        deferred: Set[NamePair] = deferred_name_pairs(ordering)
        lines.extend(self.render_cycle_report(validation.cycles, deferred))
        if ordering.alphabetical_fallback_applied:
            lines.append("--   Note: Alphabetical fallback ordering applied - FK order not guaranteed")
        warning: List[str] = self.render_validation_warning(
            unexplained_violations(validation, deferred)
        )
        if warning:
            lines.append("--")
            lines.extend(warning)
        return lines


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RULE",
    "STATUS_ALLOWED",
    "STATUS_AUTO_RESOLVED",
    "STATUS_DISALLOWED",
    "quote_identifier",
    "qualified_identifier",
    "SqlLiteralFormatter",
    "SqlTemplateGenerator",
    "deferred_name_pairs",
    "cycle_status",
    "unexplained_violations",
    "recommendation_lines",
]

logger.debug("seedorder.templates loaded — %d public symbols.", len(__all__))
