# File: seedorder/generator.py
"""
SeedOrder - Script Generation Pipeline (Orchestrator)
======================================================

Connects every phase together:

    Project Input → Pre-flight Validation → Ordering → SQL Rendering → Export

Three independent consumers share one read-only project:

    1. **Static seeds**      MERGE blocks for static reference entities.
    2. **Dynamic inserts**   Batched INSERTs for regular entity data.
    3. **Bootstrap snapshot** One globally ordered script over both.

Each consumer runs its own ordering (its own graph, no shared state), so a
failure in one step is recorded in the ``GenerationReport`` and the other
steps still run.

Error handling strategy:
    - Pre-flight validation errors stop the pipeline before any rendering.
    - Cycle and phasing failures are isolated per step.
    - Export errors are recorded; each written file is atomic.
    - The final report gives a clear pass/fail verdict.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seedorder.builder import GraphBuildError
from seedorder.engine import OrderingResult, sort_by_foreign_keys
from seedorder.exporters import (
    BOOTSTRAP_SNAPSHOT_FILE,
    DYNAMIC_INSERTS_FILE,
    STATIC_SEEDS_FILE,
    ExportManifest,
    ExportResult,
    ScriptExporter,
)
from seedorder.graph import TableKey
from seedorder.models import ApplicationModel, SeedTableData
from seedorder.options import (
    CircularDependencyConfigError,
    CircularDependencyOptions,
    DependencySortOptions,
    InsertGenerationOptions,
    NamingOverrideOptions,
    StaticSeedMode,
    load_mapping_file,
)
from seedorder.phased import (
    PhasedInsertGenerator,
    PhasedLoadingError,
    PhasedScript,
    PhaseOneStatement,
)
from seedorder.templates import SqlTemplateGenerator
from seedorder.utils import Timer, count_lines
from seedorder.validators import (
    TopologicalValidationResult,
    ValidationResult,
    validate_inputs,
    validate_topological_order,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.generator")

STEP_STATIC: str = "Static Seeds"
STEP_DYNAMIC: str = "Dynamic Inserts"
STEP_BOOTSTRAP: str = "Bootstrap Snapshot"


class CycleResolutionError(RuntimeError):
    """A step needs ordered output but a cycle could not be resolved."""

    def __init__(self, message: str, cycles: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.cycles: List[str] = list(cycles)


# ---------------------------------------------------------------------------
# Project document
# ---------------------------------------------------------------------------


class SeedProject(BaseModel):
    """Everything one pipeline run needs, as loaded from a project file."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="forbid")

    name: str = Field(default="seedorder-project")
    model: ApplicationModel = Field(default_factory=ApplicationModel)
    static_tables: List[SeedTableData] = Field(default_factory=list, alias="staticTables")
    dynamic_tables: List[SeedTableData] = Field(default_factory=list, alias="dynamicTables")
    naming_overrides: NamingOverrideOptions = Field(
        default_factory=NamingOverrideOptions, alias="namingOverrides"
    )
    circular_dependencies: CircularDependencyOptions = Field(
        default_factory=CircularDependencyOptions, alias="circularDependencies"
    )
    sort_options: DependencySortOptions = Field(
        default_factory=DependencySortOptions, alias="sortOptions"
    )
    insert_options: InsertGenerationOptions = Field(
        default_factory=InsertGenerationOptions, alias="insertOptions"
    )

    @property
    def table_count(self) -> int:
        return len(self.static_tables) + len(self.dynamic_tables)

    def with_overrides(
        self,
        *,
        circular_dependencies: Optional[CircularDependencyOptions] = None,
        naming_overrides: Optional[NamingOverrideOptions] = None,
        defer_junction_tables: Optional[bool] = None,
        strict_cycles: Optional[bool] = None,
        batch_size: Optional[int] = None,
        static_seed_mode: Optional[StaticSeedMode] = None,
    ) -> "SeedProject":
        """Copy of this project with command-line overrides applied."""
        circular: CircularDependencyOptions = circular_dependencies or self.circular_dependencies
        if strict_cycles is not None:
            circular = circular.model_copy(update={"strict_mode": strict_cycles})

        sort: DependencySortOptions = self.sort_options
        if defer_junction_tables is not None:
            sort = sort.model_copy(update={"defer_junction_tables": defer_junction_tables})

        insert_data: Dict[str, Any] = self.insert_options.model_dump()
        if batch_size is not None:
            insert_data["batch_size"] = batch_size
        if static_seed_mode is not None:
            insert_data["static_seed_mode"] = StaticSeedMode(static_seed_mode)

        return self.model_copy(
            update={
                "circular_dependencies": circular,
                "naming_overrides": naming_overrides or self.naming_overrides,
                "sort_options": sort,
                "insert_options": InsertGenerationOptions.model_validate(insert_data),
            }
        )


def parse_project_document(raw: Dict[str, Any]) -> SeedProject:
    """
    Validate a raw mapping (from JSON/YAML) into a ``SeedProject``.

    Raises:
        ValueError: If validation fails.
    """
    try:
        project: SeedProject = SeedProject.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Project validation failed: {exc}") from exc
    logger.info(
        "Parsed project '%s': %d entities, %d static / %d dynamic table(s).",
        project.name,
        project.model.entity_count,
        len(project.static_tables),
        len(project.dynamic_tables),
    )
    return project


def load_project_file(path: Path) -> SeedProject:
    """Load a ``SeedProject`` from a JSON/YAML file."""
    return parse_project_document(load_mapping_file(path))


def load_model_file(path: Path) -> ApplicationModel:
    """Load an ``ApplicationModel``; a top-level ``model`` key is unwrapped."""
    raw: Dict[str, Any] = load_mapping_file(path)
    data: Any = raw.get("model", raw)
    try:
        return ApplicationModel.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid application model in {path}: {exc}") from exc


def combine_tables(
    static_tables: Sequence[SeedTableData], dynamic_tables: Sequence[SeedTableData]
) -> List[SeedTableData]:
    """
    Static and dynamic tables as one list.  A table present in both keeps
    the static definition and the de-duplicated union of rows.
    """
    combined: Dict[TableKey, SeedTableData] = {}
    for data in list(static_tables) + list(dynamic_tables):
        key: TableKey = TableKey.of(data.definition.schema_name, data.definition.physical_name)
        existing: Optional[SeedTableData] = combined.get(key)
        combined[key] = data if existing is None else existing.merged_with(data)
    return list(combined.values())


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Everything one pipeline run produced, plus a pass/fail verdict."""

    success: bool = False
    project_name: str = ""
    output_directory: str = ""
    dry_run: bool = False

    total_tables: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    orderings: Dict[str, OrderingResult] = field(default_factory=dict)
    validations: Dict[str, TopologicalValidationResult] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'=' * 60}")
        lines.append("  SeedOrder — Generation Report")
        lines.append(f"{'=' * 60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Output:           {self.output_directory or '-'}")
        lines.append(f"  Tables:           {self.total_tables}")
        lines.append(f"  Scripts:          {len(self.scripts)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─' * 60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} {step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        for title, items, icon in (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
        ):
            if items:
                lines.append(f"{'─' * 60}")
                lines.append(f"  {title} ({len(items)}):")
                lines.extend(f"    {icon} {item}" for item in items)

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# SeedScriptGenerator — Master orchestrator
# ---------------------------------------------------------------------------

StepOutcome = Tuple[Optional[str], str]  # (script or None, detail)


class SeedScriptGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = SeedScriptGenerator()
        report = generator.generate_from_file(Path("project.yaml"), Path("./out"))
        print(report.summary())

    The generator is reusable: create once, call ``generate()`` many times.
    """

    def __init__(self, *, fail_on_warnings: bool = False) -> None:
        self._fail_on_warnings: bool = fail_on_warnings

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        project_path: Path,
        output_dir: Optional[Path] = None,
        *,
        dry_run: bool = False,
    ) -> GenerationReport:
        """Load → validate → order → render → export."""
        report: GenerationReport = GenerationReport(dry_run=dry_run)
        with Timer("load_project") as t_load:
            try:
                project: SeedProject = load_project_file(project_path)
            except (FileNotFoundError, ValueError) as exc:
                project = None  # type: ignore[assignment]
                report.generation_errors.append(str(exc))
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Load Project",
                success=project is not None,
                elapsed_seconds=t_load.elapsed,
                detail=f"from {project_path.name}",
            )
        )
        if project is None:
            return self._finalise_report(report, t_load.elapsed)
        return self._run_pipeline(project, output_dir, report, dry_run=dry_run)

    def generate(
        self,
        project: SeedProject,
        output_dir: Optional[Path] = None,
        *,
        dry_run: bool = False,
    ) -> GenerationReport:
        """
        Full pipeline from a parsed project.  With no *output_dir* the
        scripts are only returned in ``report.scripts``.
        """
        return self._run_pipeline(project, output_dir, GenerationReport(dry_run=dry_run), dry_run=dry_run)

    def validate(self, project: SeedProject) -> GenerationReport:
        """Pre-flight checks plus ordering and validation per step, no rendering."""
        report: GenerationReport = GenerationReport(project_name=project.name)
        start: float = time.perf_counter()
        if self._step_validate(project, report):
            for name, tables in self._step_tables(project):
                self._run_step(name, report, lambda t=tables, n=name: self._plan(project, n, t, report))
        return self._finalise_report(report, time.perf_counter() - start)

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        project: SeedProject,
        output_dir: Optional[Path],
        report: GenerationReport,
        *,
        dry_run: bool,
    ) -> GenerationReport:
        start: float = time.perf_counter()
        report.project_name = project.name
        report.total_tables = project.table_count
        if output_dir is not None:
            report.output_directory = str(output_dir.resolve())

        if not self._step_validate(project, report):
            return self._finalise_report(report, time.perf_counter() - start)

        renderers: Dict[str, Callable[[SeedProject, GenerationReport], StepOutcome]] = {
            STEP_STATIC: self._step_static_seeds,
            STEP_DYNAMIC: self._step_dynamic_inserts,
            STEP_BOOTSTRAP: self._step_bootstrap,
        }
        files: Dict[str, str] = {
            STEP_STATIC: STATIC_SEEDS_FILE,
            STEP_DYNAMIC: DYNAMIC_INSERTS_FILE,
            STEP_BOOTSTRAP: BOOTSTRAP_SNAPSHOT_FILE,
        }
        for name, render in renderers.items():
            script: Optional[str] = self._run_step(
                name, report, lambda r=render: r(project, report)
            )
            if script is not None:
                report.scripts[files[name]] = script

        report.total_lines = sum(count_lines(s) for s in report.scripts.values())

        if output_dir is not None and report.scripts and not report.generation_errors:
            self._step_export(project, output_dir, report, dry_run=dry_run)
        return self._finalise_report(report, time.perf_counter() - start)

    def _run_step(
        self,
        name: str,
        report: GenerationReport,
        step: Callable[[], StepOutcome],
    ) -> Optional[str]:
        """Run one consumer step, isolating its failure."""
        error: Optional[str] = None
        script: Optional[str] = None
        detail: str = ""
        with Timer(name) as t:
            try:
                script, detail = step()
            except (
                CycleResolutionError,
                PhasedLoadingError,
                CircularDependencyConfigError,
                GraphBuildError,
                ValueError,
            ) as exc:
                error = f"{name}: {type(exc).__name__}: {exc}"

        if error is not None:
            report.generation_errors.append(error)
            logger.error(error)
        report.step_metrics.append(
            GenerationStepMetric(
                step_name=name,
                success=error is None,
                elapsed_seconds=t.elapsed,
                detail=error or detail,
            )
        )
        return script

    @staticmethod
    def _step_tables(project: SeedProject) -> List[Tuple[str, List[SeedTableData]]]:
        return [
            (STEP_STATIC, list(project.static_tables)),
            (STEP_DYNAMIC, list(project.dynamic_tables)),
            (STEP_BOOTSTRAP, combine_tables(project.static_tables, project.dynamic_tables)),
        ]

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(self, project: SeedProject, report: GenerationReport) -> bool:
        with Timer("validation") as t:
            result: ValidationResult = validate_inputs(
                project.model,
                project.static_tables,
                project.dynamic_tables,
                project.naming_overrides,
                project.circular_dependencies,
            )
        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        passed: bool = result.is_valid and not (self._fail_on_warnings and result.warnings)
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Validate Inputs",
                success=passed,
                elapsed_seconds=t.elapsed,
                detail=f"{result.error_count} error(s), {result.warning_count} warning(s)",
            )
        )
        for warning in result.warnings:
            logger.warning("  ⚠ %s", warning)
        return passed

    # -----------------------------------------------------------------
    # Ordering shared by the consumer steps
    # -----------------------------------------------------------------

    def _order(
        self, project: SeedProject, step: str, tables: Sequence[SeedTableData]
    ) -> OrderingResult:
        """
        Run the engine and apply the pipeline's cycle policy.

        Raises:
            CircularDependencyConfigError: A configured cycle matches no detected cycle.
            CycleResolutionError: Strict mode with a cycle, or a cycle fell back
                to alphabetical order.
        """
        circular: CircularDependencyOptions = project.circular_dependencies
        ordering: OrderingResult = sort_by_foreign_keys(
            tables,
            project.model,
            project.naming_overrides,
            project.sort_options,
            circular,
        )
        if ordering.configuration_errors:
            raise CircularDependencyConfigError("; ".join(ordering.configuration_errors))

        paths: List[str] = [c.path for c in ordering.cycles]
        if circular.strict_mode and paths:
            raise CycleResolutionError(
                f"Strict mode forbids circular dependencies; {len(paths)} cycle(s) found: "
                f"{'; '.join(paths)}.",
                paths,
            )
        if ordering.alphabetical_fallback_applied:
            raise CycleResolutionError(
                f"{step}: circular dependencies could not be resolved. "
                + " ".join(ordering.diagnostics),
                [c.path for c in ordering.unresolved_components if not c.is_self_loop],
            )
        return ordering

    def _validate_order(
        self, project: SeedProject, ordering: OrderingResult
    ) -> TopologicalValidationResult:
        return validate_topological_order(
            ordering.tables,
            project.model,
            project.naming_overrides,
            project.circular_dependencies,
        )

    def _plan(
        self,
        project: SeedProject,
        step: str,
        tables: Sequence[SeedTableData],
        report: GenerationReport,
    ) -> StepOutcome:
        ordering: OrderingResult = self._order(project, step, tables)
        validation: TopologicalValidationResult = self._validate_order(project, ordering)
        report.orderings[step] = ordering
        report.validations[step] = validation
        return None, f"{len(ordering.tables)} table(s), mode={ordering.mode.value}"

    # -----------------------------------------------------------------
    # Pipeline steps: consumers
    # -----------------------------------------------------------------

    def _step_static_seeds(self, project: SeedProject, report: GenerationReport) -> StepOutcome:
        if not project.static_tables:
            return None, "no static tables"
        ordering: OrderingResult = self._order(project, STEP_STATIC, project.static_tables)
        validation: TopologicalValidationResult = self._validate_order(project, ordering)
        report.orderings[STEP_STATIC] = ordering
        report.validations[STEP_STATIC] = validation

        templates: SqlTemplateGenerator = SqlTemplateGenerator(project.insert_options)
        phased: Optional[PhasedScript] = None
        if ordering.cycles:
            phased = PhasedInsertGenerator(
                templates, statement_kind=PhaseOneStatement.MERGE
            ).generate_from_ordering(ordering)
        script: str = templates.render_static_seed_script(ordering, phased, validation)
        return script, f"{len(ordering.tables)} table(s), mode={ordering.mode.value}"

    def _step_dynamic_inserts(self, project: SeedProject, report: GenerationReport) -> StepOutcome:
        if not project.dynamic_tables:
            return None, "no dynamic tables"
        ordering: OrderingResult = self._order(project, STEP_DYNAMIC, project.dynamic_tables)
        validation: TopologicalValidationResult = self._validate_order(project, ordering)
        report.orderings[STEP_DYNAMIC] = ordering
        report.validations[STEP_DYNAMIC] = validation

        templates: SqlTemplateGenerator = SqlTemplateGenerator(project.insert_options)
        phased: Optional[PhasedScript] = None
        if ordering.cycles:
            phased = PhasedInsertGenerator(
                templates, statement_kind=PhaseOneStatement.INSERT
            ).generate_from_ordering(ordering)
        script: str = templates.render_dynamic_insert_script(ordering, phased, validation)
        phasing: str = "phased" if phased is not None and phased.requires_phasing else "single pass"
        return script, f"{len(ordering.tables)} table(s), {phasing}"

    def _step_bootstrap(self, project: SeedProject, report: GenerationReport) -> StepOutcome:
        tables: List[SeedTableData] = combine_tables(project.static_tables, project.dynamic_tables)
        if not tables:
            return None, "no tables"
        ordering: OrderingResult = self._order(project, STEP_BOOTSTRAP, tables)
        validation: TopologicalValidationResult = self._validate_order(project, ordering)
        report.orderings[STEP_BOOTSTRAP] = ordering
        report.validations[STEP_BOOTSTRAP] = validation

        templates: SqlTemplateGenerator = SqlTemplateGenerator(project.insert_options)
        phased: PhasedScript = PhasedInsertGenerator(
            templates,
            statement_kind=PhaseOneStatement.MERGE,
            merge_mode=StaticSeedMode.NON_DESTRUCTIVE,
        ).generate_from_ordering(ordering)
        script: str = templates.render_bootstrap_script(ordering, validation, phased)
        return script, (
            f"{len(phased.tables)} table(s), phased loading "
            f"{'ENABLED' if phased.requires_phasing else 'NOT REQUIRED'}"
        )

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        project: SeedProject,
        output_dir: Path,
        report: GenerationReport,
        *,
        dry_run: bool,
    ) -> None:
        with Timer("export") as t:
            exporter: ScriptExporter = ScriptExporter(
                output_dir, project_name=project.name, dry_run=dry_run
            )
            result: ExportResult = exporter.export(report.scripts)

        report.export_errors.extend(result.errors)
        report.manifest = result.manifest
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Export Scripts" + (" (dry run)" if dry_run else ""),
                success=result.success,
                elapsed_seconds=t.elapsed,
                detail=f"{result.manifest.total_files} file(s), {result.manifest.total_bytes:,} bytes",
            )
        )

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        failed_validation: bool = any(
            not m.success for m in report.step_metrics if m.step_name == "Validate Inputs"
        )
        report.success = not (
            failed_validation
            or report.validation_errors
            or report.generation_errors
            or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "STEP_STATIC",
    "STEP_DYNAMIC",
    "STEP_BOOTSTRAP",
    "CycleResolutionError",
    "SeedProject",
    "parse_project_document",
    "load_project_file",
    "load_model_file",
    "combine_tables",
    "GenerationStepMetric",
    "GenerationReport",
    "SeedScriptGenerator",
]

logger.debug("seedorder.generator loaded — %d public symbols.", len(__all__))
