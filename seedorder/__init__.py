# File: seedorder/__init__.py
"""
SeedOrder - Dependency-Ordered SQL Seed Generator
==================================================

Orders database tables so that every foreign-key parent is loaded before
its children, resolves circular dependencies (manual ordering, automatic
weak-edge breaking, alphabetical fallback), independently validates the
result and renders SQL seed, insert and bootstrap scripts.  When a cycle
can only be loaded by deferring nullable foreign keys, the scripts are
emitted in two phases: INSERT/MERGE with the FK set to NULL, then UPDATE.

Architecture overview::

    ┌──────────────┐     ┌────────────────────┐     ┌────────────────────┐
    │  CLI / Entry │────▶│ SeedScriptGenerator│────▶│ SqlTemplateGenerator│
    │   (cli.py)   │     │   (generator.py)   │     │   (templates.py)   │
    └──────────────┘     └─────────┬──────────┘     └────────────────────┘
                                   │
             ┌──────────────┬──────┴───────┬──────────────┐
             ▼              ▼              ▼              ▼
      ┌────────────┐ ┌────────────┐ ┌────────────┐ ┌────────────┐
      │   engine   │ │ validators │ │   phased   │ │ exporters  │
      └─────┬──────┘ └────────────┘ └────────────┘ └────────────┘
            │
      builder → sorter → cycles → resolver

Usage::

    from seedorder import sort_by_foreign_keys
    result = sort_by_foreign_keys(tables, model)
    print(result.ordered_names)

    # From the command line
    python -m seedorder --project project.yaml --output ./sql
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from seedorder.builder import GraphBuildError, build_dependency_graph
from seedorder.cycles import (
    CycleResolution,
    StronglyConnectedComponent,
    find_strongly_connected_components,
)
from seedorder.engine import OrderingResult, sort_by_foreign_keys
from seedorder.exporters import ExportManifest, ExportResult, ScriptExporter
from seedorder.generator import (
    CycleResolutionError,
    GenerationReport,
    SeedProject,
    SeedScriptGenerator,
    load_model_file,
    load_project_file,
)
from seedorder.graph import DependencyGraph, Edge, TableKey, TableNode
from seedorder.models import (
    ApplicationModel,
    AttributeModel,
    ConstraintColumn,
    DeleteRule,
    EntityModel,
    ModuleModel,
    RelationshipConstraint,
    RelationshipModel,
    SeedColumn,
    SeedTableData,
    SeedTableDefinition,
)
from seedorder.options import (
    AllowedCycle,
    CircularDependencyConfigError,
    CircularDependencyOptions,
    DependencySortOptions,
    InsertGenerationOptions,
    NamingOverrideOptions,
    StaticSeedMode,
    TableOrdering,
    load_circular_dependency_config,
    load_naming_overrides,
)
from seedorder.phased import PhasedInsertGenerator, PhasedLoadingError, PhasedScript
from seedorder.resolver import resolve_cycles
from seedorder.sorter import OrderingMode, topological_sort
from seedorder.templates import SqlTemplateGenerator
from seedorder.utils import Timer
from seedorder.validators import (
    TopologicalValidationResult,
    ValidationResult,
    validate_inputs,
    validate_topological_order,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Engine
    "build_dependency_graph",
    "topological_sort",
    "find_strongly_connected_components",
    "resolve_cycles",
    "sort_by_foreign_keys",
    "OrderingResult",
    "OrderingMode",
    "CycleResolution",
    "StronglyConnectedComponent",
    "DependencyGraph",
    "TableKey",
    "TableNode",
    "Edge",
    # Validation
    "validate_topological_order",
    "validate_inputs",
    "TopologicalValidationResult",
    "ValidationResult",
    # Script generation
    "PhasedInsertGenerator",
    "PhasedScript",
    "SqlTemplateGenerator",
    "SeedScriptGenerator",
    "GenerationReport",
    "SeedProject",
    "ScriptExporter",
    "ExportManifest",
    "ExportResult",
    "load_project_file",
    "load_model_file",
    # Models
    "ApplicationModel",
    "ModuleModel",
    "EntityModel",
    "AttributeModel",
    "RelationshipModel",
    "RelationshipConstraint",
    "ConstraintColumn",
    "DeleteRule",
    "SeedColumn",
    "SeedTableDefinition",
    "SeedTableData",
    # Options
    "NamingOverrideOptions",
    "CircularDependencyOptions",
    "AllowedCycle",
    "TableOrdering",
    "DependencySortOptions",
    "InsertGenerationOptions",
    "StaticSeedMode",
    "load_circular_dependency_config",
    "load_naming_overrides",
    # Errors
    "GraphBuildError",
    "CircularDependencyConfigError",
    "PhasedLoadingError",
    "CycleResolutionError",
    # Utilities
    "Timer",
]
