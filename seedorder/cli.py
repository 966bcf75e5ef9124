# File: seedorder/cli.py
"""
SeedOrder - Command-Line Interface
===================================

Thin ``argparse`` front end over ``SeedScriptGenerator``.

Usage examples::

    # Generate all three scripts
    python -m seedorder --project project.yaml --output ./sql

    # Separate circular-dependency and naming files, verbose
    seedorder -p project.yaml -o ./sql --circular-config cycles.json \\
        --naming-overrides names.yaml -v

    # Show the computed orders and validation report only
    seedorder -p project.yaml --validate-only

Exit codes:
    0 - success
    1 - validation error
    2 - generation error (unresolvable cycles, phased loading failures)
    3 - export error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from seedorder.generator import (
    GenerationReport,
    SeedProject,
    SeedScriptGenerator,
    load_project_file,
)
from seedorder.options import (
    CircularDependencyOptions,
    NamingOverrideOptions,
    StaticSeedMode,
    load_circular_dependency_config,
    load_naming_overrides,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``seedorder`` logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S"
        )
    )

    root_logger: logging.Logger = logging.getLogger("seedorder")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _positive_int(text: str) -> int:
    try:
        value: int = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"'{text}' is not an integer") from exc
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return value


def _build_parser() -> argparse.ArgumentParser:
    from seedorder import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="seedorder",
        description=(
            "SeedOrder - dependency-ordered SQL seed and insert script generator.\n\n"
            "Orders tables so every foreign-key parent loads before its children, "
            "resolves circular dependencies and emits phased scripts when needed."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -p project.yaml -o ./sql\n"
            "  %(prog)s -p project.yaml -o ./sql --circular-config cycles.json -v\n"
            "  %(prog)s -p project.yaml --validate-only\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"SeedOrder v{__version__}")

    parser.add_argument(
        "-p", "--project",
        type=str,
        required=True,
        metavar="FILE",
        help="Project file (JSON or YAML) with model, tables and options.",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory for the SQL scripts. Required unless --validate-only is set.",
    )

    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Print the computed orders and validation report; write nothing.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--circular-config",
        type=str,
        default=None,
        metavar="FILE",
        help="Circular-dependency configuration file; replaces the project's section.",
    )
    config_group.add_argument(
        "--naming-overrides",
        type=str,
        default=None,
        metavar="FILE",
        help="Naming overrides file; replaces the project's section.",
    )
    config_group.add_argument(
        "--defer-junction-tables",
        action="store_true",
        default=None,
        help="Place junction tables after other ready tables.",
    )
    config_group.add_argument(
        "--strict-cycles",
        action="store_true",
        default=None,
        help="Treat every circular dependency as an error.",
    )
    config_group.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Rows per INSERT statement (default 1000).",
    )
    config_group.add_argument(
        "--static-seed-mode",
        type=str,
        default=None,
        choices=[m.value for m in StaticSeedMode],
        help="How static seed MERGE blocks treat existing rows.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except the report.",
    )
    return parser


# ---------------------------------------------------------------------------
# Project loading with overrides
# ---------------------------------------------------------------------------


def _load_project(args: argparse.Namespace) -> Optional[SeedProject]:
    """Load the project and apply command-line overrides; ``None`` on input errors."""
    try:
        project: SeedProject = load_project_file(Path(args.project).resolve())
        circular: Optional[CircularDependencyOptions] = None
        if args.circular_config is not None:
            circular = load_circular_dependency_config(Path(args.circular_config).resolve())
        naming: Optional[NamingOverrideOptions] = None
        if args.naming_overrides is not None:
            naming = load_naming_overrides(Path(args.naming_overrides).resolve())
        return project.with_overrides(
            circular_dependencies=circular,
            naming_overrides=naming,
            defer_junction_tables=args.defer_junction_tables,
            strict_cycles=args.strict_cycles,
            batch_size=args.batch_size,
            static_seed_mode=args.static_seed_mode,
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load input: %s", exc)
        return None


def _exit_code(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(project: SeedProject) -> int:
    report: GenerationReport = SeedScriptGenerator().validate(project)

    print(f"\n{'=' * 60}")
    print("  SeedOrder Ordering Report")
    print(f"{'=' * 60}")
    print(f"  Project:  {project.name}")
    print(f"  Tables:   {project.table_count}")
    print(f"  Status:   {'OK' if report.success else 'FAILED'}")

    for step, ordering in report.orderings.items():
        print(f"\n  {step} ({ordering.mode.value}):")
        for position, name in enumerate(ordering.ordered_names, start=1):
            print(f"    {position:>3d}. {name}")
        for line in ordering.diagnostics:
            print(f"    ⚠ {line}")
        validation = report.validations.get(step)
        if validation is not None:
            print("")
            for line in validation.format_report().splitlines():
                print(f"    {line}")

    for title, items, icon in (
        ("Errors", report.validation_errors + report.generation_errors, "✗"),
        ("Warnings", report.validation_warnings, "⚠"),
    ):
        if items:
            print(f"\n  {title} ({len(items)}):")
            for item in items:
                print(f"    {icon} {item}")

    print(f"{'=' * 60}\n")
    return _exit_code(report)


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(project: SeedProject, output_dir: Path, *, dry_run: bool) -> int:
    if dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")
    report: GenerationReport = SeedScriptGenerator().generate(
        project, output_dir, dry_run=dry_run
    )
    print(report.summary())
    return _exit_code(report)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    project_path: Path = Path(args.project).resolve()
    if not project_path.is_file():
        logger.error("Project file not found: %s", project_path)
        sys.exit(EXIT_INPUT_ERROR)

    if not args.validate_only and args.output is None:
        logger.error("Output directory is required for generation. Use -o/--output or --validate-only.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    project: Optional[SeedProject] = _load_project(args)
    if project is None:
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(project))

    output_dir: Path = Path(args.output).resolve()
    logger.info("Project: %s", project_path)
    logger.info("Output:  %s", output_dir)

    exit_code: int = _run_generation(project, output_dir, dry_run=args.dry_run)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("seedorder.cli loaded.")
