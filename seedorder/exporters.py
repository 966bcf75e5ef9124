# File: seedorder/exporters.py
"""
SeedOrder - Script Exporter
============================
Writes generated SQL scripts to an output directory.

Responsible for:
    1. Writing each script atomically (write-to-temp then rename).
    2. Producing ``manifest.json`` with sha256, line and byte counts.
    3. Dry runs that compute the manifest without touching the disk.

A failed write is recorded and the remaining scripts are still written;
each individual file is atomic, so nothing is ever half-written.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from seedorder.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.exporters")

STATIC_SEEDS_FILE: str = "static_seeds.sql"
DYNAMIC_INSERTS_FILE: str = "dynamic_inserts.sql"
BOOTSTRAP_SNAPSHOT_FILE: str = "bootstrap_snapshot.sql"
MANIFEST_FILE: str = "manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported script."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """All exported scripts, serialisable to JSON."""

    project_name: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    dry_run: bool = False
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "dry_run": self.dry_run,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class ScriptExporter:
    """
    Write generated scripts to ``output_dir``.

    Usage::

        exporter = ScriptExporter(Path("./out"), project_name="crm")
        result = exporter.export({"static_seeds.sql": sql})
        print(result.manifest.to_json())

    Not thread-safe: use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        project_name: str = "",
        dry_run: bool = False,
        write_manifest: bool = True,
    ) -> None:
        self._output_dir: Path = output_dir.resolve()
        self._project_name: str = project_name
        self._dry_run: bool = dry_run
        self._write_manifest: bool = write_manifest
        self._errors: List[str] = []
        self._records: List[FileRecord] = []

    def export(self, scripts: Dict[str, str]) -> ExportResult:
        """
        Write every ``relative_path → content`` entry, then the manifest.

        Scripts are written in sorted path order so the manifest is stable.
        """
        with Timer("export") as timer:
            if not self._dry_run:
                try:
                    ensure_directory(self._output_dir)
                except OSError as exc:
                    self._errors.append(f"Failed to create {self._output_dir}: {exc}")
                    logger.error("Failed to create output directory %s: %s", self._output_dir, exc)

            if not self._errors:
                for rel_path in sorted(scripts):
                    self._export_one(rel_path, scripts[rel_path])

            manifest: ExportManifest = self._build_manifest()
            if self._write_manifest and not self._dry_run and not self._errors:
                self._export_one(MANIFEST_FILE, manifest.to_json() + "\n", record=False)

        result: ExportResult = ExportResult(
            success=not self._errors,
            manifest=manifest,
            errors=tuple(self._errors),
            elapsed_seconds=timer.elapsed,
        )
        if result.success:
            logger.info(
                "Export %s: %d script(s), %d bytes%s.",
                "planned" if self._dry_run else "complete",
                manifest.total_files,
                manifest.total_bytes,
                " (dry run)" if self._dry_run else "",
            )
        else:
            logger.error("Export finished with %d error(s).", len(self._errors))
        return result

    def _export_one(self, rel_path: str, content: str, *, record: bool = True) -> None:
        target: Path = self._output_dir / rel_path
        if not self._dry_run:
            try:
                write_file(target, content, atomic=True)
            except OSError as exc:
                message: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                self._errors.append(message)
                logger.error(message)
                return
        if record:
            self._records.append(
                FileRecord(
                    relative_path=rel_path,
                    absolute_path=str(target),
                    size_bytes=len(content.encode("utf-8")),
                    line_count=count_lines(content),
                    sha256=sha256_hex(content),
                )
            )
            logger.debug("%s %s.", "Planned" if self._dry_run else "Wrote", rel_path)

    def _build_manifest(self) -> ExportManifest:
        import seedorder

        return ExportManifest(
            project_name=self._project_name,
            generator_version=seedorder.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            dry_run=self._dry_run,
            total_files=len(self._records),
            total_bytes=sum(r.size_bytes for r in self._records),
            total_lines=sum(r.line_count for r in self._records),
            files=list(self._records),
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "STATIC_SEEDS_FILE",
    "DYNAMIC_INSERTS_FILE",
    "BOOTSTRAP_SNAPSHOT_FILE",
    "MANIFEST_FILE",
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "ScriptExporter",
]

logger.debug("seedorder.exporters loaded — %d public symbols.", len(__all__))
