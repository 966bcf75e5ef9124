"""
tests/test_cli.py
Tests for the seedorder command-line interface.

Every invocation goes through ``cli_main(argv)`` and is expected to end
with ``SystemExit`` carrying one of the documented exit codes.
"""

from __future__ import annotations

import pytest

from seedorder.cli import (
    EXIT_EXPORT_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from seedorder.exporters import BOOTSTRAP_SNAPSHOT_FILE, MANIFEST_FILE, STATIC_SEEDS_FILE


def _run(argv) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli_main([str(a) for a in argv])
    return excinfo.value.code


# ===========================================================================
# Argument handling
# ===========================================================================


class TestArguments:
    def test_version(self, capsys):
        assert _run(["--version"]) == 0
        assert "SeedOrder v" in capsys.readouterr().out

    def test_missing_project_file(self, tmp_path):
        assert _run(["-p", tmp_path / "absent.yaml", "-o", tmp_path]) == EXIT_INPUT_ERROR

    def test_output_required_without_validate_only(self, project_yaml_path):
        assert _run(["-p", project_yaml_path]) == EXIT_INPUT_ERROR

    def test_unparseable_project(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed\n", encoding="utf-8")
        assert _run(["-p", path, "--validate-only"]) == EXIT_INPUT_ERROR

    def test_batch_size_must_be_positive(self, project_yaml_path, tmp_path, capsys):
        assert _run(["-p", project_yaml_path, "-o", tmp_path, "--batch-size", "0"]) == 2
        assert "must be greater than 0" in capsys.readouterr().err


# ===========================================================================
# Modes
# ===========================================================================


class TestModes:
    def test_validate_only(self, project_yaml_path, tmp_path, capsys):
        assert _run(["-p", project_yaml_path, "--validate-only"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "SeedOrder Ordering Report" in out
        assert "Status:   OK" in out
        assert "Bootstrap Snapshot (Topological):" in out
        assert "  1. Country" in out
        assert list(tmp_path.glob("*.sql")) == []

    def test_validate_only_reports_failure_status(self, project_yaml_path, capsys):
        argv = ["-p", project_yaml_path, "--validate-only", "--strict-cycles"]
        assert _run(argv) == EXIT_GENERATION_ERROR
        out = capsys.readouterr().out
        assert "Status:   FAILED" in out
        assert "Status:   OK" not in out

    def test_generation_writes_scripts(self, project_yaml_path, tmp_path, capsys):
        out_dir = tmp_path / "sql"
        assert _run(["-p", project_yaml_path, "-o", out_dir]) == EXIT_SUCCESS
        assert (out_dir / STATIC_SEEDS_FILE).exists()
        assert (out_dir / BOOTSTRAP_SNAPSHOT_FILE).exists()
        assert (out_dir / MANIFEST_FILE).exists()
        assert "SeedOrder — Generation Report" in capsys.readouterr().out

    def test_dry_run(self, project_yaml_path, tmp_path):
        out_dir = tmp_path / "sql"
        assert _run(["-p", project_yaml_path, "-o", out_dir, "--dry-run"]) == EXIT_SUCCESS
        assert not out_dir.exists()

    def test_batch_size_override(self, project_yaml_path, tmp_path):
        out_dir = tmp_path / "sql"
        assert _run(["-p", project_yaml_path, "-o", out_dir, "--batch-size", "1"]) == EXIT_SUCCESS
        script = (out_dir / "dynamic_inserts.sql").read_text(encoding="utf-8")
        assert "-- Batch Size: 1" in script
        assert script.count("INSERT INTO [dbo].[Customer]") == 2


# ===========================================================================
# Exit codes for failures
# ===========================================================================


class TestFailureExitCodes:
    def test_strict_cycles_is_a_generation_error(self, project_yaml_path, tmp_path):
        argv = ["-p", project_yaml_path, "-o", tmp_path / "sql", "--strict-cycles"]
        assert _run(argv) == EXIT_GENERATION_ERROR

    def test_circular_config_file_replaces_project_section(
        self, project_yaml_path, yaml_writer, tmp_path
    ):
        cycles = yaml_writer("cycles.yaml", {"allowedCycles": [], "strictMode": True})
        argv = ["-p", project_yaml_path, "-o", tmp_path / "sql", "--circular-config", cycles]
        assert _run(argv) == EXIT_GENERATION_ERROR

    def test_invalid_circular_config_is_an_input_error(self, project_yaml_path, yaml_writer):
        cycles = yaml_writer("cycles.yaml", {"allowedCycles": [{"tables": []}]})
        argv = ["-p", project_yaml_path, "--validate-only", "--circular-config", cycles]
        assert _run(argv) == EXIT_INPUT_ERROR

    def test_validation_error(self, project_dict, yaml_writer, tmp_path):
        project_dict["static_tables"][0]["rows"].append([99])
        path = yaml_writer("bad_rows.yaml", project_dict)
        assert _run(["-p", path, "-o", tmp_path / "sql"]) == EXIT_VALIDATION_ERROR

    def test_export_error(self, project_yaml_path, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("occupied", encoding="utf-8")
        assert _run(["-p", project_yaml_path, "-o", blocker]) == EXIT_EXPORT_ERROR

    def test_naming_override_file(self, project_yaml_path, yaml_writer, tmp_path):
        names = yaml_writer(
            "names.yaml", {"tables": [{"schema": "dbo", "source": "Customer", "target": "Client"}]}
        )
        out_dir = tmp_path / "sql"
        argv = ["-p", project_yaml_path, "-o", out_dir, "--naming-overrides", names]
        assert _run(argv) == EXIT_SUCCESS
        script = (out_dir / "dynamic_inserts.sql").read_text(encoding="utf-8")
        assert "INSERT INTO [dbo].[Client]" in script
