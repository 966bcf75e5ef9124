"""
tests/test_generator.py
End-to-end tests for seedorder.generator.SeedScriptGenerator.

Tests cover:
- Project loading (YAML files, camelCase keys, model files)
- The three consumer steps on the reference project
- Export to disk, dry runs and the manifest
- Failure isolation: cycle errors, unmatched overrides, strict mode
- Pre-flight validation stopping the pipeline
"""

from __future__ import annotations

import json
import pathlib

import pytest

from seedorder.exporters import (
    BOOTSTRAP_SNAPSHOT_FILE,
    DYNAMIC_INSERTS_FILE,
    MANIFEST_FILE,
    STATIC_SEEDS_FILE,
)
from seedorder.generator import (
    STEP_BOOTSTRAP,
    STEP_DYNAMIC,
    STEP_STATIC,
    SeedProject,
    SeedScriptGenerator,
    combine_tables,
    load_model_file,
    load_project_file,
    parse_project_document,
)
from seedorder.options import StaticSeedMode
from seedorder.sorter import OrderingMode

PROJECT_EXAMPLE_PATH: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent / "project_example.yaml"


def _make_country_currency_strong(project_dict):
    """Turn Country.DefaultCurrencyId into a NOT NULL column."""
    country = project_dict["model"]["modules"][0]["entities"][0]
    country["attributes"][2]["is_mandatory"] = True
    project_dict["static_tables"][0]["definition"]["columns"][2]["is_nullable"] = False
    return project_dict


@pytest.fixture()
def project(project_dict) -> SeedProject:
    return parse_project_document(project_dict)


@pytest.fixture()
def generator() -> SeedScriptGenerator:
    return SeedScriptGenerator()


# ===========================================================================
# Project loading
# ===========================================================================


class TestProjectLoading:
    def test_reference_project_loads(self):
        project = load_project_file(PROJECT_EXAMPLE_PATH)
        assert project.name == "reference_data"
        assert project.table_count == 3
        assert project.model.entity_count == 3
        assert project.insert_options.batch_size == 500

    def test_camel_case_keys(self, project_dict):
        project_dict["staticTables"] = project_dict.pop("static_tables")
        project_dict.pop("insert_options", None)
        project_dict["insertOptions"] = {"batchSize": 7}
        project = parse_project_document(project_dict)
        assert len(project.static_tables) == 2
        assert project.insert_options.batch_size == 7

    def test_unknown_key_is_rejected(self, project_dict):
        project_dict["tables_typo"] = []
        with pytest.raises(ValueError, match="Project validation failed"):
            parse_project_document(project_dict)

    def test_model_file_is_unwrapped(self, project_dict, yaml_writer):
        wrapped = load_model_file(yaml_writer("wrapped.yaml", {"model": project_dict["model"]}))
        bare = load_model_file(yaml_writer("bare.yaml", project_dict["model"]))
        assert wrapped.entity_count == bare.entity_count == 3

    def test_with_overrides(self, project):
        changed = project.with_overrides(
            strict_cycles=True,
            defer_junction_tables=True,
            batch_size=10,
            static_seed_mode=StaticSeedMode.AUTHORITATIVE,
        )
        assert changed.circular_dependencies.strict_mode
        assert changed.sort_options.defer_junction_tables
        assert changed.insert_options.batch_size == 10
        assert StaticSeedMode(changed.insert_options.static_seed_mode) == StaticSeedMode.AUTHORITATIVE
        assert not project.circular_dependencies.strict_mode, "Original must be unchanged"
        assert len(changed.circular_dependencies.allowed_cycles) == 1

    def test_combine_tables_merges_rows(self, project):
        static = project.static_tables[0]
        extra = static.model_copy(update={"rows": [[1, "Norway", 10], [3, "Chile", None]]})
        combined = combine_tables([static], [extra])
        (table,) = combined
        assert [row[0] for row in table.rows] == [1, 2, 3]


# ===========================================================================
# Reference project, end to end
# ===========================================================================


class TestReferenceProject:
    def test_all_scripts_generated(self, project, generator):
        report = generator.generate(project)
        assert report.success, report.summary()
        assert set(report.scripts) == {STATIC_SEEDS_FILE, DYNAMIC_INSERTS_FILE, BOOTSTRAP_SNAPSHOT_FILE}
        assert set(report.orderings) == {STEP_STATIC, STEP_DYNAMIC, STEP_BOOTSTRAP}
        assert report.total_lines > 0

    def test_static_seeds_are_phased(self, project, generator):
        report = generator.generate(project)
        ordering = report.orderings[STEP_STATIC]
        assert ordering.ordered_names == ["Country", "Currency"]
        assert ordering.mode == OrderingMode.TOPOLOGICAL
        assert [e.constraint_name for e in ordering.deferred_edges] == ["FK_Country_Currency"]

        script = report.scripts[STATIC_SEEDS_FILE]
        assert "--   ALLOWED Cycle: Country → Currency → Country" in script
        assert "(1, N'Norway', NULL)" in script
        assert "UPDATE [ref].[Country]\nSET [DefaultCurrencyId] = 10\nWHERE [Id] = 1;" in script
        assert "TOPOLOGICAL ORDER VALIDATION FAILED" not in script

    def test_dynamic_inserts(self, project, generator):
        report = generator.generate(project)
        validation = report.validations[STEP_DYNAMIC]
        assert validation.is_valid
        (missing,) = validation.missing_parents
        assert missing.parent_table == "Country"

        script = report.scripts[DYNAMIC_INSERTS_FILE]
        assert "-- Batch Size: 500" in script
        assert "SET IDENTITY_INSERT [dbo].[Customer] ON;" in script
        assert "N'O''Hara & Sons'" in script
        assert "PHASE" not in script

    def test_bootstrap_orders_everything(self, project, generator):
        report = generator.generate(project)
        assert report.orderings[STEP_BOOTSTRAP].ordered_names == ["Country", "Currency", "Customer"]
        script = report.scripts[BOOTSTRAP_SNAPSHOT_FILE]
        assert "-- Phased Loading: ENABLED" in script
        assert "-- Topological Order: 3 of 3" in script
        assert "MERGE INTO [dbo].[Customer] AS Target" in script
        assert "WHEN NOT MATCHED BY SOURCE" not in script

    def test_scripts_are_deterministic(self, project, generator):
        first = generator.generate(project).scripts
        second = generator.generate(project).scripts
        assert first == second


# ===========================================================================
# Export
# ===========================================================================


class TestExport:
    def test_scripts_written_with_manifest(self, project, generator, tmp_path):
        out = tmp_path / "sql"
        report = generator.generate(project, out)
        assert report.success, report.summary()
        for name in (STATIC_SEEDS_FILE, DYNAMIC_INSERTS_FILE, BOOTSTRAP_SNAPSHOT_FILE):
            assert (out / name).read_text(encoding="utf-8") == report.scripts[name]

        manifest = json.loads((out / MANIFEST_FILE).read_text(encoding="utf-8"))
        assert manifest["project_name"] == "reference_data"
        assert manifest["total_files"] == 3
        assert [f["relative_path"] for f in manifest["files"]] == sorted(report.scripts)

    def test_dry_run_writes_nothing(self, project, generator, tmp_path):
        out = tmp_path / "sql"
        report = generator.generate(project, out, dry_run=True)
        assert report.success
        assert not out.exists()
        assert report.manifest is not None
        assert report.manifest.dry_run
        assert report.manifest.total_files == 3

    def test_generate_from_file(self, project_yaml_path, generator, tmp_path):
        report = generator.generate_from_file(project_yaml_path, tmp_path / "out")
        assert report.success, report.summary()
        assert report.step_metrics[0].step_name == "Load Project"
        assert (tmp_path / "out" / BOOTSTRAP_SNAPSHOT_FILE).exists()

    def test_missing_project_file(self, generator, tmp_path):
        report = generator.generate_from_file(tmp_path / "absent.yaml")
        assert not report.success
        assert report.generation_errors


# ===========================================================================
# Failures
# ===========================================================================


class TestFailures:
    def test_strong_cycle_fails_only_affected_steps(self, project_dict, generator, tmp_path):
        project = parse_project_document(_make_country_currency_strong(project_dict))
        report = generator.generate(project, tmp_path / "out")
        assert not report.success
        assert DYNAMIC_INSERTS_FILE in report.scripts, "Dynamic step must still run"
        assert STATIC_SEEDS_FILE not in report.scripts
        assert any(e.startswith(f"{STEP_STATIC}: CycleResolutionError") for e in report.generation_errors)
        assert any(e.startswith(f"{STEP_BOOTSTRAP}: CycleResolutionError") for e in report.generation_errors)
        assert not (tmp_path / "out").exists(), "Nothing is exported after a generation error"

    def test_unmatched_override_is_an_error(self, project_dict, generator):
        project_dict["circular_dependencies"]["allowedCycles"].append(
            {"tables": ["Customer", "Country"]}
        )
        report = generator.generate(parse_project_document(project_dict))
        assert not report.success
        (error,) = report.generation_errors
        assert error.startswith(f"{STEP_BOOTSTRAP}: CircularDependencyConfigError")

    def test_strict_mode(self, project, generator):
        report = generator.generate(project.with_overrides(strict_cycles=True))
        assert not report.success
        assert any("Strict mode forbids" in e for e in report.generation_errors)
        assert DYNAMIC_INSERTS_FILE in report.scripts

    def test_validation_errors_stop_the_pipeline(self, project_dict, generator):
        project_dict["static_tables"][0]["rows"].append([3])
        report = generator.generate(parse_project_document(project_dict))
        assert not report.success
        assert report.scripts == {}
        assert any("ROW_WIDTH_MISMATCH" in e for e in report.validation_errors)

    def test_fail_on_warnings(self, project_dict):
        project_dict["dynamic_tables"][0]["definition"]["physical_name"] = "Ghost"
        project = parse_project_document(project_dict)
        assert SeedScriptGenerator().generate(project).success
        strict = SeedScriptGenerator(fail_on_warnings=True).generate(project)
        assert not strict.success
        assert any("TABLE_NOT_IN_MODEL" in w for w in strict.validation_warnings)


# ===========================================================================
# Validate-only & report
# ===========================================================================


class TestValidateAndReport:
    def test_validate_orders_without_rendering(self, project, generator):
        report = generator.validate(project)
        assert report.success
        assert report.scripts == {}
        assert report.orderings[STEP_BOOTSTRAP].ordered_names == ["Country", "Currency", "Customer"]
        assert set(report.validations) == {STEP_STATIC, STEP_DYNAMIC, STEP_BOOTSTRAP}

    def test_summary(self, project, generator):
        text = generator.generate(project).summary()
        assert "SeedOrder — Generation Report" in text
        assert "✅ SUCCESS" in text
        assert "Static Seeds" in text
