"""
tests/test_options.py
Unit tests for seedorder.options.

Tests cover:
- JSON / YAML mapping loaders and their error paths
- camelCase aliases on configuration documents
- AllowedCycle validation (positions, duplicates, matching)
- Naming overrides: precedence, conflicts, callable use
- Insert generation options
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from seedorder.options import (
    AllowedCycle,
    CircularDependencyConfigError,
    CircularDependencyOptions,
    DependencySortOptions,
    EntityNamingOverride,
    InsertGenerationOptions,
    NamingOverrideOptions,
    StaticSeedMode,
    TableNamingOverride,
    TableOrdering,
    default_name_resolver,
    load_circular_dependency_config,
    load_mapping_file,
    load_naming_overrides,
    parse_circular_dependency_config,
    table_aliases,
)


# ===========================================================================
# File loading
# ===========================================================================


class TestLoaders:
    def test_yaml_file(self, yaml_writer):
        path = yaml_writer("cycles.yaml", {"strictMode": True})
        assert load_mapping_file(path) == {"strictMode": True}

    def test_json_file(self, tmp_path):
        path = tmp_path / "cycles.json"
        path.write_text(json.dumps({"allowedCycles": []}), encoding="utf-8")
        assert load_mapping_file(path) == {"allowedCycles": []}

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path):
        path = tmp_path / "cycles.conf"
        path.write_text("strictMode: true\n", encoding="utf-8")
        assert load_mapping_file(path) == {"strictMode": True}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_mapping_file(tmp_path / "absent.yaml")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_mapping_file(path)

    def test_top_level_list_is_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_mapping_file(path)

    def test_empty_cycle_config_is_an_error(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(CircularDependencyConfigError, match="empty"):
            load_circular_dependency_config(path)

    def test_cycle_config_file(self, yaml_writer):
        path = yaml_writer(
            "cycles.yaml",
            {
                "allowedCycles": [
                    {
                        "tableOrdering": [
                            {"tableName": "Customer", "position": 0},
                            {"tableName": "Account", "position": 1},
                        ],
                        "reason": "Accounts point back at their primary customer",
                    }
                ],
                "strictMode": False,
            },
        )
        options = load_circular_dependency_config(path)
        (cycle,) = options.allowed_cycles
        assert cycle.ordered_tables == ["Customer", "Account"]
        assert cycle.has_explicit_order
        assert options.get_manual_position("account") == 1

    def test_naming_override_file(self, yaml_writer):
        path = yaml_writer(
            "names.yaml",
            {
                "tables": [{"schema": "ref", "source": "tblCountry", "target": "Country"}],
                "entities": [{"module": "Sales", "entity": "Cust", "target": "Customer"}],
            },
        )
        overrides = load_naming_overrides(path)
        assert overrides("ref", "tblCountry", None, None) == "Country"
        assert overrides("dbo", "tblCust", "Cust", "Sales") == "Customer"

    def test_invalid_naming_override_file(self, yaml_writer):
        path = yaml_writer("names.yaml", {"tables": [{"source": "A"}]})
        with pytest.raises(ValueError, match="Invalid naming overrides"):
            load_naming_overrides(path)


# ===========================================================================
# Allowed cycles
# ===========================================================================


class TestAllowedCycle:
    def test_duplicate_position_is_rejected(self):
        with pytest.raises(CircularDependencyConfigError, match="Duplicate position"):
            parse_circular_dependency_config(
                {
                    "allowedCycles": [
                        {
                            "tableOrdering": [
                                {"tableName": "A", "position": 0},
                                {"tableName": "B", "position": 0},
                            ]
                        }
                    ]
                }
            )

    def test_duplicate_table_is_rejected(self):
        with pytest.raises(ValidationError):
            AllowedCycle(tables=["A", "a"])

    def test_empty_cycle_is_rejected(self):
        with pytest.raises(ValidationError):
            AllowedCycle()

    def test_negative_position_is_rejected(self):
        with pytest.raises(ValidationError):
            TableOrdering(table_name="A", position=-1)

    def test_unknown_key_is_rejected(self):
        with pytest.raises(CircularDependencyConfigError):
            parse_circular_dependency_config({"allowedCycles": [], "bogus": 1})

    def test_matching_uses_aliases(self):
        cycle = AllowedCycle(tables=["dbo.Order", "Customer"])
        members = [
            table_aliases("dbo", "Order", "SalesOrder"),
            table_aliases("dbo", "tblCustomer", "Customer"),
        ]
        assert cycle.matches(members)
        assert not cycle.matches(members[:1])

    def test_strict_mode_disallows_everything(self):
        options = CircularDependencyOptions(
            strict_mode=True, allowed_cycles=[AllowedCycle(tables=["A", "B"])]
        )
        assert options.find_allowed_cycle(["A", "B"]) is not None
        assert not options.is_cycle_allowed(["A", "B"])

    def test_label(self):
        ordered = AllowedCycle(
            table_ordering=[
                TableOrdering(table_name="B", position=1),
                TableOrdering(table_name="A", position=0),
            ]
        )
        assert ordered.label == "A → B"
        assert AllowedCycle(tables=["A", "B"]).label == "A, B"


# ===========================================================================
# Naming overrides
# ===========================================================================


class TestNamingOverrides:
    def test_default_resolver(self):
        assert default_name_resolver("dbo", "tblX", "  Thing  ", "Core") == "Thing"
        assert default_name_resolver("dbo", "tblX", "   ", "Core") == "tblX"
        assert default_name_resolver("dbo", "tblX", None, None) == "tblX"

    def test_table_rule_beats_entity_rule(self):
        overrides = NamingOverrideOptions(
            tables=[TableNamingOverride(source="tblX", target="FromTable")],
            entities=[EntityNamingOverride(logical_name="Thing", target="FromEntity")],
        )
        assert overrides("dbo", "tblX", "Thing", "Core") == "FromTable"
        assert overrides("dbo", "tblY", "Thing", "Core") == "FromEntity"

    def test_table_rule_is_schema_scoped(self):
        overrides = NamingOverrideOptions(
            tables=[TableNamingOverride(schema_name="ref", source="tblX", target="X")]
        )
        assert overrides("REF", "TBLX", None, None) == "X"
        assert overrides("dbo", "tblX", None, None) == "tblX"

    def test_module_scoped_entity_rule(self):
        overrides = NamingOverrideOptions(
            entities=[EntityNamingOverride(module="Sales", logical_name="Thing", target="SalesThing")]
        )
        assert overrides("dbo", "t", "Thing", "Sales") == "SalesThing"
        assert overrides("dbo", "t", "Thing", "Billing") == "Thing"

    def test_two_sources_one_target_conflict(self):
        with pytest.raises(ValidationError, match="both map to"):
            NamingOverrideOptions(
                tables=[
                    TableNamingOverride(source="A", target="Same"),
                    TableNamingOverride(source="B", target="same"),
                ]
            )

    def test_conflicting_rules_for_one_table(self):
        with pytest.raises(ValidationError, match="Conflicting table overrides"):
            NamingOverrideOptions(
                tables=[
                    TableNamingOverride(source="A", target="One"),
                    TableNamingOverride(source="A", target="Two"),
                ]
            )

    def test_repeated_identical_rule_is_fine(self):
        overrides = NamingOverrideOptions(
            tables=[
                TableNamingOverride(source="A", target="One"),
                TableNamingOverride(source="a", target="one"),
            ]
        )
        assert not overrides.is_empty


# ===========================================================================
# Generation options
# ===========================================================================


class TestGenerationOptions:
    def test_defaults(self):
        options = InsertGenerationOptions()
        assert options.batch_size == 1000
        assert options.static_seed_mode == StaticSeedMode.NON_DESTRUCTIVE.value
        assert options.emit_phase_banners

    def test_camel_case_aliases(self):
        options = InsertGenerationOptions.model_validate(
            {"batchSize": 50, "staticSeedMode": "authoritative"}
        )
        assert options.batch_size == 50
        assert StaticSeedMode(options.static_seed_mode) == StaticSeedMode.AUTHORITATIVE
        assert DependencySortOptions.model_validate({"deferJunctionTables": True}).defer_junction_tables

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            InsertGenerationOptions(batch_size=0)

    def test_unknown_seed_mode(self):
        with pytest.raises(ValidationError):
            InsertGenerationOptions(static_seed_mode="destroy_everything")
