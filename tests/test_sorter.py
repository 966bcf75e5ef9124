"""
tests/test_sorter.py
Unit tests for seedorder.sorter and the engine entry point.

Tests cover:
- Kahn ordering with alphabetical tie-breaks
- Example scenarios: acyclic chain, weak cycle, strong cycle, manual
  override, parent outside the run
- Determinism under input permutation
- Topological correctness for every Topological result
- Fallback exclusivity
- Junction-table deferral
"""

from __future__ import annotations

import itertools

import pytest

from seedorder.builder import build_dependency_graph
from seedorder.engine import OrderingResult, sort_by_foreign_keys
from seedorder.options import (
    AllowedCycle,
    CircularDependencyOptions,
    DependencySortOptions,
    TableOrdering,
)
from seedorder.sorter import OrderingMode, kahn_order, topological_sort


def _positions(result: OrderingResult):
    return {name: i for i, name in enumerate(result.ordered_names)}


# ===========================================================================
# Generic Kahn
# ===========================================================================


class TestKahnOrder:
    def test_parents_first_with_priority_ties(self):
        ordered, remaining = kahn_order(
            ["c", "b", "a", "d"], [("c", "a"), ("b", "a")], priority=lambda n: n
        )
        assert ordered == ["a", "b", "c", "d"]
        assert remaining == []

    def test_cycle_members_remain(self):
        ordered, remaining = kahn_order([1, 2, 3], [(1, 2), (2, 1)], priority=lambda n: n)
        assert ordered == [3]
        assert remaining == [1, 2]

    def test_self_pairs_and_foreign_nodes_ignored(self):
        ordered, remaining = kahn_order([1, 2], [(1, 1), (2, 9)], priority=lambda n: n)
        assert ordered == [1, 2]
        assert remaining == []


class TestTopologicalSort:
    def test_blocked_graph_reports_remaining(self, strong_cycle_schema):
        strong_cycle_schema.table("A")
        graph = build_dependency_graph(strong_cycle_schema.data(), strong_cycle_schema.model())
        outcome = topological_sort(graph)
        assert outcome.cycle_detected
        assert graph.names(outcome.remaining) == ["X", "Y"]
        assert graph.names(outcome.partial_order) == ["A"]

    def test_excluded_pairs_unblock_the_sort(self, weak_cycle_schema):
        graph = build_dependency_graph(weak_cycle_schema.data(), weak_cycle_schema.model())
        x, y = graph.find("X").node_id, graph.find("Y").node_id
        outcome = topological_sort(graph, excluded_pairs=[(x, y)])
        assert not outcome.cycle_detected
        assert graph.names(outcome.order) == ["X", "Y"]


# ===========================================================================
# Example scenarios
# ===========================================================================


class TestScenarios:
    def test_acyclic_chain(self, chain_schema):
        result = sort_by_foreign_keys(chain_schema.data(["C", "A", "B"]), chain_schema.model())
        assert result.ordered_names == ["A", "B", "C"]
        assert result.mode == OrderingMode.TOPOLOGICAL
        assert not result.cycle_detected
        assert result.topological_ordering_applied

    def test_weak_cycle_is_auto_broken(self, weak_cycle_schema):
        result = sort_by_foreign_keys(weak_cycle_schema.data(), weak_cycle_schema.model())
        assert result.cycle_detected
        assert result.mode == OrderingMode.TOPOLOGICAL
        assert not result.alphabetical_fallback_applied
        assert result.ordered_names == ["X", "Y"], "Strong Y → X edge must put X first"
        assert [e.constraint_name for e in result.deferred_edges] == ["FK_X_Y_YId"]
        assert result.requires_phased_loading
        assert any("auto-resolved" in d for d in result.diagnostics), result.diagnostics

    def test_strong_cycle_falls_back(self, strong_cycle_schema):
        result = sort_by_foreign_keys(strong_cycle_schema.data(), strong_cycle_schema.model())
        assert result.cycle_detected
        assert result.mode == OrderingMode.ALPHABETICAL_FALLBACK
        assert result.alphabetical_fallback_applied
        assert not result.topological_ordering_applied
        assert result.deferred_edges == []
        assert len(result.unresolved_components) == 1

    def test_manual_override(self, strong_cycle_schema):
        options = CircularDependencyOptions(
            allowed_cycles=[
                AllowedCycle(
                    table_ordering=[
                        TableOrdering(table_name="Y", position=0),
                        TableOrdering(table_name="X", position=1),
                    ]
                )
            ]
        )
        result = sort_by_foreign_keys(
            strong_cycle_schema.data(), strong_cycle_schema.model(), circular_options=options
        )
        assert result.mode == OrderingMode.MANUAL_OVERRIDE
        assert result.ordered_names == ["Y", "X"]
        assert not result.alphabetical_fallback_applied
        (component,) = result.cycles
        assert component.is_allowed
        assert result.configuration_errors == []

    def test_parent_outside_run(self, schema):
        schema.table("D", schema.fk("EId", "E")).table("E").table("A")
        result = sort_by_foreign_keys(schema.data(["D", "A"]), schema.model())
        assert result.ordered_names == ["A", "D"]
        assert result.mode == OrderingMode.TOPOLOGICAL
        assert result.missing_edge_count == 1

    def test_manual_group_is_spliced_between_dependencies(self, schema):
        schema.table("Root").table(
            "X", schema.fk("YId", "Y", nullable=False), schema.fk("RootId", "Root")
        ).table("Y", schema.fk("XId", "X", nullable=False)).table(
            "Leaf", schema.fk("XId", "X", nullable=False)
        )
        options = CircularDependencyOptions(
            allowed_cycles=[
                AllowedCycle(
                    table_ordering=[
                        TableOrdering(table_name="X", position=0),
                        TableOrdering(table_name="Y", position=1),
                    ]
                )
            ]
        )
        result = sort_by_foreign_keys(schema.data(), schema.model(), circular_options=options)
        assert result.ordered_names == ["Root", "X", "Y", "Leaf"]


# ===========================================================================
# Properties
# ===========================================================================


class TestProperties:
    def test_permutation_does_not_change_order(self, schema):
        schema.table("Country").table("Region", schema.fk("CountryId", "Country")).table(
            "City", schema.fk("RegionId", "Region")
        ).table("Currency").table("Shop", schema.fk("CityId", "City"), schema.fk("CurrencyId", "Currency"))
        model = schema.model()
        names = ["Country", "Region", "City", "Currency", "Shop"]
        expected = sort_by_foreign_keys(schema.data(names), model).ordered_names
        for permutation in itertools.permutations(names):
            got = sort_by_foreign_keys(schema.data(list(permutation)), model).ordered_names
            assert got == expected, f"Order changed for input {permutation}: {got}"

    def test_repeated_calls_are_identical(self, weak_cycle_schema):
        first = sort_by_foreign_keys(weak_cycle_schema.data(), weak_cycle_schema.model())
        second = sort_by_foreign_keys(weak_cycle_schema.data(), weak_cycle_schema.model())
        assert first.to_dict() == second.to_dict()

    def test_topological_results_respect_every_edge(self, schema):
        schema.table("A").table("B", schema.fk("AId", "A")).table(
            "C", schema.fk("AId", "A"), schema.fk("BId", "B")
        ).table("D", schema.fk("CId", "C"))
        result = sort_by_foreign_keys(schema.data(["D", "C", "B", "A"]), schema.model())
        assert result.mode == OrderingMode.TOPOLOGICAL
        pos = _positions(result)
        graph = result.graph
        for child, parent in graph.ordering_pairs():
            c, p = graph.node(child).effective_name, graph.node(parent).effective_name
            assert pos[p] < pos[c], f"{p} must precede {c}"

    def test_fallback_is_fully_alphabetical(self, strong_cycle_schema):
        strong_cycle_schema.table("B", strong_cycle_schema.fk("ZId", "Z")).table("Z")
        result = sort_by_foreign_keys(
            strong_cycle_schema.data(["Z", "Y", "B", "X"]), strong_cycle_schema.model()
        )
        assert result.mode == OrderingMode.ALPHABETICAL_FALLBACK
        assert result.ordered_names == ["B", "X", "Y", "Z"], (
            "Fallback must never keep a partial topological prefix"
        )

    def test_strict_mode_fails_every_cycle(self, weak_cycle_schema):
        options = CircularDependencyOptions(strict_mode=True)
        result = sort_by_foreign_keys(
            weak_cycle_schema.data(), weak_cycle_schema.model(), circular_options=options
        )
        assert result.alphabetical_fallback_applied
        assert any("Strict mode" in d for d in result.diagnostics)


# ===========================================================================
# Junction deferral
# ===========================================================================


class TestJunctionDeferral:
    @pytest.fixture()
    def enrollment_schema(self, schema):
        return (
            schema.table("Student")
            .table("Course")
            .table("Zebra")
            .table(
                "Enrollment",
                schema.fk("StudentId", "Student", nullable=False),
                schema.fk("CourseId", "Course", nullable=False),
                with_name=False,
            )
        )

    def test_without_deferral(self, enrollment_schema):
        result = sort_by_foreign_keys(enrollment_schema.data(), enrollment_schema.model())
        assert result.ordered_names == ["Course", "Student", "Enrollment", "Zebra"]

    def test_with_deferral(self, enrollment_schema):
        result = sort_by_foreign_keys(
            enrollment_schema.data(),
            enrollment_schema.model(),
            sort_options=DependencySortOptions(defer_junction_tables=True),
        )
        assert result.ordered_names == ["Course", "Student", "Zebra", "Enrollment"]
        assert any("Junction tables deferred" in d for d in result.diagnostics)
