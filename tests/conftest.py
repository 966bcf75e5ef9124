"""
tests/conftest.py
Shared fixtures for the seedorder test suite.

Models and table data are built in code through ``SchemaBuilder`` so each
test states exactly the foreign keys it cares about.  File-based tests
write YAML into pytest's ``tmp_path``; no mocking libraries are used.
"""

from __future__ import annotations

import copy
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pytest
import yaml

from seedorder.models import (
    ApplicationModel,
    AttributeModel,
    ConstraintColumn,
    EntityModel,
    ModuleModel,
    RelationshipConstraint,
    RelationshipModel,
    SeedColumn,
    SeedTableData,
    SeedTableDefinition,
)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
PROJECT_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "project_example.yaml"


# ---------------------------------------------------------------------------
# Schema builder
# ---------------------------------------------------------------------------


@dataclass
class ForeignKeySpec:
    column: str
    parent: str
    nullable: bool = True
    cascade: bool = False
    name: Optional[str] = None
    hydrated: bool = True


@dataclass
class TableSpec:
    name: str
    module: str = "Core"
    schema: str = "dbo"
    logical_name: Optional[str] = None
    foreign_keys: List[ForeignKeySpec] = field(default_factory=list)
    rows: Optional[List[List[Any]]] = None
    has_primary_key: bool = True
    in_model: bool = True
    with_name: bool = True


class SchemaBuilder:
    """
    Small DSL for application models and seed data.

    Every table gets an ``Id`` primary key and a ``Name`` column, followed by
    one column per foreign key.  Default rows reference parent row ``1`` so
    deferred columns always carry a value.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, TableSpec] = {}

    def table(
        self,
        name: str,
        *foreign_keys: ForeignKeySpec,
        module: str = "Core",
        schema: str = "dbo",
        logical_name: Optional[str] = None,
        rows: Optional[List[List[Any]]] = None,
        has_primary_key: bool = True,
        in_model: bool = True,
        with_name: bool = True,
    ) -> "SchemaBuilder":
        self._tables[name] = TableSpec(
            name=name,
            module=module,
            schema=schema,
            logical_name=logical_name,
            foreign_keys=list(foreign_keys),
            rows=rows,
            has_primary_key=has_primary_key,
            in_model=in_model,
            with_name=with_name,
        )
        return self

    @staticmethod
    def fk(
        column: str,
        parent: str,
        *,
        nullable: bool = True,
        cascade: bool = False,
        name: Optional[str] = None,
        hydrated: bool = True,
    ) -> ForeignKeySpec:
        return ForeignKeySpec(column, parent, nullable, cascade, name, hydrated)

    # -- model ---------------------------------------------------------

    def _entity(self, spec: TableSpec) -> EntityModel:
        attributes: List[AttributeModel] = [
            AttributeModel(
                logical_name="Id",
                column_name="Id",
                data_type="int",
                is_mandatory=True,
                is_identifier=spec.has_primary_key,
            ),
        ]
        if spec.with_name:
            attributes.append(
                AttributeModel(logical_name="Name", column_name="Name", is_mandatory=True)
            )
        relationships: List[RelationshipModel] = []
        for fk in spec.foreign_keys:
            attributes.append(
                AttributeModel(
                    logical_name=fk.column,
                    column_name=fk.column,
                    data_type="int",
                    is_mandatory=not fk.nullable,
                )
            )
            parent_schema: str = (
                self._tables[fk.parent].schema if fk.parent in self._tables else spec.schema
            )
            relationships.append(
                RelationshipModel(
                    via_attribute=fk.column,
                    target_entity=fk.parent,
                    target_physical_name=fk.parent,
                    actual_constraints=[
                        RelationshipConstraint(
                            name=fk.name or f"FK_{spec.name}_{fk.parent}_{fk.column}",
                            referenced_schema=parent_schema,
                            referenced_table=fk.parent,
                            on_delete="CASCADE" if fk.cascade else "NO ACTION",
                            is_hydrated=fk.hydrated,
                            columns=[
                                ConstraintColumn(owner_column=fk.column, referenced_column="Id")
                            ],
                        )
                    ],
                )
            )
        return EntityModel(
            logical_name=spec.logical_name or spec.name,
            physical_name=spec.name,
            schema_name=spec.schema,
            attributes=attributes,
            relationships=relationships,
        )

    def model(self) -> ApplicationModel:
        modules: Dict[str, List[EntityModel]] = {}
        for spec in self._tables.values():
            if spec.in_model:
                modules.setdefault(spec.module, []).append(self._entity(spec))
        return ApplicationModel(
            modules=[ModuleModel(name=name, entities=entities) for name, entities in modules.items()]
        )

    # -- data ----------------------------------------------------------

    def _data(self, spec: TableSpec) -> SeedTableData:
        columns: List[SeedColumn] = [
            SeedColumn(
                logical_name="Id",
                column_name="Id",
                data_type="int",
                is_primary_key=spec.has_primary_key,
                is_nullable=False,
            ),
        ]
        if spec.with_name:
            columns.append(SeedColumn(logical_name="Name", column_name="Name", is_nullable=False))
        columns.extend(
            SeedColumn(
                logical_name=fk.column,
                column_name=fk.column,
                data_type="int",
                is_nullable=fk.nullable,
            )
            for fk in spec.foreign_keys
        )
        rows: List[List[Any]] = (
            spec.rows
            if spec.rows is not None
            else [[1] + ([f"{spec.name} 1"] if spec.with_name else []) + [1 for _ in spec.foreign_keys]]
        )
        return SeedTableData(
            definition=SeedTableDefinition(
                module=spec.module,
                logical_name=spec.logical_name or spec.name,
                schema_name=spec.schema,
                physical_name=spec.name,
                columns=columns,
            ),
            rows=copy.deepcopy(rows),
        )

    def data(self, names: Optional[Sequence[str]] = None) -> List[SeedTableData]:
        wanted: Sequence[str] = list(self._tables) if names is None else names
        return [self._data(self._tables[n]) for n in wanted]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def schema() -> SchemaBuilder:
    """A fresh, empty ``SchemaBuilder``."""
    return SchemaBuilder()


@pytest.fixture()
def chain_schema(schema: SchemaBuilder) -> SchemaBuilder:
    """A ← B ← C, no cycle."""
    return (
        schema.table("A")
        .table("B", schema.fk("AId", "A"))
        .table("C", schema.fk("BId", "B"))
    )


@pytest.fixture()
def weak_cycle_schema(schema: SchemaBuilder) -> SchemaBuilder:
    """X.YId → Y is nullable; Y.XId → X is NOT NULL."""
    return (
        schema.table("X", schema.fk("YId", "Y", nullable=True))
        .table("Y", schema.fk("XId", "X", nullable=False))
    )


@pytest.fixture()
def strong_cycle_schema(schema: SchemaBuilder) -> SchemaBuilder:
    """X ⇄ Y with both foreign keys NOT NULL."""
    return (
        schema.table("X", schema.fk("YId", "Y", nullable=False))
        .table("Y", schema.fk("XId", "X", nullable=False))
    )


@pytest.fixture(scope="session")
def raw_project_dict() -> Dict[str, Any]:
    """Load project_example.yaml once per session."""
    assert PROJECT_EXAMPLE_PATH.exists(), (
        f"Reference project not found at {PROJECT_EXAMPLE_PATH}."
    )
    with open(PROJECT_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def project_dict(raw_project_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_project_dict)


@pytest.fixture()
def project_yaml_path(project_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """The project dict written to a temporary YAML file."""
    path = tmp_path / "project.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(project_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


def write_yaml(path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def yaml_writer(tmp_path: pathlib.Path):
    """Callable writing ``data`` to ``tmp_path / name`` and returning the path."""

    def _write(name: str, data: Dict[str, Any]) -> pathlib.Path:
        return write_yaml(tmp_path / name, data)

    return _write
