# File: seedorder/models.py
"""
SeedOrder - Core Data Models
=============================
Pydantic V2 models for the two read-only inputs of every ordering run:

1. The **application model** (modules → entities → attributes and
   relationships → hydrated foreign-key constraints).  The engine reads
   foreign-key metadata from here and never mutates it.
2. The **seed data** (table definitions plus row payloads) that the
   static-seed, dynamic-insert and bootstrap writers emit.  Row values are
   opaque to the ordering engine; only table identity matters for ordering.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from seedorder.utils import fold_name, is_blank, value_sort_key

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.models")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DeleteRule(str, Enum):
    """Foreign-key ON DELETE behaviour."""

    NO_ACTION = "NO ACTION"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Application model: attributes & relationships
# ---------------------------------------------------------------------------


class AttributeModel(BaseModel):
    """One modeled attribute, mapped to a physical column."""

    model_config = _SHARED_CONFIG

    logical_name: str = Field(..., min_length=1, description="Attribute name in the model.")
    column_name: str = Field(..., min_length=1, description="Physical column name.")
    data_type: str = Field(default="text", description="Modeled data type.")
    is_mandatory: bool = Field(
        default=False, description="NOT NULL in the database when True."
    )
    is_identifier: bool = Field(default=False, description="Part of the primary key.")
    is_auto_number: bool = Field(default=False, description="Identity column.")
    is_active: bool = Field(default=True)

    @property
    def is_nullable(self) -> bool:
        return not self.is_mandatory

    def __repr__(self) -> str:
        return f"<AttributeModel {self.logical_name} ({self.column_name})>"


class ConstraintColumn(BaseModel):
    """One owner → referenced column pair of a foreign-key constraint."""

    model_config = _SHARED_CONFIG

    owner_column: str = Field(default="", description="Column on the child table.")
    referenced_column: str = Field(default="", description="Column on the parent table.")
    owner_attribute: Optional[str] = Field(default=None)
    referenced_attribute: Optional[str] = Field(default=None)

    @property
    def is_resolved(self) -> bool:
        return not is_blank(self.owner_column) and not is_blank(self.referenced_column)


class RelationshipConstraint(BaseModel):
    """A physical foreign-key constraint discovered for a relationship."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(default=None, description="Constraint name.")
    referenced_schema: Optional[str] = Field(
        default=None, description="Parent schema; defaults to the owner's schema."
    )
    referenced_table: str = Field(default="", description="Parent physical table name.")
    on_delete: DeleteRule = Field(default=DeleteRule.NO_ACTION, validate_default=True)
    is_hydrated: bool = Field(
        default=True,
        description=(
            "False when the constraint was reconstructed from model metadata "
            "only and never confirmed against a live database."
        ),
    )
    columns: List[ConstraintColumn] = Field(default_factory=list)

    @field_validator("on_delete", mode="before")
    @classmethod
    def _normalise_delete_rule(cls, v: Any) -> Any:
        if isinstance(v, str):
            return " ".join(v.replace("_", " ").split()).upper()
        return v

    @property
    def resolved_columns(self) -> List[ConstraintColumn]:
        return [c for c in self.columns if c.is_resolved]

    @property
    def is_structurally_valid(self) -> bool:
        """Non-empty referenced table and at least one resolvable column pair."""
        return not is_blank(self.referenced_table) and bool(self.resolved_columns)


class RelationshipModel(BaseModel):
    """A modeled reference from one entity to another."""

    model_config = _SHARED_CONFIG

    via_attribute: str = Field(default="", description="Referencing attribute (logical).")
    target_entity: str = Field(..., min_length=1, description="Target entity (logical).")
    target_physical_name: str = Field(default="")
    has_database_constraint: bool = Field(
        default=True, description="False for purely logical references."
    )
    actual_constraints: List[RelationshipConstraint] = Field(default_factory=list)


class EntityModel(BaseModel):
    """A modeled entity (one physical table)."""

    model_config = _SHARED_CONFIG

    logical_name: str = Field(..., min_length=1)
    physical_name: str = Field(..., min_length=1)
    schema_name: str = Field(default="dbo", alias="schema")
    is_static: bool = Field(default=False, description="Static reference-data entity.")
    is_active: bool = Field(default=True)
    attributes: List[AttributeModel] = Field(default_factory=list)
    relationships: List[RelationshipModel] = Field(default_factory=list)

    def attribute_for_column(self, column_name: str) -> Optional[AttributeModel]:
        """Case-insensitive lookup of an attribute by physical column name."""
        wanted: str = fold_name(column_name)
        for attribute in self.attributes:
            if fold_name(attribute.column_name) == wanted:
                return attribute
        return None

    @property
    def primary_key_columns(self) -> List[str]:
        return [a.column_name for a in self.attributes if a.is_identifier]

    def __repr__(self) -> str:
        return f"<EntityModel {self.logical_name} ({self.schema_name}.{self.physical_name})>"


class ModuleModel(BaseModel):
    """A named group of entities."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    is_active: bool = Field(default=True)
    entities: List[EntityModel] = Field(default_factory=list)


class ApplicationModel(BaseModel):
    """
    Root of the ingested application model.

    Read-only input shared by every pipeline step; the ordering engine never
    mutates it, so several steps may hold the same instance concurrently.
    """

    model_config = _SHARED_CONFIG

    modules: List[ModuleModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_modules(self) -> "ApplicationModel":
        seen: Dict[str, str] = {}
        for module in self.modules:
            key: str = fold_name(module.name)
            if key in seen:
                raise ValueError(f"Module '{module.name}' is defined more than once.")
            seen[key] = module.name
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def entity_count(self) -> int:
        return sum(len(m.entities) for m in self.modules)

    def iter_entities(self) -> Iterator[Tuple[str, EntityModel]]:
        """Yield ``(module_name, entity)`` pairs in declaration order."""
        for module in self.modules:
            for entity in module.entities:
                yield module.name, entity

    def find_entity(self, schema: str, physical_name: str) -> Optional[Tuple[str, EntityModel]]:
        wanted: Tuple[str, str] = (fold_name(schema), fold_name(physical_name))
        for module_name, entity in self.iter_entities():
            if (fold_name(entity.schema_name), fold_name(entity.physical_name)) == wanted:
                return module_name, entity
        return None


# ---------------------------------------------------------------------------
# Seed data: definitions & rows
# ---------------------------------------------------------------------------


class SeedColumn(BaseModel):
    """A column of an emitted table."""

    model_config = _SHARED_CONFIG

    logical_name: str = Field(..., min_length=1)
    column_name: str = Field(..., min_length=1)
    effective_column_name: Optional[str] = Field(
        default=None, description="Emitted column name when renamed."
    )
    data_type: str = Field(default="nvarchar")
    is_primary_key: bool = Field(default=False)
    is_identity: bool = Field(default=False)
    is_nullable: bool = Field(default=True)

    @property
    def target_column_name(self) -> str:
        if not is_blank(self.effective_column_name):
            return self.effective_column_name.strip()  # type: ignore[union-attr]
        return self.column_name


class SeedTableDefinition(BaseModel):
    """Identity and column layout of one emittable table."""

    model_config = _SHARED_CONFIG

    module: str = Field(..., min_length=1)
    logical_name: str = Field(..., min_length=1)
    schema_name: str = Field(default="dbo", alias="schema")
    physical_name: str = Field(..., min_length=1)
    columns: List[SeedColumn] = Field(default_factory=list)

    @property
    def primary_key_indices(self) -> List[int]:
        return [i for i, c in enumerate(self.columns) if c.is_primary_key]

    @property
    def has_identity(self) -> bool:
        return any(c.is_identity for c in self.columns)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.physical_name}"

    def __repr__(self) -> str:
        return f"<SeedTableDefinition {self.module}::{self.logical_name} ({self.qualified_name})>"


class SeedTableData(BaseModel):
    """A table definition plus its row payload."""

    model_config = _SHARED_CONFIG

    definition: SeedTableDefinition
    rows: List[List[Any]] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def row_count(self) -> int:
        return len(self.rows)

    def sorted_rows(self) -> List[List[Any]]:
        """
        Rows in deterministic order: by primary-key columns, or by every
        column when the table has no primary key.
        """
        indices: List[int] = self.definition.primary_key_indices or list(
            range(len(self.definition.columns))
        )
        return sorted(
            self.rows,
            key=lambda row: tuple(
                value_sort_key(row[i]) if i < len(row) else value_sort_key(None)
                for i in indices
            ),
        )

    def merged_with(self, other: "SeedTableData") -> "SeedTableData":
        """Union of both row sets (first occurrence wins), keeping this definition."""
        seen: Set[Tuple[Any, ...]] = set()
        rows: List[List[Any]] = []
        for row in list(self.rows) + list(other.rows):
            marker: Tuple[Any, ...] = tuple(value_sort_key(v) for v in row)
            if marker in seen:
                continue
            seen.add(marker)
            rows.append(list(row))
        return SeedTableData(definition=self.definition, rows=rows)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DeleteRule",
    "AttributeModel",
    "ConstraintColumn",
    "RelationshipConstraint",
    "RelationshipModel",
    "EntityModel",
    "ModuleModel",
    "ApplicationModel",
    "SeedColumn",
    "SeedTableDefinition",
    "SeedTableData",
]

logger.debug("seedorder.models loaded — %d public symbols.", len(__all__))
