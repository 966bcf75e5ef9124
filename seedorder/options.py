# File: seedorder/options.py
"""
SeedOrder - Run Options & Configuration Loading
================================================
Typed option objects handed to the ordering engine and the script writers:

- ``NamingOverrideOptions``  — the injected effective-name function.
- ``CircularDependencyOptions`` — manual cycle orderings, "allowed" markers
  and strict mode.
- ``DependencySortOptions`` — sorter tie-break knobs.
- ``InsertGenerationOptions`` — batch size and seed synchronisation mode.

Configuration files may be JSON or YAML; keys are accepted in either
snake_case or the camelCase spelling used by existing config files
(``allowedCycles``, ``tableOrdering``, ``tableName``, ``strictMode``).
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    model_validator,
)

from seedorder.utils import fold_name, is_blank

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedorder.options")

# (schema, physical_name, logical_name, module) -> effective name
NameResolver = Callable[[str, str, Optional[str], Optional[str]], str]

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


class CircularDependencyConfigError(ValueError):
    """Invalid or unmatched circular-dependency configuration."""


# ---------------------------------------------------------------------------
# Naming overrides
# ---------------------------------------------------------------------------


class TableNamingOverride(BaseModel):
    """Rename ``schema.source`` to ``target`` for emission."""

    model_config = _SHARED_CONFIG

    schema_name: str = Field(default="dbo", alias="schema")
    source: str = Field(..., min_length=1, description="Physical table name.")
    target: str = Field(..., min_length=1, description="Effective table name.")


class EntityNamingOverride(BaseModel):
    """Rename a logical entity (optionally scoped to a module) for emission."""

    model_config = _SHARED_CONFIG

    module: Optional[str] = Field(default=None)
    logical_name: str = Field(..., min_length=1, alias="entity")
    target: str = Field(..., min_length=1)


def _table_key(schema: Optional[str], table: str) -> str:
    schema_part: str = "dbo" if is_blank(schema) else schema.strip()  # type: ignore[union-attr]
    return fold_name(f"{schema_part}.{table.strip()}")


def _entity_key(module: Optional[str], logical_name: str) -> str:
    module_part: str = "" if is_blank(module) else module.strip()  # type: ignore[union-attr]
    return fold_name(f"{module_part}::{logical_name.strip()}")


class NamingOverrideOptions(BaseModel):
    """
    Effective-name rules applied before a table becomes a graph vertex.

    Instances are callable with the ``NameResolver`` signature so they can be
    passed anywhere a plain naming function is accepted.
    """

    model_config = _SHARED_CONFIG

    tables: List[TableNamingOverride] = Field(default_factory=list)
    entities: List[EntityNamingOverride] = Field(default_factory=list)

    _table_map: Dict[str, str] = PrivateAttr(default_factory=dict)
    _entity_map: Dict[str, str] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _index_rules(self) -> "NamingOverrideOptions":
        table_map: Dict[str, str] = {}
        entity_map: Dict[str, str] = {}
        targets: Dict[str, str] = {}

        def claim(source: str, target: str) -> None:
            owner: Optional[str] = targets.get(fold_name(target))
            if owner is not None and owner != source:
                raise ValueError(
                    f"Naming overrides '{owner}' and '{source}' both map to '{target}'."
                )
            targets[fold_name(target)] = source

        for rule in self.tables:
            key: str = _table_key(rule.schema_name, rule.source)
            if key in table_map and fold_name(table_map[key]) != fold_name(rule.target):
                raise ValueError(f"Conflicting table overrides for '{key}'.")
            claim(key, rule.target)
            table_map[key] = rule.target.strip()

        for entity_rule in self.entities:
            key = _entity_key(entity_rule.module, entity_rule.logical_name)
            if key in entity_map and fold_name(entity_map[key]) != fold_name(entity_rule.target):
                raise ValueError(f"Conflicting entity overrides for '{key}'.")
            claim(key, entity_rule.target)
            entity_map[key] = entity_rule.target.strip()

        self._table_map = table_map
        self._entity_map = entity_map
        return self

    @property
    def is_empty(self) -> bool:
        return not self.tables and not self.entities

    def get_effective_table_name(
        self,
        schema: str,
        table: str,
        logical_name: Optional[str] = None,
        module: Optional[str] = None,
    ) -> str:
        """
        Resolve the name a table is emitted under.

        Order: table rule, entity rule (module-scoped, then module-less),
        trimmed logical name, physical name.
        """
        table_override: Optional[str] = self._table_map.get(_table_key(schema, table))
        if table_override is not None:
            return table_override

        if not is_blank(logical_name):
            for key in (
                _entity_key(module, logical_name),  # type: ignore[arg-type]
                _entity_key(None, logical_name),  # type: ignore[arg-type]
            ):
                entity_override: Optional[str] = self._entity_map.get(key)
                if entity_override is not None:
                    return entity_override
            return logical_name.strip()  # type: ignore[union-attr]

        return table

    def __call__(
        self,
        schema: str,
        table: str,
        logical_name: Optional[str] = None,
        module: Optional[str] = None,
    ) -> str:
        return self.get_effective_table_name(schema, table, logical_name, module)


def default_name_resolver(
    schema: str,
    table: str,
    logical_name: Optional[str] = None,
    module: Optional[str] = None,
) -> str:
    """Naming function used when no overrides are configured."""
    if not is_blank(logical_name):
        return logical_name.strip()  # type: ignore[union-attr]
    return table


# ---------------------------------------------------------------------------
# Circular-dependency configuration
# ---------------------------------------------------------------------------


class TableOrdering(BaseModel):
    """Manual load position of one table inside an allowed cycle."""

    model_config = _SHARED_CONFIG

    table_name: str = Field(..., min_length=1, alias="tableName")
    position: int = Field(..., ge=0)


class AllowedCycle(BaseModel):
    """
    A cycle the operator has reviewed.

    ``table_ordering`` gives an explicit load order (lowest position first).
    ``tables`` without ordering only marks the cycle as allowed; the engine
    still has to break it automatically.
    """

    model_config = _SHARED_CONFIG

    table_ordering: List[TableOrdering] = Field(default_factory=list, alias="tableOrdering")
    tables: List[str] = Field(default_factory=list)
    reason: Optional[str] = Field(default=None)

    @model_validator(mode="after")
    def _check_members(self) -> "AllowedCycle":
        if not self.table_ordering and not self.tables:
            raise ValueError("An allowed cycle must list at least one table.")

        positions: Set[int] = set()
        for entry in self.table_ordering:
            if entry.position in positions:
                raise ValueError(
                    f"Duplicate position {entry.position} in cycle ordering "
                    f"({', '.join(t.table_name for t in self.table_ordering)})."
                )
            positions.add(entry.position)

        names: List[str] = [fold_name(t.table_name) for t in self.table_ordering]
        names.extend(fold_name(t) for t in self.tables)
        if len(names) != len(set(names)):
            raise ValueError("A table is listed more than once in the same allowed cycle.")
        return self

    @property
    def has_explicit_order(self) -> bool:
        return bool(self.table_ordering)

    @property
    def member_names(self) -> FrozenSet[str]:
        names: Set[str] = {fold_name(t.table_name) for t in self.table_ordering}
        names.update(fold_name(t) for t in self.tables)
        return frozenset(names)

    @property
    def ordered_tables(self) -> List[str]:
        return [t.table_name for t in sorted(self.table_ordering, key=lambda t: t.position)]

    @property
    def label(self) -> str:
        if self.table_ordering:
            return " → ".join(self.ordered_tables)
        return ", ".join(self.tables)

    def position_of(self, table_name: str) -> Optional[int]:
        wanted: str = fold_name(table_name)
        for entry in self.table_ordering:
            if fold_name(entry.table_name) == wanted:
                return entry.position
        return None

    def matches(self, members: Sequence[Union[str, Iterable[str]]]) -> bool:
        """
        True when the configured names and *members* are the same set.

        Each member may be given as one name or as a collection of aliases
        (physical and effective name); a configured name may match any alias
        of exactly one member.
        """
        configured: FrozenSet[str] = self.member_names
        if len(configured) != len(members):
            return False
        used: Set[str] = set()
        for member in members:
            aliases: Set[str] = (
                {fold_name(member)} if isinstance(member, str) else {fold_name(a) for a in member}
            )
            hits: Set[str] = (aliases & configured) - used
            if len(hits) != 1:
                return False
            used |= hits
        return used == configured


class CircularDependencyOptions(BaseModel):
    """Operator decisions about foreign-key cycles."""

    model_config = _SHARED_CONFIG

    allowed_cycles: List[AllowedCycle] = Field(default_factory=list, alias="allowedCycles")
    strict_mode: bool = Field(
        default=False,
        alias="strictMode",
        description="Refuse every cycle, even allowed ones.",
    )

    @classmethod
    def empty(cls) -> "CircularDependencyOptions":
        return cls()

    def find_allowed_cycle(
        self, members: Sequence[Union[str, Iterable[str]]]
    ) -> Optional[AllowedCycle]:
        """Configured cycle whose table set equals *members* (strict mode ignored)."""
        for cycle in self.allowed_cycles:
            if cycle.matches(members):
                return cycle
        return None

    def is_cycle_allowed(self, members: Sequence[Union[str, Iterable[str]]]) -> bool:
        if self.strict_mode:
            return False
        return self.find_allowed_cycle(members) is not None

    def get_manual_position(self, table_name: str) -> Optional[int]:
        for cycle in self.allowed_cycles:
            position: Optional[int] = cycle.position_of(table_name)
            if position is not None:
                return position
        return None


# ---------------------------------------------------------------------------
# Sort & generation options
# ---------------------------------------------------------------------------


class DependencySortOptions(BaseModel):
    """Knobs for the topological sorter."""

    model_config = _SHARED_CONFIG

    defer_junction_tables: bool = Field(
        default=False,
        alias="deferJunctionTables",
        description="Place many-to-many junction tables as late as possible.",
    )


class StaticSeedMode(str, Enum):
    """How static seed MERGE blocks treat existing rows."""

    NON_DESTRUCTIVE = "non_destructive"
    VALIDATE_THEN_APPLY = "validate_then_apply"
    AUTHORITATIVE = "authoritative"


class InsertGenerationOptions(BaseModel):
    """Rendering options shared by the script writers."""

    model_config = _SHARED_CONFIG

    batch_size: int = Field(default=1000, gt=0, alias="batchSize")
    static_seed_mode: StaticSeedMode = Field(
        default=StaticSeedMode.NON_DESTRUCTIVE, alias="staticSeedMode", validate_default=True
    )
    emit_phase_banners: bool = Field(default=True, alias="emitPhaseBanners")


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_mapping_file(path: Path) -> Dict[str, Any]:
    """
    Load a JSON or YAML mapping, dispatching on the file extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_circular_dependency_config(raw: Dict[str, Any]) -> CircularDependencyOptions:
    """Validate a raw mapping into ``CircularDependencyOptions``."""
    try:
        options: CircularDependencyOptions = CircularDependencyOptions.model_validate(raw)
    except ValidationError as exc:
        raise CircularDependencyConfigError(
            f"Invalid circular dependency configuration: {exc}"
        ) from exc
    logger.debug(
        "Circular dependency config: %d allowed cycle(s), strict=%s.",
        len(options.allowed_cycles),
        options.strict_mode,
    )
    return options


def load_circular_dependency_config(path: Path) -> CircularDependencyOptions:
    """Load ``CircularDependencyOptions`` from a JSON/YAML file."""
    raw: Dict[str, Any] = load_mapping_file(path)
    if not raw:
        raise CircularDependencyConfigError(f"Circular dependency configuration {path} is empty.")
    return parse_circular_dependency_config(raw)


def load_naming_overrides(path: Path) -> NamingOverrideOptions:
    """Load ``NamingOverrideOptions`` from a JSON/YAML file."""
    raw: Dict[str, Any] = load_mapping_file(path)
    try:
        return NamingOverrideOptions.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid naming overrides in {path}: {exc}") from exc


def resolve_name_function(
    naming_overrides: Optional[Union[NamingOverrideOptions, NameResolver]],
) -> NameResolver:
    """Return a callable naming function for optional override input."""
    if naming_overrides is None:
        return default_name_resolver
    return naming_overrides


def table_aliases(schema: str, physical_name: str, effective_name: str) -> Tuple[str, ...]:
    """Names an operator may use to refer to a table in configuration."""
    return (
        physical_name,
        effective_name,
        f"{schema}.{physical_name}",
        f"{schema}.{effective_name}",
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NameResolver",
    "CircularDependencyConfigError",
    "TableNamingOverride",
    "EntityNamingOverride",
    "NamingOverrideOptions",
    "default_name_resolver",
    "TableOrdering",
    "AllowedCycle",
    "CircularDependencyOptions",
    "DependencySortOptions",
    "StaticSeedMode",
    "InsertGenerationOptions",
    "load_mapping_file",
    "parse_circular_dependency_config",
    "load_circular_dependency_config",
    "load_naming_overrides",
    "resolve_name_function",
    "table_aliases",
]

logger.debug("seedorder.options loaded — %d public symbols.", len(__all__))
