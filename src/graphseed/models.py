"""Data models and type definitions."""

import copy
import inspect
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from graphseed.exceptions import (
    AttributeSequenceError,
    ConfigurationError,
    InvalidOverrideError,
)

_LENGTH_SUFFIX = re.compile(r"\s*\(.*\)$")


@dataclass
class ColumnInfo:
    """
    Column metadata, declared by hand or read from database introspection.

    Attributes:
        name: Column name
        column_type: Logical type tag (e.g. "integer", "varchar(42)", "enum")
        is_nullable: Whether column allows NULL values
        is_primary_key: Whether column is primary key
        is_auto_generated: Whether the store assigns the value (IDENTITY, serial)
        default_value: Store default value expression (if any)
        values: Allowed values for enumerated columns
        is_url: Whether the column must hold a URL
        references: Table referenced by this column (if any)
    """

    name: str
    column_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    is_auto_generated: bool = False
    default_value: str | None = None
    values: tuple[str, ...] | None = None
    is_url: bool = False
    references: str | None = None

    @property
    def base_type(self) -> str:
        """
        Normalized type tag.

        Returns:
            Lower-cased type without length suffix or UNSIGNED modifier,
            e.g. "SMALLINT UNSIGNED" -> "smallint", "CHAR(32)" -> "char"
        """
        normalized = _LENGTH_SUFFIX.sub("", self.column_type.strip().lower())
        return normalized.removesuffix(" unsigned").strip()


class AssociationKind(Enum):
    """Kind of a declared association."""

    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"


@dataclass
class AssociationInfo:
    """
    Directed relationship from an owning table to a target table.

    The descriptor is complete once declared: resolving a relationship never
    derives column or accessor names from the target's name at run time.

    Attributes:
        kind: Association kind (only BELONGS_TO drives resolution)
        target: Target table name
        foreign_key: Foreign key column (on the owner for BELONGS_TO)
        referenced_column: Column of the target the foreign key points at
        alias: Relationship name overriding the target table name
        plural: Whether the relationship is set with a list of rows
    """

    kind: AssociationKind
    target: str
    foreign_key: str
    referenced_column: str = "id"
    alias: str | None = None
    plural: bool = False

    @property
    def name(self) -> str:
        """Relationship name: alias if declared, target table name otherwise."""
        return self.alias or self.target


@dataclass
class TableInfo:
    """
    Table metadata with declared associations.

    Attributes:
        name: Table name
        columns: List of column metadata
        associations: List of associations owned by this table
    """

    name: str
    columns: list[ColumnInfo]
    associations: list[AssociationInfo] = field(default_factory=list)

    @property
    def pk_column(self) -> str | None:
        """
        Get primary key column name.

        Returns:
            Primary key column name or None if no PK found
        """
        for col in self.columns:
            if col.is_primary_key:
                return col.name
        return None

    @property
    def belongs_to(self) -> list[AssociationInfo]:
        """Associations whose foreign key lives on this table."""
        return [a for a in self.associations if a.kind is AssociationKind.BELONGS_TO]

    @property
    def foreign_key_columns(self) -> set[str]:
        """Foreign key columns of all BELONGS_TO associations."""
        return {a.foreign_key for a in self.belongs_to}

    def get_column(self, name: str) -> ColumnInfo | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None


_ROW_FIELDS = frozenset({"table", "_data", "pk_column", "generator"})


@dataclass(eq=False)
class SeedRow:
    """
    A persisted row with attribute access.

    Allows accessing column values as attributes:
        row.id              # Access primary key
        row.name            # Access name column
        row.generator       # Related rows resolved for this row

    Attributes:
        table: Name of the table the row belongs to
        _data: Raw column data dict
        pk_column: Primary key column name
        generator: Relationship name -> directly resolved related row(s)
    """

    table: str
    _data: dict[str, Any]
    pk_column: str | None = "id"
    generator: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        """
        Allow attribute access to column values.

        Raises:
            AttributeError: If column doesn't exist
        """
        if name.startswith("_"):
            raise AttributeError(f"No attribute '{name}'")
        if name in self._data:
            return self._data[name]
        raise AttributeError(f"No column '{name}' in row of '{self.table}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _ROW_FIELDS:
            object.__setattr__(self, name, value)
        else:
            self._data[name] = value

    def __getitem__(self, column: str) -> Any:
        return self._data[column]

    def __setitem__(self, column: str, value: Any) -> None:
        self._data[column] = value

    def __contains__(self, column: object) -> bool:
        return column in self._data

    def get(self, column: str, default: Any = None) -> Any:
        return self._data.get(column, default)

    @property
    def pk(self) -> Any:
        """Primary key value (None when the table has no primary key)."""
        if self.pk_column is None:
            return None
        return self._data.get(self.pk_column)

    @property
    def identity(self) -> tuple[str, Any]:
        """
        (table, primary key) pair identifying the row.

        Rows of tables without a primary key are identified by object.
        """
        if self.pk is None:
            return (self.table, id(self))
        return (self.table, self.pk)

    def to_dict(self) -> dict[str, Any]:
        """Column values as a plain dict (generator map excluded)."""
        return dict(self._data)

    def __repr__(self) -> str:
        return f"SeedRow(table={self.table!r}, {self.pk_column}={self.pk!r})"


class ResolutionMode(Enum):
    """How a BELONGS_TO association gets its target row."""

    KEY = "key"  # reuse the row named by the foreign key, create otherwise
    SHARED = "shared"  # first existing row, created once if missing
    ANY = "any"  # random existing row
    SKIP = "skip"  # leave the association unresolved


SHARED = ResolutionMode.SHARED.value
ANY = ResolutionMode.ANY.value

_NESTED_KEYS = frozenset({"attributes", "strategy"})


@dataclass
class _ResolutionState:
    """Bookkeeping shared by every branch of one resolution call."""

    arena: dict[tuple[str, Any], SeedRow] = field(default_factory=dict)
    instances: dict[str, int] = field(default_factory=dict)


@dataclass
class ResolutionConfig:
    """
    Options for resolving one table (and, transitively, its parents).

    Attributes:
        attributes: Column -> value | list of per-row values | callable
        count: Number of rows of the top-level table to create
        overrides: Target table -> None | "shared" | "any" | nested config
        strategy: Generation strategy for synthesized columns
        root_instance: First row resolved in the call tree (set once)
    """

    attributes: dict[str, Any] = field(default_factory=dict)
    count: int = 1
    overrides: dict[str, Any] = field(default_factory=dict)
    strategy: str = "faker"
    root_instance: SeedRow | None = None
    _position: int = field(default=0, init=False, repr=False)
    _state: _ResolutionState = field(default_factory=_ResolutionState, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ConfigurationError(f"count must be at least 1, got {self.count}")
        self.overrides = {
            table: self._normalize_override(table, value)
            for table, value in self.overrides.items()
        }

    def _normalize_override(self, table: str, value: Any) -> Any:
        if value is None:
            return value
        if isinstance(value, ResolutionConfig):
            # Only attributes and strategy apply to a nested table
            if value.overrides or value.count != 1:
                raise InvalidOverrideError(table, value)
            return value
        if isinstance(value, str):
            if value in (SHARED, ANY):
                return value
            raise InvalidOverrideError(table, value)
        if isinstance(value, Mapping):
            if not set(value) <= _NESTED_KEYS:
                raise InvalidOverrideError(table, value)
            return ResolutionConfig(
                attributes=dict(value.get("attributes") or {}),
                strategy=value.get("strategy", self.strategy),
            )
        raise InvalidOverrideError(table, value)

    @classmethod
    def from_options(cls, **options: Any) -> "ResolutionConfig":
        """
        Build a config from keyword options.

        Known keys (attributes, count, strategy, overrides) configure the
        top-level table; any other key is treated as a per-table override.

        Example:
            >>> ResolutionConfig.from_options(count=2, ModelParent="shared")
        """
        known = {k: options.pop(k) for k in ("attributes", "count", "strategy") if k in options}
        overrides = dict(options.pop("overrides", None) or {})
        overrides.update(options)
        return cls(overrides=overrides, **known)

    def mode_for(self, table: str) -> ResolutionMode:
        """Resolution mode for associations targeting `table`."""
        if table not in self.overrides:
            return ResolutionMode.KEY
        value = self.overrides[table]
        if value is None:
            return ResolutionMode.SKIP
        if value == SHARED:
            return ResolutionMode.SHARED
        if value == ANY:
            return ResolutionMode.ANY
        return ResolutionMode.KEY

    def nested_for(self, table: str) -> "ResolutionConfig | None":
        """Nested configuration for `table`, if one was given."""
        value = self.overrides.get(table)
        return value if isinstance(value, ResolutionConfig) else None

    def take_attributes(self, table: str, count: int) -> list[dict[str, Any]]:
        """
        Resolve attribute values for the next `count` rows.

        Lists and tuples are consumed positionally, callables are invoked per
        row, other values are reused verbatim. The position advances, so a
        nested config shared across branches keeps consuming where it stopped.

        Args:
            table: Table the rows belong to (for error messages)
            count: Number of rows

        Returns:
            One attribute dict per row

        Raises:
            AttributeSequenceError: If a sequence runs out of values
        """
        rows = []
        for position in range(self._position, self._position + count):
            row = {}
            for column, value in self.attributes.items():
                if isinstance(value, (list, tuple)):
                    if position >= len(value):
                        raise AttributeSequenceError(column, table, len(value), position)
                    row[column] = value[position]
                elif callable(value):
                    row[column] = _call_with_instance(value, position + 1)
                else:
                    row[column] = value
            rows.append(row)
        self._position += count
        return rows

    def for_call(self) -> "ResolutionConfig":
        """
        Copy with fresh per-call state.

        The copy has no root, starts every attribute sequence (nested ones
        included) from the beginning, and gets an empty resolved-row arena
        and instance counters. The caller's config is left untouched, so one
        config can drive several top-level calls.
        """
        call = copy.copy(self)
        call.root_instance = None
        call._position = 0
        call._state = _ResolutionState()
        call.overrides = {
            table: value.for_call() if isinstance(value, ResolutionConfig) else value
            for table, value in self.overrides.items()
        }
        return call

    def branch(self) -> "ResolutionConfig":
        """
        Shallow derivative for one row of a batch.

        Shares overrides, nested configs and the resolved-row arena, but
        starts with its own unset root_instance.
        """
        derived = copy.copy(self)
        derived.root_instance = None
        return derived

    def is_resolved(self, row: SeedRow) -> bool:
        return row.identity in self._state.arena

    def mark_resolved(self, row: SeedRow) -> None:
        self._state.arena[row.identity] = row

    def next_instance(self, table: str) -> int:
        """1-based instance number of the next row created for `table` in this call."""
        instance = self._state.instances.get(table, 0) + 1
        self._state.instances[table] = instance
        return instance


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _call_with_instance(func: Any, instance: int) -> Any:
    """Call `func` with the 1-based instance number if it requires a positional argument."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return func()
    if any(p.kind in _POSITIONAL and p.default is p.empty for p in params):
        return func(instance)
    return func()
