"""
Schema model consumed by the seeding engine.

Tables, columns and relations come from an external loader; this module only
holds them. Column type tags are resolved once, at construction, into a
ColumnKind so nothing downstream has to sniff type strings again.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from seedforge.errors import ConfigurationError


class ColumnKind(Enum):
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    UUID = "uuid"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    DATETIME = "datetime"
    YEAR = "year"
    INTERVAL = "interval"
    JSON = "json"
    POINT = "point"
    LINE = "line"
    BIT = "bit"
    INET = "inet"
    VECTOR = "vector"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, column_type: str) -> "ColumnKind":
        tag = (column_type or "").strip().lower()
        for pattern, kind in _KIND_PATTERNS:
            if re.search(pattern, tag):
                return kind
        return cls.UNKNOWN


# Order matters: more specific tags first ("timestamp" before "time",
# "bigint" before "int", "interval" before "int").
_KIND_PATTERNS = [
    (r"interval", ColumnKind.INTERVAL),
    (r"bigint|bigserial|int8\b", ColumnKind.BIGINT),
    (r"smallint|smallserial|tinyint|mediumint|int2\b", ColumnKind.SMALLINT),
    (r"^(int|integer|int4|serial)\b|^integer|^serial", ColumnKind.INTEGER),
    (r"uuid|uniqueidentifier", ColumnKind.UUID),
    (r"timestamp", ColumnKind.TIMESTAMP),
    (r"datetime", ColumnKind.DATETIME),
    (r"^date$", ColumnKind.DATE),
    (r"^time", ColumnKind.TIME),
    (r"^year$", ColumnKind.YEAR),
    (r"bool|^bit$", ColumnKind.BOOLEAN),
    (r"varbit|bit\s*varying|^bit\(", ColumnKind.BIT),
    (r"real|double|float|decimal|numeric|money", ColumnKind.NUMBER),
    (r"json", ColumnKind.JSON),
    (r"point|geometry", ColumnKind.POINT),
    (r"^line$", ColumnKind.LINE),
    (r"inet|cidr", ColumnKind.INET),
    (r"vector", ColumnKind.VECTOR),
    (r"char|text|string|clob|enum", ColumnKind.STRING),
]

_DATA_TYPES = {
    ColumnKind.SMALLINT: "number",
    ColumnKind.INTEGER: "number",
    ColumnKind.BIGINT: "bigint",
    ColumnKind.NUMBER: "number",
    ColumnKind.BOOLEAN: "boolean",
    ColumnKind.DATE: "date",
    ColumnKind.TIMESTAMP: "date",
    ColumnKind.DATETIME: "date",
    ColumnKind.YEAR: "string",
    ColumnKind.JSON: "json",
    ColumnKind.POINT: "array",
    ColumnKind.LINE: "array",
    ColumnKind.VECTOR: "array",
}


@dataclass
class Column:
    """
    One table column.

    type_params may carry `length` (max string length), `precision`/`scale`
    for numerics, `dimensions` for bit strings and vectors, and `fields` for
    intervals. A non-None `array_size` makes every value a list of that many
    base values.
    """

    name: str
    column_type: str = "text"
    data_type: Optional[str] = None
    is_unique: bool = False
    not_null: bool = False
    primary: bool = False
    enum_values: Optional[list] = None
    default: Any = None
    has_default: bool = False
    generated_identity: Optional[str] = None
    type_params: dict = field(default_factory=dict)
    array_size: Optional[int] = None
    kind: ColumnKind = field(init=False)

    def __post_init__(self):
        self.kind = ColumnKind.from_type(self.column_type)
        if self.data_type is None:
            self.data_type = _DATA_TYPES.get(self.kind, "string")
        if self.primary:
            self.not_null = True

    @property
    def identity_override(self) -> bool:
        return self.generated_identity == "always"


@dataclass
class Table:
    name: str
    columns: list
    primary_keys: list = field(default_factory=list)
    unique_constraints: list = field(default_factory=list)

    def __post_init__(self):
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"table '{self.name}' has duplicate column names: {names}")
        for col in self.columns:
            if col.primary and col.name not in self.primary_keys:
                self.primary_keys.append(col.name)
        for key in self.primary_keys:
            self.column(key).primary = True
            self.column(key).not_null = True
        for constraint in self.unique_constraints:
            for col_name in constraint:
                self.column(col_name)

    def column(self, name: str) -> Column:
        for col in self.columns:
            if col.name == name:
                return col
        raise ConfigurationError(f"table '{self.name}' has no column '{name}'")

    def has_column(self, name: str) -> bool:
        return any(col.name == name for col in self.columns)


@dataclass(frozen=True)
class Relation:
    """Foreign key from table.columns to ref_table.ref_columns."""

    table: str
    columns: tuple
    ref_table: str
    ref_columns: tuple

    def __post_init__(self):
        if len(self.columns) != len(self.ref_columns):
            raise ConfigurationError(
                f"relation {self.table}{list(self.columns)} -> {self.ref_table}{list(self.ref_columns)} "
                "has a different number of columns on each side."
            )

    @property
    def is_self_relation(self) -> bool:
        return self.table == self.ref_table

    @property
    def key(self) -> str:
        return f"{self.table}.{'_'.join(self.columns)}"


@dataclass(frozen=True)
class WeightedCount:
    weight: float
    count: Any  # int or a list of ints to pick from uniformly


def normalize_weighted_counts(value) -> list:
    """Accept WeightedCount objects or {'weight': .., 'count': ..} dicts."""
    result = []
    for item in value:
        if isinstance(item, WeightedCount):
            result.append(item)
        elif isinstance(item, dict):
            result.append(WeightedCount(weight=item["weight"], count=item["count"]))
        else:
            raise ConfigurationError(f"cannot read weighted count from {item!r}")
    return result


@dataclass
class Refinement:
    """
    Per-table overrides.

    columns maps a column name to a generator, or to False to fill it with
    nulls. with_counts maps a dependant table to a constant fan-out or to a
    list of weighted counts.
    """

    count: Optional[int] = None
    columns: dict = field(default_factory=dict)
    with_counts: dict = field(default_factory=dict)

    @classmethod
    def from_value(cls, value) -> "Refinement":
        if isinstance(value, Refinement):
            return value
        if not isinstance(value, dict):
            raise ConfigurationError(f"refinement must be a dict or Refinement, got {value!r}")
        unknown = set(value) - {"count", "columns", "with"}
        if unknown:
            raise ConfigurationError(f"unknown refinement keys: {sorted(unknown)}")
        with_counts = {}
        for child, fan_out in (value.get("with") or {}).items():
            if isinstance(fan_out, (list, tuple)):
                fan_out = normalize_weighted_counts(fan_out)
            with_counts[child] = fan_out
        return cls(
            count=value.get("count"),
            columns=dict(value.get("columns") or {}),
            with_counts=with_counts,
        )
