"""
Storage collaborators.

A sink receives row batches as lists of {column: value} dicts and reports
how many bound parameters one statement may carry, which caps the batch
size the engine uses.
"""

import json
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date, datetime

import polars as pl

from seedforge.errors import ConfigurationError

logger = logging.getLogger(__name__)

POSTGRES_PLACEHOLDER_LIMIT = 65535
PGLITE_PLACEHOLDER_LIMIT = 32740
MYSQL_PLACEHOLDER_LIMIT = 100000
SQLITE_PLACEHOLDER_LIMIT = 32766
MSSQL_PLACEHOLDER_LIMIT = 2100

PLACEHOLDER_LIMITS = {
    "postgresql": POSTGRES_PLACEHOLDER_LIMIT,
    "pglite": PGLITE_PLACEHOLDER_LIMIT,
    "mysql": MYSQL_PLACEHOLDER_LIMIT,
    "sqlite": SQLITE_PLACEHOLDER_LIMIT,
    "mssql": MSSQL_PLACEHOLDER_LIMIT,
}


class DataSink(ABC):
    """Abstract base class for data sinks."""

    # None means no limit
    placeholder_limit = POSTGRES_PLACEHOLDER_LIMIT
    supports_update = False

    @abstractmethod
    def insert(self, table: str, rows: list, overriding_identity: bool = False) -> int:
        """Write one batch, return the number of rows written."""

    def update(self, table: str, key_column: str, rows: list) -> int:
        """
        Set the non-key columns of each row on the stored row with the same
        key_column value. Used to back-fill deferred cyclic foreign keys.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support updates")

    def close(self):
        pass


class MemorySink(DataSink):
    """Keeps inserted rows per table; handy for tests and dry runs."""

    supports_update = True

    def __init__(self, placeholder_limit: int = POSTGRES_PLACEHOLDER_LIMIT):
        self.placeholder_limit = placeholder_limit
        self.tables = defaultdict(list)
        self.batches = defaultdict(list)
        self.identity_overrides = set()

    def insert(self, table, rows, overriding_identity=False):
        self.tables[table].extend(dict(row) for row in rows)
        self.batches[table].append(len(rows))
        if overriding_identity:
            self.identity_overrides.add(table)
        return len(rows)

    def update(self, table, key_column, rows):
        by_key = {row[key_column]: row for row in rows}
        updated = 0
        for stored in self.tables[table]:
            patch = by_key.get(stored.get(key_column))
            if patch is not None:
                stored.update(patch)
                updated += 1
        return updated


def _adapt(value):
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat(sep=" ") if isinstance(value, datetime) else value.isoformat()
    return value


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SQLiteSink(DataSink):
    """
    Multi-row INSERT statements over sqlite3. Tables must already exist.
    Each batch is committed on its own.
    """

    placeholder_limit = SQLITE_PLACEHOLDER_LIMIT
    supports_update = True

    def __init__(self, path: str = ":memory:", connection: sqlite3.Connection = None):
        self.connection = connection if connection is not None else sqlite3.connect(path)
        self._owns_connection = connection is None

    def insert(self, table, rows, overriding_identity=False):
        if not rows:
            return 0
        columns = list(rows[0])
        row_sql = "(" + ", ".join("?" for _ in columns) + ")"
        sql = (
            f"INSERT INTO {_quote(table)} ({', '.join(_quote(c) for c in columns)}) "
            f"VALUES {', '.join(row_sql for _ in rows)}"
        )
        params = [_adapt(row[c]) for row in rows for c in columns]
        with self.connection:
            self.connection.execute(sql, params)
        logger.debug("Inserted %d rows into %s", len(rows), table)
        return len(rows)

    def update(self, table, key_column, rows):
        if not rows:
            return 0
        columns = [c for c in rows[0] if c != key_column]
        sql = (
            f"UPDATE {_quote(table)} SET {', '.join(f'{_quote(c)} = ?' for c in columns)} "
            f"WHERE {_quote(key_column)} = ?"
        )
        params = [[_adapt(row[c]) for c in columns] + [_adapt(row[key_column])] for row in rows]
        with self.connection:
            self.connection.executemany(sql, params)
        return len(rows)

    def close(self):
        if self._owns_connection:
            self.connection.close()


class LocalSink(DataSink):
    """Write every batch to <destination>/<table>/part_<n>.<format> through polars."""

    placeholder_limit = None

    def __init__(self, destination: str, file_format: str = "parquet"):
        if file_format not in ("parquet", "csv", "json"):
            raise ConfigurationError(f"Unknown file format: {file_format}")
        self.destination = os.path.abspath(os.path.expanduser(destination))
        self.file_format = file_format
        self.written_paths = []
        self._parts = defaultdict(int)

    def insert(self, table, rows, overriding_identity=False):
        if not rows:
            return 0
        out_dir = os.path.join(self.destination, table)
        os.makedirs(out_dir, exist_ok=True)
        df = pl.DataFrame(rows, infer_schema_length=None)
        filepath = os.path.join(out_dir, f"part_{self._parts[table]}.{self.file_format}")
        self._parts[table] += 1

        if self.file_format == "csv":
            # csv has no nested types
            nested = [name for name, dtype in df.schema.items() if dtype.is_nested()]
            if nested:
                df = df.with_columns(pl.col(nested).map_elements(
                    lambda v: json.dumps(v.to_list() if isinstance(v, pl.Series) else v),
                    return_dtype=pl.String,
                ))
            df.write_csv(filepath)
        elif self.file_format == "json":
            df.write_json(filepath)
        else:
            df.write_parquet(filepath)

        self.written_paths.append(filepath)
        return len(rows)


def get_sink(sink_type: str, **kwargs) -> DataSink:
    """Factory function to create a sink by type."""
    if sink_type == "memory":
        limit = kwargs.get("placeholder_limit")
        if limit is None:
            limit = PLACEHOLDER_LIMITS.get(kwargs.get("dialect", "postgresql"))
        return MemorySink(placeholder_limit=limit)
    elif sink_type == "sqlite":
        return SQLiteSink(path=kwargs.get("path", ":memory:"), connection=kwargs.get("connection"))
    elif sink_type == "local":
        return LocalSink(
            destination=kwargs.get("destination", "output"),
            file_format=kwargs.get("file_format", "parquet"),
        )
    else:
        raise ConfigurationError(f"Unknown sink type: {sink_type}")
