"""
Seeding errors.

Every failure the engine raises derives from SeedError so callers can catch
the whole family. The ValueError/RuntimeError bases keep plain `except
ValueError` handlers working for validation problems.
"""


class SeedError(Exception):
    """Base class for all seeding failures."""


class ConfigurationError(SeedError, ValueError):
    """Invalid weights, generator params, refinements or schema wiring."""


class CyclicDependencyError(ConfigurationError):
    """Tables depend on each other through NOT NULL foreign keys only."""

    def __init__(self, tables):
        self.tables = list(tables)
        super().__init__(
            f"Circular dependency detected involving tables: {self.tables}. "
            "Every relation in the cycle has NOT NULL foreign key columns, "
            "so no relation can be filled in a second pass."
        )


class CapacityError(SeedError, ValueError):
    """More distinct values requested than a bounded domain holds."""

    def __init__(self, what: str, requested: int, available):
        self.requested = requested
        self.available = available
        super().__init__(
            f"count ({requested}) exceeds max number of unique {what} ({available})."
        )


class ExhaustionError(SeedError, RuntimeError):
    """The unique integer pool ran dry while values were still required."""


class UnsupportedColumnError(SeedError):
    """No generator could be picked for a column."""

    def __init__(self, table: str, column: str, column_type: str):
        self.table = table
        self.column = column
        self.column_type = column_type
        super().__init__(
            f"column '{column}' in table '{table}' with type '{column_type}' is not supported."
        )


class GeneratorStateError(SeedError, RuntimeError):
    """A generator was asked for values before init()."""
