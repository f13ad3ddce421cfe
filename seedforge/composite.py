"""
Multi-column UNIQUE constraints.

Each column of the constraint contributes a small set of its own unique
values; row i takes the i-th combination of those sets, so no two rows share
the same tuple even when individual columns repeat.
"""

import math
from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.errors import CapacityError, ConfigurationError
from seedforge.rng import derive_seed
from seedforge.sampling import fast_cartesian_product


def _root(count: int, parts: int) -> int:
    """Smallest n with n ** parts >= count."""
    if parts <= 0 or count <= 1:
        return 1
    n = max(1, math.ceil(count ** (1 / parts)))
    while n ** parts < count:
        n += 1
    while n > 1 and (n - 1) ** parts >= count:
        n -= 1
    return n


class GenerateCompositeUniqueKey(AbstractGenerator):
    """
    Shared by every column of one constraint; columns read it through
    CompositeKeyColumn views. The first init wins, later ones are no-ops.
    """

    def __init__(self, params=None, **kwargs):
        super().__init__(params, **kwargs)
        self.column_generators = []
        self._row_index = None
        self._row = None

    def add_generator(self, column_name: str, generator: AbstractGenerator):
        self.column_generators.append(SimpleNamespace(column_name=column_name, generator=generator, count=None))

    def column(self, column_name: str) -> "CompositeKeyColumn":
        return CompositeKeyColumn(key=self, column_name=column_name)

    def init(self, count, seed):
        if self.state is not None:
            return self
        return super().init(count, seed)

    def _plan_counts(self, count):
        columns = sorted(self.column_generators, key=lambda c: c.generator.max_unique_count())
        remaining = count
        for idx, column in enumerate(columns):
            per_column = _root(remaining, len(columns) - idx)
            available = column.generator.max_unique_count()
            column.count = min(per_column, available)
            remaining = math.ceil(remaining / column.count) if column.count else remaining
        return columns

    def make_state(self, count, seed):
        if not self.column_generators:
            raise ConfigurationError("composite unique key generator has no generators to work with.")
        columns = self._plan_counts(count)
        combinations = math.prod(c.count for c in columns)
        if combinations < count:
            details = ", ".join(f"{c.generator.name}: {c.count}" for c in columns)
            raise CapacityError(f"combinations ({details})", count, combinations)

        sets = [self._distinct_values(column, seed) for column in columns]
        self.column_generators = columns
        return SimpleNamespace(sets=sets)

    @staticmethod
    def _distinct_values(column, seed) -> list:
        gen = column.generator
        gen.init(column.count, derive_seed(seed, column.column_name))
        values, seen = [], set()
        attempts = column.count * 10 + 100
        for i in range(attempts):
            if len(values) == column.count:
                break
            value = gen.generate(i)
            key = repr(value)
            if key not in seen:
                seen.add(key)
                values.append(value)
        if len(values) < column.count:
            raise CapacityError(f"values for column '{column.column_name}'", column.count, len(values))
        return values

    def row(self, i: int) -> dict:
        return self.generate(i)

    def next_value(self, i):
        if self._row_index != i:
            values = fast_cartesian_product(self.state.sets, i)
            self._row = {c.column_name: v for c, v in zip(self.column_generators, values)}
            self._row_index = i
        return self._row


class CompositeKeyColumn(AbstractGenerator):
    """One column's view of a GenerateCompositeUniqueKey."""

    def make_state(self, count, seed):
        self.params["key"].init(count, seed)
        return SimpleNamespace()

    def next_value(self, i):
        return self.params["key"].row(i)[self.params["column_name"]]
