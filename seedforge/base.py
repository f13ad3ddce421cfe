"""
Generator contract.

A generator is built from immutable params, gets its mutable state from
init(count, seed) and is then asked generate(i) for i = 0 .. count-1.
Uniqueness and array columns are handled by composition: resolve_unique()
swaps in a generator's unique counterpart, resolve_array() wraps the result
in GenerateArray.
"""

import math
from abc import ABC, abstractmethod
from types import MappingProxyType, SimpleNamespace

from seedforge.errors import CapacityError, ConfigurationError, GeneratorStateError
from seedforge.rng import seeded, uniform_int
from seedforge.sampling import get_weighted_indices
from seedforge.schema import normalize_weighted_counts


class AbstractGenerator(ABC):
    # class used instead of this one when the column is unique
    unique_version = None
    # True when the generator never repeats a value on its own
    generates_unique = False

    def __init__(self, params=None, **kwargs):
        merged = dict(params or {})
        merged.update(kwargs)
        self.params = MappingProxyType(merged)

        self.is_unique = False
        self.not_null = False
        self.data_type = None
        self.type_params = {}
        self.array_size = merged.get("array_size")
        self.unique_key = None
        self.state = None

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self):
        return f"{self.name}({dict(self.params)})"

    def update_params(self):
        if "array_size" in self.params:
            self.array_size = self.params["array_size"]
        if "is_unique" in self.params:
            if self.params["is_unique"] is False and self.is_unique:
                raise ConfigurationError(
                    f"specifying non unique generator {self.name} to unique column."
                )
            self.is_unique = bool(self.params["is_unique"])

    def max_unique_count(self):
        """Number of distinct values this generator can emit (math.inf if unbounded)."""
        return math.inf

    def required_length(self):
        """Shortest column length that fits every value, None if unconstrained."""
        return None

    def check_length(self):
        length = self.type_params.get("length")
        required = self.required_length()
        if length is not None and required is not None and length < required:
            raise ConfigurationError(
                f"You can't use {self.name} with a db column length restriction of {length}. "
                f"Set the maximum string length to at least {required}."
            )

    def check_capacity(self, count: int, what: str = None):
        available = self.max_unique_count()
        if count > available:
            raise CapacityError(what or self.name, count, available)

    def init(self, count: int, seed: int):
        self.update_params()
        self.check_length()
        self.state = self.make_state(count, seed)
        return self

    def generate(self, i: int = 0):
        if self.state is None:
            raise GeneratorStateError(f"{self.name}.generate() called before init().")
        return self.next_value(i)

    @abstractmethod
    def make_state(self, count: int, seed: int):
        """Validate params against count and return the generator's state."""

    @abstractmethod
    def next_value(self, i: int):
        """Produce the value for row i, advancing the state."""

    def copy_flags_to(self, other: "AbstractGenerator") -> "AbstractGenerator":
        other.is_unique = self.is_unique
        other.not_null = self.not_null
        other.data_type = self.data_type
        other.type_params = dict(self.type_params)
        other.unique_key = self.unique_key
        return other

    def child(self, cls, **params) -> "AbstractGenerator":
        """Build a helper generator that inherits this one's data type."""
        gen = cls(params)
        gen.data_type = self.data_type
        return gen


def resolve_unique(generator: AbstractGenerator) -> AbstractGenerator:
    generator.update_params()
    if generator.is_unique and generator.unique_version is not None:
        unique_gen = generator.unique_version(dict(generator.params))
        generator.copy_flags_to(unique_gen)
        unique_gen.array_size = generator.array_size
        return unique_gen
    return generator


def resolve_array(generator: AbstractGenerator) -> AbstractGenerator:
    generator.update_params()
    if isinstance(generator, GenerateArray) or generator.array_size is None:
        return resolve_unique(generator)
    base = resolve_unique(generator)
    array_gen = GenerateArray(base=base, size=generator.array_size)
    array_gen.data_type = "array"
    array_gen.not_null = generator.not_null
    return array_gen


class GenerateArray(AbstractGenerator):
    def make_state(self, count, seed):
        size = self.params.get("size", 10)
        if size < 0:
            raise ConfigurationError(f"array size must be non-negative, got {size}")
        self.params["base"].init(count * size, seed)
        return SimpleNamespace(size=size)

    def next_value(self, i):
        base, size = self.params["base"], self.state.size
        return [base.generate(i * size + k) for k in range(size)]


class GenerateDefault(AbstractGenerator):
    def make_state(self, count, seed):
        return SimpleNamespace()

    def next_value(self, i):
        return self.params.get("default_value")


class HollowGenerator(AbstractGenerator):
    """Placeholder for a foreign key column until the parent rows exist."""

    def make_state(self, count, seed):
        return SimpleNamespace()

    def next_value(self, i):
        raise GeneratorStateError("foreign key column was never bound to its parent values.")


class GenerateWeightedCount(AbstractGenerator):
    """
    Draws counts from a weighted distribution.

    params: weighted_count, a list of {'weight': w, 'count': n or [n1, n2, ...]}.
    A list count is picked from uniformly once its weight bucket is chosen.
    """

    def make_state(self, count, seed):
        weighted = normalize_weighted_counts(self.params["weighted_count"])
        indices = get_weighted_indices([w.weight for w in weighted])
        return SimpleNamespace(rng=seeded(seed), indices=indices, weighted=weighted)

    def next_value(self, i):
        state = self.state
        idx, state.rng = uniform_int(0, len(state.indices) - 1, state.rng)
        bucket = state.weighted[state.indices[idx]].count
        if isinstance(bucket, (list, tuple)):
            idx, state.rng = uniform_int(0, len(bucket) - 1, state.rng)
            return bucket[idx]
        return bucket


class CustomGenerator(AbstractGenerator):
    """
    User supplied generator.

    params: generate(gen, i) -> value and optional init(gen, count, seed).
    Both receive the CustomGenerator itself, whose `state` namespace is free
    for the callables to use.
    """

    def make_state(self, count, seed):
        state = SimpleNamespace()
        self.state = state
        init = self.params.get("init")
        if init is not None:
            init(self, count, seed)
        return state

    def next_value(self, i):
        return self.params["generate"](self, i)


def prepare_generator(generator: AbstractGenerator, column, is_unique: bool = None) -> AbstractGenerator:
    """
    Copy a column's constraints onto a generator and apply unique/array
    wrapping. is_unique overrides the column flag when uniqueness comes from
    a primary key or a table level constraint.
    """
    if is_unique is None:
        is_unique = column.is_unique
    generator.is_unique = generator.is_unique or is_unique
    generator.not_null = column.not_null
    generator.data_type = column.data_type
    generator.type_params = dict(column.type_params)
    if generator.array_size is None and column.array_size is not None:
        generator.array_size = column.array_size
    return resolve_array(generator)
