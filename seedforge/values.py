"""
Generators that pick from supplied values, plus free-text and document generators.
"""

import json
import string
import uuid
from types import SimpleNamespace

from seedforge.base import AbstractGenerator, GenerateDefault, GenerateWeightedCount, resolve_unique
from seedforge.config import DEFAULTS
from seedforge.datasets import LOREM_MAX_WORDS, LOREM_MIN_WORDS, LOREM_WORDS, MAX_LOREM_SENTENCE_LENGTH
from seedforge.errors import ConfigurationError
from seedforge.numeric import GenerateBoolean, GenerateInt
from seedforge.people import GenerateEmail, GenerateFirstName
from seedforge.places import GenerateUniqueCountry
from seedforge.rng import derive_seed, seeded, uniform_int
from seedforge.sampling import get_weighted_indices
from seedforge.temporal import GenerateDate
from seedforge.unique import GenerateUniqueInt


def _is_weighted(values) -> bool:
    return len(values) > 0 and isinstance(values[0], dict)


def _counts_of(repeat_budget):
    """Every count a max-repeat setting can produce."""
    if isinstance(repeat_budget, int):
        return [repeat_budget]
    counts = []
    for item in repeat_budget:
        bucket = item["count"] if isinstance(item, dict) else item.count
        counts.extend(bucket if isinstance(bucket, (list, tuple)) else [bucket])
    return counts


class GenerateValuesFromArray(AbstractGenerator):
    """
    Picks from `values`, a flat list or weighted groups
    [{'weight': 0.3, 'values': [...]}, ...].

    For unique columns every value is used once. max_repeated_values_count
    (an int or weighted counts) caps how often one value may come back; the
    engine sets it for foreign keys under a `with` fan-out, together with
    weighted_count_seed so that the fan-out is reproducible.
    """

    def __init__(self, params=None, **kwargs):
        super().__init__(params, **kwargs)
        self.max_repeated_values_count = None
        self.weighted_count_seed = None

    def _all_values_count(self) -> int:
        values = self.params["values"]
        if _is_weighted(values):
            return sum(len(group["values"]) for group in values)
        return len(values)

    def max_unique_count(self):
        return self._all_values_count()

    def checks(self, count: int):
        values = self.params.get("values")
        budget = self.max_repeated_values_count
        if not values:
            raise ConfigurationError("Values length equals zero.")
        if _is_weighted(values) and any(len(group["values"]) == 0 for group in values):
            raise ConfigurationError("One of weighted values length equals zero.")
        if budget is not None and any(c <= 0 for c in _counts_of(budget)):
            raise ConfigurationError("max_repeated_values_count should be greater than zero.")
        if self.not_null and isinstance(budget, int) and budget * self._all_values_count() < count:
            raise ConfigurationError("Can't fill notNull column with null values.")
        if self.is_unique and budget is not None and any(c != 1 for c in _counts_of(budget)):
            raise ConfigurationError("max_repeated_values_count can't be greater than 1 if column is unique.")
        if self.is_unique and self.not_null and self._all_values_count() < count:
            raise ConfigurationError("There are no enough values to fill unique column.")

    def _check_weighted_capacity(self, values, weighted_indices, count, seed):
        # replay the group draws to see whether any group would run out
        rng = seeded(seed)
        planned = [0] * len(values)
        for _ in range(count):
            idx, rng = uniform_int(0, len(weighted_indices) - 1, rng)
            planned[weighted_indices[idx]] += 1
        for group, wanted in zip(values, planned):
            if len(group["values"]) < wanted:
                summary = ", ".join(
                    f"{n} values with probability {g['weight']}" for g, n in zip(values, planned)
                )
                raise ConfigurationError(
                    "weighted values arrays is too small to generate values with specified "
                    f"probability for unique not null column. it's planned to generate: {summary}"
                )

    def _repeat_counter(self, budget, seed):
        if isinstance(budget, int):
            return GenerateDefault(default_value=budget).init(0, seed)
        counter_seed = seed if self.weighted_count_seed is None else self.weighted_count_seed
        return GenerateWeightedCount(weighted_count=budget).init(0, counter_seed)

    def _index_generator(self, size, counter, count, seed):
        gen = GenerateUniqueInt(min_value=0, max_value=size - 1)
        gen.repeat_counter = counter
        gen.skip_check = True
        return gen.init(count, seed)

    def make_state(self, count, seed):
        self.checks(count)
        values = list(self.params["values"])
        weighted_indices = None
        if _is_weighted(values):
            weighted_indices = get_weighted_indices([group["weight"] for group in values])
            if self.is_unique and self.not_null:
                self._check_weighted_capacity(values, weighted_indices, count, seed)

        budget = self.max_repeated_values_count
        if self.is_unique and budget is None:
            budget = 1

        indices = group_indices = None
        if budget is not None:
            counter = self._repeat_counter(budget, seed)
            if weighted_indices is None and self.not_null and not isinstance(budget, int):
                replay = self._repeat_counter(budget, seed)
                if sum(replay.generate(k) for k in range(len(values))) < count:
                    raise ConfigurationError("Can't fill notNull column with null values.")
            if weighted_indices is None:
                indices = self._index_generator(len(values), counter, count, seed)
            else:
                group_indices = [
                    self._index_generator(len(group["values"]), counter, count, seed) for group in values
                ]

        return SimpleNamespace(
            rng=seeded(seed),
            values=values,
            weighted_indices=weighted_indices,
            indices=indices,
            group_indices=group_indices,
        )

    def next_value(self, i):
        state = self.state
        if state.weighted_indices is None:
            if state.indices is None:
                idx, state.rng = uniform_int(0, len(state.values) - 1, state.rng)
            else:
                idx = state.indices.generate(i)
            return None if idx is None else state.values[idx]

        pick, state.rng = uniform_int(0, len(state.weighted_indices) - 1, state.rng)
        group_idx = state.weighted_indices[pick]
        current = state.values[group_idx]["values"]
        if state.group_indices is None:
            idx, state.rng = uniform_int(0, len(current) - 1, state.rng)
        else:
            idx = state.group_indices[group_idx].generate(i)
        return None if idx is None else current[idx]


class GenerateSelfRelationsValuesFromArray(AbstractGenerator):
    """
    Foreign key into the same table.

    `values` is the live list the engine appends the referenced column's
    values to while the table is generated. The first 20-40% of rows point
    at their own row's referenced value, later rows at one of those.
    """

    def make_state(self, count, seed):
        rng = seeded(seed)
        percent, rng = uniform_int(DEFAULTS.self_relation_min_percent, DEFAULTS.self_relation_max_percent, rng)
        return SimpleNamespace(rng=rng, first_count=(percent * count) // 100, first_values=[])

    def next_value(self, i):
        state = self.state
        values = self.params["values"]
        if i < state.first_count:
            state.first_values.append(values[i])
            return values[i]
        if not state.first_values:
            return None
        idx, state.rng = uniform_int(0, len(state.first_values) - 1, state.rng)
        return state.first_values[idx]


class GenerateEnum(AbstractGenerator):

    def max_unique_count(self):
        return len(self.params.get("enum_values") or [])

    def make_state(self, count, seed):
        picker = self.copy_flags_to(GenerateValuesFromArray(values=list(self.params.get("enum_values") or [])))
        return SimpleNamespace(picker=picker.init(count, seed))

    def next_value(self, i):
        return self.state.picker.generate(i)


STRING_CHARS = string.digits + string.ascii_lowercase + string.ascii_uppercase
# letters that can never be part of a lowercase hex number
_NON_HEX_CHARS = "".join(c for c in STRING_CHARS if c not in string.hexdigits.lower())
MIN_STRING_LENGTH = 7
MAX_STRING_LENGTH = 20
_UNIQUE_PREFIX_LENGTH = 4


def _string_bounds(gen):
    max_length = MAX_STRING_LENGTH
    length = gen.type_params.get("length")
    if length is not None:
        max_length = min(max_length, length)
    return min(MIN_STRING_LENGTH, max_length), max_length


def _random_chars(alphabet, length, rng):
    chars = []
    for _ in range(length):
        idx, rng = uniform_int(0, len(alphabet) - 1, rng)
        chars.append(alphabet[idx])
    return "".join(chars), rng


class GenerateUniqueString(AbstractGenerator):
    """
    Four random characters, the row index in hex, then random non-hex letters.

    The hex run is always delimited, so different rows can never collide.
    """

    generates_unique = True

    def make_state(self, count, seed):
        min_length, max_length = _string_bounds(self)
        needed = _UNIQUE_PREFIX_LENGTH + len(format(max(count - 1, 0), "x"))
        length = self.type_params.get("length")
        if length is not None and length < needed:
            raise ConfigurationError(
                f"You can't generate {count} unique strings with a db column length restriction of {length}. "
                f"Set the maximum string length to at least {needed}."
            )
        return SimpleNamespace(rng=seeded(seed), min_length=min_length, max_length=max_length)

    def next_value(self, i):
        state = self.state
        marker = format(i, "x")
        total, state.rng = uniform_int(state.min_length, state.max_length, state.rng)
        prefix, state.rng = _random_chars(STRING_CHARS, _UNIQUE_PREFIX_LENGTH, state.rng)
        tail_length = max(total - _UNIQUE_PREFIX_LENGTH - len(marker), 0)
        tail, state.rng = _random_chars(_NON_HEX_CHARS, tail_length, state.rng)
        return prefix + marker + tail


class GenerateString(AbstractGenerator):
    """Random alphanumeric strings of 7 to 20 characters, shortened to fit the column."""

    unique_version = GenerateUniqueString

    def make_state(self, count, seed):
        min_length, max_length = _string_bounds(self)
        return SimpleNamespace(rng=seeded(seed), min_length=min_length, max_length=max_length)

    def next_value(self, i):
        state = self.state
        length, state.rng = uniform_int(state.min_length, state.max_length, state.rng)
        text, state.rng = _random_chars(STRING_CHARS, length, state.rng)
        return text


class GenerateUUID(AbstractGenerator):
    generates_unique = True

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        bits, self.state.rng = uniform_int(0, 2**128 - 1, self.state.rng)
        return str(uuid.UUID(int=bits, version=4))

    def required_length(self):
        return 36


class GenerateLoremIpsum(AbstractGenerator):
    """`sentences_count` sentences (default 1) of latin filler words."""

    def _sentences_count(self):
        sentences = self.params.get("sentences_count", 1)
        if sentences < 1:
            raise ConfigurationError(f"sentences_count must be positive, got {sentences}")
        return sentences

    def required_length(self):
        return self._sentences_count() * MAX_LOREM_SENTENCE_LENGTH

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed), sentences=self._sentences_count())

    def next_value(self, i):
        state = self.state
        sentences = []
        for _ in range(state.sentences):
            words_count, state.rng = uniform_int(LOREM_MIN_WORDS, LOREM_MAX_WORDS, state.rng)
            words = []
            for _ in range(words_count):
                idx, state.rng = uniform_int(0, len(LOREM_WORDS) - 1, state.rng)
                words.append(LOREM_WORDS[idx])
            sentences.append(" ".join(words).capitalize() + ".")
        return " ".join(sentences)


class GenerateJson(AbstractGenerator):
    """Small person documents: email, name, job details and visited countries."""

    def make_state(self, count, seed):
        started_working = GenerateDate()
        started_working.data_type = "string"
        return SimpleNamespace(
            seed=seed,
            email=GenerateEmail().init(count, derive_seed(seed, "email")),
            name=GenerateFirstName().init(count, derive_seed(seed, "name")),
            flags=GenerateBoolean().init(count, derive_seed(seed, "flags")),
            salary=GenerateInt(min_value=200, max_value=4000).init(count, derive_seed(seed, "salary")),
            started_working=started_working.init(count, derive_seed(seed, "started_working")),
            visited_count=GenerateInt(min_value=0, max_value=4).init(count, derive_seed(seed, "visited")),
        )

    def next_value(self, i):
        state = self.state
        document = {
            "email": state.email.generate(i),
            "name": state.name.generate(i),
            "isGraduated": state.flags.generate(i),
        }
        has_job = state.flags.generate(i)
        document["hasJob"] = has_job
        salary = state.salary.generate(i)
        started_working = state.started_working.generate(i)
        if has_job:
            document["salary"] = salary
            document["startedWorking"] = started_working

        visited = state.visited_count.generate(i)
        countries = GenerateUniqueCountry().init(visited, state.seed + i)
        document["visitedCountries"] = [countries.generate(j) for j in range(visited)]

        if self.data_type == "string":
            return json.dumps(document)
        return document


class WeightedRandomGenerator(AbstractGenerator):
    """
    Mixes generators by weight: choices=[{'weight': 0.7, 'value': gen}, ...].

    Each child is initialised with the number of rows it will actually serve,
    so unique children only need capacity for their own share.
    """

    def __init__(self, params=None, **kwargs):
        if isinstance(params, (list, tuple)):
            params = {"choices": list(params)}
        super().__init__(params, **kwargs)

    def make_state(self, count, seed):
        choices = self.params.get("choices") or []
        weighted_indices = get_weighted_indices([choice["weight"] for choice in choices])

        planned = [0] * len(choices)
        rng = seeded(seed)
        for _ in range(count):
            idx, rng = uniform_int(0, len(weighted_indices) - 1, rng)
            planned[weighted_indices[idx]] += 1

        generators = []
        for choice, share in zip(choices, planned):
            gen = choice["value"]
            gen.is_unique = self.is_unique
            gen.data_type = self.data_type
            gen.type_params = dict(self.type_params)
            gen = resolve_unique(gen)
            generators.append(gen.init(share, seed))
        return SimpleNamespace(rng=seeded(seed), weighted_indices=weighted_indices, generators=generators)

    def next_value(self, i):
        state = self.state
        idx, state.rng = uniform_int(0, len(state.weighted_indices) - 1, state.rng)
        return state.generators[state.weighted_indices[idx]].generate(i)
