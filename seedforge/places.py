"""
Location and organisation generators: countries, cities, states, street
addresses, postcodes and company names.

The unique variants that can render several templates keep one unique index
source per template and drop a template once its combinations run out, so
the generator falls back on the remaining templates instead of failing.
"""

from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.datasets import (
    CITY_NAMES,
    COMPANY_SUFFIXES,
    COUNTRIES,
    FIRST_NAMES,
    LAST_NAMES,
    MAX_CITY_NAME_LENGTH,
    MAX_COMPANY_SUFFIX_LENGTH,
    MAX_COUNTRY_LENGTH,
    MAX_FIRST_NAME_LENGTH,
    MAX_LAST_NAME_LENGTH,
    MAX_STATE_LENGTH,
    MAX_STREET_SUFFIX_LENGTH,
    STATES,
    STREET_SUFFIXES,
    GenerateFromDataset,
    GenerateUniqueFromDataset,
)
from seedforge.errors import ExhaustionError
from seedforge.rng import seeded, uniform_int
from seedforge.sampling import fast_cartesian_product, fill_template, product_size
from seedforge.unique import GenerateUniqueInt


class TemplatePool:
    """
    Unique renderings over several (template, sets) pairs.

    Each draw picks a live template at random and takes the next unused
    combination of its sets.
    """

    def __init__(self, templates, count: int, seed: int):
        self.templates = []
        for template, sets in templates:
            size = product_size(sets)
            indices = GenerateUniqueInt(min_value=0, max_value=size - 1)
            indices.skip_check = True
            self.templates.append(SimpleNamespace(
                template=template, sets=sets, indices=indices.init(min(count, size), seed),
            ))

    @staticmethod
    def capacity(templates) -> int:
        return sum(product_size(sets) for _, sets in templates)

    def draw(self, rng, i):
        while self.templates:
            idx, rng = uniform_int(0, len(self.templates) - 1, rng)
            current = self.templates[idx]
            index = current.indices.generate(i)
            if index is None:
                self.templates[idx] = self.templates[-1]
                self.templates.pop()
                continue
            values = fast_cartesian_product(current.sets, index)
            return fill_template(current.template, values), rng
        raise ExhaustionError("every template ran out of unique combinations.")


class GenerateUniqueCountry(GenerateUniqueFromDataset):
    dataset = COUNTRIES
    max_length = MAX_COUNTRY_LENGTH
    what = "countries"


class GenerateCountry(GenerateFromDataset):
    dataset = COUNTRIES
    max_length = MAX_COUNTRY_LENGTH
    unique_version = GenerateUniqueCountry


class GenerateUniqueCity(GenerateUniqueFromDataset):
    dataset = CITY_NAMES
    max_length = MAX_CITY_NAME_LENGTH
    what = "cities"


class GenerateCity(GenerateFromDataset):
    dataset = CITY_NAMES
    max_length = MAX_CITY_NAME_LENGTH
    unique_version = GenerateUniqueCity


class GenerateState(GenerateFromDataset):
    dataset = STATES
    max_length = MAX_STATE_LENGTH


HOUSE_NUMBERS = range(1, 1000)
# last names that are not also first names, so the two street templates never overlap
_STREET_LAST_NAMES = tuple(name for name in LAST_NAMES if name not in frozenset(FIRST_NAMES))
_STREET_TEMPLATES = [
    ("# # #", (HOUSE_NUMBERS, FIRST_NAMES, STREET_SUFFIXES)),
    ("# # #", (HOUSE_NUMBERS, _STREET_LAST_NAMES, STREET_SUFFIXES)),
]
_STREET_LENGTH = 4 + max(MAX_FIRST_NAME_LENGTH, MAX_LAST_NAME_LENGTH) + 1 + MAX_STREET_SUFFIX_LENGTH


class GenerateUniqueStreetAddress(AbstractGenerator):
    generates_unique = True

    def max_unique_count(self):
        return TemplatePool.capacity(_STREET_TEMPLATES)

    def required_length(self):
        return _STREET_LENGTH

    def make_state(self, count, seed):
        self.check_capacity(count, "street addresses")
        return SimpleNamespace(rng=seeded(seed), pool=TemplatePool(_STREET_TEMPLATES, count, seed))

    def next_value(self, i):
        value, self.state.rng = self.state.pool.draw(self.state.rng, i)
        return value


class GenerateStreetAddress(AbstractGenerator):
    """'742 Evergreen Terrace' style addresses."""

    unique_version = GenerateUniqueStreetAddress

    def required_length(self):
        return _STREET_LENGTH

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        state = self.state
        use_first, state.rng = uniform_int(0, 1, state.rng)
        names = FIRST_NAMES if use_first else LAST_NAMES
        number, state.rng = uniform_int(1, 999, state.rng)
        name, state.rng = uniform_int(0, len(names) - 1, state.rng)
        suffix, state.rng = uniform_int(0, len(STREET_SUFFIXES) - 1, state.rng)
        return f"{number} {names[name]} {STREET_SUFFIXES[suffix]}"


POSTCODE_TEMPLATES = ("#####", "#####-####")


def _postcode_template_sets():
    # one digit per placeholder, so index decoding yields the zero padded code
    return [(template, (range(10),) * template.count("#")) for template in POSTCODE_TEMPLATES]


class GenerateUniquePostcode(AbstractGenerator):
    generates_unique = True

    def max_unique_count(self):
        return TemplatePool.capacity(_postcode_template_sets())

    def required_length(self):
        return max(len(t) for t in POSTCODE_TEMPLATES)

    def make_state(self, count, seed):
        self.check_capacity(count, "postcodes")
        return SimpleNamespace(rng=seeded(seed), pool=TemplatePool(_postcode_template_sets(), count, seed))

    def next_value(self, i):
        value, self.state.rng = self.state.pool.draw(self.state.rng, i)
        return value


class GeneratePostcode(AbstractGenerator):
    """US style ZIP and ZIP+4 codes."""

    unique_version = GenerateUniquePostcode

    def required_length(self):
        return max(len(t) for t in POSTCODE_TEMPLATES)

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        state = self.state
        idx, state.rng = uniform_int(0, len(POSTCODE_TEMPLATES) - 1, state.rng)
        template = POSTCODE_TEMPLATES[idx]
        placeholders = template.count("#")
        number, state.rng = uniform_int(0, 10 ** placeholders - 1, state.rng)
        return fill_template(template, list(str(number)), placeholders, default_value="0")


_COMPANY_TEMPLATES = [
    ("# #", (LAST_NAMES, COMPANY_SUFFIXES)),
    ("# - #", (LAST_NAMES, LAST_NAMES)),
    ("# and #", (LAST_NAMES, LAST_NAMES)),
    ("#, # and #", (LAST_NAMES, LAST_NAMES, LAST_NAMES)),
]
_COMPANY_LENGTH = max(MAX_LAST_NAME_LENGTH + MAX_COMPANY_SUFFIX_LENGTH + 1, 3 * MAX_LAST_NAME_LENGTH + 7)


class GenerateUniqueCompanyName(AbstractGenerator):
    generates_unique = True

    def max_unique_count(self):
        return TemplatePool.capacity(_COMPANY_TEMPLATES)

    def required_length(self):
        return _COMPANY_LENGTH

    def make_state(self, count, seed):
        self.check_capacity(count, "company names")
        return SimpleNamespace(rng=seeded(seed), pool=TemplatePool(_COMPANY_TEMPLATES, count, seed))

    def next_value(self, i):
        value, self.state.rng = self.state.pool.draw(self.state.rng, i)
        return value


class GenerateCompanyName(AbstractGenerator):
    unique_version = GenerateUniqueCompanyName

    def required_length(self):
        return _COMPANY_LENGTH

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        state = self.state
        idx, state.rng = uniform_int(0, len(_COMPANY_TEMPLATES) - 1, state.rng)
        template, sets = _COMPANY_TEMPLATES[idx]
        values = []
        for current in sets:
            pick, state.rng = uniform_int(0, len(current) - 1, state.rng)
            values.append(current[pick])
        return fill_template(template, values)
