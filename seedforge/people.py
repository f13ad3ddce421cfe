"""
Person related generators: names, emails, phone numbers and job titles.
"""

from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.datasets import (
    ADJECTIVES,
    EMAIL_DOMAINS,
    FIRST_NAMES,
    JOB_TITLES,
    LAST_NAMES,
    MAX_ADJECTIVE_LENGTH,
    MAX_EMAIL_DOMAIN_LENGTH,
    MAX_FIRST_NAME_LENGTH,
    MAX_JOB_TITLE_LENGTH,
    MAX_LAST_NAME_LENGTH,
    PHONE_PREFIXES,
    GenerateFromDataset,
    GenerateUniqueFromDataset,
)
from seedforge.errors import CapacityError, ConfigurationError
from seedforge.rng import seeded, uniform_int
from seedforge.sampling import fast_cartesian_product, fill_template, product_size
from seedforge.unique import GenerateUniqueInt


class GenerateUniqueFirstName(GenerateUniqueFromDataset):
    dataset = FIRST_NAMES
    max_length = MAX_FIRST_NAME_LENGTH
    what = "first names"


class GenerateFirstName(GenerateFromDataset):
    dataset = FIRST_NAMES
    max_length = MAX_FIRST_NAME_LENGTH
    unique_version = GenerateUniqueFirstName


class GenerateUniqueLastName(GenerateUniqueFromDataset):
    dataset = LAST_NAMES
    max_length = MAX_LAST_NAME_LENGTH
    what = "last names"


class GenerateLastName(GenerateFromDataset):
    dataset = LAST_NAMES
    max_length = MAX_LAST_NAME_LENGTH
    unique_version = GenerateUniqueLastName


class GenerateUniqueFullName(AbstractGenerator):
    """Distinct 'First Last' pairs, decoded from one unique index over both lists."""

    generates_unique = True
    _sets = (FIRST_NAMES, LAST_NAMES)

    def max_unique_count(self):
        return product_size(self._sets)

    def required_length(self):
        return MAX_FIRST_NAME_LENGTH + MAX_LAST_NAME_LENGTH + 1

    def make_state(self, count, seed):
        self.check_capacity(count, "full names")
        size = product_size(self._sets)
        return SimpleNamespace(indices=GenerateUniqueInt(min_value=0, max_value=size - 1).init(count, seed))

    def next_value(self, i):
        first, last = fast_cartesian_product(self._sets, self.state.indices.generate(i))
        return f"{first} {last}"


class GenerateFullName(AbstractGenerator):
    unique_version = GenerateUniqueFullName

    def required_length(self):
        return MAX_FIRST_NAME_LENGTH + MAX_LAST_NAME_LENGTH + 1

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        state = self.state
        first, state.rng = uniform_int(0, len(FIRST_NAMES) - 1, state.rng)
        last, state.rng = uniform_int(0, len(LAST_NAMES) - 1, state.rng)
        return f"{FIRST_NAMES[first]} {LAST_NAMES[last]}"


class GenerateEmail(AbstractGenerator):
    """
    Addresses like 'brisk_olivia@gmail.com'.

    Always unique: each row decodes a distinct index over
    adjectives x first names x domains.
    """

    generates_unique = True
    _sets = (ADJECTIVES, FIRST_NAMES, EMAIL_DOMAINS)

    def max_unique_count(self):
        return product_size(self._sets)

    def required_length(self):
        return MAX_ADJECTIVE_LENGTH + MAX_FIRST_NAME_LENGTH + MAX_EMAIL_DOMAIN_LENGTH + 2

    def make_state(self, count, seed):
        self.check_capacity(count, "emails")
        size = product_size(self._sets)
        return SimpleNamespace(indices=GenerateUniqueInt(min_value=0, max_value=size - 1).init(count, seed))

    def next_value(self, i):
        adjective, name, domain = fast_cartesian_product(self._sets, self.state.indices.generate(i))
        return f"{adjective}_{name.lower()}@{domain}"


def _default_prefixes():
    prefixes, digits = [], []
    for info in PHONE_PREFIXES:
        country_code, operator_code, length = info.split(",")
        prefixes.append(f"{country_code} {operator_code}")
        digits.append(int(length) - len(operator_code))
    return prefixes, digits


class GeneratePhoneNumber(AbstractGenerator):
    """
    Distinct phone numbers.

    With `template` ('+380 ## ### ## ##') every '#' becomes a digit. Otherwise
    numbers are '<prefix> <digits>': `prefixes` (default: a built-in list of
    country and operator codes) each followed by `generated_digits_numbers`
    digits, an int for all prefixes or one int per prefix (default 7).
    """

    generates_unique = True

    def _prefix_plan(self):
        prefixes = self.params.get("prefixes")
        if prefixes is None:
            return _default_prefixes()
        prefixes = list(prefixes)
        if len(set(prefixes)) != len(prefixes):
            raise ConfigurationError("prefixes are not unique.")
        digits = self.params.get("generated_digits_numbers", 7)
        if isinstance(digits, int):
            digits = [digits] * len(prefixes)
        digits = list(digits)
        if len(digits) != len(prefixes):
            raise ConfigurationError(
                "generated_digits_numbers must be an int or have one entry per prefix."
            )
        if any(d < 1 for d in digits):
            raise ConfigurationError("generated_digits_numbers must be positive.")
        return prefixes, digits

    def max_unique_count(self):
        template = self.params.get("template")
        if template is not None:
            return 10 ** template.count("#")
        return sum(10 ** d for d in self._prefix_plan()[1])

    def required_length(self):
        template = self.params.get("template")
        if template is not None:
            return len(template)
        prefixes, digits = self._prefix_plan()
        return max(len(p) for p in prefixes) + 1 + max(digits)

    def make_state(self, count, seed):
        template = self.params.get("template")
        if template is not None:
            placeholders = template.count("#")
            if placeholders == 0:
                raise ConfigurationError(f"phone number template {template!r} has no '#' placeholders.")
            self.check_capacity(count, "phone numbers")
            numbers = GenerateUniqueInt(min_value=0, max_value=10 ** placeholders - 1).init(count, seed)
            return SimpleNamespace(template=template, placeholders=placeholders, numbers=numbers)

        prefixes, digits = self._prefix_plan()
        self.check_capacity(count, "phone numbers")
        bodies = []
        for d in digits:
            gen = GenerateUniqueInt(min_value=0, max_value=10 ** d - 1)
            gen.skip_check = True
            bodies.append(gen.init(min(count, 10 ** d), seed))
        return SimpleNamespace(template=None, rng=seeded(seed), prefixes=prefixes, digits=digits, bodies=bodies)

    def next_value(self, i):
        state = self.state
        if state.template is not None:
            number = str(state.numbers.generate(i)).zfill(state.placeholders)
            return fill_template(state.template, list(number), state.placeholders, default_value="0")

        while True:
            idx, state.rng = uniform_int(0, len(state.prefixes) - 1, state.rng)
            body = state.bodies[idx].generate(i)
            if body is not None:
                return f"{state.prefixes[idx]} {str(body).zfill(state.digits[idx])}"
            # prefix exhausted
            for pool in (state.prefixes, state.digits, state.bodies):
                pool.pop(idx)
            if not state.prefixes:
                raise CapacityError("phone numbers", i + 1, self.max_unique_count())


class GenerateJobTitle(GenerateFromDataset):
    dataset = JOB_TITLES
    max_length = MAX_JOB_TITLE_LENGTH
