"""
Reference vocabularies and the base generators that pick from them.

Word lists are read straight from Faker's locale providers so they stay in
step with the installed Faker release. Only the lists are borrowed: values
are always picked with seedforge's own seeded source, never with Faker's
random instance, which keeps output reproducible.
"""

from types import SimpleNamespace

from faker.providers.address.en_US import Provider as AddressProvider
from faker.providers.company.en_US import Provider as CompanyProvider
from faker.providers.internet.en_US import Provider as InternetProvider
from faker.providers.job import Provider as JobProvider
from faker.providers.lorem.la import Provider as LoremProvider
from faker.providers.person.en_US import Provider as PersonProvider

from seedforge.base import AbstractGenerator
from seedforge.rng import seeded, uniform_int
from seedforge.unique import GenerateUniqueInt


def _distinct(values) -> tuple:
    # Faker stores some lists as weighted OrderedDicts; keys are the values
    return tuple(dict.fromkeys(str(v) for v in values))


FIRST_NAMES = _distinct(PersonProvider.first_names)
LAST_NAMES = _distinct(PersonProvider.last_names)
COUNTRIES = _distinct(AddressProvider.countries)
STATES = _distinct(AddressProvider.states)
STREET_SUFFIXES = _distinct(AddressProvider.street_suffixes)
CITY_SUFFIXES = _distinct(AddressProvider.city_suffixes)
JOB_TITLES = _distinct(JobProvider.jobs)
COMPANY_SUFFIXES = _distinct(CompanyProvider.company_suffixes)
LOREM_WORDS = _distinct(LoremProvider.word_list)

EMAIL_DOMAINS = _distinct(
    tuple(InternetProvider.free_email_domains)
    + ("outlook.com", "icloud.com", "protonmail.com", "aol.com", "mail.com",
       "gmx.com", "zoho.com", "yandex.com", "fastmail.com", "hey.com")
)

ADJECTIVES = (
    "able", "agile", "amber", "ancient", "bold", "brave", "bright", "brisk",
    "calm", "clever", "cosmic", "crisp", "curious", "daring", "deep", "eager",
    "early", "electric", "fair", "fancy", "fierce", "fluffy", "frosty", "gentle",
    "giant", "glad", "golden", "grand", "happy", "hidden", "honest", "humble",
    "icy", "jolly", "keen", "kind", "lively", "lucky", "merry", "mighty",
    "misty", "modest", "noble", "odd", "polite", "proud", "quick", "quiet",
    "rapid", "rare", "royal", "rusty", "shiny", "silent", "silver", "sleepy",
    "smooth", "solid", "sunny", "swift", "tender", "tidy", "urban", "vivid",
    "warm", "wild", "wise", "witty", "young", "zesty",
)

CITY_NAMES = _distinct(f"{name}{suffix}" for name in LAST_NAMES for suffix in CITY_SUFFIXES)

# "country code,operator code,digits after the country code"
PHONE_PREFIXES = (
    "+1,201,10", "+1,212,10", "+1,312,10", "+1,415,10", "+1,646,10",
    "+44,20,10", "+44,7700,10", "+49,151,11", "+49,170,11", "+33,6,9",
    "+33,7,9", "+34,6,9", "+39,320,10", "+48,501,9", "+380,67,9",
    "+380,99,9", "+81,90,10", "+91,98,10", "+61,4,9", "+55,11,11",
)

LOREM_MIN_WORDS = 4
LOREM_MAX_WORDS = 12


def _max_length(values) -> int:
    return max(len(v) for v in values)


MAX_FIRST_NAME_LENGTH = _max_length(FIRST_NAMES)
MAX_LAST_NAME_LENGTH = _max_length(LAST_NAMES)
MAX_COUNTRY_LENGTH = _max_length(COUNTRIES)
MAX_STATE_LENGTH = _max_length(STATES)
MAX_STREET_SUFFIX_LENGTH = _max_length(STREET_SUFFIXES)
MAX_CITY_NAME_LENGTH = _max_length(CITY_NAMES)
MAX_JOB_TITLE_LENGTH = _max_length(JOB_TITLES)
MAX_COMPANY_SUFFIX_LENGTH = _max_length(COMPANY_SUFFIXES)
MAX_EMAIL_DOMAIN_LENGTH = _max_length(EMAIL_DOMAINS)
MAX_ADJECTIVE_LENGTH = _max_length(ADJECTIVES)
MAX_LOREM_SENTENCE_LENGTH = LOREM_MAX_WORDS * (_max_length(LOREM_WORDS) + 1)


class GenerateFromDataset(AbstractGenerator):
    """Uniform pick from a fixed vocabulary; subclasses set `dataset` and `max_length`."""

    dataset = ()
    max_length = None

    def required_length(self):
        return self.max_length

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        idx, self.state.rng = uniform_int(0, len(self.dataset) - 1, self.state.rng)
        return self.dataset[idx]


class GenerateUniqueFromDataset(GenerateFromDataset):
    """Every vocabulary entry at most once; `what` names the vocabulary in capacity errors."""

    generates_unique = True
    what = "values"

    def max_unique_count(self):
        return len(self.dataset)

    def make_state(self, count, seed):
        self.check_capacity(count, self.what)
        indices = GenerateUniqueInt(min_value=0, max_value=len(self.dataset) - 1).init(count, seed)
        return SimpleNamespace(indices=indices)

    def next_value(self, i):
        return self.dataset[self.state.indices.generate(i)]
