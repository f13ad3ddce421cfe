"""
Date and time generators.

Everything is drawn as integer milliseconds since the epoch and converted
back to naive UTC datetimes, so results do not depend on the local timezone.
Defaults are anchored at 2024-05-08 rather than "now" to stay reproducible.
"""

import re
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.errors import CapacityError, ConfigurationError
from seedforge.rng import seeded, uniform_int
from seedforge.sampling import fast_cartesian_product, product_size
from seedforge.unique import GenerateUniqueInt

EPOCH = datetime(1970, 1, 1)
ANCHOR = datetime(2024, 5, 8)
ANCHOR_YEAR = 2024
YEAR_MS = 31536000000
DAY_MS = 86400000

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?Z?$")


def to_millis(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def from_millis(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def parse_moment(value, param: str) -> datetime:
    """Accept datetime, date or ISO-8601 text; aware values are converted to naive UTC."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise ConfigurationError(f"Invalid date was provided for the {param} parameter: {value!r}.")
    else:
        raise ConfigurationError(f"Invalid date was provided for the {param} parameter: {value!r}.")
    if moment.tzinfo is not None:
        moment = (moment - moment.utcoffset()).replace(tzinfo=None)
    return moment


def _resolve_range(gen, min_key, max_key, delta_ms):
    low, high = gen.params.get(min_key), gen.params.get(max_key)
    low = None if low is None else to_millis(parse_moment(low, min_key))
    high = None if high is None else to_millis(parse_moment(high, max_key))
    if low is None:
        if high is None:
            anchor = to_millis(ANCHOR)
            low, high = anchor - delta_ms, anchor + delta_ms
        else:
            low = high - 2 * delta_ms
    if high is None:
        high = low + 2 * delta_ms
    if low > high:
        raise ConfigurationError(
            f"The {min_key} parameter must be less than or equal to the {max_key} parameter."
        )
    return low, high


class GenerateDate(AbstractGenerator):
    """Calendar dates, 2024-05-08 +/- 4 years unless min_date/max_date are given."""

    def make_state(self, count, seed):
        low, high = _resolve_range(self, "min_date", "max_date", 4 * YEAR_MS)
        return SimpleNamespace(rng=seeded(seed), low=low, high=high)

    def next_value(self, i):
        state = self.state
        ms, state.rng = uniform_int(state.low, state.high, state.rng)
        moment = from_millis(ms)
        if self.data_type == "string":
            return moment.date().isoformat()
        return moment.date()


class GenerateTimestamp(AbstractGenerator):
    """Points in time, 2024-05-08 +/- 2 years unless min/max are given."""

    def make_state(self, count, seed):
        low, high = _resolve_range(self, "min", "max", 2 * YEAR_MS)
        return SimpleNamespace(rng=seeded(seed), low=low, high=high)

    def next_value(self, i):
        state = self.state
        ms, state.rng = uniform_int(state.low, state.high, state.rng)
        moment = from_millis(ms)
        if self.data_type == "string":
            return moment.strftime("%Y-%m-%d %H:%M:%S")
        return moment


class GenerateDatetime(GenerateTimestamp):
    """Same range and output as GenerateTimestamp, for DATETIME columns."""


class GenerateTimestampInt(AbstractGenerator):
    """Unix timestamps in 'seconds' (default) or 'milliseconds'."""

    def make_state(self, count, seed):
        unit = self.params.get("unit_of_time", "seconds")
        if unit not in ("seconds", "milliseconds"):
            raise ConfigurationError(f"unit_of_time must be 'seconds' or 'milliseconds', got {unit!r}")
        moments = GenerateTimestamp().init(count, seed)
        return SimpleNamespace(moments=moments, unit=unit)

    def next_value(self, i):
        ms = to_millis(self.state.moments.generate(i))
        if self.state.unit == "milliseconds":
            return ms
        return ms // 1000


def _time_on_anchor(value, param: str) -> int:
    if isinstance(value, str):
        match = _TIME_PATTERN.match(value.strip())
        if match is None:
            raise ConfigurationError(
                f"You're using the wrong format for the {param} parameter. "
                "Please use one of these formats: 'HH:mm:ss', 'HH:mm' (with or without a trailing 'Z')."
            )
        hours, minutes, seconds = (int(g or 0) for g in match.groups())
        value = time(hours, minutes, seconds)
    if isinstance(value, datetime):
        value = parse_moment(value, param).time()
    if not isinstance(value, time):
        raise ConfigurationError(f"Invalid time was provided for the {param} parameter: {value!r}.")
    return to_millis(datetime.combine(ANCHOR.date(), value.replace(tzinfo=None)))


class GenerateTime(AbstractGenerator):
    """Times of day as 'HH:MM:SS' strings."""

    def make_state(self, count, seed):
        low, high = self.params.get("min"), self.params.get("max")
        if low is None and high is None:
            noon = to_millis(ANCHOR) + DAY_MS // 2
            low, high = noon - DAY_MS, noon + DAY_MS
        else:
            low = _time_on_anchor("00:00:00" if low is None else low, "min")
            high = _time_on_anchor("23:59:59" if high is None else high, "max")
            if low > high:
                raise ConfigurationError("The min parameter must be less than or equal to the max parameter.")
        return SimpleNamespace(rng=seeded(seed), low=low, high=high)

    def next_value(self, i):
        state = self.state
        ms, state.rng = uniform_int(state.low, state.high, state.rng)
        return from_millis(ms).strftime("%H:%M:%S")


class GenerateYear(AbstractGenerator):
    """Years within ten of 2024; ints for numeric columns, 'YYYY' strings otherwise."""

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        offset, self.state.rng = uniform_int(-10, 10, self.state.rng)
        year = ANCHOR_YEAR + offset
        if self.data_type in ("number", "bigint"):
            return year
        return str(year)


INTERVAL_FIELDS = {
    "year": (0, 5),
    "month": (0, 12),
    "day": (1, 29),
    "hour": (0, 24),
    "minute": (0, 60),
    "second": (0, 60),
}
_FIELD_ORDER = list(INTERVAL_FIELDS)


def interval_fields(spec) -> list:
    """'day to second' -> ['day', 'hour', 'minute', 'second']; None -> all fields."""
    if spec is None:
        return list(_FIELD_ORDER)
    tokens = [t.strip() for t in spec.lower().split(" to ")]
    for token in tokens:
        if token not in INTERVAL_FIELDS:
            raise ConfigurationError(f"unknown interval field {token!r} in {spec!r}")
    start, end = _FIELD_ORDER.index(tokens[0]), _FIELD_ORDER.index(tokens[-1])
    if start > end:
        raise ConfigurationError(f"interval fields {spec!r} are in the wrong order")
    return _FIELD_ORDER[start:end + 1]


def _format_interval(fields, numbers) -> str:
    return " ".join(f"{n} {field}" for field, n in zip(fields, numbers))


def _interval_fields_for(gen):
    return interval_fields(gen.params.get("fields", gen.type_params.get("fields")))


class GenerateUniqueInterval(AbstractGenerator):
    generates_unique = True

    def _sets(self):
        fields = _interval_fields_for(self)
        return fields, [range(INTERVAL_FIELDS[f][0], INTERVAL_FIELDS[f][1] + 1) for f in fields]

    def max_unique_count(self):
        return product_size(self._sets()[1])

    def make_state(self, count, seed):
        fields, sets = self._sets()
        size = product_size(sets)
        if count > size:
            raise CapacityError("intervals", count, size)
        ints = GenerateUniqueInt(min_value=0, max_value=size - 1).init(count, seed)
        return SimpleNamespace(ints=ints, fields=fields, sets=sets)

    def next_value(self, i):
        state = self.state
        numbers = fast_cartesian_product(state.sets, state.ints.generate(i))
        return _format_interval(state.fields, numbers)


class GenerateInterval(AbstractGenerator):
    """Postgres style intervals such as '2 year 7 month 13 day'."""

    unique_version = GenerateUniqueInterval

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed), fields=_interval_fields_for(self))

    def next_value(self, i):
        state = self.state
        numbers = []
        for field in state.fields:
            low, high = INTERVAL_FIELDS[field]
            n, state.rng = uniform_int(low, high, state.rng)
            numbers.append(n)
        return _format_interval(state.fields, numbers)
