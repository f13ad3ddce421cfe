"""
Collision-free unique integer sampling.

IntervalPool keeps the not-yet-retired part of [min, max] as a list of
disjoint closed intervals. A draw picks an interval uniformly, then a value
uniformly inside it, and retiring that value splits its interval in two.
Memory grows with the number of values handed out, never with the size of
the range, so ranges like [0, 2**128) are fine.

Picking the interval first is not exactly uniform over the remaining values
(a short interval is as likely as a long one); that skew is accepted in
exchange for O(1) draws.
"""

import math
from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.errors import CapacityError, ConfigurationError, ExhaustionError
from seedforge.rng import seeded, uniform_int


class IntervalPool:

    def __init__(self, min_value: int, max_value: int):
        self.intervals = [[min_value, max_value]] if min_value <= max_value else []
        # value -> remaining uses, only for values drawn but not yet retired
        self.repeats = {}

    def __len__(self):
        return len(self.intervals)

    def draw(self, rng, repeat_budget=None):
        """
        Return (value, rng). repeat_budget, when given, is called the first
        time a value comes up and says how many times it may be drawn in
        total; without it every value is retired on its first draw.
        """
        idx, rng = uniform_int(0, len(self.intervals) - 1, rng)
        lo, hi = self.intervals[idx]
        value, rng = uniform_int(lo, hi, rng)

        if repeat_budget is not None:
            if value not in self.repeats:
                self.repeats[value] = repeat_budget()
            self.repeats[value] -= 1

        if self.repeats.get(value, 0) <= 0:
            self.repeats.pop(value, None)
            self._retire(idx, lo, hi, value)
        return value, rng

    def _retire(self, idx, lo, hi, value):
        if value == lo:
            pieces = [[lo + 1, hi]] if lo + 1 <= hi else []
        elif value == hi:
            pieces = [[lo, hi - 1]]
        else:
            pieces = [[lo, value - 1], [value + 1, hi]]

        # swap with last and pop keeps removal O(1)
        self.intervals[idx] = self.intervals[-1]
        self.intervals.pop()
        self.intervals.extend(pieces)

    def remaining(self) -> int:
        return sum(hi - lo + 1 for lo, hi in self.intervals)


def _int_bounds(min_value, max_value):
    # round inward so fractional bounds never produce values outside them
    if isinstance(min_value, float):
        min_value = math.ceil(min_value)
    if isinstance(max_value, float):
        max_value = math.floor(max_value)
    return int(min_value), int(max_value)


class GenerateUniqueInt(AbstractGenerator):
    """
    Distinct integers in [min_value, max_value].

    Without max_value the range is [-10 * count, 10 * count]. Setting
    skip_check drops the capacity check and makes an exhausted pool yield
    None instead of raising; repeat_counter (a generator of ints) lets each
    value come back that many times before it is retired.
    """

    generates_unique = True

    def __init__(self, params=None, **kwargs):
        super().__init__(params, **kwargs)
        self.skip_check = False
        self.repeat_counter = None

    def max_unique_count(self):
        max_value = self.params.get("max_value")
        if max_value is None:
            return math.inf
        min_value = self.params.get("min_value")
        if min_value is None:
            min_value = -max_value
        lo, hi = _int_bounds(min_value, max_value)
        return max(hi - lo + 1, 0)

    def make_state(self, count, seed):
        min_value = self.params.get("min_value")
        max_value = self.params.get("max_value")
        if max_value is None:
            max_value = count * 10
        if min_value is None:
            min_value = -max_value
        min_value, max_value = _int_bounds(min_value, max_value)
        if min_value > max_value:
            raise ConfigurationError(
                f"min_value ({min_value}) must be less than or equal to max_value ({max_value})."
            )
        if not self.skip_check and max_value - min_value + 1 < count:
            raise CapacityError(
                f"integers in range [{min_value}, {max_value}]",
                count,
                max_value - min_value + 1,
            )
        return SimpleNamespace(rng=seeded(seed), pool=IntervalPool(min_value, max_value))

    def next_value(self, i):
        state = self.state
        if len(state.pool) == 0:
            if self.skip_check:
                return None
            raise ExhaustionError(
                "unique integer pool is exhausted, the range is smaller than the requested count."
            )
        budget = self.repeat_counter.generate if self.repeat_counter is not None else None
        value, state.rng = state.pool.draw(state.rng, budget)
        if self.data_type == "string":
            return str(value)
        return value
