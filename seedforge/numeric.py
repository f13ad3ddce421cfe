"""
Numeric generators: integers, decimals, booleans, bit strings and IP addresses.
"""

import math
from types import SimpleNamespace

from seedforge.base import AbstractGenerator
from seedforge.errors import CapacityError, ConfigurationError
from seedforge.rng import seeded, uniform_int
from seedforge.sampling import fast_cartesian_product, product_size
from seedforge.unique import GenerateUniqueInt


class GenerateIntPrimaryKey(AbstractGenerator):
    """1, 2, 3, ... in row order."""

    generates_unique = True

    def max_unique_count(self):
        max_value = self.params.get("max_value")
        return math.inf if max_value is None else max_value

    def make_state(self, count, seed):
        max_value = self.params.get("max_value")
        if max_value is not None and count > max_value:
            raise CapacityError("primary keys for this column type", count, max_value)
        return SimpleNamespace()

    def next_value(self, i):
        if self.data_type == "string":
            return str(i + 1)
        return i + 1


def scaled_bounds(min_value, max_value, precision, count=None):
    if max_value is None:
        max_value = (count if count is not None else 1000) * precision
    else:
        max_value = round(max_value * precision)
    if min_value is None:
        min_value = -max_value
    else:
        min_value = round(min_value * precision)
    if min_value > max_value:
        raise ConfigurationError(
            f"min_value ({min_value / precision}) must be less than or equal to "
            f"max_value ({max_value / precision})."
        )
    return int(min_value), int(max_value)


class GenerateUniqueNumber(AbstractGenerator):
    generates_unique = True

    def _precision(self):
        precision = self.params.get("precision")
        return 100 if precision is None else precision

    def max_unique_count(self):
        if self.params.get("max_value") is None:
            return math.inf
        lo, hi = scaled_bounds(self.params.get("min_value"), self.params["max_value"], self._precision())
        return hi - lo + 1

    def make_state(self, count, seed):
        precision = self._precision()
        if precision <= 0:
            raise ConfigurationError(f"precision must be positive, got {precision}")
        lo, hi = scaled_bounds(self.params.get("min_value"), self.params.get("max_value"),
                                precision, count=count)
        ints = GenerateUniqueInt(min_value=lo, max_value=hi).init(count, seed)
        return SimpleNamespace(ints=ints, precision=precision)

    def next_value(self, i):
        return self.state.ints.generate(i) / self.state.precision


class GenerateNumber(AbstractGenerator):
    """
    Decimal numbers with `precision` steps per unit (100 means two decimals).

    Defaults to [-1000, 1000].
    """

    unique_version = GenerateUniqueNumber

    def make_state(self, count, seed):
        precision = self.params.get("precision")
        if precision is None:
            precision = 100
        if precision <= 0:
            raise ConfigurationError(f"precision must be positive, got {precision}")
        lo, hi = scaled_bounds(self.params.get("min_value"), self.params.get("max_value"), precision)
        return SimpleNamespace(rng=seeded(seed), lo=lo, hi=hi, precision=precision)

    def next_value(self, i):
        state = self.state
        value, state.rng = uniform_int(state.lo, state.hi, state.rng)
        return value / state.precision


class GenerateInt(AbstractGenerator):
    """
    Integers in [min_value, max_value], defaults to [-1000, 1000].

    Bounds may be arbitrarily large Python ints.
    """

    unique_version = GenerateUniqueInt

    def make_state(self, count, seed):
        max_value = self.params.get("max_value")
        if max_value is None:
            max_value = 1000
        min_value = self.params.get("min_value")
        if min_value is None:
            min_value = -max_value
        min_value, max_value = math.ceil(min_value), math.floor(max_value)
        if min_value > max_value:
            raise ConfigurationError(
                f"min_value ({min_value}) must be less than or equal to max_value ({max_value})."
            )
        return SimpleNamespace(rng=seeded(seed), lo=min_value, hi=max_value)

    def next_value(self, i):
        state = self.state
        value, state.rng = uniform_int(state.lo, state.hi, state.rng)
        if self.data_type == "string":
            return str(value)
        return value


class GenerateBoolean(AbstractGenerator):

    def max_unique_count(self):
        return 2

    def make_state(self, count, seed):
        return SimpleNamespace(rng=seeded(seed))

    def next_value(self, i):
        value, self.state.rng = uniform_int(0, 1, self.state.rng)
        return value == 1


def _bit_dimensions(gen) -> int:
    dimensions = gen.params.get("dimensions")
    if dimensions is None:
        dimensions = gen.type_params.get("dimensions", gen.type_params.get("length", 11))
    if dimensions < 1:
        raise ConfigurationError(f"bit string dimensions must be positive, got {dimensions}")
    return dimensions


class GenerateUniqueBitString(AbstractGenerator):
    generates_unique = True

    def max_unique_count(self):
        return 2 ** _bit_dimensions(self)

    def make_state(self, count, seed):
        dimensions = _bit_dimensions(self)
        ints = GenerateUniqueInt(min_value=0, max_value=2 ** dimensions - 1).init(count, seed)
        return SimpleNamespace(ints=ints, dimensions=dimensions)

    def next_value(self, i):
        return format(self.state.ints.generate(i), "b").zfill(self.state.dimensions)

    # the column length is the bit count, not a character limit
    def check_length(self):
        return None


class GenerateBitString(AbstractGenerator):
    unique_version = GenerateUniqueBitString

    def make_state(self, count, seed):
        dimensions = _bit_dimensions(self)
        ints = GenerateInt(min_value=0, max_value=2 ** dimensions - 1).init(count, seed)
        return SimpleNamespace(ints=ints, dimensions=dimensions)

    def next_value(self, i):
        return format(self.state.ints.generate(i), "b").zfill(self.state.dimensions)

    def check_length(self):
        return None


_IPV4_OCTETS = range(256)
_IPV6_HEXTETS = range(65536)


def _inet_settings(gen):
    ip_address = gen.params.get("ip_address", "ipv4")
    if ip_address not in ("ipv4", "ipv6"):
        raise ConfigurationError(f"ip_address must be 'ipv4' or 'ipv6', got {ip_address!r}")
    return ip_address, gen.params.get("include_cidr", True)


def _format_inet(ip_address, parts, prefix):
    if ip_address == "ipv4":
        text = ".".join(str(p) for p in parts)
    else:
        text = ":".join(format(p, "x") for p in parts)
    return text if prefix is None else f"{text}/{prefix}"


class GenerateUniqueInet(AbstractGenerator):
    """Distinct addresses, decoded from one unique index over octets/hextets and the prefix."""

    generates_unique = True

    def _sets(self):
        ip_address, include_cidr = _inet_settings(self)
        if ip_address == "ipv4":
            sets = [_IPV4_OCTETS] * 4
            if include_cidr:
                sets.append(range(33))
        else:
            sets = [_IPV6_HEXTETS] * 8
            if include_cidr:
                sets.append(range(129))
        return ip_address, include_cidr, sets

    def max_unique_count(self):
        return product_size(self._sets()[2])

    def make_state(self, count, seed):
        ip_address, include_cidr, sets = self._sets()
        size = product_size(sets)
        if count > size:
            raise CapacityError(f"{ip_address} addresses", count, size)
        ints = GenerateUniqueInt(min_value=0, max_value=size - 1).init(count, seed)
        return SimpleNamespace(ints=ints, sets=sets, ip_address=ip_address, include_cidr=include_cidr)

    def next_value(self, i):
        state = self.state
        tokens = fast_cartesian_product(state.sets, state.ints.generate(i))
        if state.include_cidr:
            return _format_inet(state.ip_address, tokens[:-1], tokens[-1])
        return _format_inet(state.ip_address, tokens, None)


class GenerateInet(AbstractGenerator):
    unique_version = GenerateUniqueInet

    def make_state(self, count, seed):
        ip_address, include_cidr = _inet_settings(self)
        return SimpleNamespace(rng=seeded(seed), ip_address=ip_address, include_cidr=include_cidr)

    def next_value(self, i):
        state = self.state
        parts = []
        if state.ip_address == "ipv4":
            part_max, parts_count, prefix_max = 255, 4, 32
        else:
            part_max, parts_count, prefix_max = 65535, 8, 128
        for _ in range(parts_count):
            value, state.rng = uniform_int(0, part_max, state.rng)
            parts.append(value)
        prefix = None
        if state.include_cidr:
            prefix, state.rng = uniform_int(0, prefix_max, state.rng)
        return _format_inet(state.ip_address, parts, prefix)
