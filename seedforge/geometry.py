"""
Geometric and vector generators.

Coordinates are drawn on a fixed decimal grid (tenths for points and lines)
so the unique variants can treat every coordinate as an integer axis and
decode one unique index over the grid.
"""

from types import SimpleNamespace

from seedforge.base import AbstractGenerator, GenerateArray
from seedforge.errors import CapacityError, ConfigurationError
from seedforge.numeric import GenerateNumber, scaled_bounds
from seedforge.sampling import fast_cartesian_product, product_size
from seedforge.unique import GenerateUniqueInt

COORDINATE_PRECISION = 10


def _axis(min_value, max_value, precision=COORDINATE_PRECISION) -> range:
    lo, hi = scaled_bounds(min_value, max_value, precision)
    return range(lo, hi + 1)


def _format_point(data_type, x, y):
    if data_type == "object":
        return {"x": x, "y": y}
    if data_type == "string":
        return f"[{x}, {y}]"
    return [x, y]


def _format_line(data_type, a, b, c):
    if data_type == "object":
        return {"a": a, "b": b, "c": c}
    if data_type == "string":
        return f"{{{a}, {b}, {c}}}"
    return [a, b, c]


def _point_axes(gen):
    params = gen.params
    return [
        _axis(params.get("min_x_value"), params.get("max_x_value")),
        _axis(params.get("min_y_value"), params.get("max_y_value")),
    ]


class GenerateUniquePoint(AbstractGenerator):
    generates_unique = True

    def max_unique_count(self):
        return product_size(_point_axes(self))

    def make_state(self, count, seed):
        axes = _point_axes(self)
        self.check_capacity(count, "points")
        ints = GenerateUniqueInt(min_value=0, max_value=product_size(axes) - 1).init(count, seed)
        return SimpleNamespace(axes=axes, ints=ints)

    def next_value(self, i):
        state = self.state
        x, y = fast_cartesian_product(state.axes, state.ints.generate(i))
        return _format_point(self.data_type, x / COORDINATE_PRECISION, y / COORDINATE_PRECISION)


class GeneratePoint(AbstractGenerator):
    """
    2D points, coordinates in [-1000, 1000] with one decimal unless
    min_x_value / max_x_value / min_y_value / max_y_value say otherwise.
    """

    unique_version = GenerateUniquePoint

    def make_state(self, count, seed):
        params = self.params
        x = GenerateNumber(min_value=params.get("min_x_value"), max_value=params.get("max_x_value"),
                           precision=COORDINATE_PRECISION).init(count, seed)
        y = GenerateNumber(min_value=params.get("min_y_value"), max_value=params.get("max_y_value"),
                           precision=COORDINATE_PRECISION).init(count, seed + 1)
        return SimpleNamespace(x=x, y=y)

    def next_value(self, i):
        return _format_point(self.data_type, self.state.x.generate(i), self.state.y.generate(i))


def _line_axes(gen):
    params = gen.params
    return [
        _axis(params.get(f"min_{name}_value"), params.get(f"max_{name}_value")) for name in ("a", "b", "c")
    ]


def _degenerate_lines(axes) -> int:
    a_axis, b_axis, c_axis = axes
    return len(c_axis) if 0 in a_axis and 0 in b_axis else 0


class GenerateUniqueLine(AbstractGenerator):
    """Distinct lines ax + by + c = 0; a and b are never both zero."""

    generates_unique = True

    def max_unique_count(self):
        axes = _line_axes(self)
        return product_size(axes) - _degenerate_lines(axes)

    def make_state(self, count, seed):
        axes = _line_axes(self)
        self.check_capacity(count, "lines")
        size = product_size(axes)
        ints = GenerateUniqueInt(min_value=0, max_value=size - 1)
        # degenerate picks are skipped, so the pool may need more draws than count
        ints.skip_check = True
        return SimpleNamespace(axes=axes, ints=ints.init(size, seed))

    def next_value(self, i):
        state = self.state
        while True:
            index = state.ints.generate(i)
            if index is None:
                raise CapacityError("lines", i + 1, self.max_unique_count())
            a, b, c = fast_cartesian_product(state.axes, index)
            if a != 0 or b != 0:
                break
        scale = COORDINATE_PRECISION
        return _format_line(self.data_type, a / scale, b / scale, c / scale)


class GenerateLine(AbstractGenerator):
    """Lines ax + by + c = 0 with coefficients in [-1000, 1000], one decimal."""

    unique_version = GenerateUniqueLine

    def make_state(self, count, seed):
        a_axis, b_axis, _ = _line_axes(self)
        if a_axis == range(0, 1) and b_axis == range(0, 1):
            raise ConfigurationError("a and b can't both be fixed at zero.")
        coefficients = []
        for offset, name in enumerate(("a", "b", "c")):
            gen = GenerateNumber(min_value=self.params.get(f"min_{name}_value"),
                                 max_value=self.params.get(f"max_{name}_value"),
                                 precision=COORDINATE_PRECISION)
            coefficients.append(gen.init(count, seed + offset))
        return SimpleNamespace(coefficients=coefficients)

    def next_value(self, i):
        a_gen, b_gen, c_gen = self.state.coefficients
        a = a_gen.generate(i)
        b = b_gen.generate(i)
        while a == 0 and b == 0:
            b = b_gen.generate(i)
        return _format_line(self.data_type, a, b, c_gen.generate(i))


def _vector_settings(gen):
    dimensions = gen.params.get("dimensions")
    if dimensions is None:
        dimensions = gen.type_params.get("dimensions", 3)
    min_value = gen.params.get("min_value", -1000)
    max_value = gen.params.get("max_value", 1000)
    decimal_places = gen.params.get("decimal_places", 2)
    if dimensions < 1:
        raise ConfigurationError(f"vector dimensions must be positive, got {dimensions}")
    if min_value > max_value:
        raise ConfigurationError(
            f"min_value ({min_value}) cannot be greater than max_value ({max_value}).")
    if decimal_places < 0:
        raise ConfigurationError(f"decimal_places ({decimal_places}) can't be negative.")
    return dimensions, min_value, max_value, 10 ** decimal_places


class GenerateUniqueVector(AbstractGenerator):
    generates_unique = True

    def _axes(self):
        dimensions, min_value, max_value, precision = _vector_settings(self)
        return [_axis(min_value, max_value, precision)] * dimensions, precision

    def max_unique_count(self):
        return product_size(self._axes()[0])

    def make_state(self, count, seed):
        axes, precision = self._axes()
        self.check_capacity(count, "vectors")
        ints = GenerateUniqueInt(min_value=0, max_value=product_size(axes) - 1).init(count, seed)
        return SimpleNamespace(axes=axes, precision=precision, ints=ints)

    def next_value(self, i):
        state = self.state
        return [v / state.precision for v in fast_cartesian_product(state.axes, state.ints.generate(i))]

    def check_length(self):
        return None


class GenerateVector(AbstractGenerator):
    """
    Embedding style vectors: `dimensions` floats (default 3, or the column's
    declared dimensions) in [min_value, max_value] with `decimal_places`
    decimals.
    """

    unique_version = GenerateUniqueVector

    def make_state(self, count, seed):
        dimensions, min_value, max_value, precision = _vector_settings(self)
        number = GenerateNumber(min_value=min_value, max_value=max_value, precision=precision)
        return SimpleNamespace(vectors=GenerateArray(base=number, size=dimensions).init(count, seed))

    def next_value(self, i):
        return self.state.vectors.generate(i)

    def check_length(self):
        return None
