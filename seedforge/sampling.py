"""
Sampling helpers shared by the generators: weighted ticket pools,
mixed-radix decoding over Cartesian products and '#' templates.
"""

import numpy as np

from seedforge.errors import ConfigurationError


def get_weighted_indices(weights, accuracy: int = 100) -> list:
    """
    Build a ticket pool where index k appears floor(weights[k] * accuracy) times.

    Drawing a uniform position from the pool yields k with probability close
    to weights[k]. Weights must sum to 1 (checked to 4 decimal places).
    """
    weights = [float(w) for w in weights]
    if not weights:
        raise ConfigurationError("weights list is empty.")
    if any(w < 0 for w in weights):
        raise ConfigurationError(f"weights must be non-negative, got {weights}.")
    total = round(sum(weights), 4)
    if total != 1:
        raise ConfigurationError(
            f"The weights for the Weighted Random feature must add up to exactly 1. "
            f"Please review your weights to ensure they total 1 before proceeding (got {total})."
        )
    # the small epsilon keeps 0.29 * 100 from flooring to 28
    tickets = np.floor(np.asarray(weights) * accuracy + 1e-9).astype(np.int64)
    pool = np.repeat(np.arange(len(weights)), tickets)
    if len(pool) == 0:
        raise ConfigurationError(
            f"accuracy {accuracy} is too low to represent weights {weights}."
        )
    return pool.tolist()


def fast_cartesian_product(sets, index: int) -> list:
    """
    Decode `index` into one pick per set without building the product.

    The last set varies fastest, so index 0 is the first element of every
    set and index 1 moves only the last one.
    """
    picks = [None] * len(sets)
    for axis in range(len(sets) - 1, -1, -1):
        current = sets[axis]
        picks[axis] = current[index % len(current)]
        index //= len(current)
    return picks


def product_size(sets) -> int:
    size = 1
    for current in sets:
        size *= len(current)
    return size


def fill_template(template: str, values, placeholders_count: int = None,
                  default_value: str = " ") -> str:
    """Replace '#' placeholders left to right, left-padding short value lists."""
    if placeholders_count is None:
        placeholders_count = template.count("#")
    values = [str(v) for v in values]
    diff = placeholders_count - len(values)
    if diff > 0:
        values = [default_value] * diff + values

    parts = []
    value_idx = 0
    for char in template:
        if char == "#" and value_idx < len(values):
            parts.append(values[value_idx])
            value_idx += 1
        else:
            parts.append(char)
    return "".join(parts)
