"""
Configuration for seeding runs.

SeedOptions carries the per-run knobs, EngineDefaults the engine-wide
constants. Both are frozen so a run never mutates them halfway through.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from seedforge.errors import ConfigurationError


@dataclass(frozen=True)
class EngineDefaults:
    default_count: int = 10
    batch_size: int = 10000
    self_relation_min_percent: int = 20
    self_relation_max_percent: int = 40
    weight_accuracy: int = 100


@dataclass(frozen=True)
class SeedOptions:
    """
    Run options.

    count:             default row count for tables without an explicit one
    seed:              base seed, every column seed is derived from it
    preserve_data:     None lets the engine keep only what later tables need
                       (everything when nothing is inserted)
    insert_data_in_db: push batches into the sink
    batch_size:        upper bound for rows per insert, further capped by the
                       sink's placeholder limit
    """

    count: Optional[int] = None
    seed: int = 0
    preserve_data: Optional[bool] = None
    insert_data_in_db: bool = True
    batch_size: Optional[int] = None

    def __post_init__(self):
        if self.count is not None and self.count < 0:
            raise ConfigurationError(f"count must be non-negative, got {self.count}")
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")


DEFAULTS = EngineDefaults()


def configure_logging(level=logging.INFO):
    """Basic console logging for scripts; the library itself never calls this."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
