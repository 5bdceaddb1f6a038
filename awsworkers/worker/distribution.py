"""Distribution of pool-wide scaling bounds over availability zones.

The compiler only depends on the two callable shapes below; these are the
default implementations and tests may inject their own.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from awsworkers.api.spec import IntOrPercent

__all__ = [
    "BoundDistributor",
    "IntDistributor",
    "distribute_over_zones",
    "distribute_positive_int_or_percent",
]

IntDistributor: TypeAlias = Callable[[int, int, int], int]
BoundDistributor: TypeAlias = Callable[[int, IntOrPercent, int, int], IntOrPercent]


def distribute_over_zones(zone_index: int, total: int, zone_count: int) -> int:
    """Share of ``total`` assigned to the zone at ``zone_index``.

    The remainder goes to the first zones, one each, so the shares over all
    zones always add up to ``total``.

    Example:
        >>> [distribute_over_zones(i, 5, 3) for i in range(3)]
        [2, 2, 1]
    """
    if zone_count <= 0:
        raise ValueError("zone_count must be positive")
    base, remainder = divmod(total, zone_count)
    return base + (1 if zone_index < remainder else 0)


def distribute_positive_int_or_percent(
    zone_index: int,
    value: IntOrPercent,
    zone_count: int,
    base: int,
) -> IntOrPercent:
    """Distribute a surge/unavailable bound over zones.

    Absolute counts are split like ``distribute_over_zones``. Percentages
    stay percentages: each zone's deployment applies the same percentage to
    its own share of ``base``, which keeps the pool-wide ratio.
    """
    match value:
        case str() as percent:
            return percent
        case int() as count:
            return distribute_over_zones(zone_index, count, zone_count)
        case _:
            raise TypeError(f"expected int or percentage string, got {type(value).__name__}")
