"""Human readable size parsing (Kubernetes quantity notation)."""

from __future__ import annotations

import re
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Final

from awsworkers.core.exceptions import SizeParseError

__all__ = ["parse_quantity"]

_QUANTITY_RE: Final = re.compile(r"^\+?(?P<number>\d+(?:\.\d+)?|\.\d+)(?P<suffix>[A-Za-z]*)$")

_MULTIPLIERS: Final[dict[str, int]] = {
    "": 1,
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
    "k": 10**3,
    "M": 10**6,
    "G": 10**9,
    "T": 10**12,
    "P": 10**15,
    "E": 10**18,
}


def parse_quantity(size: str, *, pool: str | None = None, volume: str | None = None) -> int:
    """Parse a size string to bytes.

    Fractional byte counts are rounded up, e.g. ``"1.5Ki"`` is 1536 and
    ``"0.1"`` is 1.

    Args:
        size: Size such as ``"50Gi"``, ``"100G"`` or ``"1024"``.
        pool: Pool name reported in the error.
        volume: Volume name reported in the error.

    Raises:
        SizeParseError: If the string is empty, negative or has an unknown suffix.
    """
    match = _QUANTITY_RE.match(size.strip()) if isinstance(size, str) else None
    if match is None:
        raise SizeParseError(str(size), pool=pool, volume=volume)

    multiplier = _MULTIPLIERS.get(match["suffix"])
    if multiplier is None:
        raise SizeParseError(size, pool=pool, volume=volume)

    try:
        value = Decimal(match["number"]) * multiplier
    except InvalidOperation as e:
        raise SizeParseError(size, pool=pool, volume=volume) from e

    return int(value.to_integral_value(rounding=ROUND_CEILING))
