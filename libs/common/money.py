"""Fixed-point money helpers for the commerce engine.

All amounts are ``Decimal``. Arithmetic is exact: nothing here rounds unless
the caller asks for it through ``quantize``.

Scale
-----
Default scale is 2 places (halalas, cents). Currencies may declare 0–8 places;
exchange rates are stored with 8.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Optional, Union

# ─── constants ───────────────────────────────────────────────────────────────

DEFAULT_SCALE: int = 2
MAX_SCALE: int = 8
ZERO = Decimal("0")

ROUNDING_MODES: dict[str, str] = {
    "round": ROUND_HALF_UP,
    "floor": ROUND_FLOOR,
    "ceil": ROUND_CEILING,
}

Amount = Union[Decimal, int, str, float, None]


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_decimal(value: Amount) -> Decimal:
    """Coerce a value to ``Decimal``; ``None`` counts as zero.

    Floats go through ``str`` so 0.1 stays 0.1.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(
    value: Amount, places: int = DEFAULT_SCALE, rounding: str = "round"
) -> Decimal:
    """Round to ``places`` decimal places with an explicit rounding method."""
    if not 0 <= places <= MAX_SCALE:
        raise ValueError(f"places must be between 0 and {MAX_SCALE}")
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUNDING_MODES[rounding])


# ─── arithmetic ───────────────────────────────────────────────────────────────


def add(*values: Amount) -> Decimal:
    """Sum any number of amounts."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def subtract(minuend: Amount, *subtrahends: Amount) -> Decimal:
    """``minuend - s1 - s2 ...``; may go negative."""
    result = to_decimal(minuend)
    for value in subtrahends:
        result -= to_decimal(value)
    return result


def multiply(value: Amount, factor: Amount, places: Optional[int] = None) -> Decimal:
    """Multiply two amounts; rounds only when ``places`` is given."""
    product = to_decimal(value) * to_decimal(factor)
    if places is not None:
        return quantize(product, places)
    return product


def clamp_non_negative(value: Amount) -> Decimal:
    """Return ``value`` or zero, whichever is larger."""
    value = to_decimal(value)
    return value if value > ZERO else ZERO
