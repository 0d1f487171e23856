# orders/money.py

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

MINOR = "minor"
MAJOR = "major"
UNITS = (MINOR, MAJOR)

# integers above this are assumed to already be minor units
MINOR_UNIT_THRESHOLD = 1000


def _number(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        n = value
    else:
        try:
            n = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            return None
    try:
        finite = math.isfinite(n)
    except (TypeError, ValueError):
        return None
    return n if finite else None


def _is_integral(n) -> bool:
    if isinstance(n, int):
        return True
    return n == int(n)


def _round_half_up(x) -> int:
    return int(Decimal(str(x)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_to_minor_units(value) -> int:
    """Best-effort conversion of a loosely typed price to minor units.

    Whole numbers above ``MINOR_UNIT_THRESHOLD`` are taken as minor units
    already; anything else is read as a major-unit amount. Non-finite or
    unparseable input gives 0.
    """
    n = _number(value)
    if n is None:
        return 0
    if _is_integral(n) and n > MINOR_UNIT_THRESHOLD:
        return int(n)
    return _round_half_up(Decimal(str(n)) * 100)


def to_minor_units(value, unit: str) -> int:
    """Convert an amount tagged with its unit. Raises ValueError on bad input."""
    if unit not in UNITS:
        raise ValueError(f"unknown money unit: {unit!r}")
    n = _number(value)
    if n is None:
        raise ValueError(f"not a finite amount: {value!r}")
    if unit == MINOR:
        if not _is_integral(n):
            raise ValueError(f"minor-unit amount must be whole: {value!r}")
        return int(n)
    return _round_half_up(Decimal(str(n)) * 100)


def to_major_units(minor_units) -> Decimal:
    return (Decimal(int(minor_units or 0)) / 100).quantize(Decimal("0.01"))


def convert_minor(amount_minor: int, rate) -> int:
    """Convert ``amount_minor`` at ``rate`` (target major per source major)."""
    major = Decimal(int(amount_minor)) / 100
    target_major = major * Decimal(str(rate))
    return _round_half_up(target_major * 100)
