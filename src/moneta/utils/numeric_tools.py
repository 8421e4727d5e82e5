from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import TypeAlias

# Use where optimal type is `Decimal`, but other numeric representations are also acceptable
# (and will be normalized to an exact `Decimal` by `moneta.scale.normalizer.to_decimal`)
DecimalLike: TypeAlias = Decimal | int | str | float | Fraction


def is_int_like(value: object) -> bool:
    """Return True for real integers, excluding `bool`.

    `bool` is a subclass of `int` in Python, but passing True/False where a count or weight is
    expected is almost always a mistake, so it is rejected everywhere in moneta.
    """
    return isinstance(value, int) and not isinstance(value, bool)
