from __future__ import annotations

import logging
from typing import Sequence

from moneta.domain.money import Money
from moneta.errors import InvalidArgumentError
from moneta.scale.normalizer import from_units, to_units
from moneta.utils.numeric_tools import is_int_like

logger: logging.Logger = logging.getLogger(__name__)


def allocate(value: Money, weights: Sequence[int]) -> list[Money]:
    """Split $value into parts proportional to $weights without losing a single unit.

    Works on integer units of the amount's own scale. Every part first gets its truncated
    proportional share; the units left over are then handed out one at a time to the earliest
    parts. The parts always sum exactly to $value and keep its scale and currency.

    Example:
        allocate(money("1.00", "PLN"), [1, 1, 1])  # [0.34, 0.33, 0.33] PLN
        allocate(money("-1.00", "PLN"), [1, 1, 1])  # [-0.34, -0.33, -0.33] PLN

    Args:
        value: Amount to split.
        weights: Positive integer weights, one per part.

    Returns:
        One Money per weight, in the order of $weights.

    Raises:
        InvalidArgumentError: If $value is not Money, $weights is empty or any weight is not a
            positive integer.
    """
    # Raise: only money can be allocated
    if not isinstance(value, Money):
        raise InvalidArgumentError(f"Cannot call `allocate` because $value ({value!r}) is not Money", op="allocate", argument="value", value=value)

    weights = list(weights)
    # Raise: at least one part is needed
    if not weights:
        raise InvalidArgumentError("Cannot call `allocate` because $weights is empty", op="allocate", argument="weights", value=weights)

    for weight in weights:
        # Raise: weights must be positive integers
        if not is_int_like(weight) or weight <= 0:
            raise InvalidArgumentError(f"Cannot call `allocate` because $weights contain {weight!r}, which is not a positive integer", op="allocate", argument="weights", value=weights)

    scale = value.scale
    units = to_units(value.amount)
    sign = -1 if units < 0 else 1
    total_weight = sum(weights)

    shares = [sign * (abs(units) * weight // total_weight) for weight in weights]
    remainder = units - sum(shares)
    for index in range(abs(remainder)):
        shares[index] += sign

    logger.debug(f"Allocated {value} into {len(shares)} parts with weights {weights}, {abs(remainder)} unit(s) of remainder")
    return [Money(from_units(share, scale), value.currency) for share in shares]


def distribute(value: Money, parts: int) -> list[Money]:
    """Split $value into $parts equal parts (up to one unit of difference).

    Example:
        distribute(money("10.00", "PLN"), 3)  # [3.34, 3.33, 3.33] PLN
    """
    # Raise: number of parts must be a positive integer
    if not is_int_like(parts) or parts < 1:
        raise InvalidArgumentError(f"Cannot call `distribute` because $parts ({parts!r}) is not a positive integer", op="distribute", argument="parts", value=parts)
    return allocate(value, [1] * parts)
