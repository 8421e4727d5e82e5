"""Variadic arithmetic, chained comparisons and rescaling of Money values.

Arithmetic functions take one or more operands and fold them left to right:
`div(a, b, c)` is `(a / b) / c`. Comparison functions are chained: `lt(a, b, c)` holds when
`a < b` and `b < c`, and stops at the first pair that fails.

Functions accepting $mode use it for every rounding they need; when it is None the resolved
rounding mode (see `moneta.scale.rounding`) is used.
"""

from __future__ import annotations

import operator
from decimal import Decimal
from typing import Any, Callable, Sequence

from moneta.domain.currency_lookup import CurrencyLike, currency as resolve_currency
from moneta.domain.money import Money, Operand, add_step, div_step, mul_step, rem_step, sub_step, to_nominal
from moneta.domain.registry import Registry
from moneta.errors import InvalidArgumentError, MoneyArithmeticError
from moneta.scale.normalizer import (
    divide,
    fractional_part,
    integer_part,
    mul_exact,
    rescale,
    scale_of,
    strip_zeros,
    to_decimal,
    to_units,
)
from moneta.utils.numeric_tools import DecimalLike


def _require_values(values: Sequence[Any], op: str) -> None:
    # Raise: variadic operations need at least one operand
    if not values:
        raise InvalidArgumentError(f"Cannot call `{op}` without operands", op=op, argument="values", value=())


def _require_money(value: Any, op: str, argument: str = "money") -> Money:
    # Raise: operand must be Money
    if not isinstance(value, Money):
        raise InvalidArgumentError(f"Cannot call `{op}` because ${argument} ({value!r}) is not Money", op=op, argument=argument, value=value)
    return value


# region Arithmetic


def add(*values: Money) -> Money:
    """Sum amounts of the same currency."""
    _require_values(values, "add")
    result = _require_money(values[0], "add")
    for value in values[1:]:
        result = add_step(result, value, "add")
    return result


def sub(*values: Money) -> Money:
    """Subtract the following amounts from the first one; a single amount is negated."""
    _require_values(values, "sub")
    result = _require_money(values[0], "sub")
    if len(values) == 1:
        return -result
    for value in values[1:]:
        result = sub_step(result, value, "sub")
    return result


def _first(value: Operand, mode: Any, op: str) -> Money | Decimal:
    return value if isinstance(value, Money) else to_decimal(value, mode, op=op)


def mul(*values: Operand, mode: Any = None) -> Money | Decimal:
    """Multiply operands exactly; a Money result is rescaled to the nominal scale once, at the end.

    At most one operand may be Money.
    """
    _require_values(values, "mul")
    result = _first(values[0], mode, "mul")
    for value in values[1:]:
        result = mul_step(result, value, mode, "mul")
    return to_nominal(result, mode, "mul")


def mul_scaled(*values: Operand, mode: Any = None) -> Money | Decimal:
    """Like `mul`, but a Money result is rescaled to the nominal scale after every step."""
    _require_values(values, "mul_scaled")
    result = to_nominal(_first(values[0], mode, "mul_scaled"), mode, "mul_scaled")
    for value in values[1:]:
        result = to_nominal(mul_step(result, value, mode, "mul_scaled"), mode, "mul_scaled")
    return result


def div(*values: Operand, mode: Any = None) -> Money | Decimal:
    """Divide the first operand by the following ones.

    Money / number stays Money and is rescaled to the nominal scale once, at the end.
    Money / Money of the same currency gives a Decimal. number / Money is rejected, so a single
    Money operand (meaning `1 / money`) is rejected as well.

    Example:
        with with_rounding(RoundingMode.UP):
            div(money(1, "PLN"), 3) == money("0.34", "PLN")

    Raises:
        InvalidArgumentError: number / Money.
        CurrencyMismatchError: Money / Money of different currencies; carries the first operand as
            `dividend` and the mismatched operand as `divisor`.
        PrecisionLossError: Rounding needed without a usable rounding mode; carries the offending
            `dividend` and `divisor`.
        DivisionByZeroError: Zero divisor.
    """
    _require_values(values, "div")
    if len(values) == 1:
        return div_step(1, values[0], mode, "div")

    result = _first(values[0], mode, "div")
    for value in values[1:]:
        result = div_step(result, value, mode, "div", origin=values[0])
    return to_nominal(result, mode, "div")


def div_scaled(*values: Operand, mode: Any = None) -> Money | Decimal:
    """Like `div`, but a Money result is rescaled to the nominal scale after every step."""
    _require_values(values, "div_scaled")
    if len(values) == 1:
        return div_step(1, values[0], mode, "div_scaled")

    result = to_nominal(_first(values[0], mode, "div_scaled"), mode, "div_scaled")
    for value in values[1:]:
        quotient = div_step(result, value, mode, "div_scaled", origin=values[0])
        try:
            result = to_nominal(quotient, mode, "div_scaled")
        except MoneyArithmeticError as e:
            e.dividend, e.divisor = values[0], value
            raise
    return result


def rem(a: Operand, b: Operand) -> Money | Decimal:
    """Remainder of truncated division of $a by $b (sign of $a)."""
    return rem_step(a, b, "rem")


def neg(value: Money) -> Money:
    return -_require_money(value, "neg")


def absolute(value: Money) -> Money:
    return abs(_require_money(value, "absolute"))


# endregion

# region Comparison


def _chain(values: Sequence[Any], op: str, relation: Callable[[Money, Money], bool]) -> bool:
    _require_values(values, op)
    for value in values:
        _require_money(value, op, "values")
    for left, right in zip(values, values[1:]):
        if not relation(left, right):
            return False
    return True


def _strictly_equal(left: Money, right: Money) -> bool:
    return left == right


def _equal_amounts(left: Money, right: Money) -> bool:
    return left.currency.same_id(right.currency) and left.amount == right.amount


def eq(*values: Money) -> bool:
    """True if all values have the same currency, amount and amount scale."""
    return _chain(values, "eq", _strictly_equal)


def ne(*values: Money) -> bool:
    return not eq(*values)


def eq_am(*values: Money) -> bool:
    """Like `eq`, but ignores differences of amount scale (`1.000 PLN` equals `1.00 PLN`)."""
    return _chain(values, "eq_am", _equal_amounts)


def ne_am(*values: Money) -> bool:
    return not eq_am(*values)


def gt(*values: Money) -> bool:
    return _chain(values, "gt", operator.gt)


def ge(*values: Money) -> bool:
    return _chain(values, "ge", operator.ge)


def lt(*values: Money) -> bool:
    return _chain(values, "lt", operator.lt)


def le(*values: Money) -> bool:
    return _chain(values, "le", operator.le)


def same_currencies(*values: Money) -> bool:
    """True if every value is Money and all share one currency id."""
    _require_values(values, "same_currencies")
    if not all(isinstance(value, Money) for value in values):
        return False
    first = values[0].currency
    return all(first.same_id(value.currency) for value in values[1:])


def _pick(values: Sequence[Money], op: str, choose: Callable) -> Money:
    _require_values(values, op)
    first = _require_money(values[0], op, "values")
    for value in values[1:]:
        _require_money(value, op, "values")
        first._check_same_currency(value, op)
    return choose(values, key=lambda value: value.amount)


def minimum(*values: Money) -> Money:
    """Smallest amount (the first one on ties); all values must share a currency."""
    return _pick(values, "minimum", min)


def maximum(*values: Money) -> Money:
    """Largest amount (the first one on ties); all values must share a currency."""
    return _pick(values, "maximum", max)


def is_zero(value: Money) -> bool:
    return _require_money(value, "is_zero").amount.is_zero()


def is_pos(value: Money) -> bool:
    return _require_money(value, "is_pos").amount > 0


def is_neg(value: Money) -> bool:
    return _require_money(value, "is_neg").amount < 0


def is_pos_or_zero(value: Money) -> bool:
    return _require_money(value, "is_pos_or_zero").amount >= 0


def is_neg_or_zero(value: Money) -> bool:
    return _require_money(value, "is_neg_or_zero").amount <= 0


# endregion

# region Scale


def scale(value: Money, n: int | None = None, mode: Any = None) -> Money:
    """Rescale the amount to $n digits (the currency's nominal scale when None).

    Only the amount changes; the currency keeps its nominal scale.
    """
    _require_money(value, "scale")
    if n is None:
        return to_nominal(value, mode, "scale")
    amount = rescale(value.amount, n, mode, op="scale")
    if amount is value.amount:
        return value
    return Money(amount, value.currency)


def round_amount(value: Money, n: int, mode: Any = None) -> Money:
    """Round the amount to $n digits but keep its scale.

    Example:
        round_amount(money("12.3456", "crypto/USDT"), 2, RoundingMode.HALF_UP)  # 12.350000 USDT
    """
    _require_money(value, "round_amount")
    if n >= value.scale:
        return value
    rounded = rescale(value.amount, n, mode, op="round_amount")
    return Money(rescale(rounded, value.scale), value.currency)


def round_to(value: Money, interval: Money | DecimalLike, mode: Any = None) -> Money:
    """Round the amount to the nearest multiple of $interval.

    Example:
        round_to(money("12.34", "PLN"), "0.05", RoundingMode.HALF_UP) == money("12.35", "PLN")
    """
    _require_money(value, "round_to")
    if isinstance(interval, Money):
        value._check_same_currency(interval, "round_to")
        step = interval.amount
    else:
        step = to_decimal(interval, mode, op="round_to")

    # Raise: interval must be positive
    if step <= 0:
        raise InvalidArgumentError(f"Cannot call `round_to` because $interval ({interval}) is not positive", op="round_to", argument="interval", value=interval)

    count = divide(value.amount, step, mode, scale=0, op="round_to")
    result = mul_exact(count, step)
    if scale_of(result) < value.scale:
        result = rescale(result, value.scale)
    return Money(result, value.currency)


def strip(value: Money) -> Money:
    """Drop trailing zeros of the amount (never below scale 0)."""
    return Money(strip_zeros(_require_money(value, "strip").amount), value.currency)


def major(value: Money) -> Decimal:
    """Major part of the amount (truncated toward zero), at scale 0."""
    return integer_part(_require_money(value, "major").amount)


def minor(value: Money) -> int:
    """Minor part of the amount as an integer count of units of the amount's scale.

    Example:
        minor(money("-12.34", "PLN")) == -34
    """
    return to_units(fractional_part(_require_money(value, "minor").amount))


def major_minor(value: Money) -> tuple[Decimal, int]:
    return major(value), minor(value)


def convert(value: Money, to_currency: CurrencyLike, rate: DecimalLike, mode: Any = None, registry: Registry | bool | None = None) -> Money:
    """Convert to another currency using a caller-supplied $rate (units of target per unit).

    The result is rescaled to the target currency's nominal scale.

    Raises:
        InvalidArgumentError: $rate is not positive.
        CurrencyNotFoundError: $to_currency does not resolve.
    """
    _require_money(value, "convert")
    target = resolve_currency(to_currency, registry)
    factor = to_decimal(rate, mode, op="convert")
    # Raise: rate must be positive
    if factor <= 0:
        raise InvalidArgumentError(f"Cannot call `convert` because $rate ({rate}) is not positive", op="convert", argument="rate", value=rate)
    return to_nominal(Money(mul_exact(value.amount, factor), target), mode, "convert")


# endregion
