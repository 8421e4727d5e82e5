"""Exact decimal normalization and rescaling.

All values leaving this module are finite `Decimal`s with a non-negative scale (count of
fractional digits, i.e. `-exponent`). Arithmetic here never depends on the ambient `decimal`
context: every operation builds a local `Context` wide enough to stay exact, and precision is
only ever discarded under an explicit or resolved `RoundingMode`.
"""

from __future__ import annotations

import math
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_DOWN
from fractions import Fraction
from typing import Any

from moneta.errors import DivisionByZeroError, InvalidArgumentError, PrecisionLossError
from moneta.scale.rounding import RoundingMode, resolve_rounding
from moneta.utils.numeric_tools import DecimalLike, is_int_like

# Minimal precision of local contexts; matches the `decimal` module default
_MIN_PRECISION = 28
# Largest positive exponent accepted from input; `1E+n` expands to n + 1 digits at scale 0
_MAX_EXPONENT = 10_000
_ONE = Decimal(1)


# region Helpers


def _exact_context(*values: Decimal, extra: int = 0, rounding: bool = False) -> Context:
    """Context wide enough for exact add/sub/mul/rem/quantize over $values.

    Inexact results are trapped unless $rounding is set (quantize with an explicit rounding).
    """
    prec = extra + 2
    for value in values:
        sign, digits, exponent = value.as_tuple()
        prec += len(digits) + abs(exponent)
    traps = [InvalidOperation, DivisionByZero, Overflow] if rounding else [InvalidOperation, DivisionByZero, Overflow, Inexact]
    return Context(prec=max(prec, _MIN_PRECISION), traps=traps)


def _scale_unit(scale: int) -> Decimal:
    """Return `1E-scale`, the quantum of $scale."""
    return Decimal((0, (1,), -scale))


def _normalize_exponent(value: Decimal) -> Decimal:
    """Turn a positive exponent (e.g. `1E+2`) into scale 0 without changing the value."""
    if value.as_tuple().exponent > 0:
        return value.quantize(_ONE, context=_exact_context(value))
    return value


def _check_scale(scale: Any, op: str) -> None:
    # Raise: scale must be a non-negative integer
    if not is_int_like(scale) or scale < 0:
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $scale ({scale!r}) is not a non-negative integer",
            op=op,
            argument="scale",
            value=scale,
        )


def _terminating_scale(ratio: Fraction) -> int | None:
    """Number of fractional digits of the decimal expansion of $ratio, or None if it never ends."""
    denominator = ratio.denominator
    twos = fives = 0
    while denominator % 2 == 0:
        denominator //= 2
        twos += 1
    while denominator % 5 == 0:
        denominator //= 5
        fives += 1
    if denominator != 1:
        return None
    return max(twos, fives)


def _parse_ratio(text: str, op: str) -> Fraction:
    try:
        return Fraction(text)
    except (ValueError, ZeroDivisionError) as e:
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $value ('{text}') is not a valid ratio literal",
            op=op,
            argument="value",
            value=text,
        ) from e


def _as_ratio(value: Any, op: str) -> Fraction | None:
    """Return $value as `Fraction` when it is a ratio (object or `n/d` text), else None."""
    if isinstance(value, Fraction):
        return value
    if isinstance(value, str) and "/" in value:
        return _parse_ratio(value.strip(), op)
    return None


def _require_rounding_allowed(mode: RoundingMode | None) -> bool:
    return mode is not None and mode.allows_rounding


# endregion

# region Conversion


def from_units(units: int, scale: int) -> Decimal:
    """Build the exact decimal `units * 10**-scale`.

    Example:
        from_units(-1234, 2) == Decimal("-12.34")
    """
    sign = 1 if units < 0 else 0
    digits = tuple(int(ch) for ch in str(abs(units)))
    return Decimal((sign, digits, -scale))


def to_units(value: DecimalLike, scale: int | None = None, mode: Any = None) -> int:
    """Return $value as a signed integer count of `10**-scale` units.

    Without $scale the value's own scale is used, so the conversion is always exact.
    """
    d = to_decimal(value, op="to_units")
    if scale is not None:
        d = rescale(d, scale, mode, op="to_units")
    sign, digits, exponent = d.as_tuple()
    units = int("".join(str(digit) for digit in digits))
    return -units if sign else units


def to_decimal(value: DecimalLike, mode: Any = None, *, op: str = "to_decimal") -> Decimal:
    """Normalize a supported numeric representation to an exact `Decimal` with its natural scale.

    Supported representations:
        - `int`: scale 0,
        - `Decimal`: returned as it is (positive exponents are moved to scale 0),
        - `float`: via its shortest round-trip text (`repr`), so `0.1` becomes `Decimal("0.1")`,
        - `Fraction` or `"n/d"` text: exact when the expansion terminates, otherwise rounded at
          the division working precision using $mode or the resolved rounding mode,
        - numeric text (`"1.50"`, `"1_000"`, `"-2e-3"`): digits kept as written.

    Args:
        value: Value to normalize.
        mode: Rounding mode used only for non-terminating ratios.

    Returns:
        Exact decimal with a non-negative scale.

    Raises:
        InvalidArgumentError: Unsupported type, bool, malformed text, NaN or infinity.
        PrecisionLossError: Non-terminating ratio without a usable rounding mode.
    """
    # Raise: bool is an int subclass but never a valid amount
    if isinstance(value, bool):
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $value ({value!r}) is a bool, not a number",
            op=op,
            argument="value",
            value=value,
        )

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgumentError(f"Cannot call `{op}` because $value ({value!r}) is not finite", op=op, argument="value", value=value)
        result = Decimal(repr(value))
    elif isinstance(value, Fraction):
        return _ratio_to_decimal(value, mode, op)
    elif isinstance(value, str):
        text = value.strip()
        if "/" in text:
            return _ratio_to_decimal(_parse_ratio(text, op), mode, op)
        try:
            result = Decimal(text)
        except InvalidOperation as e:
            raise InvalidArgumentError(
                f"Cannot call `{op}` because $value ('{value}') is not a numeric literal",
                op=op,
                argument="value",
                value=value,
            ) from e
    else:
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $value ({value!r}) of type {type(value).__name__} is not a supported numeric representation",
            op=op,
            argument="value",
            value=value,
        )

    # Raise: NaN and infinities have no scale
    if not result.is_finite():
        raise InvalidArgumentError(f"Cannot call `{op}` because $value ({value!r}) is not finite", op=op, argument="value", value=value)

    # Raise: positive exponent too large to expand to scale 0
    if result.as_tuple().exponent > _MAX_EXPONENT:
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $value ({value!r}) has an exponent above {_MAX_EXPONENT}",
            op=op,
            argument="value",
            value=value,
        )

    return _normalize_exponent(result)


def _ratio_to_decimal(ratio: Fraction, mode: Any, op: str) -> Decimal:
    scale = _terminating_scale(ratio)
    if scale is not None:
        return from_units(ratio.numerator * 10**scale // ratio.denominator, scale)

    numerator = Decimal(ratio.numerator)
    denominator = Decimal(ratio.denominator)
    resolved = resolve_rounding(mode, op)
    # Raise: non-terminating expansion needs a rounding mode
    if not _require_rounding_allowed(resolved):
        raise PrecisionLossError(
            f"Cannot call `{op}` because ratio {ratio} has no terminating decimal expansion and rounding mode is {resolved}",
            op=op,
            rounding_mode=resolved,
            value=ratio,
            numerator=numerator,
            denominator=denominator,
        )
    return _divide_at_precision(numerator, denominator, resolved)


# endregion

# region Scale


def scale_of(value: DecimalLike) -> int:
    """Return the number of fractional digits of $value."""
    exponent = to_decimal(value, op="scale_of").as_tuple().exponent
    return -exponent if exponent < 0 else 0


def precision_of(value: DecimalLike) -> int:
    """Return the number of significant digits of $value (1 for zero)."""
    return len(to_decimal(value, op="precision_of").as_tuple().digits)


def rescale(value: DecimalLike, scale: int, mode: Any = None, *, op: str = "rescale") -> Decimal:
    """Return $value with exactly $scale fractional digits.

    Widening the scale pads with zeros and never needs a rounding mode. Narrowing the scale uses
    $mode, or the resolved rounding mode when $mode is None; without any mode (or with
    UNNECESSARY) narrowing only succeeds when no non-zero digit is discarded. A decimal that
    already has $scale is returned as the very same object.

    Ratios are rounded straight to $scale, without an intermediate working precision.

    Raises:
        InvalidArgumentError: $scale is not a non-negative integer, or $value is unsupported.
        PrecisionLossError: Digits would be discarded and no usable rounding mode is available.
    """
    _check_scale(scale, op)

    ratio = _as_ratio(value, op)
    if ratio is not None:
        return round_ratio(ratio, scale, mode, op=op)

    d = to_decimal(value, op=op)
    current = -d.as_tuple().exponent
    if current == scale:
        return d

    context = _exact_context(d, extra=scale, rounding=True)
    quantum = _scale_unit(scale)
    if scale > current:
        return d.quantize(quantum, context=context)

    resolved = resolve_rounding(mode, op)
    if not _require_rounding_allowed(resolved):
        truncated = d.quantize(quantum, rounding=ROUND_DOWN, context=context)
        # Raise: dropping non-zero digits needs a rounding mode
        if truncated != d:
            raise PrecisionLossError(
                f"Cannot call `{op}` because $value ({d}) needs rounding to $scale {scale}, but rounding mode is {resolved}",
                op=op,
                scale=scale,
                rounding_mode=resolved,
                value=d,
            )
        return truncated

    return d.quantize(quantum, rounding=resolved.decimal_rounding, context=context)


def round_ratio(ratio: Fraction, scale: int, mode: Any = None, *, op: str = "round_ratio", **diagnostics: Any) -> Decimal:
    """Round the exact rational $ratio to $scale fractional digits.

    Extra keyword arguments are attached to a raised `PrecisionLossError` (e.g. `dividend`).
    """
    _check_scale(scale, op)
    scaled = ratio * 10**scale
    quotient, remainder = divmod(abs(scaled.numerator), scaled.denominator)
    sign = -1 if ratio < 0 else 1
    if remainder == 0:
        return from_units(sign * quotient, scale)

    resolved = resolve_rounding(mode, op)
    if not _require_rounding_allowed(resolved):
        diagnostics.setdefault("value", ratio)
        raise PrecisionLossError(
            f"Cannot call `{op}` because {ratio} needs rounding to $scale {scale}, but rounding mode is {resolved}",
            op=op,
            scale=scale,
            rounding_mode=resolved,
            numerator=Decimal(ratio.numerator),
            denominator=Decimal(ratio.denominator),
            **diagnostics,
        )

    # One guard digit tells `decimal` whether the discarded part is below, at or above one half
    doubled = 2 * remainder
    if doubled == scaled.denominator:
        guard = 5
    elif doubled < scaled.denominator:
        guard = 1
    else:
        guard = 6
    guarded = from_units(sign * (quotient * 10 + guard), 1)
    rounded = guarded.quantize(_ONE, rounding=resolved.decimal_rounding, context=_exact_context(guarded, rounding=True))
    return from_units(int(rounded), scale)


def strip_zeros(value: DecimalLike) -> Decimal:
    """Drop trailing fractional zeros, never going below scale 0."""
    d = to_decimal(value, op="strip_zeros")
    if d.is_zero():
        return Decimal(0)
    return _normalize_exponent(d.normalize(context=_exact_context(d)))


def integer_part(value: DecimalLike) -> Decimal:
    """Integral part of $value, truncated toward zero, at scale 0."""
    d = to_decimal(value, op="integer_part")
    if d.as_tuple().exponent == 0:
        return d
    return d.quantize(_ONE, rounding=ROUND_DOWN, context=_exact_context(d, rounding=True))


def fractional_part(value: DecimalLike) -> Decimal:
    """Fractional part of $value, keeping its scale and sign."""
    d = to_decimal(value, op="fractional_part")
    return sub_exact(d, integer_part(d))


# endregion

# region Arithmetic


def add_exact(a: Decimal, b: Decimal) -> Decimal:
    return _exact_context(a, b).add(a, b)


def sub_exact(a: Decimal, b: Decimal) -> Decimal:
    return _exact_context(a, b).subtract(a, b)


def mul_exact(a: Decimal, b: Decimal) -> Decimal:
    return _normalize_exponent(_exact_context(a, b).multiply(a, b))


def rem_exact(a: Decimal, b: Decimal, *, op: str = "rem") -> Decimal:
    """Remainder of truncated division; the result has the sign of $a."""
    # Raise: remainder by zero is undefined
    if b.is_zero():
        raise DivisionByZeroError(f"Cannot call `{op}` because $divisor is zero", op=op, dividend=a, divisor=b)
    return _exact_context(a, b).remainder(a, b)


def div_precision(a: DecimalLike, b: DecimalLike) -> int:
    """Working precision (significant digits) for a non-terminating division of $a by $b.

    Defined as `precision(a) + ceil(10 * precision(b) / 3)`.
    """
    return precision_of(a) + math.ceil(10 * precision_of(b) / 3)


def _divide_at_precision(a: Decimal, b: Decimal, mode: RoundingMode) -> Decimal:
    context = Context(prec=div_precision(a, b), rounding=mode.decimal_rounding, traps=[InvalidOperation, DivisionByZero, Overflow])
    return _normalize_exponent(context.divide(a, b))


def divide(a: DecimalLike, b: DecimalLike, mode: Any = None, scale: int | None = None, *, op: str = "divide") -> Decimal:
    """Divide $a by $b.

    - With $scale: the exact quotient is rounded straight to $scale (mode needed only when digits
      are discarded).
    - Without $scale and a terminating quotient: the exact quotient, padded to the preferred scale
      `scale(a) - scale(b)` (not below 0).
    - Without $scale and a non-terminating quotient: rounded to `div_precision(a, b)` significant
      digits using $mode or the resolved rounding mode.

    Example:
        with with_rounding(RoundingMode.UP):
            divide(1, 3) == Decimal("0.33334")

    Raises:
        DivisionByZeroError: $b is zero.
        PrecisionLossError: Rounding is needed but no usable mode is available. The error carries
            `dividend` and `divisor`.
    """
    x = to_decimal(a, mode, op=op)
    y = to_decimal(b, mode, op=op)

    # Raise: division by zero
    if y.is_zero():
        raise DivisionByZeroError(f"Cannot call `{op}` because $divisor is zero", op=op, dividend=x, divisor=y)

    ratio = Fraction(x) / Fraction(y)
    if scale is not None:
        return round_ratio(ratio, scale, mode, op=op, value=x, dividend=x, divisor=y)

    exact_scale = _terminating_scale(ratio)
    if exact_scale is not None:
        preferred = max(0, -x.as_tuple().exponent + y.as_tuple().exponent)
        result_scale = max(exact_scale, preferred)
        return from_units(ratio.numerator * 10**result_scale // ratio.denominator, result_scale)

    resolved = resolve_rounding(mode, op)
    # Raise: non-terminating quotient needs a rounding mode
    if not _require_rounding_allowed(resolved):
        raise PrecisionLossError(
            f"Cannot call `{op}` because {x} / {y} has no terminating decimal expansion and rounding mode is {resolved}",
            op=op,
            rounding_mode=resolved,
            value=x,
            dividend=x,
            divisor=y,
        )
    return _divide_at_precision(x, y, resolved)


# endregion
