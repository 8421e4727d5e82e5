from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from moneta.domain.currency import Currency
from moneta.domain.currency_lookup import CurrencyLike, currency as resolve_currency, currency_from_map, currency_to_map
from moneta.domain.registry import Registry
from moneta.errors import CurrencyMismatchError, CurrencyNotFoundError, InvalidArgumentError, MoneyArithmeticError
from moneta.scale.normalizer import (
    add_exact,
    divide,
    from_units,
    integer_part,
    mul_exact,
    rem_exact,
    rescale,
    sub_exact,
    to_decimal,
)
from moneta.utils.numeric_tools import DecimalLike, is_int_like

# Operand of money arithmetic: Money or a plain number
Operand = Any


class Money:
    """Exact amount of a currency.

    The amount is an exact `Decimal`. Its scale is usually the currency's nominal scale, but it
    is not forced to be: some operations (e.g. `div` of two amounts, `strip`, `scale`) produce
    other scales. Money is immutable; operators return new values.

    Operators:
        - `==` is strict: same currency id, equal amount and equal scale (`1.00 != 1.0`).
        - `<`, `<=`, `>`, `>=` require the same currency and compare amounts only.
        - `+`, `-` require the same currency.
        - `*` and `/` by a number rescale the result to the currency's nominal scale, using the
          resolved rounding mode when digits have to be dropped.
        - `Money / Money` gives a `Decimal` ratio; `number / Money` is rejected.
    """

    __slots__ = ("_amount", "_currency")

    def __init__(self, amount: DecimalLike, currency: Currency):
        """Initialize Money with an exact amount and a resolved currency.

        The amount is kept as it is (no rescaling); use `money()` to build a value at the
        currency's nominal scale from a currency id.

        Raises:
            InvalidArgumentError: If $currency is not a Currency or $amount is not a number.
        """
        # Raise: currency must be an instance of Currency
        if not isinstance(currency, Currency):
            raise InvalidArgumentError(f"$currency must be a Currency instance, but provided value is: {currency!r}", op="Money", argument="currency", value=currency)

        self._amount = to_decimal(amount, op="Money")
        self._currency = currency

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def scale(self) -> int:
        """Scale of the amount (not the currency's nominal scale)."""
        return -self._amount.as_tuple().exponent

    def _check_same_currency(self, other: Money, op: str) -> None:
        """Raise `CurrencyMismatchError` unless $other has the same currency id."""
        if not self._currency.same_id(other._currency):
            raise CurrencyMismatchError(
                f"Cannot call `{op}` because currencies differ: {self._currency.id} and {other._currency.id}",
                op=op,
                operands=(self, other),
            )

    # region Comparison

    def __eq__(self, other) -> bool:
        """Strict equality: same currency id, amount and scale."""
        if not isinstance(other, Money):
            return False
        return self._currency.same_id(other._currency) and self._amount == other._amount and self.scale == other.scale

    def __hash__(self) -> int:
        return hash((self._currency.id, self._amount))

    def __lt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "lt")
        return self._amount < other._amount

    def __le__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "le")
        return self._amount <= other._amount

    def __gt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "gt")
        return self._amount > other._amount

    def __ge__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "ge")
        return self._amount >= other._amount

    # endregion

    # region Arithmetic

    def __add__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return add_step(self, other, "add")

    def __sub__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return sub_step(self, other, "sub")

    def __mul__(self, other):
        if isinstance(other, Money):
            return NotImplemented
        return to_nominal(mul_step(self, other, None, "mul"), None, "mul")

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        return to_nominal(div_step(self, other, None, "div"), None, "div")

    def __rtruediv__(self, other):
        # Always rejected: a plain number divided by money
        return div_step(other, self, None, "div")

    def __mod__(self, other):
        return rem_step(self, other, "rem")

    def __rmod__(self, other):
        return rem_step(other, self, "rem")

    def __neg__(self) -> Money:
        return Money(-self._amount, self._currency)

    def __pos__(self) -> Money:
        return self

    def __abs__(self) -> Money:
        return Money(abs(self._amount), self._currency)

    # endregion

    def __str__(self) -> str:
        """Return string like '1000.50 PLN'."""
        return f"{self._amount} {self._currency.id}"

    def __repr__(self) -> str:
        """Return string like 'Money(1000.50, PLN)'."""
        return f"{self.__class__.__name__}({self._amount}, {self._currency.id})"


def is_money(value: Any) -> bool:
    return isinstance(value, Money)


# region Arithmetic steps


def _ill_typed(op: str, argument: str, value: Any, message: str) -> InvalidArgumentError:
    return InvalidArgumentError(f"Cannot call `{op}` because {message}", op=op, argument=argument, value=value)


def add_step(a: Money, b: Money, op: str = "add") -> Money:
    """Add two amounts of the same currency; the result has the larger scale."""
    for name, operand in (("augend", a), ("addend", b)):
        # Raise: only money can be added to money
        if not isinstance(operand, Money):
            raise _ill_typed(op, name, operand, f"${name} ({operand!r}) is not Money")
    a._check_same_currency(b, op)
    return Money(add_exact(a.amount, b.amount), a.currency)


def sub_step(a: Money, b: Money, op: str = "sub") -> Money:
    for name, operand in (("minuend", a), ("subtrahend", b)):
        # Raise: only money can be subtracted from money
        if not isinstance(operand, Money):
            raise _ill_typed(op, name, operand, f"${name} ({operand!r}) is not Money")
    a._check_same_currency(b, op)
    return Money(sub_exact(a.amount, b.amount), a.currency)


def mul_step(a: Operand, b: Operand, mode: Any, op: str = "mul") -> Money | Decimal:
    """Multiply exactly; at most one operand may be Money."""
    if isinstance(a, Money) and isinstance(b, Money):
        raise InvalidArgumentError(f"Cannot call `{op}` because both operands are Money ({a} and {b})", op=op, argument="multiplier", value=b)
    if isinstance(a, Money):
        return Money(mul_exact(a.amount, to_decimal(b, mode, op=op)), a.currency)
    if isinstance(b, Money):
        return Money(mul_exact(to_decimal(a, mode, op=op), b.amount), b.currency)
    return mul_exact(to_decimal(a, mode, op=op), to_decimal(b, mode, op=op))


def div_step(a: Operand, b: Operand, mode: Any, op: str = "div", origin: Operand = None) -> Money | Decimal:
    """Divide $a by $b without rescaling to the nominal scale.

    - Money / Money (same currency) gives a Decimal ratio,
    - Money / number gives Money,
    - number / number gives Decimal,
    - number / Money is rejected.

    In a chained division $a is an intermediate quotient and $origin the first operand of the
    chain. Raised errors carry $origin (or $a when not given) as `dividend` and $b as `divisor`.
    """
    if origin is None:
        origin = a

    if isinstance(b, Money):
        # Raise: a plain number divided by money has no meaningful unit
        if not isinstance(a, Money):
            raise _ill_typed(op, "divisor", b, f"$divisor ({b}) is Money while $dividend ({origin!r}) is a plain number")
        # Raise: money can only be divided by money of the same currency
        if not a.currency.same_id(b.currency):
            raise CurrencyMismatchError(
                f"Cannot call `{op}` because currencies differ: $dividend ({origin}) and $divisor ({b})",
                op=op,
                operands=(origin, b),
                dividend=origin,
                divisor=b,
            )
        dividend, divisor = a.amount, b.amount
    else:
        dividend = a.amount if isinstance(a, Money) else to_decimal(a, mode, op=op)
        divisor = to_decimal(b, mode, op=op)

    try:
        quotient = divide(dividend, divisor, mode, op=op)
    except MoneyArithmeticError as e:
        e.dividend, e.divisor = origin, b
        raise

    if isinstance(a, Money) and not isinstance(b, Money):
        return Money(quotient, a.currency)
    return quotient


def rem_step(a: Operand, b: Operand, op: str = "rem") -> Money | Decimal:
    """Remainder of truncated division; Money % Money requires the same currency."""
    if isinstance(b, Money):
        # Raise: a plain number modulo money is ill-typed
        if not isinstance(a, Money):
            raise _ill_typed(op, "divisor", b, f"$divisor ({b}) is Money while $dividend ({a!r}) is a plain number")
        a._check_same_currency(b, op)
        divisor = b.amount
    else:
        divisor = to_decimal(b, op=op)

    dividend = a.amount if isinstance(a, Money) else to_decimal(a, op=op)
    try:
        remainder = rem_exact(dividend, divisor, op=op)
    except MoneyArithmeticError as e:
        e.dividend, e.divisor = a, b
        raise

    if isinstance(a, Money):
        return Money(remainder, a.currency)
    return remainder


def to_nominal(value: Money | Decimal, mode: Any, op: str) -> Money | Decimal:
    """Rescale a Money result to its currency's nominal scale (auto-scaled currencies and plain
    numbers are returned unchanged)."""
    if not isinstance(value, Money) or value.currency.is_auto_scaled:
        return value
    amount = rescale(value.amount, value.currency.scale, mode, op=op)
    if amount is value.amount:
        return value
    return Money(amount, value.currency)


# endregion

# region Construction


def money(amount: DecimalLike, currency: CurrencyLike, mode: Any = None, registry: Registry | bool | None = None) -> Money:
    """Build Money at the currency's nominal scale.

    Args:
        amount: Amount in any supported numeric representation.
        currency: Currency, id, short code or numeric code.
        mode: Rounding mode used when $amount has more digits than the nominal scale. When None,
            the resolved rounding mode is used.
        registry: Registry used to resolve $currency (None / True for the active default).

    Raises:
        CurrencyNotFoundError: If $currency does not resolve.
        PrecisionLossError: If rounding is needed and no usable rounding mode is available.
    """
    resolved = resolve_currency(currency, registry)
    if resolved.is_auto_scaled:
        return Money(to_decimal(amount, mode, op="money"), resolved)
    return Money(rescale(amount, resolved.scale, mode, op="money"), resolved)


def money_soft(amount: DecimalLike, currency: Any, mode: Any = None, registry: Registry | bool | None = None) -> Money | None:
    """Like `money`, but return None when the currency does not resolve."""
    try:
        resolved = resolve_currency(currency, registry)
    except CurrencyNotFoundError:
        return None
    return money(amount, resolved, mode)


def of_major(amount: DecimalLike, currency: CurrencyLike, registry: Registry | bool | None = None) -> Money:
    """Build Money from a major-unit amount; any fractional part of $amount is dropped.

    Example:
        of_major(12, "PLN") == money("12.00", "PLN")
    """
    return money(integer_part(amount), currency, registry=registry)


def of_minor(units: int, currency: CurrencyLike, registry: Registry | bool | None = None) -> Money:
    """Build Money from a count of minor units of the currency's nominal scale.

    Example:
        of_minor(1234, "PLN") == money("12.34", "PLN")

    Raises:
        InvalidArgumentError: If $units is not an int or the currency is auto-scaled.
    """
    # Raise: minor units must be an integer
    if not is_int_like(units):
        raise InvalidArgumentError(f"Cannot call `of_minor` because $units ({units!r}) is not an integer", op="of_minor", argument="units", value=units)

    resolved = resolve_currency(currency, registry)
    # Raise: minor units need a nominal scale
    if resolved.is_auto_scaled:
        raise InvalidArgumentError(f"Cannot call `of_minor` because currency '{resolved.id}' is auto-scaled", op="of_minor", argument="currency", value=resolved)
    return Money(from_units(units, resolved.scale), resolved)


# endregion

# region Maps


def money_to_map(value: Money, full: bool = False) -> dict[str, Any]:
    """Return `{"amount": Decimal, "currency": id}`; with $full the currency is a full field map."""
    return {
        "amount": value.amount,
        "currency": currency_to_map(value.currency) if full else value.currency.id,
    }


def money_from_map(data: Mapping[str, Any], mode: Any = None, registry: Registry | bool | None = None) -> Money:
    """Build Money from a map produced by `money_to_map`, keeping the amount as it is.

    A currency given as a field map is used as it is; a currency id is resolved in the registry.
    """
    # Raise: map must carry amount and currency
    if not isinstance(data, Mapping) or "amount" not in data or "currency" not in data:
        raise InvalidArgumentError(
            f"Cannot call `money_from_map` because $data ({data!r}) is not a mapping with 'amount' and 'currency'",
            op="money_from_map",
            argument="data",
            value=data,
        )

    currency_value = data["currency"]
    if isinstance(currency_value, Mapping):
        currency_value = currency_from_map(currency_value)
    return Money(to_decimal(data["amount"], mode, op="money_from_map"), resolve_currency(currency_value, registry))


# endregion
