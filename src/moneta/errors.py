"""Error taxonomy of moneta.

Every failure raised by moneta is a `MonetaError` carrying an `ErrorKind` and the structured
fields needed to build a precise diagnostic without re-deriving it. Each concrete error also
derives from the closest builtin exception, so `except ValueError` style handling keeps working.

Callers that prefer not to use exceptions for control flow can wrap a call with `attempt` and
match on `Result.kind`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Category of a moneta failure."""

    NOT_FOUND = "NOT_FOUND"
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
    ARITHMETIC = "ARITHMETIC"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"


class MonetaError(Exception):
    """Base class of all moneta errors.

    Attributes:
        kind (ErrorKind): Category of the failure.
        op (str | None): Name of the operation that detected the failure.
    """

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, *, op: str | None = None):
        super().__init__(message)
        self.op = op

    def details(self) -> dict[str, Any]:
        """Return structured context of this error (only fields that are set)."""
        return {"kind": self.kind, "op": self.op}


class CurrencyNotFoundError(MonetaError, LookupError):
    """Referenced currency has no entry in the registry."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, *, op: str | None = None, currency_id: Any = None, registry_version: str | None = None):
        super().__init__(message, op=op)
        self.currency_id = currency_id
        self.registry_version = registry_version

    def details(self) -> dict[str, Any]:
        result = super().details()
        result["currency_id"] = self.currency_id
        if self.registry_version is not None:
            result["registry_version"] = self.registry_version
        return result


class CurrencyMismatchError(MonetaError, ValueError):
    """Arithmetic or comparison between different currencies.

    Division failures also set `dividend` (the first operand of the whole division) and `divisor`
    (the operand that failed).
    """

    kind = ErrorKind.CURRENCY_MISMATCH

    def __init__(self, message: str, *, op: str | None = None, operands: tuple = (), dividend: Any = None, divisor: Any = None):
        super().__init__(message, op=op)
        self.operands = tuple(operands)
        self.dividend = dividend
        self.divisor = divisor

    def details(self) -> dict[str, Any]:
        result = super().details()
        result["operands"] = self.operands
        if self.dividend is not None:
            result["dividend"] = self.dividend
            result["divisor"] = self.divisor
        return result


class MoneyArithmeticError(MonetaError, ArithmeticError):
    """Arithmetic failure (precision loss, division by zero)."""

    kind = ErrorKind.ARITHMETIC

    _FIELDS = ("scale", "rounding_mode", "value", "numerator", "denominator", "dividend", "divisor")

    def __init__(
        self,
        message: str,
        *,
        op: str | None = None,
        scale: int | None = None,
        rounding_mode: Any = None,
        value: Any = None,
        numerator: Any = None,
        denominator: Any = None,
        dividend: Any = None,
        divisor: Any = None,
    ):
        super().__init__(message, op=op)
        self.scale = scale
        self.rounding_mode = rounding_mode
        self.value = value
        self.numerator = numerator
        self.denominator = denominator
        self.dividend = dividend
        self.divisor = divisor

    def details(self) -> dict[str, Any]:
        result = super().details()
        for name in self._FIELDS:
            field_value = getattr(self, name)
            if field_value is not None:
                result[name] = field_value
        # Always report the considered mode, absence included
        result["rounding_mode"] = self.rounding_mode
        return result


class PrecisionLossError(MoneyArithmeticError):
    """Rounding is required but no usable rounding mode was resolved."""


class DivisionByZeroError(MoneyArithmeticError, ZeroDivisionError):
    """Division or remainder with a zero divisor."""


class InvalidArgumentError(MonetaError, ValueError):
    """Malformed input: bad weights, counts, scales, hierarchy edges or ill-typed operands."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, *, op: str | None = None, argument: str | None = None, value: Any = None):
        super().__init__(message, op=op)
        self.argument = argument
        self.value = value

    def details(self) -> dict[str, Any]:
        result = super().details()
        result["argument"] = self.argument
        result["value"] = self.value
        return result


class Result(Generic[T]):
    """Outcome of a moneta call: either a value or a `MonetaError`, never both."""

    __slots__ = ("_value", "_error")

    def __init__(self, value: T | None = None, error: MonetaError | None = None):
        self._value = value
        self._error = error

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def error(self) -> MonetaError | None:
        return self._error

    @property
    def kind(self) -> ErrorKind | None:
        """Kind of the captured error, or None for a successful result."""
        return None if self._error is None else self._error.kind

    def unwrap(self) -> T:
        """Return the value, or re-raise the captured error."""
        if self._error is not None:
            raise self._error
        return self._value

    def __repr__(self) -> str:
        if self._error is None:
            return f"{self.__class__.__name__}(value={self._value!r})"
        return f"{self.__class__.__name__}(error={self._error.kind.name}: {self._error})"


def attempt(fn: Callable[..., T], *args, **kwargs) -> Result[T]:
    """Call $fn and capture a `MonetaError` into a `Result` instead of raising it.

    Only moneta errors are captured; anything else propagates unchanged.
    """
    try:
        return Result(value=fn(*args, **kwargs))
    except MonetaError as e:
        return Result(error=e)
