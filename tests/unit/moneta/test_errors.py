from __future__ import annotations

from decimal import Decimal

import pytest

from moneta.domain.allocation import distribute
from moneta.domain.currency_registry import EUR, PLN
from moneta.domain.money import money
from moneta.errors import (
    CurrencyMismatchError,
    CurrencyNotFoundError,
    DivisionByZeroError,
    ErrorKind,
    InvalidArgumentError,
    MonetaError,
    PrecisionLossError,
    attempt,
)
from moneta.scale.normalizer import rescale


def test_errors_derive_from_builtin_exceptions():
    assert issubclass(CurrencyNotFoundError, LookupError)
    assert issubclass(CurrencyMismatchError, ValueError)
    assert issubclass(PrecisionLossError, ArithmeticError)
    assert issubclass(DivisionByZeroError, ZeroDivisionError)
    assert issubclass(InvalidArgumentError, ValueError)
    for error_type in (CurrencyNotFoundError, CurrencyMismatchError, PrecisionLossError, DivisionByZeroError, InvalidArgumentError):
        assert issubclass(error_type, MonetaError)


def test_attempt_returns_value():
    result = attempt(rescale, "1.5", 2)
    assert result.ok
    assert result.kind is None
    assert result.unwrap() == Decimal("1.50")


@pytest.mark.parametrize(
    "fn, args, kind",
    [
        (rescale, (Decimal("1.23"), 0), ErrorKind.ARITHMETIC),
        (money, ("1", "XYZ"), ErrorKind.NOT_FOUND),
        (distribute, (money(1, PLN), 0), ErrorKind.INVALID_ARGUMENT),
        (lambda a, b: a + b, (money(1, PLN), money(1, EUR)), ErrorKind.CURRENCY_MISMATCH),
    ],
)
def test_attempt_captures_error_kind(fn, args, kind):
    result = attempt(fn, *args)
    assert not result.ok
    assert result.kind is kind
    assert result.value is None
    with pytest.raises(MonetaError):
        result.unwrap()


def test_attempt_lets_other_errors_propagate():
    with pytest.raises(KeyError):
        attempt({}.__getitem__, "missing")


def test_precision_loss_details():
    result = attempt(rescale, Decimal("1.23"), 0)
    details = result.error.details()
    assert details["kind"] is ErrorKind.ARITHMETIC
    assert details["op"] == "rescale"
    assert details["scale"] == 0
    assert details["value"] == Decimal("1.23")
    assert details["rounding_mode"] is None
