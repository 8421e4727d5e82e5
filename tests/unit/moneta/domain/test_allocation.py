from __future__ import annotations

import random
from decimal import Decimal

import pytest

from moneta.domain.allocation import allocate, distribute
from moneta.domain.currency_registry import JPY, PLN, XAU
from moneta.domain.money import Money, money
from moneta.errors import InvalidArgumentError

# Constants
SEED = 20240101
AMOUNTS = ["0.00", "0.01", "1.00", "-1.00", "10.00", "-10.00", "99.99", "1234567.89", "-0.05"]


def _amounts(parts):
    return [str(part.amount) for part in parts]


def test_allocate_by_weights():
    assert _amounts(allocate(money("1.00", PLN), [1, 2, 3])) == ["0.17", "0.33", "0.50"]


def test_distribute_positive_amount():
    assert _amounts(distribute(money("10.00", PLN), 3)) == ["3.34", "3.33", "3.33"]


def test_distribute_negative_amount():
    parts = distribute(money("-10.00", PLN), 3)
    assert _amounts(parts) == ["-3.34", "-3.33", "-3.33"]
    assert sum(part.amount for part in parts) == Decimal("-10.00")


def test_allocation_keeps_amount_scale_and_currency():
    parts = allocate(Money("1.000", PLN), [1, 1])
    assert _amounts(parts) == ["0.500", "0.500"]
    assert all(part.currency is PLN for part in parts)
    assert _amounts(distribute(money(10, JPY), 4)) == ["3", "3", "2", "2"]
    assert _amounts(distribute(money("0.5", XAU), 3)) == ["0.2", "0.2", "0.1"]


def test_allocation_conserves_the_total():
    rng = random.Random(SEED)
    for amount in AMOUNTS:
        for _ in range(20):
            weights = [rng.randint(1, 50) for _ in range(rng.randint(1, 8))]
            value = money(amount, PLN)
            parts = allocate(value, weights)
            assert len(parts) == len(weights)
            assert sum(part.amount for part in parts) == value.amount
            assert all(part.currency.same_id(value.currency) for part in parts)


def test_distribution_gap_is_at_most_one_unit():
    for amount in AMOUNTS:
        for count in range(1, 12):
            value = money(amount, PLN)
            units = [int(part.amount * 100) for part in distribute(value, count)]
            assert max(units) - min(units) <= 1
            assert sum(units) == int(value.amount * 100)


@pytest.mark.parametrize("weights", [[], [0], [1, -1], [1, True], [1.5], ["1"]])
def test_allocate_rejects_bad_weights(weights):
    with pytest.raises(InvalidArgumentError) as exc_info:
        allocate(money(1, PLN), weights)
    assert exc_info.value.argument == "weights"


@pytest.mark.parametrize("parts", [0, -3, 2.0, True])
def test_distribute_rejects_bad_count(parts):
    with pytest.raises(InvalidArgumentError) as exc_info:
        distribute(money(1, PLN), parts)
    assert exc_info.value.argument == "parts"


def test_allocate_requires_money():
    with pytest.raises(InvalidArgumentError):
        allocate(Decimal("1.00"), [1, 1])
