from __future__ import annotations

import pytest

from moneta.domain.currency import AUTO_SCALED, ISO_4217, NO_NUMERIC_ID, Currency, split_id
from moneta.errors import InvalidArgumentError


def test_split_id():
    assert split_id("crypto/BTC") == ("crypto", "BTC")
    assert split_id("PLN") == (None, "PLN")


def test_namespaced_currency_defaults():
    btc = Currency("crypto/BTC", scale=8)
    assert btc.code == "BTC"
    assert btc.namespace == "crypto"
    assert btc.domain == "CRYPTO"
    assert btc.numeric == NO_NUMERIC_ID
    assert not btc.has_numeric_id
    assert not btc.is_auto_scaled


def test_plain_currency_defaults():
    xau = Currency("XAU", 959, domain=ISO_4217)
    assert xau.scale == AUTO_SCALED
    assert xau.is_auto_scaled
    assert xau.domain == ISO_4217
    assert xau.kind is None
    assert xau.traits == frozenset()


def test_traits_are_normalized_to_frozenset():
    assert Currency("crypto/USDT", traits="stable").traits == frozenset({"stable"})
    assert Currency("crypto/USDT", traits=["a", "b", "a"]).traits == frozenset({"a", "b"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"id": ""},
        {"id": "/BTC"},
        {"id": "crypto/"},
        {"id": 42},
        {"id": "PLN", "numeric": 0},
        {"id": "PLN", "numeric": True},
        {"id": "PLN", "scale": -2},
        {"id": "PLN", "scale": 2.0},
        {"id": "PLN", "weight": "heavy"},
        {"id": "PLN", "traits": [""]},
    ],
)
def test_invalid_currency_is_rejected(kwargs):
    with pytest.raises(InvalidArgumentError):
        Currency(**kwargs)


def test_equality_ignores_weight():
    light = Currency("PLN", 985, 2, ISO_4217, "iso/fiat")
    heavy = light.with_weight(10)
    assert heavy.weight == 10
    assert light == heavy
    assert hash(light) == hash(heavy)
    assert light.same_id(heavy)


def test_equality_compares_metadata():
    pln = Currency("PLN", 985, 2)
    assert pln != Currency("PLN", 985, 3)
    assert pln.same_id(Currency("PLN", 985, 3))
    assert pln != "PLN"


def test_with_changes_returns_new_currency():
    pln = Currency("PLN", 985, 2, ISO_4217, "iso/fiat")
    changed = pln.with_changes(scale=4, traits={"legacy"})
    assert changed.scale == 4
    assert changed.traits == frozenset({"legacy"})
    assert pln.scale == 2
    with pytest.raises(InvalidArgumentError):
        pln.with_changes(symbol="zł")
