from __future__ import annotations

import pytest

from moneta.domain import currency_lookup as cl
from moneta.domain.currency import AUTO_SCALED, NO_NUMERIC_ID, Currency
from moneta.domain.currency_registry import BTC, PLN, USDT, XAU, builtin_registry
from moneta.domain.registry_state import with_registry
from moneta.errors import CurrencyNotFoundError, ErrorKind, InvalidArgumentError

# Constants
BUILTIN = builtin_registry()


def test_currency_resolution():
    assert cl.currency(PLN) is PLN
    assert cl.currency("PLN", BUILTIN) is PLN
    assert cl.currency("pln", BUILTIN) is PLN
    assert cl.currency(985, BUILTIN) is PLN
    assert cl.currency("crypto/BTC", BUILTIN) is BTC
    assert cl.currency("BTC", BUILTIN) is BTC


def test_currency_not_found_carries_registry_version():
    with pytest.raises(CurrencyNotFoundError) as exc_info:
        cl.currency("XYZ", BUILTIN)
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.currency_id == "XYZ"
    assert exc_info.value.registry_version == BUILTIN.version
    assert isinstance(exc_info.value, LookupError)


def test_currency_soft():
    assert cl.currency_soft("XYZ", BUILTIN) is None
    assert cl.currency_soft(3.5, BUILTIN) is None
    assert cl.currency_soft("EUR", BUILTIN).numeric == 978


def test_currency_uses_scoped_registry():
    local = BUILTIN.register(Currency("test/LOC", scale=3))
    with with_registry(local):
        assert cl.currency("LOC").scale == 3
    assert cl.currency_soft("LOC", BUILTIN) is None


def test_same_ids():
    assert cl.same_ids("PLN", PLN.with_weight(7), BUILTIN)
    assert not cl.same_ids("PLN", "EUR", BUILTIN)
    assert cl.is_currency(PLN)
    assert not cl.is_currency("PLN")


def test_classification():
    assert cl.is_iso("PLN", BUILTIN)
    assert not cl.is_iso(BTC, BUILTIN)
    assert cl.of_domain(BTC, "CRYPTO", BUILTIN)
    assert cl.of_kind(USDT, "virtual", BUILTIN)
    assert cl.of_kind(USDT, "pegged", BUILTIN)
    assert cl.of_kind(XAU, "commodity", BUILTIN)
    assert not cl.of_kind(PLN, "virtual", BUILTIN)
    assert cl.has_trait(USDT, "stable", BUILTIN)
    assert cl.has_trait(USDT, "token/erc20", BUILTIN)
    assert not cl.has_trait(BTC, "stable", BUILTIN)
    assert cl.is_auto_scaled(XAU, BUILTIN)
    assert cl.isa("kind", "iso/fiat", "fiat", BUILTIN)


def test_display_metadata_falls_back_by_locale():
    assert cl.symbol_for("PLN", registry=BUILTIN) == "zł"
    assert cl.name_for("PLN", "pl_PL", BUILTIN) == "złoty polski"
    assert cl.name_for("PLN", "en", BUILTIN) == "Polish Zloty"
    assert cl.symbol_for("PLN", "pl", BUILTIN) == "zł"
    local = BUILTIN.register(Currency("test/LOC", scale=3))
    assert cl.name_for("test/LOC", registry=local) == "LOC"
    assert cl.countries_for("CHF", BUILTIN) == frozenset({"CH", "LI"})


def test_currency_map_round_trip():
    assert cl.currency_from_map(cl.currency_to_map(USDT)) == USDT
    data = cl.currency_to_map(PLN)
    assert data["traits"] == []
    assert data["numeric"] == 985


def test_currency_from_map_defaults_and_errors():
    minimal = cl.currency_from_map({"id": "test/MIN", "numeric": None, "scale": None})
    assert minimal.numeric == NO_NUMERIC_ID
    assert minimal.scale == AUTO_SCALED
    with pytest.raises(InvalidArgumentError):
        cl.currency_from_map({"scale": 2})
    with pytest.raises(InvalidArgumentError):
        cl.currency_from_map({"id": "PLN", "symbol": "zł"})
