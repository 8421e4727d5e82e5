from __future__ import annotations

import logging

import pytest

from moneta.config import Settings, set_settings
from moneta.domain.currency import ISO_4217, Currency
from moneta.domain.currency_registry import BTC, EUR, PLN, USD, USDT, builtin_registry
from moneta.domain.registry import DEFAULT_AXES, KIND_AXIS, TRAITS_AXIS, Registry
from moneta.errors import CurrencyNotFoundError, InvalidArgumentError

# Constants
BUILTIN = builtin_registry()


@pytest.fixture
def warn_on_inconsistency():
    set_settings(Settings(warn_on_inconsistency=True))
    yield
    set_settings(None)


def test_empty_registry_has_default_axes():
    registry = Registry.empty()
    assert len(registry) == 0
    assert set(DEFAULT_AXES) <= set(registry.hierarchies)
    assert registry.version


def test_builtin_lookups():
    assert BUILTIN.lookup("PLN") is PLN
    assert BUILTIN.lookup("BTC") is None
    assert BUILTIN.lookup_code("BTC") is BTC
    assert BUILTIN.lookup_numeric(840) is USD
    assert BUILTIN.numeric_index.inverse["EUR"] == 978
    assert BUILTIN.currency_for_country("de") is EUR
    assert "PL" in BUILTIN.countries_of("PLN")
    assert BUILTIN.localized_of("PLN")["*"]["symbol"] == "zł"
    assert "PLN" in BUILTIN


def test_builtin_hierarchies():
    assert BUILTIN.isa(KIND_AXIS, USDT.kind, "virtual")
    assert BUILTIN.isa(KIND_AXIS, USDT.kind, "pegged")
    assert BUILTIN.isa(TRAITS_AXIS, "stable/fiat", "stable")
    assert not BUILTIN.isa(KIND_AXIS, PLN.kind, "virtual")
    assert not BUILTIN.isa("unknown-axis", "a", "b")


def test_register_returns_new_snapshot():
    ron = Currency("RON", 946, 2, ISO_4217, "iso/fiat")
    updated = BUILTIN.register(ron, countries=["RO"], localized={"*": {"name": "Romanian Leu"}})
    assert updated.lookup("RON") is ron
    assert updated.currency_for_country("RO") is ron
    assert BUILTIN.lookup("RON") is None
    assert updated is not BUILTIN


def test_register_duplicate_requires_overwrite():
    rescaled = PLN.with_changes(scale=4)
    with pytest.raises(InvalidArgumentError):
        BUILTIN.register(rescaled)
    updated = BUILTIN.register(rescaled, overwrite=True)
    assert updated.lookup("PLN").scale == 4
    assert "PL" in updated.countries_of("PLN")
    assert updated.localized_of("PLN")["*"]["name"] == "Polish Zloty"


def test_code_priority_uses_weight():
    registry = Registry.empty().register(Currency("crypto/USD", scale=2, weight=5)).register(Currency("USD", 840, 2, ISO_4217, weight=1))
    assert registry.lookup_code("USD").id == "USD"
    assert [currency.id for currency in registry.currencies_for_code("USD")] == ["USD", "crypto/USD"]

    reweighted = registry.register(Currency("crypto/USD", scale=2, weight=0), overwrite=True)
    assert reweighted.lookup_code("USD").id == "crypto/USD"


def test_unregister():
    updated = BUILTIN.unregister("PLN")
    assert "PLN" not in updated
    assert updated.currency_for_country("PL") is None
    assert updated.localized_of("PLN") == {}
    with pytest.raises(CurrencyNotFoundError) as exc_info:
        updated.unregister("PLN")
    assert exc_info.value.currency_id == "PLN"
    assert exc_info.value.registry_version == updated.version


def test_trait_updates():
    updated = BUILTIN.add_traits("PLN", "legacy")
    assert updated.lookup("PLN").traits == frozenset({"legacy"})
    assert updated.remove_traits("PLN", ["legacy"]).lookup("PLN").traits == frozenset()
    assert updated.set_traits("PLN", {"a", "b"}).lookup("PLN").traits == frozenset({"a", "b"})
    with pytest.raises(CurrencyNotFoundError):
        BUILTIN.add_traits("XYZ", "legacy")


def test_country_updates():
    updated = BUILTIN.add_countries("EUR", ["ME", "XK"])
    assert updated.currency_for_country("ME") is EUR
    assert updated.remove_countries("ME").currency_for_country("ME") is None


def test_derive_creates_custom_axis():
    updated = BUILTIN.derive("risk", "high", "any")
    assert updated.isa("risk", "high", "any")
    assert "risk" not in BUILTIN.hierarchies
    with pytest.raises(InvalidArgumentError):
        updated.derive("risk", "any", "high")


def test_iteration_is_sorted_by_id():
    ids = [currency.id for currency in BUILTIN]
    assert ids == sorted(ids)
    assert len(ids) == len(BUILTIN)


def test_inconsistent_numeric_code_is_logged(warn_on_inconsistency, caplog):
    duplicate = Currency("PLZ", 985, 2, ISO_4217, "iso/fiat")
    with caplog.at_level(logging.WARNING, logger="moneta.domain.registry"):
        BUILTIN.register(duplicate)
    assert "reuses numeric code 985" in caplog.text


def test_country_move_is_logged(warn_on_inconsistency, caplog):
    with caplog.at_level(logging.WARNING, logger="moneta.domain.registry"):
        BUILTIN.add_countries("USD", "PL")
    assert "country 'PL' moves from currency 'PLN' to 'USD'" in caplog.text


def test_inconsistency_warnings_can_be_disabled(caplog):
    set_settings(Settings(warn_on_inconsistency=False))
    try:
        with caplog.at_level(logging.WARNING, logger="moneta.domain.registry"):
            BUILTIN.add_countries("USD", "PL")
    finally:
        set_settings(None)
    assert caplog.text == ""
