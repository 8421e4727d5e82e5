from __future__ import annotations

import threading

import pytest

from moneta.config import set_settings
from moneta.domain import registry_state
from moneta.domain.currency import Currency
from moneta.domain.registry import Registry
from moneta.errors import InvalidArgumentError

# Constants
TOKEN = Currency("test/TOK", scale=4)
SMALL = Registry.empty().register(TOKEN)
OTHER = Registry.empty().register(Currency("test/OTH", scale=2))


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    monkeypatch.delenv("MONETA_CURRENCIES_CSV", raising=False)
    set_settings(None)
    registry_state.reset_state()
    yield
    registry_state.reset_state()
    set_settings(None)


def test_state_is_seeded_lazily_with_builtin_currencies():
    current = registry_state.state()
    assert "PLN" in current
    assert registry_state.state() is current
    assert registry_state.get() is current
    assert registry_state.get(True) is current


def test_set_and_reset_state():
    registry_state.set_state(SMALL)
    assert registry_state.get() is SMALL
    registry_state.reset_state()
    assert "PLN" in registry_state.get()
    with pytest.raises(InvalidArgumentError):
        registry_state.set_state("not a registry")


def test_explicit_registry_wins():
    registry_state.set_state(OTHER)
    with registry_state.with_registry(OTHER):
        assert registry_state.get(SMALL) is SMALL


def test_get_rejects_other_values():
    with pytest.raises(InvalidArgumentError):
        registry_state.get(False)
    with pytest.raises(InvalidArgumentError):
        registry_state.get("PLN")


def test_scoped_overrides_do_not_touch_global_state():
    current = registry_state.state()
    with registry_state.bind_registry(OTHER):
        assert registry_state.get() is OTHER
        with registry_state.with_registry(SMALL):
            assert registry_state.get() is SMALL
        assert registry_state.get() is OTHER
    assert registry_state.get() is current
    assert registry_state.state() is current


def test_with_registry_restores_on_exception():
    current = registry_state.state()
    with pytest.raises(RuntimeError):
        with registry_state.with_registry(SMALL):
            raise RuntimeError("boom")
    assert registry_state.get() is current


def test_thread_override_is_isolated():
    seen = {}
    barrier = threading.Barrier(2)

    def worker(name, registry):
        with registry_state.with_registry(registry):
            barrier.wait()
            seen[name] = registry_state.get()

    threads = [threading.Thread(target=worker, args=("small", SMALL)), threading.Thread(target=worker, args=("other", OTHER))]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert seen == {"small": SMALL, "other": OTHER}


def test_global_updates_are_not_lost():
    registry_state.set_state(Registry.empty())
    currencies = [Currency(f"test/T{index:02d}", scale=2) for index in range(20)]
    threads = [threading.Thread(target=registry_state.register_global, args=(currency,)) for currency in currencies]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry_state.state()) == len(currencies)


def test_global_helpers():
    registry_state.set_state(SMALL)
    registry_state.add_traits_global("test/TOK", "fungible")
    assert registry_state.get().lookup("test/TOK").traits == frozenset({"fungible"})
    registry_state.set_traits_global("test/TOK", None)
    assert registry_state.get().lookup("test/TOK").traits == frozenset()
    registry_state.derive_global("kind", "token", "virtual")
    assert registry_state.get().isa("kind", "token", "virtual")
    registry_state.unregister_global("test/TOK")
    assert "test/TOK" not in registry_state.get()


def test_update_global_requires_registry_result():
    with pytest.raises(InvalidArgumentError):
        registry_state.update_global(lambda registry: None)
