from __future__ import annotations

from pathlib import Path

import pytest

from moneta.config import ENV_CURRENCIES_CSV, ENV_WARN_ON_INCONSISTENCY, Settings, get_settings, load_settings, set_settings
from moneta.domain import registry_state


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv(ENV_WARN_ON_INCONSISTENCY, raising=False)
    monkeypatch.delenv(ENV_CURRENCIES_CSV, raising=False)
    set_settings(None)
    registry_state.reset_state()
    yield
    set_settings(None)
    registry_state.reset_state()


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.env")
    assert settings == Settings(warn_on_inconsistency=True, currencies_csv=None)


def test_environment_variables(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_WARN_ON_INCONSISTENCY, "off")
    monkeypatch.setenv(ENV_CURRENCIES_CSV, "/data/currencies.csv")
    settings = load_settings(tmp_path / "missing.env")
    assert settings.warn_on_inconsistency is False
    assert settings.currencies_csv == Path("/data/currencies.csv")


def test_env_file_is_read(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"{ENV_WARN_ON_INCONSISTENCY}=no\n", encoding="utf-8")
    # load_dotenv writes into os.environ; register the key so monkeypatch removes it afterwards
    monkeypatch.setenv(ENV_WARN_ON_INCONSISTENCY, "")
    monkeypatch.delenv(ENV_WARN_ON_INCONSISTENCY)
    assert load_settings(env_file).warn_on_inconsistency is False


def test_invalid_flag_is_rejected(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_WARN_ON_INCONSISTENCY, "maybe")
    with pytest.raises(ValueError):
        load_settings(tmp_path / "missing.env")


def test_get_settings_is_cached():
    set_settings(Settings(warn_on_inconsistency=False))
    assert get_settings() is get_settings()
    assert get_settings().warn_on_inconsistency is False


def test_default_registry_is_seeded_from_csv(tmp_path):
    csv_path = tmp_path / "currencies.csv"
    csv_path.write_text("id,scale,numeric,kind,countries,name\nPLN,2,985,iso/fiat,PL,Zloty\ngame/GEM,auto,,virtual/token,,Gem\n", encoding="utf-8")
    set_settings(Settings(currencies_csv=csv_path))

    current = registry_state.state()
    assert sorted(currency.id for currency in current) == ["PLN", "game/GEM"]
    assert current.lookup("game/GEM").is_auto_scaled
    assert current.isa("kind", "iso/fiat", "fiat")
