from __future__ import annotations

import logging

import pandas as pd

from moneta.config import get_settings
from moneta.domain.currency import AUTO_SCALED, ISO_4217, Currency
from moneta.domain.registry import DOMAIN_AXIS, KIND_AXIS, TRAITS_AXIS, Registry
from moneta.seed.currencies_from_dataframe import registry_from_dataframe

logger: logging.Logger = logging.getLogger(__name__)

# Fiat currencies
PLN = Currency("PLN", 985, 2, ISO_4217, "iso/fiat")
USD = Currency("USD", 840, 2, ISO_4217, "iso/fiat")
EUR = Currency("EUR", 978, 2, ISO_4217, "iso/fiat")
GBP = Currency("GBP", 826, 2, ISO_4217, "iso/fiat")
CHF = Currency("CHF", 756, 2, ISO_4217, "iso/fiat")
CZK = Currency("CZK", 203, 2, ISO_4217, "iso/fiat")
SEK = Currency("SEK", 752, 2, ISO_4217, "iso/fiat")
NOK = Currency("NOK", 578, 2, ISO_4217, "iso/fiat")
CAD = Currency("CAD", 124, 2, ISO_4217, "iso/fiat")
AUD = Currency("AUD", 36, 2, ISO_4217, "iso/fiat")
JPY = Currency("JPY", 392, 0, ISO_4217, "iso/fiat")
KWD = Currency("KWD", 414, 3, ISO_4217, "iso/fiat")

# Precious metals and the "no currency" code (no nominal scale)
XAU = Currency("XAU", 959, AUTO_SCALED, ISO_4217, "iso/metal")
XAG = Currency("XAG", 961, AUTO_SCALED, ISO_4217, "iso/metal")
XXX = Currency("XXX", 999, AUTO_SCALED, ISO_4217, "iso/null")

# Crypto currencies
BTC = Currency("crypto/BTC", scale=8, kind="virtual/native", traits={"control/decentralized"})
ETH = Currency("crypto/ETH", scale=18, kind="virtual/native", traits={"control/decentralized", "smart-contracts"})
USDT = Currency("crypto/USDT", scale=6, kind="virtual/stable", traits={"stable/fiat", "token/erc20", "control/centralized"})
USDC = Currency("crypto/USDC", scale=6, kind="virtual/stable", traits={"stable/fiat", "token/erc20", "control/centralized"})

# (currency, countries, name, symbol)
PREDEFINED: tuple[tuple[Currency, tuple[str, ...], str, str], ...] = (
    (PLN, ("PL",), "Polish Zloty", "zł"),
    (USD, ("US", "EC", "SV", "PR"), "US Dollar", "$"),
    (EUR, ("AT", "BE", "CY", "DE", "EE", "ES", "FI", "FR", "GR", "HR", "IE", "IT", "LT", "LU", "LV", "MT", "NL", "PT", "SI", "SK"), "Euro", "€"),
    (GBP, ("GB",), "British Pound", "£"),
    (CHF, ("CH", "LI"), "Swiss Franc", "CHF"),
    (CZK, ("CZ",), "Czech Koruna", "Kč"),
    (SEK, ("SE",), "Swedish Krona", "kr"),
    (NOK, ("NO",), "Norwegian Krone", "kr"),
    (CAD, ("CA",), "Canadian Dollar", "CA$"),
    (AUD, ("AU",), "Australian Dollar", "A$"),
    (JPY, ("JP",), "Japanese Yen", "¥"),
    (KWD, ("KW",), "Kuwaiti Dinar", "KD"),
    (XAU, (), "Gold (one troy ounce)", "XAU"),
    (XAG, (), "Silver (one troy ounce)", "XAG"),
    (XXX, (), "No currency", "XXX"),
    (BTC, (), "Bitcoin", "₿"),
    (ETH, (), "Ether", "Ξ"),
    (USDT, (), "Tether", "USDT"),
    (USDC, (), "USD Coin", "USDC"),
)

# Names in other locales, merged over the "*" entries above
LOCALIZED_NAMES: dict[str, dict[str, str]] = {
    "PLN": {"pl": "złoty polski", "de": "Polnischer Złoty"},
    "EUR": {"pl": "euro", "de": "Euro"},
    "USD": {"pl": "dolar amerykański", "de": "US-Dollar"},
    "CZK": {"cs": "česká koruna", "pl": "korona czeska"},
}

# (axis, child, parent)
PREDEFINED_EDGES: tuple[tuple[str, str, str], ...] = (
    (DOMAIN_AXIS, "ISO-4217-LEGACY", ISO_4217),
    (KIND_AXIS, "iso/fiat", "fiat"),
    (KIND_AXIS, "iso/metal", "metal"),
    (KIND_AXIS, "metal", "commodity"),
    (KIND_AXIS, "iso/null", "null"),
    (KIND_AXIS, "virtual/native", "virtual"),
    (KIND_AXIS, "virtual/stable", "virtual"),
    (KIND_AXIS, "virtual/stable", "pegged"),
    (TRAITS_AXIS, "stable/fiat", "stable"),
    (TRAITS_AXIS, "token/erc20", "token"),
    (TRAITS_AXIS, "control/decentralized", "control"),
    (TRAITS_AXIS, "control/centralized", "control"),
)


def predefined_hierarchies(registry: Registry) -> Registry:
    """Return $registry with the predefined hierarchy edges derived."""
    for axis, child, parent in PREDEFINED_EDGES:
        registry = registry.derive(axis, child, parent)
    return registry


def builtin_registry() -> Registry:
    """Build a registry from the predefined currencies and hierarchies."""
    registry = predefined_hierarchies(Registry.empty())
    for currency, countries, name, symbol in PREDEFINED:
        localized = {"*": {"name": name, "symbol": symbol}}
        for locale, local_name in LOCALIZED_NAMES.get(currency.id, {}).items():
            localized[locale] = {"name": local_name}
        registry = registry.register(currency, countries=countries, localized=localized)
    return registry


def default_registry() -> Registry:
    """Build the registry used to seed the process-wide current registry.

    When `MONETA_CURRENCIES_CSV` is configured, currencies are read from that CSV file (see
    `moneta.seed.registry_from_dataframe` for the columns); the predefined hierarchies are used in
    both cases.
    """
    csv_path = get_settings().currencies_csv
    if csv_path is None:
        return builtin_registry()

    logger.info(f"Loading currencies from $csv_path '{csv_path}'")
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    return registry_from_dataframe(df, registry=predefined_hierarchies(Registry.empty()))
