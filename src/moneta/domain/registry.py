"""Immutable, versioned snapshot of currencies and their classification hierarchies.

Every update returns a new `Registry`; snapshots are never changed in place, so a snapshot can be
shared freely between threads. The process-wide current snapshot and scoped overrides live in
`moneta.domain.registry_state`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from bidict import frozenbidict

from moneta.config import get_settings
from moneta.domain.currency import ISO_4217, Currency, normalize_traits
from moneta.domain.hierarchy import Hierarchy
from moneta.errors import CurrencyNotFoundError, InvalidArgumentError

logger: logging.Logger = logging.getLogger(__name__)

# Hierarchy axes present in every registry
DOMAIN_AXIS = "domain"
KIND_AXIS = "kind"
TRAITS_AXIS = "traits"
DEFAULT_AXES = (DOMAIN_AXIS, KIND_AXIS, TRAITS_AXIS)

# Locale used when no better localized entry exists
DEFAULT_LOCALE = "*"


def default_version() -> str:
    """Version string of a new snapshot: local timestamp `YYYYmmddHHMMSS` + centiseconds."""
    return datetime.now().strftime("%Y%m%d%H%M%S%f")[:16]


def _priority(currency: Currency) -> tuple[int, str]:
    # Lower weight wins, id breaks ties
    return currency.weight, currency.id


def _normalize_countries(countries: Iterable[str] | str | None) -> frozenset[str]:
    if countries is None:
        return frozenset()
    if isinstance(countries, str):
        countries = (countries,)
    result = set()
    for country in countries:
        # Raise: country must be a non-empty string
        if not isinstance(country, str) or not country.strip():
            raise InvalidArgumentError(f"Cannot register country {country!r} because it is not a non-empty string", op="register", argument="countries", value=country)
        result.add(country.strip().upper())
    return frozenset(result)


class Registry:
    """One immutable, versioned view of the currency table and its hierarchy graphs.

    Attributes:
        version (str): Version of this snapshot; each derived snapshot gets a new one.
        currencies (Mapping[str, Currency]): Currencies by id.
        hierarchies (Mapping[str, Hierarchy]): Hierarchy graph by axis name.
    """

    __slots__ = (
        "_currencies",
        "_countries",
        "_localized",
        "_hierarchies",
        "_version",
        "_by_code",
        "_by_numeric",
        "_numeric_index",
        "_countries_by_id",
    )

    def __init__(
        self,
        currencies: Mapping[str, Currency] | None = None,
        countries: Mapping[str, str] | None = None,
        localized: Mapping[str, Mapping[str, Mapping[str, str]]] | None = None,
        hierarchies: Mapping[str, Hierarchy] | None = None,
        version: str | None = None,
    ):
        self._currencies: Mapping[str, Currency] = MappingProxyType(dict(currencies or {}))
        self._countries: Mapping[str, str] = MappingProxyType(dict(countries or {}))
        self._localized: Mapping[str, Mapping[str, Mapping[str, str]]] = MappingProxyType(
            {currency_id: MappingProxyType({locale: MappingProxyType(dict(entry)) for locale, entry in locales.items()}) for currency_id, locales in (localized or {}).items()}
        )
        all_hierarchies = {axis: Hierarchy() for axis in DEFAULT_AXES}
        all_hierarchies.update(hierarchies or {})
        self._hierarchies: Mapping[str, Hierarchy] = MappingProxyType(all_hierarchies)
        self._version = version or default_version()

        # Derived indexes
        by_code: dict[str, list[Currency]] = {}
        by_numeric: dict[int, list[Currency]] = {}
        for currency in self._currencies.values():
            by_code.setdefault(currency.code, []).append(currency)
            if currency.has_numeric_id:
                by_numeric.setdefault(currency.numeric, []).append(currency)
        self._by_code = {code: tuple(sorted(group, key=_priority)) for code, group in by_code.items()}
        self._by_numeric = {numeric: tuple(sorted(group, key=_priority)) for numeric, group in by_numeric.items()}
        self._numeric_index: frozenbidict[int, str] = frozenbidict({numeric: group[0].id for numeric, group in self._by_numeric.items()})

        countries_by_id: dict[str, set[str]] = {}
        for country, currency_id in self._countries.items():
            countries_by_id.setdefault(currency_id, set()).add(country)
        self._countries_by_id = {currency_id: frozenset(group) for currency_id, group in countries_by_id.items()}

    @classmethod
    def empty(cls) -> Registry:
        return cls()

    def _replace(self, **changes) -> Registry:
        fields = {
            "currencies": self._currencies,
            "countries": self._countries,
            "localized": self._localized,
            "hierarchies": self._hierarchies,
        }
        fields.update(changes)
        return Registry(**fields)

    # region Properties

    @property
    def version(self) -> str:
        return self._version

    @property
    def currencies(self) -> Mapping[str, Currency]:
        return self._currencies

    @property
    def hierarchies(self) -> Mapping[str, Hierarchy]:
        return self._hierarchies

    @property
    def numeric_index(self) -> frozenbidict[int, str]:
        """Bidirectional map between numeric codes and the highest-priority currency id."""
        return self._numeric_index

    @property
    def countries(self) -> Mapping[str, str]:
        """Currency id by country code."""
        return self._countries

    # endregion

    # region Lookup

    def lookup(self, currency_id: str) -> Currency | None:
        """Return the currency registered under $currency_id, or None."""
        return self._currencies.get(currency_id)

    def lookup_code(self, code: str) -> Currency | None:
        """Return the highest-priority currency with short $code (namespace ignored), or None."""
        group = self._by_code.get(code)
        return group[0] if group else None

    def currencies_for_code(self, code: str) -> tuple[Currency, ...]:
        """All currencies with short $code, highest priority first."""
        return self._by_code.get(code, ())

    def lookup_numeric(self, numeric: int) -> Currency | None:
        """Return the highest-priority currency with ISO $numeric code, or None."""
        currency_id = self._numeric_index.get(numeric)
        return None if currency_id is None else self._currencies[currency_id]

    def currencies_for_numeric(self, numeric: int) -> tuple[Currency, ...]:
        return self._by_numeric.get(numeric, ())

    def currency_for_country(self, country: str) -> Currency | None:
        currency_id = self._countries.get(country.strip().upper())
        return None if currency_id is None else self._currencies.get(currency_id)

    def countries_of(self, currency_id: str) -> frozenset[str]:
        return self._countries_by_id.get(currency_id, frozenset())

    def localized_of(self, currency_id: str) -> Mapping[str, Mapping[str, str]]:
        """Localized properties of a currency by locale (`"*"` is the fallback locale)."""
        return self._localized.get(currency_id, MappingProxyType({}))

    def hierarchy(self, axis: str) -> Hierarchy:
        """Hierarchy of $axis; an unknown axis behaves as an empty hierarchy."""
        return self._hierarchies.get(axis, Hierarchy())

    def isa(self, axis: str, child: str | None, parent: str | None) -> bool:
        """True if tag $child equals or transitively derives from $parent on $axis."""
        return self.hierarchy(axis).isa(child, parent)

    def _require(self, currency_id: str, op: str) -> Currency:
        currency = self._currencies.get(currency_id)
        # Raise: currency must exist
        if currency is None:
            raise CurrencyNotFoundError(
                f"Cannot call `{op}` because currency '{currency_id}' is not registered (registry version {self._version})",
                op=op,
                currency_id=currency_id,
                registry_version=self._version,
            )
        return currency

    # endregion

    # region Updates

    def register(
        self,
        currency: Currency,
        countries: Iterable[str] | str | None = None,
        localized: Mapping[str, Mapping[str, str]] | None = None,
        overwrite: bool = False,
    ) -> Registry:
        """Return a new registry with $currency added.

        When $overwrite is set an existing entry is replaced; its countries and localized
        properties are kept unless new ones are given.

        Args:
            currency: Currency to register.
            countries: Country codes using this currency (reassigned from other currencies).
            localized: Properties by locale, e.g. `{"*": {"name": "Euro", "symbol": "€"}}`.
            overwrite: Whether to replace a currency with the same id.

        Raises:
            InvalidArgumentError: If $currency is not a Currency, or exists and $overwrite is False.
        """
        # Raise: only Currency instances can be registered
        if not isinstance(currency, Currency):
            raise InvalidArgumentError(f"$currency must be a Currency instance, but provided value is: {currency!r}", op="register", argument="currency", value=currency)

        # Raise: existing currencies are only replaced on request
        if currency.id in self._currencies and not overwrite:
            raise InvalidArgumentError(
                f"Currency with id '{currency.id}' already exists in registry. Use overwrite=True to replace it.",
                op="register",
                argument="currency",
                value=currency,
            )

        self._warn_on_inconsistency(currency, countries)

        currencies = dict(self._currencies)
        currencies[currency.id] = currency

        country_map = dict(self._countries)
        new_countries = _normalize_countries(countries)
        if new_countries:
            country_map = {country: currency_id for country, currency_id in country_map.items() if currency_id != currency.id}
            for country in new_countries:
                country_map[country] = currency.id

        localized_map = dict(self._localized)
        if localized is not None:
            localized_map[currency.id] = localized

        return self._replace(currencies=currencies, countries=country_map, localized=localized_map)

    def _warn_on_inconsistency(self, currency: Currency, countries: Iterable[str] | str | None) -> None:
        if not get_settings().warn_on_inconsistency:
            return

        if currency.has_numeric_id and currency.domain == ISO_4217:
            for other in self.currencies_for_numeric(currency.numeric):
                if other.id != currency.id and other.domain == ISO_4217:
                    logger.warning(f"Registry inconsistency: ISO currency '{currency.id}' reuses numeric code {currency.numeric} of '{other.id}'")

        for country in _normalize_countries(countries):
            owner = self._countries.get(country)
            if owner is not None and owner != currency.id:
                logger.warning(f"Registry inconsistency: country '{country}' moves from currency '{owner}' to '{currency.id}'")

    def unregister(self, currency_id: str) -> Registry:
        """Return a new registry without $currency_id, its countries and localized properties.

        Raises:
            CurrencyNotFoundError: If $currency_id is not registered.
        """
        self._require(currency_id, "unregister")
        currencies = {key: value for key, value in self._currencies.items() if key != currency_id}
        countries = {country: owner for country, owner in self._countries.items() if owner != currency_id}
        localized = {key: value for key, value in self._localized.items() if key != currency_id}
        return self._replace(currencies=currencies, countries=countries, localized=localized)

    def _update_currency(self, currency: Currency) -> Registry:
        currencies = dict(self._currencies)
        currencies[currency.id] = currency
        return self._replace(currencies=currencies)

    def set_traits(self, currency_id: str, traits: Iterable[str] | str | None) -> Registry:
        """Return a new registry where $currency_id has exactly $traits."""
        currency = self._require(currency_id, "set_traits")
        return self._update_currency(currency.with_traits(traits))

    def add_traits(self, currency_id: str, traits: Iterable[str] | str) -> Registry:
        currency = self._require(currency_id, "add_traits")
        return self._update_currency(currency.with_traits(currency.traits | normalize_traits(traits, "add_traits")))

    def remove_traits(self, currency_id: str, traits: Iterable[str] | str) -> Registry:
        currency = self._require(currency_id, "remove_traits")
        return self._update_currency(currency.with_traits(currency.traits - normalize_traits(traits, "remove_traits")))

    def add_countries(self, currency_id: str, countries: Iterable[str] | str) -> Registry:
        """Return a new registry where $countries (also) use $currency_id."""
        self._require(currency_id, "add_countries")
        self._warn_on_inconsistency(self._currencies[currency_id], countries)
        country_map = dict(self._countries)
        for country in _normalize_countries(countries):
            country_map[country] = currency_id
        return self._replace(countries=country_map)

    def remove_countries(self, countries: Iterable[str] | str) -> Registry:
        removed = _normalize_countries(countries)
        country_map = {country: owner for country, owner in self._countries.items() if country not in removed}
        return self._replace(countries=country_map)

    def set_localized(self, currency_id: str, localized: Mapping[str, Mapping[str, str]]) -> Registry:
        self._require(currency_id, "set_localized")
        localized_map = dict(self._localized)
        localized_map[currency_id] = localized
        return self._replace(localized=localized_map)

    def derive(self, axis: str, child: str, parent: str) -> Registry:
        """Return a new registry with edge $child -> $parent added to the $axis hierarchy.

        The axis is created when absent.

        Raises:
            InvalidArgumentError: If $axis is not a non-empty string or the edge creates a cycle.
        """
        # Raise: axis must be a non-empty string
        if not isinstance(axis, str) or not axis.strip():
            raise InvalidArgumentError(f"Cannot call `derive` because $axis ({axis!r}) is not a non-empty string", op="derive", argument="axis", value=axis)

        hierarchy = self.hierarchy(axis)
        derived = hierarchy.derive(child, parent)
        if derived is hierarchy and axis in self._hierarchies:
            return self
        hierarchies = dict(self._hierarchies)
        hierarchies[axis] = derived
        return self._replace(hierarchies=hierarchies)

    # endregion

    def __contains__(self, currency_id: object) -> bool:
        return currency_id in self._currencies

    def __len__(self) -> int:
        return len(self._currencies)

    def __iter__(self) -> Iterator[Currency]:
        return iter(sorted(self._currencies.values(), key=lambda currency: currency.id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version='{self._version}', currencies={len(self._currencies)}, axes={sorted(self._hierarchies)})"
