from __future__ import annotations

from typing import Any, Mapping

from moneta.domain import registry_state
from moneta.domain.currency import AUTO_SCALED, ISO_4217, NO_NUMERIC_ID, Currency
from moneta.domain.registry import DEFAULT_LOCALE, DOMAIN_AXIS, KIND_AXIS, TRAITS_AXIS, Registry
from moneta.errors import CurrencyNotFoundError, InvalidArgumentError
from moneta.utils.numeric_tools import is_int_like

CurrencyLike = Currency | str | int


# region Resolution


def _find(value: Any, registry: Registry) -> Currency | None:
    if isinstance(value, str):
        key = value.strip()
        for candidate in dict.fromkeys((key, key.upper())):
            found = registry.lookup(candidate)
            if found is None and "/" not in candidate:
                found = registry.lookup_code(candidate)
            if found is not None:
                return found
        return None

    if is_int_like(value):
        return registry.lookup_numeric(value)

    return None


def currency(value: CurrencyLike, registry: Registry | bool | None = None) -> Currency:
    """Resolve $value to a `Currency`.

    A `Currency` is returned as it is, whatever the registry. A string is looked up as an id
    first, then (without a namespace) as a short code, highest priority first. An int is looked
    up as an ISO numeric code.

    Args:
        value: Currency, id, short code or numeric code.
        registry: Explicit registry, or None / True for the active default.

    Raises:
        CurrencyNotFoundError: If $value does not resolve in the registry.
    """
    if isinstance(value, Currency):
        return value

    resolved_registry = registry_state.get(registry)
    found = _find(value, resolved_registry)
    # Raise: unknown currency
    if found is None:
        raise CurrencyNotFoundError(
            f"Currency '{value}' not found in registry version '{resolved_registry.version}'",
            op="currency",
            currency_id=value,
            registry_version=resolved_registry.version,
        )
    return found


def currency_soft(value: Any, registry: Registry | bool | None = None) -> Currency | None:
    """Like `currency`, but return None instead of raising when nothing is found."""
    if isinstance(value, Currency):
        return value
    return _find(value, registry_state.get(registry))


def is_currency(value: Any) -> bool:
    return isinstance(value, Currency)


def same_ids(a: CurrencyLike, b: CurrencyLike, registry: Registry | bool | None = None) -> bool:
    """True if $a and $b resolve to the same currency id."""
    return currency(a, registry).id == currency(b, registry).id


# endregion

# region Classification


def isa(axis: str, child: str | None, parent: str | None, registry: Registry | bool | None = None) -> bool:
    return registry_state.get(registry).isa(axis, child, parent)


def of_domain(value: CurrencyLike, domain: str, registry: Registry | bool | None = None) -> bool:
    """True if the currency's domain is $domain or derives from it."""
    resolved_registry = registry_state.get(registry)
    return resolved_registry.isa(DOMAIN_AXIS, currency(value, resolved_registry).domain, domain)


def of_kind(value: CurrencyLike, kind: str, registry: Registry | bool | None = None) -> bool:
    """True if the currency's kind is $kind or derives from it."""
    resolved_registry = registry_state.get(registry)
    return resolved_registry.isa(KIND_AXIS, currency(value, resolved_registry).kind, kind)


def has_trait(value: CurrencyLike, trait: str, registry: Registry | bool | None = None) -> bool:
    """True if any trait of the currency is $trait or derives from it."""
    resolved_registry = registry_state.get(registry)
    hierarchy = resolved_registry.hierarchy(TRAITS_AXIS)
    return any(hierarchy.isa(own, trait) for own in currency(value, resolved_registry).traits)


def is_iso(value: CurrencyLike, registry: Registry | bool | None = None) -> bool:
    return of_domain(value, ISO_4217, registry)


def is_auto_scaled(value: CurrencyLike, registry: Registry | bool | None = None) -> bool:
    return currency(value, registry).is_auto_scaled


# endregion

# region Display metadata


def _locale_chain(locale: str | None) -> list[str]:
    """Locales to try, most specific first: `"pl_PL"` -> `["pl_PL", "pl", "*"]`."""
    chain: list[str] = []
    if locale:
        normalized = locale.strip().replace("-", "_")
        chain.append(normalized)
        language = normalized.split("_", 1)[0].lower()
        if language and language not in chain:
            chain.append(language)
    chain.append(DEFAULT_LOCALE)
    return chain


def _localized(value: CurrencyLike, field: str, locale: str | None, registry: Registry | bool | None) -> str | None:
    resolved_registry = registry_state.get(registry)
    entries = resolved_registry.localized_of(currency(value, resolved_registry).id)
    for candidate in _locale_chain(locale):
        entry = entries.get(candidate)
        if entry is not None and field in entry:
            return entry[field]
    return None


def symbol_for(value: CurrencyLike, locale: str | None = None, registry: Registry | bool | None = None) -> str:
    """Currency symbol for $locale, falling back to the `"*"` locale and then to the short code."""
    symbol = _localized(value, "symbol", locale, registry)
    return symbol if symbol is not None else currency(value, registry).code


def name_for(value: CurrencyLike, locale: str | None = None, registry: Registry | bool | None = None) -> str:
    """Currency name for $locale, falling back to the `"*"` locale and then to the short code."""
    name = _localized(value, "name", locale, registry)
    return name if name is not None else currency(value, registry).code


def countries_for(value: CurrencyLike, registry: Registry | bool | None = None) -> frozenset[str]:
    resolved_registry = registry_state.get(registry)
    return resolved_registry.countries_of(currency(value, resolved_registry).id)


# endregion

# region Maps

_CURRENCY_FIELDS = ("id", "numeric", "scale", "domain", "kind", "weight", "traits")


def currency_to_map(value: Currency) -> dict[str, Any]:
    """Return the fields of $value as a plain dict (traits as a sorted list)."""
    return {
        "id": value.id,
        "numeric": value.numeric,
        "scale": value.scale,
        "domain": value.domain,
        "kind": value.kind,
        "weight": value.weight,
        "traits": sorted(value.traits),
    }


def currency_from_map(data: Mapping[str, Any]) -> Currency:
    """Build a `Currency` from a dict produced by `currency_to_map` (only `id` is required)."""
    # Raise: map must be a mapping with an id
    if not isinstance(data, Mapping) or "id" not in data:
        raise InvalidArgumentError(f"Cannot call `currency_from_map` because $data ({data!r}) is not a mapping with an 'id'", op="currency_from_map", argument="data", value=data)

    unknown = set(data) - set(_CURRENCY_FIELDS)
    # Raise: unknown keys are rejected
    if unknown:
        raise InvalidArgumentError(f"Cannot call `currency_from_map` because keys {sorted(unknown)} are not currency fields", op="currency_from_map", argument="data", value=sorted(unknown))

    numeric = data.get("numeric")
    scale = data.get("scale")
    return Currency(
        data["id"],
        numeric=NO_NUMERIC_ID if numeric is None else numeric,
        scale=AUTO_SCALED if scale is None else scale,
        domain=data.get("domain"),
        kind=data.get("kind"),
        weight=data.get("weight") or 0,
        traits=data.get("traits"),
    )


# endregion
