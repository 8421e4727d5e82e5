from __future__ import annotations

# Build registry snapshots from pandas DataFrames: one currency table plus an optional
# hierarchy edge list.

import logging
import re
from typing import Any

import pandas as pd

from moneta.domain.currency import AUTO_SCALED, NO_NUMERIC_ID, Currency
from moneta.domain.registry import Registry
from moneta.errors import InvalidArgumentError

logger: logging.Logger = logging.getLogger(__name__)

CURRENCY_REQUIRED_COLUMNS = ("id", "scale")
CURRENCY_OPTIONAL_COLUMNS = ("numeric", "domain", "kind", "weight", "traits", "countries", "name", "symbol")
EDGE_REQUIRED_COLUMNS = ("axis", "child", "parent")

# Scale cell values meaning "no nominal scale"
_AUTO_SCALE_TOKENS = {"", "auto", "-1"}

_LIST_SEPARATOR = re.compile(r"[,;\s]+")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _text(value: Any) -> str | None:
    return None if _is_missing(value) else str(value).strip()


def _integer(value: Any, column: str, row_number: int) -> int | None:
    if _is_missing(value):
        return None
    try:
        number = float(value) if not isinstance(value, str) else float(value.strip())
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(
            f"Cannot call `registry_from_dataframe` because column '{column}' in row {row_number} is not an integer: {value!r}",
            op="registry_from_dataframe",
            argument=column,
            value=value,
        ) from e
    # Raise: fractional numbers are not valid integers
    if not number.is_integer():
        raise InvalidArgumentError(
            f"Cannot call `registry_from_dataframe` because column '{column}' in row {row_number} is not an integer: {value!r}",
            op="registry_from_dataframe",
            argument=column,
            value=value,
        )
    return int(number)


def _items(value: Any) -> tuple[str, ...]:
    text = _text(value)
    if text is None:
        return ()
    return tuple(item for item in _LIST_SEPARATOR.split(text) if item)


def _check_columns(df: Any, required: tuple[str, ...], what: str) -> None:
    # Check: $df must be a pandas DataFrame
    if not isinstance(df, pd.DataFrame):
        raise InvalidArgumentError(
            f"Expected a pandas DataFrame with {what}, but received {type(df).__name__}",
            op="registry_from_dataframe",
            argument="df",
            value=type(df).__name__,
        )

    # Check: required columns present
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise InvalidArgumentError(
            f"The provided DataFrame with {what} is missing required columns: {', '.join(sorted(missing))}. Required columns are: {', '.join(required)}",
            op="registry_from_dataframe",
            argument="df",
            value=missing,
        )


def currency_from_row(row: pd.Series, row_number: int) -> Currency:
    """Build a `Currency` from one row of a currency table."""
    currency_id = _text(row.get("id"))
    # Raise: every row needs an id
    if currency_id is None:
        raise InvalidArgumentError(f"Cannot call `registry_from_dataframe` because row {row_number} has no 'id'", op="registry_from_dataframe", argument="id", value=None)

    scale_text = _text(row.get("scale"))
    if scale_text is None or scale_text.lower() in _AUTO_SCALE_TOKENS:
        scale = AUTO_SCALED
    else:
        scale = _integer(scale_text, "scale", row_number)

    numeric = _integer(row.get("numeric"), "numeric", row_number)
    weight = _integer(row.get("weight"), "weight", row_number)

    return Currency(
        currency_id,
        numeric=NO_NUMERIC_ID if numeric is None else numeric,
        scale=scale,
        domain=_text(row.get("domain")),
        kind=_text(row.get("kind")),
        weight=0 if weight is None else weight,
        traits=_items(row.get("traits")),
    )


def registry_from_dataframe(
    currencies_df: pd.DataFrame,
    edges_df: pd.DataFrame | None = None,
    registry: Registry | None = None,
    overwrite: bool = False,
) -> Registry:
    """Register currencies (and derive hierarchy edges) read from pandas DataFrames.

    Currency table columns:
    - Required: `id`, `scale` (empty, `auto` or `-1` for auto-scaled currencies).
    - Optional: `numeric`, `domain`, `kind`, `weight`, `traits` and `countries` (separated by commas,
      semicolons or spaces), `name` and `symbol` (stored under the `"*"` locale).

    Edge list columns: `axis`, `child`, `parent`.

    Args:
        currencies_df: One row per currency.
        edges_df: Optional hierarchy edges, derived after all currencies are registered.
        registry: Registry to extend; an empty one when None.
        overwrite: Whether rows may replace currencies already present in $registry.

    Returns:
        New registry snapshot.

    Raises:
        InvalidArgumentError: Missing columns, malformed cells, duplicate ids or cyclic edges.
    """
    _check_columns(currencies_df, CURRENCY_REQUIRED_COLUMNS, "currencies")
    result = registry if registry is not None else Registry.empty()

    for row_number, (_, row) in enumerate(currencies_df.iterrows(), start=1):
        currency = currency_from_row(row, row_number)

        localized = None
        name = _text(row.get("name"))
        symbol = _text(row.get("symbol"))
        if name is not None or symbol is not None:
            entry = {}
            if name is not None:
                entry["name"] = name
            if symbol is not None:
                entry["symbol"] = symbol
            localized = {"*": entry}

        result = result.register(currency, countries=_items(row.get("countries")) or None, localized=localized, overwrite=overwrite)

    logger.debug(f"Registered {len(currencies_df)} currencies from DataFrame, registry version '{result.version}'")

    if edges_df is not None:
        result = derive_from_dataframe(edges_df, result)

    return result


def derive_from_dataframe(edges_df: pd.DataFrame, registry: Registry) -> Registry:
    """Derive every `(axis, child, parent)` row of $edges_df into $registry."""
    _check_columns(edges_df, EDGE_REQUIRED_COLUMNS, "hierarchy edges")

    result = registry
    for axis, child, parent in edges_df[list(EDGE_REQUIRED_COLUMNS)].itertuples(index=False, name=None):
        result = result.derive(str(axis).strip(), str(child).strip(), str(parent).strip())

    logger.debug(f"Derived {len(edges_df)} hierarchy edges from DataFrame, registry version '{result.version}'")
    return result
