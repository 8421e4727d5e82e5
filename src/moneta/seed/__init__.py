"""Adapters seeding registry snapshots from tabular data."""

from moneta.seed.currencies_from_dataframe import currency_from_row, derive_from_dataframe, registry_from_dataframe

__all__ = [
    "currency_from_row",
    "derive_from_dataframe",
    "registry_from_dataframe",
]
