"""Currencies, registries and money values."""
