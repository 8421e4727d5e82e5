__version__ = "0.1.0"

from moneta.domain.currency import Currency
from moneta.domain.currency_lookup import currency
from moneta.domain.money import Money, money
from moneta.domain.allocation import allocate, distribute
from moneta.domain.registry import Registry
from moneta.errors import MonetaError
from moneta.scale.rounding import RoundingMode, with_rounding

__all__ = ["Currency", "currency", "Money", "money", "allocate", "distribute", "Registry", "MonetaError", "RoundingMode", "with_rounding"]
