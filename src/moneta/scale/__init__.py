"""Exact decimal scale engine and rounding context."""

from moneta.scale.rounding import RoundingMode, bind_rounding, parse_rounding, rounding_mode, with_rounding
from moneta.scale.normalizer import div_precision, divide, rescale, scale_of, to_decimal

__all__ = [
    "RoundingMode",
    "bind_rounding",
    "parse_rounding",
    "rounding_mode",
    "with_rounding",
    "div_precision",
    "divide",
    "rescale",
    "scale_of",
    "to_decimal",
]
