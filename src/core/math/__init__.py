"""
Core math modules

Целочисленные fixed-point примитивы для распределения средств раунда.
"""

from src.core.math.fixed_point import (
    ONE,
    RATIO_MAX,
    apply_ratio,
    ceil_div,
    mul_div_floor,
    ratio,
    validate_amount,
    validate_ratio,
)

__all__ = [
    # Constants
    "ONE",
    "RATIO_MAX",
    # Operations
    "apply_ratio",
    "ceil_div",
    "mul_div_floor",
    "ratio",
    # Validation
    "validate_amount",
    "validate_ratio",
]
