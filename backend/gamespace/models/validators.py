"""Model-level validation utilities for data integrity.

Used with SQLAlchemy ``@validates`` so invalid amounts and counts are
rejected no matter which service writes them.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce int/float/str/Decimal to a Decimal rounded to paise."""
    v = value if isinstance(value, Decimal) else Decimal(str(value))
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def money(key: str, value):
    """Validate a monetary column: non-negative, stored with two decimals."""
    if value is None:
        return None
    v = to_money(value)
    if v < 0:
        raise ValueError(f"{key} cannot be negative, got {value}")
    return v


def non_negative(key: str, value):
    """Validate that a numeric value is >= 0."""
    if value is not None and value < 0:
        raise ValueError(f"{key} cannot be negative, got {value}")
    return value


def positive(key: str, value):
    """Validate that a numeric value is > 0."""
    if value is not None and value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value
