from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, str, Decimal]

QUANTIZE = Decimal("0.00000001")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Convert to Decimal via str so floats keep their printed value."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    """Round to the 8 decimal places the Numeric(20, 8) columns hold."""
    return value.quantize(QUANTIZE, rounding=ROUND_HALF_UP)


def to_float(value: Optional[Number]) -> float:
    if value is None:
        return 0.0
    return float(value)


def format_quantity(value: Number) -> str:
    """Plain string without trailing zeros: Decimal('150.00000000') -> '150'."""
    return format(to_decimal(value).normalize(), "f")
