import re
from decimal import Decimal
from typing import Optional

from portfolio_tracker.core.exceptions import InvalidInput
from portfolio_tracker.utils.decimal_utils import Number, quantize, to_decimal

TICKER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.\-=^]{0,19}$")


def normalize_ticker(ticker: Optional[str]) -> str:
    """
    Upper-case and validate a ticker symbol.

    Raises:
        InvalidInput: if the ticker is empty or contains unsupported characters
    """
    symbol = (ticker or "").strip().upper()
    if not TICKER_PATTERN.match(symbol):
        raise InvalidInput(f"Invalid ticker format: '{ticker}'")
    return symbol


def require_positive(value: Optional[Number], field_name: str) -> Decimal:
    """
    Convert to Decimal rounded to the 8 places the columns store, rejecting
    missing values and values that are not positive once rounded.
    """
    amount = to_decimal(value)
    if amount is not None:
        amount = quantize(amount)
    if amount is None or amount <= 0:
        raise InvalidInput(f"{field_name} must be greater than 0")
    return amount
