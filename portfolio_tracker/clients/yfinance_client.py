import math
import time
from typing import Any, Dict, Optional

import yfinance as yf

from portfolio_tracker.core.config import settings
from portfolio_tracker.core.logger import logger


class ProviderError(Exception):
    """The quote provider could not answer for a ticker."""
    pass


def _clean(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return value


def fetch_quote(ticker: str, sleep: float = settings.PROVIDER_SLEEP_SECONDS) -> Dict[str, Any]:
    """
    Fetch the current quote for a ticker via Yahoo Finance.

    Returns a dict with price, open, high, low, previous_close,
    percent_change, volume (None when not reported), currency and timestamp.
    Raises ProviderError when the provider fails or reports no usable price.
    """
    symbol = ticker.upper()
    try:
        fast_info = yf.Ticker(symbol).fast_info
        price = _clean(fast_info.last_price)
        previous_close = _clean(fast_info.previous_close)
        volume = _clean(fast_info.last_volume)
        result = {
            "ticker": symbol,
            "price": price,
            "open": _clean(fast_info.open),
            "high": _clean(fast_info.day_high),
            "low": _clean(fast_info.day_low),
            "previous_close": previous_close,
            "volume": int(volume) if volume is not None else None,
            "currency": (fast_info.currency or settings.DEFAULT_CURRENCY).upper(),
            "timestamp": int(time.time()),
        }
    except Exception as e:
        logger.error(f"Error fetching quote for {symbol}: {e}")
        raise ProviderError(f"Failed to fetch quote for {symbol}") from e

    if not price or price <= 0:
        raise ProviderError(f"No price data available for {symbol}")

    if previous_close:
        result["percent_change"] = (price - previous_close) / previous_close * 100
    else:
        result["percent_change"] = 0.0

    if sleep > 0:
        time.sleep(sleep)
    logger.debug(f"Fetched quote for {symbol}: {price}")
    return result


def fetch_company_name(ticker: str) -> str:
    """Fetch the company display name via yfinance."""
    symbol = ticker.upper()
    try:
        info = yf.Ticker(symbol).info or {}
    except Exception as e:
        logger.warning(f"Failed to get company name for {symbol}: {e}")
        raise ProviderError(f"Failed to get company name for {symbol}") from e

    name = info.get("longName") or info.get("shortName")
    if not name:
        raise ProviderError(f"No company name for {symbol}")
    return name
