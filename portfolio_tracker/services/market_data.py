from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from portfolio_tracker.clients.yfinance_client import ProviderError, fetch_company_name, fetch_quote
from portfolio_tracker.core.config import settings
from portfolio_tracker.core.db import unit_of_work
from portfolio_tracker.core.exceptions import InvalidInput, PortfolioError, UpstreamUnavailable
from portfolio_tracker.core.logger import logger
from portfolio_tracker.models import Asset, AssetHistory, AssetType
from portfolio_tracker.repositories import RepositoryError
from portfolio_tracker.schemas.market_data import BatchResult, DetailedQuote, Quote
from portfolio_tracker.utils.datetime_utils import is_fresh, utcnow
from portfolio_tracker.utils.decimal_utils import to_decimal
from portfolio_tracker.utils.validation_utils import normalize_ticker


@dataclass
class AssetUpsertResult:
    asset: Asset
    history_updated: bool
    history_created: bool
    history: Optional[AssetHistory] = None


class MarketDataService:
    """
    Quote cache in front of the market-data provider.

    A cached Asset row younger than the staleness threshold answers quote
    requests on its own; older rows trigger a provider call and are kept as a
    fallback when that call fails.
    """

    def __init__(
            self,
            factory,
            fetch_quote_fn: Callable[[str], dict] = fetch_quote,
            fetch_name_fn: Callable[[str], str] = fetch_company_name,
            clock: Callable[[], datetime] = utcnow,
            cache_ttl_seconds: int = settings.QUOTE_CACHE_TTL_SECONDS,
    ):
        """
        :param factory: RepositoryFactory
        :param fetch_quote_fn: function returning the provider quote dict for a ticker
        :param fetch_name_fn: function returning the company name for a ticker
        :param clock: returns the current naive UTC time
        :param cache_ttl_seconds: staleness threshold for cached quotes
        """
        self.factory = factory
        self.db = factory.db
        self.fetch_quote = fetch_quote_fn
        self.fetch_name = fetch_name_fn
        self.clock = clock
        self.cache_ttl_seconds = cache_ttl_seconds
        self.asset_repo = factory.get_asset_repository()
        self.history_repo = factory.get_asset_history_repository()

    def get_cached_asset(self, ticker: str) -> Optional[Asset]:
        return self.asset_repo.get_by_ticker(normalize_ticker(ticker))

    def is_price_fresh(self, asset: Optional[Asset]) -> bool:
        return asset is not None and is_fresh(asset.price_updated_at, self.clock(), self.cache_ttl_seconds)

    def validate_ticker(self, ticker: str) -> bool:
        """A ticker is valid when it is cached or the provider prices it."""
        symbol = normalize_ticker(ticker)
        if self.asset_repo.get_by_ticker(symbol):
            return True
        try:
            self.fetch_quote(symbol)
            return True
        except ProviderError as e:
            logger.warning(f"Invalid ticker: {symbol} ({e})")
            return False

    def get_asset_data(self, ticker: str) -> Quote:
        """
        Quote for a ticker, served from the cached Asset row while it is fresh.

        Raises:
            UpstreamUnavailable: the provider failed and nothing is cached
        """
        symbol = normalize_ticker(ticker)
        quote, _ = self._resolve_quote(symbol, self.asset_repo.get_by_ticker(symbol))
        return quote

    def get_detailed_asset_data(self, ticker: str, cached_asset: Optional[Asset] = None) -> DetailedQuote:
        """
        Full OHLC quote straight from the provider; the price cache is never read.

        Raises:
            UpstreamUnavailable: the provider failed
        """
        symbol = normalize_ticker(ticker)
        try:
            data = self.fetch_quote(symbol)
        except ProviderError as e:
            logger.error(f"Failed to fetch detailed data for {symbol}: {e}")
            raise UpstreamUnavailable(f"Failed to fetch detailed data for {symbol}") from e

        return DetailedQuote(
            ticker=symbol,
            name=self._get_company_name(symbol, cached_asset),
            current_price=data["price"],
            percent_change=data.get("percent_change") or 0.0,
            currency=data.get("currency") or settings.DEFAULT_CURRENCY,
            open_price=data.get("open"),
            high_price=data.get("high"),
            low_price=data.get("low"),
            previous_close=data.get("previous_close"),
            volume=data.get("volume"),
            timestamp=data.get("timestamp"),
        )

    def upsert_asset(self, ticker: str) -> AssetUpsertResult:
        """
        Refresh an asset and its history row for today from a live quote.

        Assets updated within the staleness threshold are returned untouched.
        Unknown tickers are created when the provider can price them.
        """
        symbol = normalize_ticker(ticker)
        cached = self.asset_repo.get_by_ticker(symbol)

        if cached and is_fresh(cached.last_updated, self.clock(), self.cache_ttl_seconds):
            logger.info(f"Asset {symbol} was updated within the cache window, skipping update")
            return AssetUpsertResult(asset=cached, history_updated=False, history_created=False)

        try:
            detailed = self.get_detailed_asset_data(symbol, cached)
        except UpstreamUnavailable as e:
            if cached is None:
                raise InvalidInput(f"Invalid ticker: {symbol}") from e
            raise

        asset, history, is_new = self.record_quote_with_history(symbol, cached, detailed)
        logger.info(f"Asset {symbol} upserted with price: {detailed.current_price}")
        return AssetUpsertResult(asset=asset, history_updated=True, history_created=is_new, history=history)

    def record_quote_with_history(
            self,
            ticker: str,
            cached: Optional[Asset],
            detailed: DetailedQuote,
    ) -> Tuple[Asset, AssetHistory, bool]:
        """Write the quote to the Asset row and the day's history row atomically."""
        now = self.clock()
        with unit_of_work(self.db):
            asset = self._save_quote(ticker, cached, detailed, now, live=True)
            history, is_new = self.history_repo.upsert_for_day(asset.id, detailed.ohlcv(), now)
        return asset, history, is_new

    def update_asset_price_only(self, ticker: str) -> Asset:
        """
        Refresh the price fields of an asset without touching its history.
        """
        symbol = normalize_ticker(ticker)
        cached = self.asset_repo.get_by_ticker(symbol)
        now = self.clock()

        if cached and is_fresh(cached.last_updated, now, self.cache_ttl_seconds):
            logger.debug(f"Asset {symbol} was updated within the cache window, skipping update")
            return cached

        try:
            quote, live = self._resolve_quote(symbol, cached)
        except UpstreamUnavailable as e:
            if cached is None:
                raise InvalidInput(f"Invalid ticker: {symbol}") from e
            raise

        asset = self._save_quote(symbol, cached, quote, now, live=live)
        logger.debug(f"Price-only update for {symbol}: {quote.current_price}")
        return asset

    def update_asset_prices(self, tickers: List[str], update_history: bool = False) -> List[BatchResult]:
        """
        Refresh many assets; a failing ticker is reported, not raised.

        :param update_history: also upsert today's history rows (one provider call per ticker)
        """
        results: List[BatchResult] = []
        logger.info(f"Batch updating {len(tickers)} assets, update_history: {update_history}")

        for ticker in tickers:
            try:
                if update_history:
                    asset = self.upsert_asset(ticker).asset
                else:
                    asset = self.update_asset_price_only(ticker)
                results.append(BatchResult(
                    ticker=asset.ticker,
                    success=True,
                    asset_id=asset.id,
                    current_price=asset.current_price,
                ))
            except (PortfolioError, RepositoryError) as e:
                logger.error(f"Failed to update {ticker}: {e}")
                results.append(BatchResult(ticker=ticker, success=False, error=str(e)))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch update completed: {succeeded}/{len(tickers)} successful")
        return results

    def get_batch_quotes(self, tickers: List[str]) -> List[Quote]:
        quotes = []
        for ticker in tickers:
            try:
                quotes.append(self.get_asset_data(ticker))
            except PortfolioError as e:
                logger.error(f"Failed to fetch data for {ticker}: {e}")
        return quotes

    def _resolve_quote(self, symbol: str, cached: Optional[Asset]) -> Tuple[Quote, bool]:
        """Returns (quote, live); live is False when the cached row answered."""
        if cached is not None and cached.current_price is not None and self.is_price_fresh(cached):
            logger.debug(f"Using cached data for {symbol}, updated {cached.price_updated_at}")
            return self._quote_from_asset(cached), False

        try:
            data = self.fetch_quote(symbol)
        except ProviderError as e:
            logger.error(f"Failed to fetch data for {symbol}: {e}")
            if cached is not None and cached.current_price is not None:
                logger.warning(f"API failed for {symbol}, using stale cached data")
                return self._quote_from_asset(cached), False
            raise UpstreamUnavailable(f"Failed to fetch data for {symbol}") from e

        quote = Quote(
            ticker=symbol,
            name=self._get_company_name(symbol, cached),
            current_price=data["price"],
            percent_change=data.get("percent_change") or 0.0,
            currency=data.get("currency") or settings.DEFAULT_CURRENCY,
        )
        return quote, True

    def _get_company_name(self, symbol: str, cached: Optional[Asset]) -> str:
        if cached is not None and cached.name:
            return cached.name
        try:
            return self.fetch_name(symbol)
        except ProviderError as e:
            logger.warning(f"Failed to get company name for {symbol}: {e}")
            return symbol

    @staticmethod
    def _quote_from_asset(asset: Asset) -> Quote:
        return Quote(
            ticker=asset.ticker,
            name=asset.name,
            current_price=asset.current_price,
            percent_change=asset.percent_change or 0,
            currency=asset.currency,
        )

    def _save_quote(
            self,
            symbol: str,
            cached: Optional[Asset],
            quote: Quote,
            now: datetime,
            live: bool,
    ) -> Asset:
        """
        Create or update the Asset row from a quote. Quotes that came from the
        cache keep the row's original price timestamp.
        """
        price_updated_at = now if live or cached is None else cached.price_updated_at
        values = {
            "current_price": to_decimal(quote.current_price),
            "percent_change": to_decimal(quote.percent_change),
            "price_updated_at": price_updated_at,
            "last_updated": now,
            "currency": quote.currency,
        }
        if cached is not None:
            values["name"] = cached.name or quote.name
            return self.asset_repo.update_obj(cached, values)

        return self.asset_repo.create({
            "ticker": symbol,
            "name": quote.name,
            "asset_type": AssetType.infer(symbol),
            **values,
        })
