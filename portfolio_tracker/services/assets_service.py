import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pandas as pd

from portfolio_tracker.core.db import unit_of_work
from portfolio_tracker.core.exceptions import InvalidInput, NotFound
from portfolio_tracker.core.logger import logger
from portfolio_tracker.models import Asset, AssetHistory, AssetType
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.schemas.assets import (
    AssetCreate,
    AssetHistoryOut,
    AssetHistoryPage,
    AssetHistoryStats,
    AssetHistoryStatsOut,
    AssetOut,
    Pagination,
    PriceRefreshOut,
)
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.utils.datetime_utils import utcnow
from portfolio_tracker.utils.decimal_utils import Number
from portfolio_tracker.utils.validation_utils import normalize_ticker, require_positive

MAX_PAGE_SIZE = 200


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_PAGE_SIZE))


def build_history_stats(rows: List[AssetHistory], days: int) -> Optional[AssetHistoryStats]:
    """
    Summary statistics over history rows. Volume aggregates only cover rows
    whose volume is known.
    """
    if not rows:
        return None

    df = pd.DataFrame(
        [{"date": r.date, "close": float(r.close), "volume": r.volume} for r in rows]
    ).sort_values("date")

    latest = df["close"].iloc[-1]
    oldest = df["close"].iloc[0]
    volumes = df["volume"].dropna()
    change = latest - oldest

    return AssetHistoryStats(
        period=f"{days} days",
        record_count=len(df),
        latest_price=latest,
        highest_price=df["close"].max(),
        lowest_price=df["close"].min(),
        average_price=df["close"].mean(),
        total_volume=int(volumes.sum()) if not volumes.empty else None,
        average_volume=float(volumes.mean()) if not volumes.empty else None,
        price_change=change,
        price_change_percent=(change / oldest * 100) if oldest else None,
    )


class AssetsService:
    """Asset catalogue with price refresh and history queries."""

    def __init__(
            self,
            factory: RepositoryFactory,
            market_data: Optional[MarketDataService] = None,
            clock: Callable[[], datetime] = utcnow,
    ):
        self.factory = factory
        self.db = factory.db
        self.clock = clock
        self.market_data = market_data or MarketDataService(factory, clock=clock)
        self.asset_repo = factory.get_asset_repository()
        self.history_repo = factory.get_asset_history_repository()

    def create_asset(
            self,
            ticker: str,
            name: Optional[str] = None,
            asset_type: Optional[AssetType] = None,
            price: Optional[Number] = None,
    ) -> Asset:
        symbol = normalize_ticker(ticker)
        if self.asset_repo.get_by_ticker(symbol):
            raise InvalidInput(f"Asset with ticker {symbol} already exists")

        values = {
            "ticker": symbol,
            "name": name or symbol,
            "asset_type": AssetType(asset_type) if asset_type else AssetType.infer(symbol),
        }
        if price is not None:
            now = self.clock()
            values.update(
                current_price=require_positive(price, "Price"),
                price_updated_at=now,
                last_updated=now,
            )

        asset = self.asset_repo.create(values)
        logger.info(f"Created asset {symbol} ({asset.asset_type.value})")
        return asset

    def create_assets(self, items: List[AssetCreate]) -> List[Asset]:
        """
        Create several assets at once; tickers already in the catalogue are
        skipped. Malformed tickers or prices reject the whole batch before
        anything is written.
        """
        symbols = [normalize_ticker(item.ticker) for item in items]
        for item in items:
            if item.price is not None:
                require_positive(item.price, "Price")

        created = []
        with unit_of_work(self.db):
            for item, symbol in zip(items, symbols):
                if self.asset_repo.get_by_ticker(symbol):
                    logger.info(f"Skipping asset {symbol}: already exists")
                    continue
                created.append(self.create_asset(symbol, item.name, item.asset_type, item.price))
        return created

    def find_batch(self, page: int = 1, limit: int = 50) -> List[Asset]:
        return self.asset_repo.get_page(max(page, 1), clamp_limit(limit))

    def find_one(self, asset_id: int) -> Asset:
        asset = self.asset_repo.get(asset_id)
        if not asset:
            raise NotFound(f"Asset with ID {asset_id} not found")
        return asset

    def find_by_ticker(self, ticker: str) -> Asset:
        symbol = normalize_ticker(ticker)
        asset = self.asset_repo.get_by_ticker(symbol)
        if not asset:
            raise NotFound(f"Asset with ticker {symbol} not found")
        return asset

    def search(self, query: str) -> List[Asset]:
        if not query or not query.strip():
            raise InvalidInput("Search query must not be empty")
        return self.asset_repo.search(query.strip())

    def update(
            self,
            asset_id: int,
            name: Optional[str] = None,
            asset_type: Optional[AssetType] = None,
            price: Optional[Number] = None,
    ) -> Asset:
        asset = self.find_one(asset_id)
        values = {}
        if name is not None:
            values["name"] = name
        if asset_type is not None:
            values["asset_type"] = AssetType(asset_type)
        if price is not None:
            now = self.clock()
            values.update(
                current_price=require_positive(price, "Price"),
                price_updated_at=now,
                last_updated=now,
            )
        if not values:
            return asset
        return self.asset_repo.update_obj(asset, values)

    def remove(self, asset_id: int) -> None:
        asset = self.find_one(asset_id)
        if self.asset_repo.count_references(asset.id):
            raise InvalidInput(f"Asset {asset.ticker} is referenced by holdings or transactions")
        self.asset_repo.delete(asset.id)
        logger.info(f"Removed asset {asset.ticker}")

    def refresh_price(self, asset_id: int) -> PriceRefreshOut:
        """
        Pull a detailed quote and write the asset row and today's history row
        together, regardless of cache age.
        """
        asset = self.find_one(asset_id)
        detailed = self.market_data.get_detailed_asset_data(asset.ticker, asset)
        asset, history, is_new = self.market_data.record_quote_with_history(asset.ticker, asset, detailed)
        logger.info(f"Refreshed price of {asset.ticker}: {detailed.current_price}")
        return PriceRefreshOut(
            asset=AssetOut.model_validate(asset),
            history=AssetHistoryOut.model_validate(history),
            history_created=is_new,
            timestamp=self.clock(),
        )

    def refresh_price_by_ticker(self, ticker: str) -> PriceRefreshOut:
        return self.refresh_price(self.find_by_ticker(ticker).id)

    def get_asset_history(
            self,
            asset_id: int,
            start_date: Optional[datetime] = None,
            end_date: Optional[datetime] = None,
            page: int = 1,
            limit: int = 50,
    ) -> AssetHistoryPage:
        self.find_one(asset_id)
        page = max(page, 1)
        limit = clamp_limit(limit)

        total = self.history_repo.count_history(asset_id, start_date, end_date)
        rows = self.history_repo.get_history(
            asset_id, start_date, end_date, limit=limit, offset=(page - 1) * limit
        )
        return AssetHistoryPage(
            data=[AssetHistoryOut.model_validate(r) for r in rows],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
            ),
        )

    def get_asset_history_by_ticker(self, ticker: str, **kwargs) -> AssetHistoryPage:
        return self.get_asset_history(self.find_by_ticker(ticker).id, **kwargs)

    def get_latest_asset_history(self, asset_id: int) -> AssetHistory:
        self.find_one(asset_id)
        latest = self.history_repo.get_latest(asset_id)
        if not latest:
            raise NotFound(f"No history found for asset {asset_id}")
        return latest

    def get_latest_asset_history_by_ticker(self, ticker: str) -> AssetHistory:
        return self.get_latest_asset_history(self.find_by_ticker(ticker).id)

    def get_asset_history_stats(self, asset_id: int, days: int = 30) -> AssetHistoryStatsOut:
        self.find_one(asset_id)
        if days < 1:
            raise InvalidInput("days must be at least 1")

        since = self.clock() - timedelta(days=days)
        rows = self.history_repo.get_history(asset_id, date_from=since)
        stats = build_history_stats(rows, days)
        if stats is None:
            raise NotFound(f"No history found for asset {asset_id} in the last {days} days")

        dates = [r.date for r in rows]
        return AssetHistoryStatsOut(
            asset_id=asset_id,
            stats=stats,
            first_date=min(dates),
            last_date=max(dates),
        )

    def get_asset_history_stats_by_ticker(self, ticker: str, days: int = 30) -> AssetHistoryStatsOut:
        return self.get_asset_history_stats(self.find_by_ticker(ticker).id, days)
