"""
tests/test_tasks.py
Test cases for the scheduled market data refresh
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from portfolio_tracker.services.holdings_service import HoldingsService
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.tasks.refresh import refresh_held_assets


@pytest.fixture
def stub_market_data(provider, clock):
    def build(factory):
        return MarketDataService(
            factory,
            fetch_quote_fn=provider.fetch_quote,
            fetch_name_fn=provider.fetch_name,
            clock=clock,
        )

    return build


def test_refresh_without_holdings_clears_caches(engine, fake_redis, stub_market_data):
    fake_redis.set("assets:page:1:50", "[]")
    fake_redis.set("holdings:user:alice:list", "[]")

    summary = refresh_held_assets(session_factory=sessionmaker(bind=engine), market_data_factory=stub_market_data)

    assert summary == {"total": 0, "succeeded": 0, "failed": []}
    assert fake_redis.store == {}


def test_refresh_reports_failed_tickers(
        engine, db, factory, market_data, clock, account, make_asset, stub_market_data
):
    holdings = HoldingsService(factory, market_data=market_data, clock=clock)
    for ticker in ("AAPL", "DEAD", "MSFT"):
        asset = make_asset(ticker, price=100.0, age=timedelta(hours=2))
        holdings.apply_buy(account.id, asset.id, 1, 100)

    summary = refresh_held_assets(session_factory=sessionmaker(bind=engine), market_data_factory=stub_market_data)

    assert summary == {"total": 3, "succeeded": 2, "failed": ["DEAD"]}
    db.expire_all()
    assets = factory.get_asset_repository()
    assert float(assets.get_by_ticker("AAPL").current_price) == pytest.approx(150.0)
    assert float(assets.get_by_ticker("DEAD").current_price) == pytest.approx(100.0)
    assert factory.get_asset_history_repository().count(asset_id=assets.get_by_ticker("MSFT").id) == 1
