"""
tests/test_portfolio.py
Test cases for portfolio valuation, top performers and snapshots
"""

from datetime import datetime, timedelta

import pytest

from portfolio_tracker.core.exceptions import NotFound
from portfolio_tracker.models import AccountType
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.services.holdings_service import HoldingsService
from portfolio_tracker.services.portfolio_service import PortfolioService


@pytest.fixture
def service(factory, market_data, clock):
    return PortfolioService(factory, market_data=market_data, clock=clock)


@pytest.fixture
def holdings(factory, market_data, clock):
    return HoldingsService(factory, market_data=market_data, clock=clock)


@pytest.fixture
def cash_account(factory, user):
    return AccountsService(factory).create_account("alice", "Bank", "Checking", AccountType.DEPOSITORY, 500)


class TestSummary:
    def test_values_holdings_and_splits_cash(self, service, holdings, account, cash_account, make_asset):
        aapl = make_asset("AAPL", price=150.0)
        holdings.apply_buy(account.id, aapl.id, 10, 100)

        summary = service.get_portfolio_summary("alice")

        assert summary.cash_value == pytest.approx(500)
        assert summary.investment_value == pytest.approx(1000 + 1500)
        assert summary.total_value == pytest.approx(3000)

        brokerage = next(a for a in summary.accounts if a.id == account.id)
        position = brokerage.holdings[0]
        assert position.ticker == "AAPL"
        assert position.market_value == pytest.approx(1500)
        assert position.unrealized_gain_loss == pytest.approx(500)

    def test_fresh_prices_are_not_refetched(self, service, holdings, account, provider, make_asset):
        aapl = make_asset("AAPL", price=150.0, age=timedelta(minutes=10))
        holdings.apply_buy(account.id, aapl.id, 1, 100)

        service.get_portfolio_summary("alice")

        assert provider.quote_calls == []

    def test_stale_prices_are_refreshed(self, service, holdings, account, provider, make_asset):
        aapl = make_asset("AAPL", price=120.0, age=timedelta(hours=5))
        holdings.apply_buy(account.id, aapl.id, 2, 100)

        summary = service.get_portfolio_summary("alice")

        assert provider.quote_calls == ["AAPL"]
        assert summary.accounts[0].holdings[0].current_price == pytest.approx(150.0)

    def test_refresh_failure_uses_cached_price(self, service, holdings, account, provider, make_asset):
        aapl = make_asset("AAPL", price=120.0, age=timedelta(hours=5))
        holdings.apply_buy(account.id, aapl.id, 2, 100)
        provider.fail("AAPL")

        summary = service.get_portfolio_summary("alice")

        assert summary.accounts[0].holdings[0].current_price == pytest.approx(120.0)

    def test_unknown_user(self, service):
        with pytest.raises(NotFound):
            service.get_portfolio_summary("nobody")


def test_top_performers_ordered_by_absolute_move(service, holdings, account, make_asset):
    for ticker, change in [("UP1", 2.0), ("UP2", 8.0), ("DN1", -5.0), ("DN2", -1.0), ("FLAT", 0)]:
        asset = make_asset(ticker, price=10.0, percent_change=change)
        holdings.apply_buy(account.id, asset.id, 1, 10)

    top = service.get_top_performers("alice", limit=5)

    assert [h.ticker for h in top.top_gainers] == ["UP2", "UP1"]
    assert [h.ticker for h in top.top_losers] == ["DN1", "DN2"]


def test_snapshot_is_one_row_per_day(service, factory, account, clock):
    service.record_snapshot("alice")
    clock.advance(hours=3)
    service.record_snapshot("alice")
    service.record_snapshot("alice", at=datetime(2025, 3, 15, 9))

    history = service.get_portfolio_history("alice", days=30)

    assert [h.snapshot_date.day for h in history] == [14, 15]
    assert float(history[0].total_value) == pytest.approx(1000)


def test_refresh_portfolio_prices(service, holdings, account, make_asset, factory):
    aapl = make_asset("AAPL", price=120.0, age=timedelta(hours=2))
    holdings.apply_buy(account.id, aapl.id, 1, 100)

    results = service.refresh_portfolio_prices("alice", update_history=True)

    assert [r.ticker for r in results] == ["AAPL"]
    assert results[0].success
    assert factory.get_asset_history_repository().count(asset_id=aapl.id) == 1


def test_refresh_all_held_assets_without_holdings(service):
    assert service.refresh_all_held_assets() == []
