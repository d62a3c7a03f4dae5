"""
tests/test_transactions.py
Test cases for the cash ledger and cashflow analysis
"""

from datetime import timedelta

import pytest

from portfolio_tracker.core.exceptions import InvalidInput, NotFound
from portfolio_tracker.models import TransactionType
from portfolio_tracker.services.holdings_service import HoldingsService
from portfolio_tracker.services.transactions_service import TransactionsService


@pytest.fixture
def service(factory, clock):
    return TransactionsService(factory, clock=clock)


@pytest.fixture
def ledger(service, factory, market_data, clock, account, make_asset):
    """Deposit, dividend, withdrawal and a buy inside the window, one old deposit outside it."""
    aapl = make_asset("AAPL", price=150.0)
    service.create(account.id, TransactionType.DEPOSIT, 1000)
    service.create(account.id, TransactionType.DIVIDEND, 50, asset_id=aapl.id)
    service.create(account.id, TransactionType.WITHDRAWAL, 200)
    service.create(account.id, TransactionType.DEPOSIT, 999, transaction_date=clock() - timedelta(days=90))
    HoldingsService(factory, market_data=market_data, clock=clock).apply_buy(account.id, aapl.id, 2, 150)
    return aapl


class TestCreate:
    def test_records_cash_movement(self, service, account):
        tx = service.create(account.id, "deposit", 250.5, description="Payroll")

        assert tx.transaction_type == TransactionType.DEPOSIT
        assert float(tx.total_amount) == 250.5
        assert tx.asset_id is None

    @pytest.mark.parametrize("transaction_type", [TransactionType.BUY, TransactionType.SELL])
    def test_trades_rejected(self, service, account, transaction_type):
        with pytest.raises(InvalidInput):
            service.create(account.id, transaction_type, 100)

    def test_non_positive_amount_rejected(self, service, account):
        with pytest.raises(InvalidInput):
            service.create(account.id, TransactionType.DEPOSIT, 0)

    def test_unknown_account(self, service):
        with pytest.raises(NotFound):
            service.create(404, TransactionType.DEPOSIT, 10)

    def test_unknown_asset(self, service, account):
        with pytest.raises(NotFound):
            service.create(account.id, TransactionType.DIVIDEND, 10, asset_id=404)


class TestQueries:
    def test_find_by_account_newest_first(self, service, account, ledger):
        rows = service.find_by_account(account.id)

        assert len(rows) == 5
        assert rows[-1].total_amount == 999

    def test_find_by_username(self, service, user, ledger):
        assert len(service.find_by_username("alice")) == 5

    def test_find_by_unknown_user(self, service):
        with pytest.raises(NotFound):
            service.find_by_username("nobody")

    def test_find_one_missing(self, service):
        with pytest.raises(NotFound):
            service.find_one(12345)


class TestCashflow:
    def test_cashflow_analysis(self, service, user, ledger):
        summary = service.get_cashflow_analysis("alice", days=30)

        assert summary.period == "Last 30 days"
        assert summary.income == pytest.approx(1050)
        assert summary.spending == pytest.approx(200 + 300)
        assert summary.net_cashflow == pytest.approx(550)
        assert len(summary.transactions) == 4

    def test_cashflow_by_asset_type(self, service, user, ledger):
        result = service.get_cashflow_by_asset_type("alice", days=30)

        assert set(result.by_asset_type) == {"cash", "stock"}
        cash = result.by_asset_type["cash"]
        stock = result.by_asset_type["stock"]
        assert cash.income == pytest.approx(1000)
        assert cash.spending == pytest.approx(200)
        assert stock.income == pytest.approx(50)
        assert stock.spending == pytest.approx(300)
        assert stock.count == 2

    def test_transaction_stats(self, service, user, ledger):
        stats = service.get_transaction_stats("alice", days=30)

        assert stats.total_transactions == 4
        assert stats.total_volume == pytest.approx(1550)
        assert stats.by_type["deposit"].count == 1
        assert stats.by_type["buy"].volume == pytest.approx(300)
        assert stats.by_asset["Cash"].count == 2
        assert stats.by_asset["AAPL Inc."].count == 2

    def test_empty_window(self, service, user):
        stats = service.get_transaction_stats("alice", days=7)

        assert stats.total_transactions == 0
        assert stats.by_type == {}
