"""
tests/test_holdings.py
Test cases for the cost-basis ledger: buys, sells and their transactions
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from portfolio_tracker.core.exceptions import (
    InsufficientQuantity,
    InvalidInput,
    NotFound,
    PriceUnavailable,
)
from portfolio_tracker.models import TransactionType
from portfolio_tracker.repositories import RepositoryError
from portfolio_tracker.services.holdings_service import HoldingsService


@pytest.fixture
def service(factory, market_data, clock):
    return HoldingsService(factory, market_data=market_data, clock=clock)


@pytest.fixture
def aapl(make_asset):
    return make_asset("AAPL", price=150.0)


def transactions(factory, account, transaction_type):
    return factory.get_transaction_repository().get_by_filters(
        account_id=account.id, transaction_type=transaction_type
    )


class TestBuy:
    def test_first_buy_opens_holding_at_price(self, service, account, aapl):
        holding = service.apply_buy(account.id, aapl.id, 100, 150)

        assert float(holding.quantity) == 100
        assert float(holding.average_cost_basis) == 150

    def test_weighted_average_cost(self, service, account, aapl):
        service.apply_buy(account.id, aapl.id, 100, 150)
        holding = service.apply_buy(account.id, aapl.id, 50, 160)

        assert float(holding.quantity) == 150
        assert float(holding.average_cost_basis) == pytest.approx(153.33, abs=0.01)

    def test_average_is_quantity_weighted_mean_of_buys(self, service, account, aapl):
        buys = [(10, 100), (5, 130), (25, 90.5), (0.5, 200)]
        for quantity, price in buys:
            holding = service.apply_buy(account.id, aapl.id, quantity, price)

        total_quantity = sum(q for q, _ in buys)
        expected = sum(q * p for q, p in buys) / total_quantity
        assert float(holding.quantity) == pytest.approx(total_quantity)
        assert float(holding.average_cost_basis) == pytest.approx(expected, abs=1e-6)

    def test_each_buy_records_transaction(self, service, factory, account, aapl):
        service.apply_buy(account.id, aapl.id, 100, 150)
        service.apply_buy(account.id, aapl.id, 50, 160)

        buys = transactions(factory, account, TransactionType.BUY)
        assert len(buys) == 2
        assert sorted(float(t.total_amount) for t in buys) == [8000.0, 15000.0]

    @pytest.mark.parametrize("quantity,price", [(0, 150), (-1, 150), (10, 0), (10, -5)])
    def test_non_positive_values_rejected(self, service, account, aapl, quantity, price):
        with pytest.raises(InvalidInput):
            service.apply_buy(account.id, aapl.id, quantity, price)

    def test_unknown_account(self, service, aapl):
        with pytest.raises(NotFound):
            service.apply_buy(999, aapl.id, 1, 1)

    def test_failed_transaction_insert_rolls_back_holding(
            self, service, factory, account, aapl, monkeypatch
    ):
        def broken_create(obj_in):
            raise RepositoryError("insert failed")

        monkeypatch.setattr(factory.get_transaction_repository(), "create", broken_create)

        with pytest.raises(RepositoryError):
            service.apply_buy(account.id, aapl.id, 100, 150)

        assert factory.get_holding_repository().get_for_account_asset(account.id, aapl.id) is None


class TestSell:
    def test_sell_all_without_quantity_deletes_holding(self, service, factory, account, aapl):
        service.apply_buy(account.id, aapl.id, 100, 150)
        service.apply_buy(account.id, aapl.id, 50, 160)

        result = service.apply_sell(account.id, aapl.id)

        assert result.is_full_sell is True
        assert result.remaining_holding is None
        assert factory.get_holding_repository().get_for_account_asset(account.id, aapl.id) is None
        sells = transactions(factory, account, TransactionType.SELL)
        assert len(sells) == 1
        assert float(sells[0].quantity) == 150
        assert sells[0].description == "Sold all 150 shares of AAPL"

    def test_partial_sell_decrements(self, service, account, aapl):
        service.apply_buy(account.id, aapl.id, 100, 150)

        result = service.apply_sell(account.id, aapl.id, quantity=40, price=170)

        assert result.is_full_sell is False
        assert result.remaining_holding.quantity == pytest.approx(60)
        assert result.remaining_holding.average_cost_basis == pytest.approx(150)
        assert result.total_amount == pytest.approx(40 * 170)

    def test_selling_exact_quantity_is_full_sell(self, service, factory, account, aapl):
        service.apply_buy(account.id, aapl.id, 100, 150)

        result = service.apply_sell(account.id, aapl.id, quantity=100, price=155)

        assert result.is_full_sell is True
        assert factory.get_holding_repository().count() == 0

    def test_oversell_leaves_holding_unchanged(self, service, factory, account, aapl, provider):
        service.apply_buy(account.id, aapl.id, 100, 150)
        calls_before = len(provider.quote_calls)

        with pytest.raises(InsufficientQuantity):
            service.apply_sell(account.id, aapl.id, quantity=101)

        holding = factory.get_holding_repository().get_for_account_asset(account.id, aapl.id)
        assert holding.quantity == Decimal("100")
        assert len(provider.quote_calls) == calls_before
        assert transactions(factory, account, TransactionType.SELL) == []

    def test_sell_without_holding(self, service, account, aapl):
        with pytest.raises(NotFound):
            service.apply_sell(account.id, aapl.id, quantity=1, price=1)

    def test_sell_price_uses_live_quote(self, service, account, make_asset):
        asset = make_asset("AAPL", price=120.0, age=timedelta(hours=3))
        service.apply_buy(account.id, asset.id, 10, 100)

        result = service.apply_sell(account.id, asset.id, quantity=1)

        assert result.sell_price == pytest.approx(150.0)

    def test_sell_price_falls_back_to_cached_price(self, service, account, provider, make_asset):
        asset = make_asset("AAPL", price=120.0, age=timedelta(days=2))
        provider.fail("AAPL")
        service.apply_buy(account.id, asset.id, 10, 100)

        result = service.apply_sell(account.id, asset.id, quantity=1)

        assert result.sell_price == pytest.approx(120.0)

    def test_no_price_source(self, service, factory, account, provider):
        asset = factory.get_asset_repository().create({"ticker": "NOPX", "name": "No Price"})
        service.apply_buy(account.id, asset.id, 10, 100)

        with pytest.raises(PriceUnavailable):
            service.apply_sell(account.id, asset.id, quantity=1)

    @pytest.mark.parametrize("quantity", [None, 40], ids=["full", "partial"])
    def test_failed_transaction_insert_rolls_back_sell(
            self, service, factory, account, aapl, monkeypatch, quantity
    ):
        service.apply_buy(account.id, aapl.id, 100, 150)

        def broken_create(obj_in):
            raise RepositoryError("insert failed")

        monkeypatch.setattr(factory.get_transaction_repository(), "create", broken_create)

        with pytest.raises(RepositoryError):
            service.apply_sell(account.id, aapl.id, quantity=quantity, price=160)

        holding = factory.get_holding_repository().get_for_account_asset(account.id, aapl.id)
        assert holding is not None
        assert holding.quantity == Decimal("100")
        assert transactions(factory, account, TransactionType.SELL) == []

    def test_buy_after_full_sell_opens_new_holding(self, service, account, aapl):
        service.apply_buy(account.id, aapl.id, 10, 100)
        service.apply_sell(account.id, aapl.id, price=110)

        second = service.apply_buy(account.id, aapl.id, 5, 120)

        assert float(second.quantity) == 5
        assert float(second.average_cost_basis) == 120


class TestConvenienceFlows:
    def test_add_to_portfolio_creates_asset(self, service, factory, user, account, provider):
        result = service.add_to_portfolio("alice", "msft", account.id, 3)

        assert result.price_used == pytest.approx(400.0)
        assert result.holding.quantity == pytest.approx(3)
        assert factory.get_asset_repository().get_by_ticker("MSFT") is not None

    def test_add_to_portfolio_explicit_price(self, service, user, account, aapl):
        result = service.add_to_portfolio("alice", "AAPL", account.id, 2, price=99.5)

        assert result.price_used == pytest.approx(99.5)
        assert result.transaction.total_amount == pytest.approx(199.0)

    def test_add_to_portfolio_unknown_ticker(self, service, user, account):
        with pytest.raises(InvalidInput):
            service.add_to_portfolio("alice", "NOPE", account.id, 1)

    def test_add_to_foreign_account(self, service, user, account, aapl):
        with pytest.raises(NotFound):
            service.add_to_portfolio("alice", "AAPL", account.id + 100, 1)

    def test_sell_by_ticker_is_case_insensitive(self, service, user, account, aapl):
        service.apply_buy(account.id, aapl.id, 10, 100)

        result = service.sell_by_ticker("alice", "aapl", quantity=4, price=110)

        assert result.ticker == "AAPL"
        assert result.remaining_holding.quantity == pytest.approx(6)

    def test_sell_holding_by_id(self, service, account, aapl):
        holding = service.apply_buy(account.id, aapl.id, 10, 100)

        result = service.sell_holding(holding.id, price=105)

        assert result.is_full_sell is True

    def test_find_by_username(self, service, user, account, aapl):
        service.apply_buy(account.id, aapl.id, 10, 100)

        assert [h.asset.ticker for h in service.find_by_username("alice")] == ["AAPL"]
        assert service.find_by_username("bob") == []


class TestPrecision:
    def test_buy_quantity_below_stored_precision_rejected(self, service, factory, account, aapl):
        with pytest.raises(InvalidInput):
            service.apply_buy(account.id, aapl.id, "0.000000001", 150)

        assert factory.get_holding_repository().get_for_account_asset(account.id, aapl.id) is None

    def test_sell_quantity_below_stored_precision_rejected(self, service, account, aapl):
        service.apply_buy(account.id, aapl.id, 1, 150)

        with pytest.raises(InvalidInput):
            service.apply_sell(account.id, aapl.id, quantity="0.000000004", price=150)

    def test_sell_rounding_to_whole_position_is_full_sell(self, service, factory, account, aapl):
        service.apply_buy(account.id, aapl.id, 1, 150)

        result = service.apply_sell(account.id, aapl.id, quantity="0.999999999", price=150)

        assert result.is_full_sell is True
        assert result.quantity == pytest.approx(1)
        assert factory.get_holding_repository().get_for_account_asset(account.id, aapl.id) is None
        sells = transactions(factory, account, TransactionType.SELL)
        assert sells[0].quantity == Decimal("1")

    def test_partial_sell_keeps_stored_precision(self, service, factory, account, aapl):
        service.apply_buy(account.id, aapl.id, 1, 150)

        result = service.apply_sell(account.id, aapl.id, quantity="0.123456789", price=150)

        holding = factory.get_holding_repository().get_for_account_asset(account.id, aapl.id)
        assert holding.quantity == Decimal("0.87654321")
        sells = transactions(factory, account, TransactionType.SELL)
        assert sells[0].quantity + holding.quantity == Decimal("1")
        assert result.is_full_sell is False
