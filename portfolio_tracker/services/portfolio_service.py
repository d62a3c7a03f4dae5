from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

import pandas as pd

from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import clear_price_caches
from portfolio_tracker.models import Account, AccountType, Holding, PortfolioHistory
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.schemas.market_data import BatchResult
from portfolio_tracker.schemas.portfolio import AccountSummary, HoldingSummary, PortfolioSummary, TopPerformers
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.utils.datetime_utils import utcnow
from portfolio_tracker.utils.decimal_utils import quantize, to_decimal


def summarize_holding(holding: Holding) -> HoldingSummary:
    asset = holding.asset
    quantity = to_decimal(holding.quantity)
    average_cost = to_decimal(holding.average_cost_basis)
    current_price = to_decimal(asset.current_price) if asset.current_price is not None else None

    market_value = quantity * (current_price or Decimal(0))
    unrealized = market_value - quantity * average_cost

    return HoldingSummary(
        id=holding.id,
        ticker=asset.ticker,
        name=asset.name,
        asset_type=asset.asset_type.value,
        quantity=quantity,
        average_cost_basis=average_cost,
        current_price=current_price,
        market_value=quantize(market_value),
        unrealized_gain_loss=quantize(unrealized),
        percent_change=asset.percent_change or 0,
    )


def summarize_account(account: Account) -> AccountSummary:
    return AccountSummary(
        id=account.id,
        institution_name=account.institution_name,
        account_name=account.account_name,
        account_type=account.account_type.value,
        balance_current=account.balance_current or 0,
        holdings=[summarize_holding(h) for h in account.holdings],
    )


def rank_performers(holdings: List[HoldingSummary], limit: int = 5) -> TopPerformers:
    """Split holdings into gainers and losers, each ordered by the size of the move."""
    if not holdings:
        return TopPerformers(top_gainers=[], top_losers=[])

    df = pd.DataFrame({"change": [h.percent_change for h in holdings]})
    df["abs_change"] = df["change"].abs()
    df = df.sort_values("abs_change", ascending=False, kind="stable")

    gainers = df[df["change"] > 0].head(limit).index
    losers = df[df["change"] < 0].head(limit).index
    return TopPerformers(
        top_gainers=[holdings[i] for i in gainers],
        top_losers=[holdings[i] for i in losers],
    )


class PortfolioService:
    """Portfolio valuation, daily snapshots and bulk price refresh."""

    def __init__(
            self,
            factory: RepositoryFactory,
            market_data: Optional[MarketDataService] = None,
            clock: Callable[[], datetime] = utcnow,
    ):
        self.factory = factory
        self.clock = clock
        self.market_data = market_data or MarketDataService(factory, clock=clock)
        self.accounts = AccountsService(factory)
        self.holding_repo = factory.get_holding_repository()
        self.history_repo = factory.get_portfolio_history_repository()

    def get_portfolio_summary(self, username: str) -> PortfolioSummary:
        """
        Value every account of the user's portfolio at current prices.

        Held assets whose price is stale are refreshed first; refresh failures
        are logged and the cached price is used. Depository accounts count as
        cash, every other account type as investments.
        """
        self.accounts.get_portfolio(username)
        self._refresh_stale_prices(username)

        portfolio = self.accounts.get_portfolio(username)
        accounts = [summarize_account(a) for a in portfolio.accounts]

        cash_value = Decimal(0)
        investment_value = Decimal(0)
        for account in accounts:
            value = to_decimal(account.balance_current) + sum(
                (to_decimal(h.market_value) for h in account.holdings), Decimal(0)
            )
            if account.account_type == AccountType.DEPOSITORY.value:
                cash_value += value
            else:
                investment_value += value

        return PortfolioSummary(
            id=portfolio.id,
            name=portfolio.name,
            currency=portfolio.currency,
            total_value=quantize(cash_value + investment_value),
            cash_value=quantize(cash_value),
            investment_value=quantize(investment_value),
            accounts=accounts,
        )

    def get_top_performers(self, username: str, limit: int = 5) -> TopPerformers:
        summary = self.get_portfolio_summary(username)
        holdings = [h for account in summary.accounts for h in account.holdings]
        return rank_performers(holdings, limit)

    def record_snapshot(self, username: str, at: Optional[datetime] = None) -> PortfolioHistory:
        """Store today's valuation; a second call on the same day overwrites it."""
        summary = self.get_portfolio_summary(username)
        snapshot_date = (at or self.clock()).date()
        row, is_new = self.history_repo.upsert_snapshot(summary.id, snapshot_date, {
            "total_value": to_decimal(summary.total_value),
            "cash_value": to_decimal(summary.cash_value),
            "investment_value": to_decimal(summary.investment_value),
        })
        logger.info(f"{'Recorded' if is_new else 'Updated'} snapshot of {username} for {snapshot_date}")
        return row

    def get_portfolio_history(self, username: str, days: int = 30) -> List[PortfolioHistory]:
        portfolio = self.accounts.get_portfolio(username)
        return self.history_repo.get_recent(portfolio.id, days)

    def refresh_portfolio_prices(self, username: str, update_history: bool = False) -> List[BatchResult]:
        self.accounts.get_portfolio(username)
        tickers = self.holding_repo.get_held_tickers(username)
        return self.market_data.update_asset_prices(tickers, update_history=update_history)

    def refresh_all_held_assets(self, update_history: bool = True) -> List[BatchResult]:
        """Refresh every asset anyone holds."""
        tickers = self.holding_repo.get_held_tickers()
        if not tickers:
            logger.info("No held assets to refresh")
            return []
        return self.market_data.update_asset_prices(tickers, update_history=update_history)

    def _refresh_stale_prices(self, username: str) -> None:
        holdings = self.holding_repo.get_by_username(username)
        stale = sorted({
            h.asset.ticker for h in holdings
            if not self.market_data.is_price_fresh(h.asset)
        })
        if not stale:
            return

        logger.info(f"Updating prices for {len(stale)} stale assets: {', '.join(stale)}")
        results = self.market_data.update_asset_prices(stale, update_history=False)
        for result in results:
            if not result.success:
                logger.warning(f"Using cached price for {result.ticker}: {result.error}")
        if any(r.success for r in results):
            clear_price_caches()
