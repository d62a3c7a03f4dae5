from fastapi import Depends
from sqlalchemy.orm import Session

from portfolio_tracker.core.db import get_db
from portfolio_tracker.repositories.factory import RepositoryFactory
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.services.assets_service import AssetsService
from portfolio_tracker.services.holdings_service import HoldingsService
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.transactions_service import TransactionsService


def get_factory(db: Session = Depends(get_db)) -> RepositoryFactory:
    return RepositoryFactory(db)


def get_market_data(factory: RepositoryFactory = Depends(get_factory)) -> MarketDataService:
    return MarketDataService(factory)


def get_accounts_service(factory: RepositoryFactory = Depends(get_factory)) -> AccountsService:
    return AccountsService(factory)


def get_assets_service(
        factory: RepositoryFactory = Depends(get_factory),
        market_data: MarketDataService = Depends(get_market_data),
) -> AssetsService:
    return AssetsService(factory, market_data=market_data)


def get_holdings_service(
        factory: RepositoryFactory = Depends(get_factory),
        market_data: MarketDataService = Depends(get_market_data),
) -> HoldingsService:
    return HoldingsService(factory, market_data=market_data)


def get_portfolio_service(
        factory: RepositoryFactory = Depends(get_factory),
        market_data: MarketDataService = Depends(get_market_data),
) -> PortfolioService:
    return PortfolioService(factory, market_data=market_data)


def get_transactions_service(factory: RepositoryFactory = Depends(get_factory)) -> TransactionsService:
    return TransactionsService(factory)
