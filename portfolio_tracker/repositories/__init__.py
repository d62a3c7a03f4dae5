from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
from portfolio_tracker.repositories.accounts import AccountRepository, PortfolioRepository, UserRepository
from portfolio_tracker.repositories.asset_history import AssetHistoryRepository
from portfolio_tracker.repositories.assets import AssetRepository
from portfolio_tracker.repositories.holdings import HoldingRepository
from portfolio_tracker.repositories.portfolio_history import PortfolioHistoryRepository
from portfolio_tracker.repositories.transactions import TransactionRepository
from portfolio_tracker.repositories.factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "AccountRepository",
    "PortfolioRepository",
    "UserRepository",
    "AssetHistoryRepository",
    "AssetRepository",
    "HoldingRepository",
    "PortfolioHistoryRepository",
    "TransactionRepository",
    "RepositoryFactory",
]
