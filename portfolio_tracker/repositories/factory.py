from typing import Dict, Type

from sqlalchemy.orm import Session

from portfolio_tracker.repositories.accounts import AccountRepository, PortfolioRepository, UserRepository
from portfolio_tracker.repositories.asset_history import AssetHistoryRepository
from portfolio_tracker.repositories.assets import AssetRepository
from portfolio_tracker.repositories.base import BaseRepository
from portfolio_tracker.repositories.holdings import HoldingRepository
from portfolio_tracker.repositories.portfolio_history import PortfolioHistoryRepository
from portfolio_tracker.repositories.transactions import TransactionRepository


class RepositoryFactory:
    """
    Hands out one repository of each kind per session. They all share the
    factory's session, so writes through different repositories can join one
    unit of work.
    """

    def __init__(self, db: Session):
        self.db = db
        self._instances: Dict[Type[BaseRepository], BaseRepository] = {}

    def _get(self, repository_class):
        if repository_class not in self._instances:
            self._instances[repository_class] = repository_class(self.db)
        return self._instances[repository_class]

    def get_user_repository(self) -> UserRepository:
        return self._get(UserRepository)

    def get_portfolio_repository(self) -> PortfolioRepository:
        return self._get(PortfolioRepository)

    def get_account_repository(self) -> AccountRepository:
        return self._get(AccountRepository)

    def get_asset_repository(self) -> AssetRepository:
        return self._get(AssetRepository)

    def get_asset_history_repository(self) -> AssetHistoryRepository:
        return self._get(AssetHistoryRepository)

    def get_holding_repository(self) -> HoldingRepository:
        return self._get(HoldingRepository)

    def get_transaction_repository(self) -> TransactionRepository:
        return self._get(TransactionRepository)

    def get_portfolio_history_repository(self) -> PortfolioHistoryRepository:
        return self._get(PortfolioHistoryRepository)
