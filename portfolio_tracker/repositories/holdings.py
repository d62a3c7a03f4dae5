from typing import List, Optional

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from portfolio_tracker.models import Holding, Account, Asset, Portfolio, User
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
import logging

logger = logging.getLogger(__name__)


class HoldingRepository(BaseRepository[Holding]):
    def __init__(self, db: Session):
        super().__init__(db, Holding)

    def get_for_account_asset(
            self,
            account_id: int,
            asset_id: int,
            for_update: bool = False,
    ) -> Optional[Holding]:
        """
        Get the holding of an asset in an account. With for_update the row is
        locked until the surrounding transaction ends.
        """
        try:
            query = self.db.query(Holding).filter(
                Holding.account_id == account_id,
                Holding.asset_id == asset_id,
            )
            if for_update:
                query = query.with_for_update().populate_existing()
            return query.one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting holding for account {account_id} asset {asset_id}: {e}")
            raise RepositoryError("Failed to get holding") from e

    def get_by_account(self, account_id: int) -> List[Holding]:
        try:
            return (
                self.db.query(Holding)
                .options(joinedload(Holding.asset))
                .filter(Holding.account_id == account_id)
                .order_by(Holding.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting holdings of account {account_id}: {e}")
            raise RepositoryError("Failed to get holdings") from e

    def get_by_username(self, username: str) -> List[Holding]:
        """
        Get every holding across the accounts of a user's portfolio.
        """
        try:
            return (
                self.db.query(Holding)
                .join(Account, Holding.account_id == Account.id)
                .join(Portfolio, Account.portfolio_id == Portfolio.id)
                .join(User, Portfolio.user_id == User.id)
                .options(joinedload(Holding.asset))
                .filter(User.username == username)
                .order_by(Account.id, Holding.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting holdings of user {username}: {e}")
            raise RepositoryError("Failed to get holdings") from e

    def get_for_account_ticker(self, account_id: int, ticker: str) -> Optional[Holding]:
        try:
            return (
                self.db.query(Holding)
                .join(Asset, Holding.asset_id == Asset.id)
                .filter(Holding.account_id == account_id, Asset.ticker == ticker.upper())
                .one_or_none()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting holding of {ticker} in account {account_id}: {e}")
            raise RepositoryError("Failed to get holding") from e

    def get_held_tickers(self, username: Optional[str] = None) -> List[str]:
        """
        Distinct tickers with an open holding, optionally for one user.
        """
        try:
            query = self.db.query(Asset.ticker).join(Holding, Holding.asset_id == Asset.id)
            if username:
                query = (
                    query.join(Account, Holding.account_id == Account.id)
                    .join(Portfolio, Account.portfolio_id == Portfolio.id)
                    .join(User, Portfolio.user_id == User.id)
                    .filter(User.username == username)
                )
            return [row.ticker for row in query.distinct().order_by(Asset.ticker).all()]
        except SQLAlchemyError as e:
            logger.error(f"Error getting held tickers: {e}")
            raise RepositoryError("Failed to get held tickers") from e

    def remove(self, holding: Holding) -> None:
        """Delete an already loaded holding."""
        try:
            self.db.delete(holding)
            self._commit()
        except SQLAlchemyError as e:
            self._rollback()
            logger.error(f"Error deleting holding {holding.id}: {e}")
            raise RepositoryError("Failed to delete holding") from e
