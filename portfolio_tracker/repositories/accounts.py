from typing import List, Optional

from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError
from portfolio_tracker.models import User, Portfolio, Account
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_username(self, username: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.username == username).one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user {username}: {e}")
            raise RepositoryError(f"Failed to get user {username}") from e


class PortfolioRepository(BaseRepository[Portfolio]):
    def __init__(self, db: Session):
        super().__init__(db, Portfolio)

    def get_by_username(self, username: str) -> Optional[Portfolio]:
        """
        Get a user's portfolio with accounts and their holdings loaded.
        """
        try:
            return (
                self.db.query(Portfolio)
                .join(User, Portfolio.user_id == User.id)
                .options(selectinload(Portfolio.accounts).selectinload(Account.holdings))
                .filter(User.username == username)
                .one_or_none()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting portfolio of {username}: {e}")
            raise RepositoryError(f"Failed to get portfolio of {username}") from e


class AccountRepository(BaseRepository[Account]):
    def __init__(self, db: Session):
        super().__init__(db, Account)

    def get_by_portfolio(self, portfolio_id: int) -> List[Account]:
        try:
            return (
                self.db.query(Account)
                .filter(Account.portfolio_id == portfolio_id)
                .order_by(Account.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting accounts of portfolio {portfolio_id}: {e}")
            raise RepositoryError("Failed to get accounts") from e
