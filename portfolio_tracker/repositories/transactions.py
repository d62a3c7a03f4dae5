from typing import List, Optional
from datetime import datetime

from sqlalchemy.orm import joinedload, Session, noload
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import desc
from portfolio_tracker.models import Transaction, Account, Portfolio, User
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
import logging

logger = logging.getLogger(__name__)


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self, db: Session):
        super().__init__(db, Transaction)

    def get_by_filters(
            self,
            account_id: Optional[int] = None,
            transaction_type: Optional[str] = None,
            date_from: Optional[datetime] = None,
            date_to: Optional[datetime] = None,
            include_asset: bool = False,
            **kwargs
    ) -> List[Transaction]:
        """
        Override base get_by_filters to handle Transaction-specific filtering logic.
        Newest transactions first.
        """
        try:
            query = self.db.query(Transaction)

            if include_asset:
                query = query.options(joinedload(Transaction.asset))
            else:
                query = query.options(noload(Transaction.asset))

            if account_id is not None:
                query = query.filter(Transaction.account_id == account_id)

            if transaction_type:
                query = query.filter(Transaction.transaction_type == transaction_type)

            if date_from:
                query = query.filter(Transaction.transaction_date >= date_from)

            if date_to:
                query = query.filter(Transaction.transaction_date <= date_to)

            for key, value in kwargs.items():
                if hasattr(Transaction, key) and value is not None:
                    query = query.filter(getattr(Transaction, key) == value)

            return query.order_by(desc(Transaction.transaction_date), desc(Transaction.id)).all()

        except SQLAlchemyError as e:
            logger.error(f"Error filtering transactions: {e}")
            raise RepositoryError("Failed to filter transactions") from e

    def get_by_username(
            self,
            username: str,
            date_from: Optional[datetime] = None,
    ) -> List[Transaction]:
        """
        Get the transactions of every account in a user's portfolio, newest first.
        """
        try:
            query = (
                self.db.query(Transaction)
                .join(Account, Transaction.account_id == Account.id)
                .join(Portfolio, Account.portfolio_id == Portfolio.id)
                .join(User, Portfolio.user_id == User.id)
                .options(joinedload(Transaction.asset))
                .filter(User.username == username)
            )
            if date_from:
                query = query.filter(Transaction.transaction_date >= date_from)
            return query.order_by(desc(Transaction.transaction_date), desc(Transaction.id)).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting transactions of user {username}: {e}")
            raise RepositoryError(f"Failed to get transactions of user {username}") from e
