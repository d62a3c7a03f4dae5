from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from portfolio_tracker.models import Asset, Holding, Transaction
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
import logging

logger = logging.getLogger(__name__)


class AssetRepository(BaseRepository[Asset]):
    def __init__(self, db: Session):
        super().__init__(db, Asset)

    def get_by_ticker(self, ticker: str) -> Optional[Asset]:
        """Get the asset row for a ticker (case-insensitive on input)."""
        try:
            return (
                self.db.query(Asset)
                .filter(Asset.ticker == ticker.upper())
                .one_or_none()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting asset {ticker}: {e}")
            raise RepositoryError(f"Failed to get asset {ticker}") from e

    def get_page(self, page: int, limit: int) -> List[Asset]:
        return self.get_all(limit=limit, offset=(page - 1) * limit)

    def search(self, query: str) -> List[Asset]:
        """
        Get assets whose name or ticker contains the query.
        """
        try:
            pattern = f"%{query}%"
            return (
                self.db.query(Asset)
                .filter(or_(Asset.name.ilike(pattern), Asset.ticker.ilike(pattern)))
                .order_by(Asset.name)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error searching assets for '{query}': {e}")
            raise RepositoryError("Failed to search assets") from e

    def count_references(self, asset_id: int) -> int:
        """
        Number of holdings and transactions pointing at the asset.
        """
        try:
            holdings = self.db.query(Holding).filter(Holding.asset_id == asset_id).count()
            transactions = self.db.query(Transaction).filter(Transaction.asset_id == asset_id).count()
            return holdings + transactions
        except SQLAlchemyError as e:
            logger.error(f"Error counting references of asset {asset_id}: {e}")
            raise RepositoryError("Failed to count asset references") from e

