from typing import List, Dict, Any, Tuple
from datetime import date

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import desc
from portfolio_tracker.models import PortfolioHistory
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
import logging

logger = logging.getLogger(__name__)


class PortfolioHistoryRepository(BaseRepository[PortfolioHistory]):
    def __init__(self, db: Session):
        super().__init__(db, PortfolioHistory)

    def get_recent(self, portfolio_id: int, days: int = 30) -> List[PortfolioHistory]:
        """
        Get the last `days` snapshots of a portfolio in chronological order.
        """
        try:
            rows = (
                self.db.query(PortfolioHistory)
                .filter(PortfolioHistory.portfolio_id == portfolio_id)
                .order_by(desc(PortfolioHistory.snapshot_date))
                .limit(days)
                .all()
            )
            return list(reversed(rows))
        except SQLAlchemyError as e:
            logger.error(f"Error getting portfolio history for {portfolio_id}: {e}")
            raise RepositoryError("Failed to get portfolio history") from e

    def upsert_snapshot(
            self,
            portfolio_id: int,
            snapshot_date: date,
            values: Dict[str, Any],
    ) -> Tuple[PortfolioHistory, bool]:
        """
        One snapshot per portfolio per day: overwrite today's row or insert it.
        """
        try:
            existing = (
                self.db.query(PortfolioHistory)
                .filter(
                    PortfolioHistory.portfolio_id == portfolio_id,
                    PortfolioHistory.snapshot_date == snapshot_date,
                )
                .one_or_none()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error reading snapshot of portfolio {portfolio_id}: {e}")
            raise RepositoryError("Failed to read portfolio snapshot") from e

        if existing:
            return self.update_obj(existing, values), False
        return self.create({"portfolio_id": portfolio_id, "snapshot_date": snapshot_date, **values}), True
