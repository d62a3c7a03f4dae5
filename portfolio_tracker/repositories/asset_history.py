from typing import List, Dict, Any, Optional, Tuple
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from portfolio_tracker.models import AssetHistory
from portfolio_tracker.repositories.base import BaseRepository, RepositoryError
from portfolio_tracker.utils.datetime_utils import day_bounds
from portfolio_tracker.utils.decimal_utils import to_decimal
import logging

logger = logging.getLogger(__name__)

OHLCV_FIELDS = ("open", "high", "low", "close", "volume")


class AssetHistoryRepository(BaseRepository[AssetHistory]):
    def __init__(self, db: Session):
        super().__init__(db, AssetHistory)

    def get_for_day(self, asset_id: int, at: datetime) -> Optional[AssetHistory]:
        """
        Get the history row of an asset inside the calendar day containing `at`.
        """
        start, end = day_bounds(at)
        try:
            return (
                self.db.query(AssetHistory)
                .filter(
                    AssetHistory.asset_id == asset_id,
                    AssetHistory.date >= start,
                    AssetHistory.date < end,
                )
                .order_by(AssetHistory.date)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting history of asset {asset_id} for {start.date()}: {e}")
            raise RepositoryError("Failed to get asset history") from e

    def upsert_for_day(
            self,
            asset_id: int,
            ohlcv: Dict[str, Any],
            at: datetime,
    ) -> Tuple[AssetHistory, bool]:
        """
        Update the asset's row for the calendar day of `at`, or insert one
        stamped with `at`. Returns (record, is_new).

        Missing volume is kept as None.
        """
        values = {
            "open": to_decimal(ohlcv.get("open")),
            "high": to_decimal(ohlcv.get("high")),
            "low": to_decimal(ohlcv.get("low")),
            "close": to_decimal(ohlcv.get("close")),
            "volume": ohlcv.get("volume"),
        }

        existing = self.get_for_day(asset_id, at)
        if existing:
            record = self.update_obj(existing, values)
            logger.debug(f"Updated existing history record for asset {asset_id} on {at.date()}")
            return record, False

        record = self.create({"asset_id": asset_id, "date": at, **values})
        logger.debug(f"Created new history record for asset {asset_id} on {at.date()}")
        return record, True

    def get_history(
            self,
            asset_id: int,
            date_from: Optional[datetime] = None,
            date_to: Optional[datetime] = None,
            limit: Optional[int] = None,
            offset: Optional[int] = None,
    ) -> List[AssetHistory]:
        """
        Get history rows of an asset, newest first, within an optional range.
        """
        try:
            query = self._range_query(asset_id, date_from, date_to).order_by(desc(AssetHistory.date))
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting history of asset {asset_id}: {e}")
            raise RepositoryError("Failed to get asset history") from e

    def count_history(
            self,
            asset_id: int,
            date_from: Optional[datetime] = None,
            date_to: Optional[datetime] = None,
    ) -> int:
        try:
            return self._range_query(asset_id, date_from, date_to).count()
        except SQLAlchemyError as e:
            logger.error(f"Error counting history of asset {asset_id}: {e}")
            raise RepositoryError("Failed to count asset history") from e

    def get_latest(self, asset_id: int) -> Optional[AssetHistory]:
        """
        Get the most recent history record of an asset.
        """
        try:
            return (
                self.db.query(AssetHistory)
                .filter(AssetHistory.asset_id == asset_id)
                .order_by(desc(AssetHistory.date))
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting latest history of asset {asset_id}: {e}")
            raise RepositoryError("Failed to get latest asset history") from e

    def _range_query(self, asset_id: int, date_from: Optional[datetime], date_to: Optional[datetime]):
        query = self.db.query(AssetHistory).filter(AssetHistory.asset_id == asset_id)
        if date_from:
            query = query.filter(AssetHistory.date >= date_from)
        if date_to:
            query = query.filter(AssetHistory.date <= date_to)
        return query
