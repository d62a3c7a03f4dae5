from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.models.enums import AssetType


class AssetCreate(BaseModel):
    ticker: str
    name: Optional[str] = None
    asset_type: Optional[AssetType] = None
    price: Optional[float] = Field(default=None, gt=0)


class AssetBatchCreate(BaseModel):
    assets: List[AssetCreate]


class AssetUpdate(BaseModel):
    name: Optional[str] = None
    asset_type: Optional[AssetType] = None
    price: Optional[float] = Field(default=None, gt=0)


class AssetOut(BaseModel):
    id: int
    ticker: str
    name: str
    asset_type: AssetType
    current_price: float | None
    percent_change: float | None
    price_updated_at: datetime | None
    last_updated: datetime | None
    currency: str

    model_config = ConfigDict(from_attributes=True)


class AssetHistoryOut(BaseModel):
    id: int
    asset_id: int
    date: datetime
    open: float | None
    high: float | None
    low: float | None
    close: float
    volume: int | None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AssetHistoryPage(BaseModel):
    data: List[AssetHistoryOut]
    pagination: Pagination


class AssetHistoryStats(BaseModel):
    period: str
    record_count: int
    latest_price: float
    highest_price: float
    lowest_price: float
    average_price: float
    total_volume: Optional[int] = None
    average_volume: Optional[float] = None
    price_change: float
    price_change_percent: Optional[float] = None


class AssetHistoryStatsOut(BaseModel):
    asset_id: int
    stats: AssetHistoryStats
    first_date: datetime
    last_date: datetime


class PriceRefreshOut(BaseModel):
    asset: AssetOut
    history: AssetHistoryOut
    history_created: bool
    timestamp: datetime
