from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
    ticker: str
    name: str
    current_price: float
    percent_change: float
    currency: str


class DetailedQuote(Quote):
    open_price: Optional[float] = None
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[int] = None
    timestamp: Optional[int] = None

    def ohlcv(self) -> dict:
        return {
            "open": self.open_price,
            "high": self.high_price,
            "low": self.low_price,
            "close": self.current_price,
            "volume": self.volume,
        }


class TickersRequest(BaseModel):
    tickers: list[str] = Field(min_length=1)


class UpdatePricesRequest(TickersRequest):
    update_history: bool = False


class UpsertAssetRequest(BaseModel):
    ticker: str


class BatchResult(BaseModel):
    ticker: str
    success: bool
    asset_id: Optional[int] = None
    current_price: Optional[float] = None
    error: Optional[str] = None


class AssetUpsertOut(BaseModel):
    id: int
    ticker: str
    name: str
    current_price: Optional[float]
    percent_change: Optional[float]
    price_updated_at: Optional[datetime]
    history_updated: bool
    history_created: bool

    model_config = ConfigDict(from_attributes=True)
