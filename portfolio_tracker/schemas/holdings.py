from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.schemas.assets import AssetOut
from portfolio_tracker.schemas.transactions import TransactionOut


class HoldingOut(BaseModel):
    id: int
    account_id: int
    asset_id: int
    quantity: float
    average_cost_basis: float
    asset: Optional[AssetOut] = None

    model_config = ConfigDict(from_attributes=True)


class BuyRequest(BaseModel):
    account_id: int
    asset_id: int
    quantity: float = Field(gt=0)
    price: float = Field(gt=0)
    transaction_date: Optional[datetime] = None
    description: Optional[str] = None


class SellRequest(BaseModel):
    account_id: int
    asset_id: int
    quantity: Optional[float] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, gt=0)


class HoldingSellRequest(BaseModel):
    quantity: Optional[float] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, gt=0)


class AddToPortfolioRequest(BaseModel):
    username: str
    ticker: str
    account_id: int
    quantity: float = Field(gt=0)
    price: Optional[float] = Field(default=None, gt=0)
    transaction_date: Optional[datetime] = None
    update_market_price: bool = False
    description: Optional[str] = None


class SellByTickerRequest(BaseModel):
    username: str
    ticker: str
    quantity: Optional[float] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, gt=0)
    account_id: Optional[int] = None


class BuyResult(BaseModel):
    message: str
    holding: HoldingOut
    transaction: TransactionOut
    price_used: float
    market_price_updated: bool = False


class SellResult(BaseModel):
    message: str
    ticker: str
    quantity: float
    sell_price: float
    total_amount: float
    is_full_sell: bool
    remaining_holding: Optional[HoldingOut] = None
    transaction: TransactionOut
