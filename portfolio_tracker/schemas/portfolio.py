from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class HoldingSummary(BaseModel):
    id: int
    ticker: str
    name: str
    asset_type: str
    quantity: float
    average_cost_basis: float
    current_price: Optional[float]
    market_value: float
    unrealized_gain_loss: float
    percent_change: float


class AccountSummary(BaseModel):
    id: int
    institution_name: str
    account_name: str
    account_type: str
    balance_current: float
    holdings: List[HoldingSummary]


class PortfolioSummary(BaseModel):
    id: int
    name: str
    currency: str
    total_value: float
    cash_value: float
    investment_value: float
    accounts: List[AccountSummary]


class TopPerformers(BaseModel):
    top_gainers: List[HoldingSummary]
    top_losers: List[HoldingSummary]


class PortfolioHistoryOut(BaseModel):
    snapshot_date: date
    total_value: float
    cash_value: float
    investment_value: float

    model_config = ConfigDict(from_attributes=True)
