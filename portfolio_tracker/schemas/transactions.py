from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.models.enums import TransactionType


class TransactionCreate(BaseModel):
    account_id: int
    transaction_type: TransactionType
    total_amount: float = Field(gt=0)
    transaction_date: Optional[datetime] = None
    quantity: Optional[float] = None
    price_per_unit: Optional[float] = None
    description: Optional[str] = None
    asset_id: Optional[int] = None


class TransactionOut(BaseModel):
    id: int
    account_id: int
    transaction_type: TransactionType
    transaction_date: datetime
    quantity: float | None
    price_per_unit: float | None
    total_amount: float
    description: str | None
    asset_id: int | None

    model_config = ConfigDict(from_attributes=True)


class CashflowSummary(BaseModel):
    period: str
    income: float
    spending: float
    net_cashflow: float
    transactions: List[TransactionOut]


class CashflowBucket(BaseModel):
    income: float
    spending: float
    net_cashflow: float
    count: int


class CashflowByAssetType(BaseModel):
    period: str
    summary: CashflowSummary
    by_asset_type: Dict[str, CashflowBucket]


class CountVolume(BaseModel):
    count: int
    volume: float


class TransactionStats(BaseModel):
    total_transactions: int
    total_volume: float
    by_type: Dict[str, CountVolume]
    by_asset: Dict[str, CountVolume]
