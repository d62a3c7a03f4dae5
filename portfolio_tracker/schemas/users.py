from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.models.enums import AccountType


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: Optional[str] = None
    portfolio_name: Optional[str] = None
    currency: str = "USD"


class AccountCreate(BaseModel):
    institution_name: str
    account_name: str
    account_type: AccountType = AccountType.INVESTMENT
    balance_current: float = 0


class AccountOut(BaseModel):
    id: int
    portfolio_id: int
    institution_name: str
    account_name: str
    account_type: AccountType
    balance_current: float
    balance_updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class PortfolioOut(BaseModel):
    id: int
    name: str
    currency: str
    accounts: List[AccountOut] = []

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    id: int
    username: str
    email: str | None
    created_at: datetime
    portfolio: Optional[PortfolioOut] = None

    model_config = ConfigDict(from_attributes=True)
