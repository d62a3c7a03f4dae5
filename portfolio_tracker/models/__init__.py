from portfolio_tracker.models.enums import AssetType, AccountType, TransactionType
from portfolio_tracker.models.user import User
from portfolio_tracker.models.portfolio import Portfolio
from portfolio_tracker.models.account import Account
from portfolio_tracker.models.asset import Asset
from portfolio_tracker.models.asset_history import AssetHistory
from portfolio_tracker.models.holding import Holding
from portfolio_tracker.models.transaction import Transaction
from portfolio_tracker.models.portfolio_history import PortfolioHistory

__all__ = [
    "AssetType",
    "AccountType",
    "TransactionType",
    "User",
    "Portfolio",
    "Account",
    "Asset",
    "AssetHistory",
    "Holding",
    "Transaction",
    "PortfolioHistory",
]
