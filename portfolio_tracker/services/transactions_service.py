from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pandas as pd

from portfolio_tracker.core.exceptions import InvalidInput, NotFound
from portfolio_tracker.core.logger import logger
from portfolio_tracker.models import Transaction, TransactionType
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.schemas.transactions import (
    CashflowBucket,
    CashflowByAssetType,
    CashflowSummary,
    CountVolume,
    TransactionOut,
    TransactionStats,
)
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.utils.datetime_utils import to_naive_utc, utcnow
from portfolio_tracker.utils.decimal_utils import Number, to_decimal
from portfolio_tracker.utils.validation_utils import require_positive

CASH_LABEL = "cash"

TRANSACTION_COLUMNS = ["transaction_type", "amount", "is_income", "asset_type", "asset_name"]


def transactions_frame(transactions: List[Transaction]) -> pd.DataFrame:
    """
    One row per transaction with the fields the cashflow groupings need.
    Transactions without an asset are labelled as cash.
    """
    income_types = {t.value for t in TransactionType.income()}
    records = []
    for tx in transactions:
        tx_type = TransactionType(tx.transaction_type).value
        records.append({
            "transaction_type": tx_type,
            "amount": float(tx.total_amount),
            "is_income": tx_type in income_types,
            "asset_type": tx.asset.asset_type.value if tx.asset else CASH_LABEL,
            "asset_name": tx.asset.name if tx.asset else "Cash",
        })
    return pd.DataFrame(records, columns=TRANSACTION_COLUMNS)


def split_cashflow(df: pd.DataFrame) -> tuple:
    is_income = df["is_income"].astype(bool)
    income = float(df.loc[is_income, "amount"].sum())
    spending = float(df.loc[~is_income, "amount"].sum())
    return income, spending


def count_volume(df: pd.DataFrame, column: str) -> dict:
    grouped = df.groupby(column)["amount"].agg(["count", "sum"])
    return {
        str(key): CountVolume(count=int(row["count"]), volume=float(row["sum"]))
        for key, row in grouped.iterrows()
    }


class TransactionsService:
    """
    Cash ledger queries and manual cash movements. Buys and sells are only
    recorded by the holdings ledger; transactions are never edited.
    """

    def __init__(self, factory: RepositoryFactory, clock: Callable[[], datetime] = utcnow):
        self.factory = factory
        self.clock = clock
        self.accounts = AccountsService(factory)
        self.transaction_repo = factory.get_transaction_repository()
        self.asset_repo = factory.get_asset_repository()

    def create(
            self,
            account_id: int,
            transaction_type: TransactionType,
            total_amount: Number,
            transaction_date: Optional[datetime] = None,
            quantity: Optional[Number] = None,
            price_per_unit: Optional[Number] = None,
            description: Optional[str] = None,
            asset_id: Optional[int] = None,
    ) -> Transaction:
        tx_type = TransactionType(transaction_type)
        if tx_type in TransactionType.trades():
            raise InvalidInput(f"{tx_type.value} transactions are recorded through holdings")

        amount = require_positive(total_amount, "Total amount")
        self.accounts.get_account(account_id)
        if asset_id is not None and not self.asset_repo.get(asset_id):
            raise NotFound(f"Asset with ID {asset_id} not found")

        transaction = self.transaction_repo.create({
            "account_id": account_id,
            "transaction_type": tx_type,
            "transaction_date": to_naive_utc(transaction_date) if transaction_date else self.clock(),
            "quantity": to_decimal(quantity),
            "price_per_unit": to_decimal(price_per_unit),
            "total_amount": amount,
            "description": description,
            "asset_id": asset_id,
        })
        logger.info(f"Recorded {tx_type.value} of {amount} on account {account_id}")
        return transaction

    def find_all(self) -> List[Transaction]:
        return self.transaction_repo.get_by_filters(include_asset=True)

    def find_one(self, transaction_id: int) -> Transaction:
        transaction = self.transaction_repo.get(transaction_id)
        if not transaction:
            raise NotFound(f"Transaction with ID {transaction_id} not found")
        return transaction

    def find_by_account(self, account_id: int) -> List[Transaction]:
        self.accounts.get_account(account_id)
        return self.transaction_repo.get_by_filters(account_id=account_id, include_asset=True)

    def find_by_username(self, username: str) -> List[Transaction]:
        self.accounts.get_user(username)
        return self.transaction_repo.get_by_username(username)

    def get_cashflow_analysis(self, username: str, days: int = 30) -> CashflowSummary:
        """
        Deposits, dividends and interest count as income; every other
        transaction type counts as spending.
        """
        recent = self._recent(username, days)
        income, spending = split_cashflow(transactions_frame(recent))
        return CashflowSummary(
            period=f"Last {days} days",
            income=income,
            spending=spending,
            net_cashflow=income - spending,
            transactions=[TransactionOut.model_validate(t) for t in recent],
        )

    def get_cashflow_by_asset_type(self, username: str, days: int = 30) -> CashflowByAssetType:
        summary = self.get_cashflow_analysis(username, days)
        df = transactions_frame(self._recent(username, days))

        buckets = {}
        for asset_type, group in df.groupby("asset_type"):
            income, spending = split_cashflow(group)
            buckets[str(asset_type)] = CashflowBucket(
                income=income,
                spending=spending,
                net_cashflow=income - spending,
                count=len(group),
            )

        return CashflowByAssetType(period=summary.period, summary=summary, by_asset_type=buckets)

    def get_transaction_stats(self, username: str, days: int = 30) -> TransactionStats:
        df = transactions_frame(self._recent(username, days))
        return TransactionStats(
            total_transactions=len(df),
            total_volume=float(df["amount"].sum()),
            by_type=count_volume(df, "transaction_type"),
            by_asset=count_volume(df, "asset_name"),
        )

    def _recent(self, username: str, days: int) -> List[Transaction]:
        if days < 1:
            raise InvalidInput("days must be at least 1")
        self.accounts.get_user(username)
        since = self.clock() - timedelta(days=days)
        return self.transaction_repo.get_by_username(username, date_from=since)
