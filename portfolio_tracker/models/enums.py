from enum import Enum


class AssetType(str, Enum):
    STOCK = "stock"
    ETF = "etf"
    OPTION = "option"
    MUTUAL_FUND = "mutual_fund"
    CRYPTO = "crypto"

    @classmethod
    def infer(cls, ticker: str) -> "AssetType":
        """Best-effort guess from the ticker symbol; anything unrecognised is a stock."""
        symbol = ticker.upper()
        if "ETF" in symbol:
            return cls.ETF
        if "OPT" in symbol:
            return cls.OPTION
        return cls.STOCK


class AccountType(str, Enum):
    DEPOSITORY = "depository"
    INVESTMENT = "investment"
    CREDIT = "credit"
    LOAN = "loan"
    OTHER = "other"


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    INTEREST = "interest"

    @classmethod
    def income(cls):
        return [cls.DEPOSIT, cls.DIVIDEND, cls.INTEREST]

    @classmethod
    def trades(cls):
        return [cls.BUY, cls.SELL]
