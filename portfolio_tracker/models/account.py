from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base
from portfolio_tracker.models.enums import AccountType


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True)
    institution_name = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    account_type = Column(
        Enum(AccountType, values_callable=lambda e: [m.value for m in e], name="account_type"),
        nullable=False,
        default=AccountType.INVESTMENT,
    )
    balance_current = Column(Numeric(20, 8), nullable=False, default=0)
    balance_updated_at = Column(DateTime, nullable=True)

    portfolio = relationship("Portfolio", back_populates="accounts")
    holdings = relationship("Holding", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
