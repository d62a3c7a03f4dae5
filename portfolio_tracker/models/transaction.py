from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base
from portfolio_tracker.models.enums import TransactionType
from portfolio_tracker.utils.datetime_utils import utcnow


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_type = Column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e], name="transaction_type"),
        nullable=False,
    )
    transaction_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    quantity = Column(Numeric(20, 8), nullable=True)
    price_per_unit = Column(Numeric(20, 8), nullable=True)
    total_amount = Column(Numeric(20, 8), nullable=False)
    description = Column(String, nullable=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=True, index=True)

    account = relationship("Account", back_populates="transactions")
    asset = relationship("Asset", back_populates="transactions")
