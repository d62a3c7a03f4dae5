from sqlalchemy import Column, Integer, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base


class Holding(Base):
    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("account_id", "asset_id", name="uq_holding_account_asset"),
        CheckConstraint("quantity >= 0", name="ck_holding_quantity"),
        CheckConstraint("average_cost_basis >= 0", name="ck_holding_cost_basis"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    quantity = Column(Numeric(20, 8), nullable=False)
    average_cost_basis = Column(Numeric(20, 8), nullable=False)

    account = relationship("Account", back_populates="holdings")
    asset = relationship("Asset", back_populates="holdings")
