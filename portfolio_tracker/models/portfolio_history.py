from sqlalchemy import Column, Integer, Date, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base


class PortfolioHistory(Base):
    __tablename__ = "portfolio_history"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "snapshot_date", name="uq_portfolio_history_day"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False)
    snapshot_date = Column(Date, nullable=False)
    total_value = Column(Numeric(20, 8), nullable=False)
    cash_value = Column(Numeric(20, 8), nullable=False)
    investment_value = Column(Numeric(20, 8), nullable=False)

    portfolio = relationship("Portfolio", back_populates="history")
