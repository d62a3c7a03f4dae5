from sqlalchemy import Column, Integer, Numeric, DateTime, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base


class AssetHistory(Base):
    __tablename__ = "asset_history"
    __table_args__ = (
        Index("ix_asset_history_asset_date", "asset_id", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    date = Column(DateTime, nullable=False)
    open = Column(Numeric(20, 8), nullable=True)
    high = Column(Numeric(20, 8), nullable=True)
    low = Column(Numeric(20, 8), nullable=True)
    close = Column(Numeric(20, 8), nullable=False)
    # NULL means the provider did not report volume
    volume = Column(BigInteger, nullable=True)

    asset = relationship("Asset", back_populates="history")
