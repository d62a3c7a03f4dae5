from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base
from portfolio_tracker.models.enums import AssetType


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    asset_type = Column(
        Enum(AssetType, values_callable=lambda e: [m.value for m in e], name="asset_type"),
        nullable=False,
        default=AssetType.STOCK,
    )
    current_price = Column(Numeric(20, 8), nullable=True)
    percent_change = Column(Numeric(20, 8), nullable=True)
    price_updated_at = Column(DateTime, nullable=True)
    last_updated = Column(DateTime, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")

    history = relationship(
        "AssetHistory", back_populates="asset", cascade="all, delete-orphan", passive_deletes=True
    )
    holdings = relationship("Holding", back_populates="asset")
    transactions = relationship("Transaction", back_populates="asset")
