from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base
from portfolio_tracker.utils.datetime_utils import utcnow


class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="portfolio")
    accounts = relationship(
        "Account", back_populates="portfolio", order_by="Account.id", cascade="all, delete-orphan"
    )
    history = relationship("PortfolioHistory", back_populates="portfolio", cascade="all, delete-orphan")
