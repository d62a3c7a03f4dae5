from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from portfolio_tracker.core.db import Base
from portfolio_tracker.utils.datetime_utils import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    portfolio = relationship("Portfolio", back_populates="user", uselist=False, cascade="all, delete-orphan")
