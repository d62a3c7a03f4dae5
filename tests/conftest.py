"""
tests/conftest.py
Pytest fixtures: in-memory database, fake quote provider, fake clock and Redis stub
"""

import fnmatch
import os
from datetime import datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "False")

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import portfolio_tracker.models  # noqa: F401
from portfolio_tracker.api.dependencies import get_factory, get_market_data
from portfolio_tracker.clients.yfinance_client import ProviderError
from portfolio_tracker.core.db import Base, get_db
from portfolio_tracker.models import AccountType, AssetType
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.services.market_data import MarketDataService


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeProvider:
    """Stands in for the yfinance client and records every call."""

    def __init__(self):
        self.quotes = {}
        self.names = {}
        self.quote_calls = []
        self.name_calls = []

    def set_quote(self, ticker, price, volume=1_000_000, percent_change=1.5, name=None):
        self.quotes[ticker] = {
            "ticker": ticker,
            "price": price,
            "open": price - 1,
            "high": price + 2,
            "low": price - 2,
            "previous_close": price - 1,
            "volume": volume,
            "currency": "USD",
            "timestamp": 1_700_000_000,
            "percent_change": percent_change,
        }
        if name:
            self.names[ticker] = name

    def fail(self, ticker):
        self.quotes.pop(ticker, None)

    def fetch_quote(self, ticker):
        self.quote_calls.append(ticker)
        if ticker not in self.quotes:
            raise ProviderError(f"No quote for {ticker}")
        return dict(self.quotes[ticker])

    def fetch_name(self, ticker):
        self.name_calls.append(ticker)
        if ticker not in self.names:
            raise ProviderError(f"No name for {ticker}")
        return self.names[ticker]


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)

    def scan_iter(self, pattern):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, pattern)]

    def ping(self):
        return True


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr("portfolio_tracker.managers.cache_manager.redis_client", client)
    return client


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def factory(db):
    return RepositoryFactory(db)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 14, 15, 0, 0))


@pytest.fixture
def provider():
    provider = FakeProvider()
    provider.set_quote("AAPL", 150.0, name="Apple Inc.")
    provider.set_quote("MSFT", 400.0, name="Microsoft Corporation")
    return provider


@pytest.fixture
def market_data(factory, provider, clock):
    return MarketDataService(
        factory,
        fetch_quote_fn=provider.fetch_quote,
        fetch_name_fn=provider.fetch_name,
        clock=clock,
    )


@pytest.fixture
def user(factory):
    service = AccountsService(factory)
    user = service.create_user("alice", email="alice@example.com")
    service.create_account("alice", "Broker", "Brokerage", AccountType.INVESTMENT, 1000)
    return user


@pytest.fixture
def account(factory, user):
    return AccountsService(factory).get_user_account("alice")


@pytest.fixture
def make_asset(factory, clock):
    """Insert an asset row with a price of the given age."""

    def _make(ticker="AAPL", price=150.0, age=timedelta(minutes=30), name=None, percent_change=0):
        updated = clock() - age
        return factory.get_asset_repository().create({
            "ticker": ticker,
            "name": name or f"{ticker} Inc.",
            "asset_type": AssetType.infer(ticker),
            "current_price": price,
            "percent_change": percent_change,
            "price_updated_at": updated,
            "last_updated": updated,
            "currency": "USD",
        })

    return _make


@pytest.fixture
def client(db, provider, clock):
    from portfolio_tracker.main import app

    def _get_db():
        yield db

    def _get_market_data(factory: RepositoryFactory = Depends(get_factory)):
        return MarketDataService(
            factory,
            fetch_quote_fn=provider.fetch_quote,
            fetch_name_fn=provider.fetch_name,
            clock=clock,
        )

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_market_data] = _get_market_data
    yield TestClient(app)
    app.dependency_overrides.clear()
