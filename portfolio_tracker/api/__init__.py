from fastapi import APIRouter

from .routes.assets import router as assets_router
from .routes.holdings import router as holdings_router
from .routes.market_data import router as market_data_router
from .routes.portfolio import router as portfolio_router
from .routes.transactions import router as transactions_router
from .routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(assets_router, prefix="/assets", tags=["Assets"])
api_router.include_router(holdings_router, prefix="/holdings", tags=["Holdings"])
api_router.include_router(market_data_router, prefix="/market-data", tags=["Market data"])
api_router.include_router(portfolio_router, prefix="/portfolio", tags=["Portfolio"])
api_router.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
