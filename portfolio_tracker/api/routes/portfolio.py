from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from portfolio_tracker.api.dependencies import get_portfolio_service
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import clear_price_caches
from portfolio_tracker.schemas.market_data import BatchResult
from portfolio_tracker.schemas.portfolio import PortfolioHistoryOut, PortfolioSummary, TopPerformers
from portfolio_tracker.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get("/{username}", response_model=PortfolioSummary)
def get_portfolio(username: str, service: PortfolioService = Depends(get_portfolio_service)):
    """Current valuation of the user's portfolio; stale prices are refreshed first."""
    try:
        return service.get_portfolio_summary(username)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_portfolio failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get portfolio")


@router.get("/{username}/top-performers", response_model=TopPerformers)
def get_top_performers(
        username: str,
        limit: int = Query(5, ge=1, le=50),
        service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        return service.get_top_performers(username, limit)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_top_performers failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get top performers")


@router.get("/{username}/history", response_model=List[PortfolioHistoryOut])
def get_history(
        username: str,
        days: int = Query(30, ge=1),
        service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        return service.get_portfolio_history(username, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_portfolio_history failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get portfolio history")


@router.post("/{username}/snapshot", response_model=PortfolioHistoryOut)
def record_snapshot(username: str, service: PortfolioService = Depends(get_portfolio_service)):
    try:
        return service.record_snapshot(username)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"record_snapshot failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to record snapshot")


@router.post("/{username}/refresh-prices", response_model=List[BatchResult])
def refresh_prices(
        username: str,
        update_history: bool = False,
        service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        results = service.refresh_portfolio_prices(username, update_history)
        clear_price_caches()
        return results
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"refresh_prices failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to refresh prices")
