from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_tracker.api.dependencies import get_assets_service
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import CacheManager, clear_price_caches
from portfolio_tracker.schemas.assets import (
    AssetBatchCreate,
    AssetCreate,
    AssetHistoryOut,
    AssetHistoryPage,
    AssetHistoryStatsOut,
    AssetOut,
    AssetUpdate,
    PriceRefreshOut,
)
from portfolio_tracker.services.assets_service import AssetsService

router = APIRouter()
cache = CacheManager(prefix="assets")


@router.post("/", response_model=AssetOut, status_code=status.HTTP_201_CREATED)
def create_asset(payload: AssetCreate, service: AssetsService = Depends(get_assets_service)):
    try:
        asset = service.create_asset(payload.ticker, payload.name, payload.asset_type, payload.price)
        cache.clear()
        return asset
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"create_asset failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to create asset")


@router.post("/batch", response_model=List[AssetOut], status_code=status.HTTP_201_CREATED)
def create_assets(payload: AssetBatchCreate, service: AssetsService = Depends(get_assets_service)):
    """Create several assets; tickers that already exist are skipped."""
    try:
        created = service.create_assets(payload.assets)
        cache.clear()
        return created
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"create_assets failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to create assets")


@router.get("/", response_model=List[AssetOut])
def list_assets(
        page: int = Query(1, ge=1),
        limit: int = 50,
        service: AssetsService = Depends(get_assets_service),
):
    """Return one page of the asset catalogue."""
    try:
        cached = cache.get("page", page, limit)
        if cached:
            return [AssetOut.model_validate(r) for r in cached]

        rows = service.find_batch(page, limit)
        records = [AssetOut.model_validate(r).model_dump(mode="json") for r in rows]
        cache.set(records, "page", page, limit)
        return records
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_assets failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list assets")


@router.get("/search", response_model=List[AssetOut])
def search_assets(q: str, service: AssetsService = Depends(get_assets_service)):
    try:
        return service.search(q)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"search_assets failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to search assets")


@router.get("/ticker/{ticker}", response_model=AssetOut)
def get_asset_by_ticker(ticker: str, service: AssetsService = Depends(get_assets_service)):
    try:
        return service.find_by_ticker(ticker)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_asset_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset")


@router.get("/ticker/{ticker}/history", response_model=AssetHistoryPage)
def get_history_by_ticker(
        ticker: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = Query(1, ge=1),
        limit: int = 50,
        service: AssetsService = Depends(get_assets_service),
):
    try:
        return service.get_asset_history_by_ticker(
            ticker, start_date=start_date, end_date=end_date, page=page, limit=limit
        )
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_history_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset history")


@router.get("/ticker/{ticker}/history/latest", response_model=AssetHistoryOut)
def get_latest_history_by_ticker(ticker: str, service: AssetsService = Depends(get_assets_service)):
    try:
        return service.get_latest_asset_history_by_ticker(ticker)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_latest_history_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get latest asset history")


@router.get("/ticker/{ticker}/history/stats", response_model=AssetHistoryStatsOut)
def get_history_stats_by_ticker(
        ticker: str,
        days: int = Query(30, ge=1),
        service: AssetsService = Depends(get_assets_service),
):
    try:
        return service.get_asset_history_stats_by_ticker(ticker, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_history_stats_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset history stats")


@router.post("/ticker/{ticker}/refresh-price", response_model=PriceRefreshOut)
def refresh_price_by_ticker(ticker: str, service: AssetsService = Depends(get_assets_service)):
    try:
        result = service.refresh_price_by_ticker(ticker)
        clear_price_caches()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"refresh_price_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to refresh price")


@router.get("/{asset_id}", response_model=AssetOut)
def get_asset(asset_id: int, service: AssetsService = Depends(get_assets_service)):
    try:
        return service.find_one(asset_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_asset failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset")


@router.patch("/{asset_id}", response_model=AssetOut)
def update_asset(asset_id: int, payload: AssetUpdate, service: AssetsService = Depends(get_assets_service)):
    try:
        asset = service.update(asset_id, payload.name, payload.asset_type, payload.price)
        clear_price_caches()
        return asset
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"update_asset failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to update asset")


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(asset_id: int, service: AssetsService = Depends(get_assets_service)):
    try:
        service.remove(asset_id)
        cache.clear()
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"delete_asset failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to delete asset")


@router.get("/{asset_id}/history", response_model=AssetHistoryPage)
def get_history(
        asset_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = Query(1, ge=1),
        limit: int = 50,
        service: AssetsService = Depends(get_assets_service),
):
    try:
        return service.get_asset_history(asset_id, start_date, end_date, page, limit)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_history failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset history")


@router.get("/{asset_id}/history/latest", response_model=AssetHistoryOut)
def get_latest_history(asset_id: int, service: AssetsService = Depends(get_assets_service)):
    try:
        return service.get_latest_asset_history(asset_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_latest_history failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get latest asset history")


@router.get("/{asset_id}/history/stats", response_model=AssetHistoryStatsOut)
def get_history_stats(
        asset_id: int,
        days: int = Query(30, ge=1),
        service: AssetsService = Depends(get_assets_service),
):
    try:
        return service.get_asset_history_stats(asset_id, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_history_stats failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get asset history stats")


@router.post("/{asset_id}/refresh-price", response_model=PriceRefreshOut)
def refresh_price(asset_id: int, service: AssetsService = Depends(get_assets_service)):
    try:
        result = service.refresh_price(asset_id)
        clear_price_caches()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"refresh_price failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to refresh price")
