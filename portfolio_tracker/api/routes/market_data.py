from typing import List

from fastapi import APIRouter, Depends, HTTPException

from portfolio_tracker.api.dependencies import get_market_data
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import clear_price_caches
from portfolio_tracker.schemas.market_data import (
    AssetUpsertOut,
    BatchResult,
    DetailedQuote,
    Quote,
    TickersRequest,
    UpdatePricesRequest,
    UpsertAssetRequest,
)
from portfolio_tracker.services.market_data import MarketDataService

router = APIRouter()


@router.get("/quote/{ticker}", response_model=Quote)
def get_quote(ticker: str, service: MarketDataService = Depends(get_market_data)):
    """Quote served from the cached asset row while it is fresh."""
    try:
        return service.get_asset_data(ticker)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_quote failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get quote")


@router.get("/quote/{ticker}/detailed", response_model=DetailedQuote)
def get_detailed_quote(ticker: str, service: MarketDataService = Depends(get_market_data)):
    try:
        return service.get_detailed_asset_data(ticker, service.get_cached_asset(ticker))
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_detailed_quote failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get detailed quote")


@router.post("/quotes", response_model=List[Quote])
def get_quotes(payload: TickersRequest, service: MarketDataService = Depends(get_market_data)):
    try:
        return service.get_batch_quotes(payload.tickers)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_quotes failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get quotes")


@router.get("/validate/{ticker}")
def validate_ticker(ticker: str, service: MarketDataService = Depends(get_market_data)):
    try:
        return {"ticker": ticker.upper(), "valid": service.validate_ticker(ticker)}
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"validate_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to validate ticker")


@router.post("/upsert", response_model=AssetUpsertOut)
def upsert_asset(payload: UpsertAssetRequest, service: MarketDataService = Depends(get_market_data)):
    try:
        result = service.upsert_asset(payload.ticker)
        clear_price_caches()
        asset = result.asset
        return AssetUpsertOut(
            id=asset.id,
            ticker=asset.ticker,
            name=asset.name,
            current_price=asset.current_price,
            percent_change=asset.percent_change,
            price_updated_at=asset.price_updated_at,
            history_updated=result.history_updated,
            history_created=result.history_created,
        )
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"upsert_asset failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to upsert asset")


@router.post("/update-prices", response_model=List[BatchResult])
def update_prices(payload: UpdatePricesRequest, service: MarketDataService = Depends(get_market_data)):
    try:
        results = service.update_asset_prices(payload.tickers, update_history=payload.update_history)
        clear_price_caches()
        return results
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"update_prices failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to update prices")
