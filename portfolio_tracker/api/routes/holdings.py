from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from portfolio_tracker.api.dependencies import get_holdings_service
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.managers.cache_manager import CacheManager
from portfolio_tracker.schemas.holdings import (
    AddToPortfolioRequest,
    BuyRequest,
    BuyResult,
    HoldingOut,
    HoldingSellRequest,
    SellByTickerRequest,
    SellRequest,
    SellResult,
)
from portfolio_tracker.services.holdings_service import HoldingsService

router = APIRouter()
cache = CacheManager(prefix="holdings")
assets_cache = CacheManager(prefix="assets")


def _invalidate():
    cache.clear()
    assets_cache.clear()


@router.get("/", response_model=List[HoldingOut])
def list_holdings(service: HoldingsService = Depends(get_holdings_service)):
    try:
        return service.find_all()
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_holdings failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list holdings")


@router.get("/account/{account_id}", response_model=List[HoldingOut])
def list_account_holdings(account_id: int, service: HoldingsService = Depends(get_holdings_service)):
    try:
        return service.find_by_account(account_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_account_holdings failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list holdings")


@router.get("/user/{username}", response_model=List[HoldingOut])
def list_user_holdings(username: str, service: HoldingsService = Depends(get_holdings_service)):
    """Return every holding across the user's accounts."""
    try:
        cached = cache.get("list", user=username)
        if cached:
            return [HoldingOut.model_validate(r) for r in cached]

        rows = service.find_by_username(username)
        records = [HoldingOut.model_validate(r).model_dump(mode="json") for r in rows]
        cache.set(records, "list", user=username)
        return records
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_user_holdings failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list holdings")


@router.post("/buy", response_model=HoldingOut, status_code=status.HTTP_201_CREATED)
def buy(payload: BuyRequest, service: HoldingsService = Depends(get_holdings_service)):
    try:
        holding = service.apply_buy(
            payload.account_id,
            payload.asset_id,
            payload.quantity,
            payload.price,
            payload.transaction_date,
            payload.description,
        )
        _invalidate()
        return holding
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"buy failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to buy")


@router.post("/sell", response_model=SellResult)
def sell(payload: SellRequest, service: HoldingsService = Depends(get_holdings_service)):
    try:
        result = service.apply_sell(payload.account_id, payload.asset_id, payload.quantity, payload.price)
        _invalidate()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"sell failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to sell")


@router.post("/add-to-portfolio", response_model=BuyResult, status_code=status.HTTP_201_CREATED)
def add_to_portfolio(payload: AddToPortfolioRequest, service: HoldingsService = Depends(get_holdings_service)):
    try:
        result = service.add_to_portfolio(
            username=payload.username,
            ticker=payload.ticker,
            account_id=payload.account_id,
            quantity=payload.quantity,
            price=payload.price,
            transaction_date=payload.transaction_date,
            update_market_price=payload.update_market_price,
            description=payload.description,
        )
        _invalidate()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"add_to_portfolio failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to add to portfolio")


@router.post("/sell-by-ticker", response_model=SellResult)
def sell_by_ticker(payload: SellByTickerRequest, service: HoldingsService = Depends(get_holdings_service)):
    try:
        result = service.sell_by_ticker(
            payload.username, payload.ticker, payload.quantity, payload.price, payload.account_id
        )
        _invalidate()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"sell_by_ticker failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to sell")


@router.get("/{holding_id}", response_model=HoldingOut)
def get_holding(holding_id: int, service: HoldingsService = Depends(get_holdings_service)):
    try:
        return service.find_one(holding_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_holding failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get holding")


@router.post("/{holding_id}/sell", response_model=SellResult)
def sell_holding(
        holding_id: int,
        payload: HoldingSellRequest,
        service: HoldingsService = Depends(get_holdings_service),
):
    try:
        result = service.sell_holding(holding_id, payload.quantity, payload.price)
        _invalidate()
        return result
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"sell_holding failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to sell holding")
