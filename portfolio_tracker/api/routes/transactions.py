from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_tracker.api.dependencies import get_transactions_service
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.schemas.transactions import (
    CashflowByAssetType,
    CashflowSummary,
    TransactionCreate,
    TransactionOut,
    TransactionStats,
)
from portfolio_tracker.services.transactions_service import TransactionsService

router = APIRouter()


@router.post("/", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(payload: TransactionCreate, service: TransactionsService = Depends(get_transactions_service)):
    """Record a cash movement; buys and sells go through /holdings."""
    try:
        return service.create(**payload.model_dump())
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"create_transaction failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to create transaction")


@router.get("/", response_model=List[TransactionOut])
def list_transactions(service: TransactionsService = Depends(get_transactions_service)):
    try:
        return service.find_all()
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_transactions failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list transactions")


@router.get("/account/{account_id}", response_model=List[TransactionOut])
def list_account_transactions(account_id: int, service: TransactionsService = Depends(get_transactions_service)):
    try:
        return service.find_by_account(account_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_account_transactions failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list transactions")


@router.get("/user/{username}", response_model=List[TransactionOut])
def list_user_transactions(username: str, service: TransactionsService = Depends(get_transactions_service)):
    try:
        return service.find_by_username(username)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_user_transactions failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list transactions")


@router.get("/user/{username}/cashflow", response_model=CashflowSummary)
def get_cashflow(
        username: str,
        days: int = Query(30, ge=1),
        service: TransactionsService = Depends(get_transactions_service),
):
    try:
        return service.get_cashflow_analysis(username, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_cashflow failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to analyse cashflow")


@router.get("/user/{username}/cashflow/by-asset-type", response_model=CashflowByAssetType)
def get_cashflow_by_asset_type(
        username: str,
        days: int = Query(30, ge=1),
        service: TransactionsService = Depends(get_transactions_service),
):
    try:
        return service.get_cashflow_by_asset_type(username, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_cashflow_by_asset_type failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to analyse cashflow")


@router.get("/user/{username}/stats", response_model=TransactionStats)
def get_stats(
        username: str,
        days: int = Query(30, ge=1),
        service: TransactionsService = Depends(get_transactions_service),
):
    try:
        return service.get_transaction_stats(username, days)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_transaction_stats failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get transaction stats")


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, service: TransactionsService = Depends(get_transactions_service)):
    try:
        return service.find_one(transaction_id)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_transaction failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get transaction")
