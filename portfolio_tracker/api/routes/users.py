from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from portfolio_tracker.api.dependencies import get_accounts_service
from portfolio_tracker.core.exceptions import PortfolioError
from portfolio_tracker.core.logger import logger
from portfolio_tracker.schemas.users import AccountCreate, AccountOut, UserCreate, UserOut
from portfolio_tracker.services.accounts_service import AccountsService

router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, service: AccountsService = Depends(get_accounts_service)):
    try:
        return service.create_user(payload.username, payload.email, payload.portfolio_name, payload.currency)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"create_user failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to create user")


@router.get("/{username}", response_model=UserOut)
def get_user(username: str, service: AccountsService = Depends(get_accounts_service)):
    try:
        return service.get_user(username)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"get_user failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to get user")


@router.post("/{username}/accounts", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(username: str, payload: AccountCreate, service: AccountsService = Depends(get_accounts_service)):
    try:
        return service.create_account(
            username,
            payload.institution_name,
            payload.account_name,
            payload.account_type,
            payload.balance_current,
        )
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"create_account failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to create account")


@router.get("/{username}/accounts", response_model=List[AccountOut])
def list_accounts(username: str, service: AccountsService = Depends(get_accounts_service)):
    try:
        return service.get_accounts(username)
    except PortfolioError:
        raise
    except Exception as e:
        logger.error(f"list_accounts failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list accounts")
