from typing import List, Optional

from portfolio_tracker.core.db import unit_of_work
from portfolio_tracker.core.exceptions import InvalidInput, NotFound
from portfolio_tracker.core.logger import logger
from portfolio_tracker.models import Account, AccountType, Portfolio, User
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.utils.datetime_utils import utcnow
from portfolio_tracker.utils.decimal_utils import Number, to_decimal


class AccountsService:
    """Users, their single portfolio and its accounts."""

    def __init__(self, factory: RepositoryFactory):
        self.factory = factory
        self.db = factory.db
        self.user_repo = factory.get_user_repository()
        self.portfolio_repo = factory.get_portfolio_repository()
        self.account_repo = factory.get_account_repository()

    def create_user(
            self,
            username: str,
            email: Optional[str] = None,
            portfolio_name: Optional[str] = None,
            currency: str = "USD",
    ) -> User:
        """Create a user together with their portfolio."""
        if self.user_repo.get_by_username(username):
            raise InvalidInput(f"User {username} already exists")

        with unit_of_work(self.db):
            user = self.user_repo.create({"username": username, "email": email})
            self.portfolio_repo.create({
                "user_id": user.id,
                "name": portfolio_name or f"{username}'s portfolio",
                "currency": currency.upper(),
            })

        logger.info(f"Created user {username}")
        return user

    def get_user(self, username: str) -> User:
        user = self.user_repo.get_by_username(username)
        if not user:
            raise NotFound(f"User not found: {username}")
        return user

    def get_portfolio(self, username: str) -> Portfolio:
        portfolio = self.portfolio_repo.get_by_username(username)
        if not portfolio:
            raise NotFound(f"Portfolio not found for user: {username}")
        return portfolio

    def create_account(
            self,
            username: str,
            institution_name: str,
            account_name: str,
            account_type: AccountType = AccountType.INVESTMENT,
            balance_current: Number = 0,
    ) -> Account:
        portfolio = self.get_portfolio(username)
        account = self.account_repo.create({
            "portfolio_id": portfolio.id,
            "institution_name": institution_name,
            "account_name": account_name,
            "account_type": AccountType(account_type),
            "balance_current": to_decimal(balance_current),
            "balance_updated_at": utcnow(),
        })
        logger.info(f"Created {account.account_type.value} account {account.id} for {username}")
        return account

    def get_account(self, account_id: int) -> Account:
        account = self.account_repo.get(account_id)
        if not account:
            raise NotFound(f"Account with ID {account_id} not found")
        return account

    def get_accounts(self, username: str) -> List[Account]:
        return self.account_repo.get_by_portfolio(self.get_portfolio(username).id)

    def get_user_account(self, username: str, account_id: Optional[int] = None) -> Account:
        """
        Resolve an account of the user's portfolio: the given one, or the
        first account when no id is passed.
        """
        accounts = self.get_accounts(username)
        if not accounts:
            raise InvalidInput(f"No accounts found in portfolio of {username}")

        if account_id is None:
            return accounts[0]

        for account in accounts:
            if account.id == account_id:
                return account
        raise NotFound(f"Account {account_id} not found in portfolio of {username}")
