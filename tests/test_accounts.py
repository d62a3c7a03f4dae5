"""
tests/test_accounts.py
Test cases for users, portfolios and account resolution
"""

import pytest

from portfolio_tracker.core.exceptions import InvalidInput, NotFound
from portfolio_tracker.models import AccountType
from portfolio_tracker.services.accounts_service import AccountsService


@pytest.fixture
def service(factory):
    return AccountsService(factory)


def test_create_user_opens_portfolio(service):
    service.create_user("bob", portfolio_name="Retirement", currency="eur")

    portfolio = service.get_portfolio("bob")
    assert portfolio.name == "Retirement"
    assert portfolio.currency == "EUR"


def test_duplicate_username_rejected(service, user):
    with pytest.raises(InvalidInput):
        service.create_user("alice")


def test_unknown_user(service):
    with pytest.raises(NotFound):
        service.get_user("nobody")
    with pytest.raises(NotFound):
        service.get_portfolio("nobody")


def test_first_account_is_default(service, user):
    second = service.create_account("alice", "Bank", "Savings", AccountType.DEPOSITORY, 10)

    account = service.get_user_account("alice")

    assert account.account_name == "Brokerage"
    assert service.get_user_account("alice", second.id).id == second.id


def test_account_of_other_user_not_resolved(service, user):
    service.create_user("bob")
    foreign = service.create_account("bob", "Bank", "Checking")

    with pytest.raises(NotFound):
        service.get_user_account("alice", foreign.id)


def test_portfolio_without_accounts(service):
    service.create_user("bob")

    with pytest.raises(InvalidInput):
        service.get_user_account("bob")
