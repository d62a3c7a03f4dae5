from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from portfolio_tracker.core.db import unit_of_work
from portfolio_tracker.core.exceptions import (
    InsufficientQuantity,
    InvalidInput,
    NotFound,
    PriceUnavailable,
    UpstreamUnavailable,
)
from portfolio_tracker.core.logger import logger
from portfolio_tracker.models import Account, Asset, Holding, Transaction, TransactionType
from portfolio_tracker.repositories import RepositoryFactory
from portfolio_tracker.schemas.holdings import BuyResult, HoldingOut, SellResult
from portfolio_tracker.schemas.transactions import TransactionOut
from portfolio_tracker.services.accounts_service import AccountsService
from portfolio_tracker.services.market_data import MarketDataService
from portfolio_tracker.utils.datetime_utils import utcnow
from portfolio_tracker.utils.decimal_utils import Number, format_quantity, quantize, to_decimal
from portfolio_tracker.utils.validation_utils import normalize_ticker, require_positive


class HoldingsService:
    """
    Cost-basis ledger: every buy and sell updates a Holding and appends a
    Transaction in the same unit of work.
    """

    def __init__(
            self,
            factory: RepositoryFactory,
            market_data: Optional[MarketDataService] = None,
            clock: Callable[[], datetime] = utcnow,
    ):
        self.factory = factory
        self.db = factory.db
        self.clock = clock
        self.market_data = market_data or MarketDataService(factory, clock=clock)
        self.accounts = AccountsService(factory)
        self.holding_repo = factory.get_holding_repository()
        self.asset_repo = factory.get_asset_repository()
        self.transaction_repo = factory.get_transaction_repository()

    def find_one(self, holding_id: int) -> Holding:
        holding = self.holding_repo.get(holding_id)
        if not holding:
            raise NotFound(f"Holding with ID {holding_id} not found")
        return holding

    def find_all(self) -> List[Holding]:
        return self.holding_repo.get_all()

    def find_by_account(self, account_id: int) -> List[Holding]:
        return self.holding_repo.get_by_account(account_id)

    def find_by_username(self, username: str) -> List[Holding]:
        return self.holding_repo.get_by_username(username)

    def apply_buy(
            self,
            account_id: int,
            asset_id: int,
            quantity: Number,
            price: Number,
            transaction_date: Optional[datetime] = None,
            description: Optional[str] = None,
    ) -> Holding:
        """
        Add units to a holding at the given price.

        The average cost basis becomes the quantity-weighted mean of the old
        basis and the new price. A buy Transaction is recorded alongside.
        """
        holding, _ = self._record_buy(account_id, asset_id, quantity, price, transaction_date, description)
        return holding

    def apply_sell(
            self,
            account_id: int,
            asset_id: int,
            quantity: Optional[Number] = None,
            price: Optional[Number] = None,
    ) -> SellResult:
        """
        Remove units from a holding; without a quantity the whole position is sold.

        Sell price: explicit price, then a live quote, then the asset's last
        cached price. A holding that reaches zero is deleted.

        Raises:
            InvalidInput: non-positive quantity or price
            NotFound: unknown account, asset or holding
            InsufficientQuantity: quantity exceeds what is held
            PriceUnavailable: no price source could be resolved
        """
        requested = require_positive(quantity, "Quantity") if quantity is not None else None
        explicit_price = require_positive(price, "Price") if price is not None else None

        self._get_account(account_id)
        asset = self._get_asset(asset_id)

        holding = self.holding_repo.get_for_account_asset(account_id, asset_id)
        if not holding:
            raise NotFound(f"No holding of {asset.ticker} in account {account_id}")
        if requested is not None and requested > holding.quantity:
            raise InsufficientQuantity(holding.quantity, requested)

        sell_price = explicit_price or self._resolve_sell_price(asset)

        with unit_of_work(self.db):
            holding = self.holding_repo.get_for_account_asset(account_id, asset_id, for_update=True)
            if not holding:
                raise NotFound(f"No holding of {asset.ticker} in account {account_id}")

            held = quantize(to_decimal(holding.quantity))
            sold = requested if requested is not None else held
            if sold > held:
                raise InsufficientQuantity(held, sold)

            remaining = held - sold
            is_full_sell = remaining == 0
            if is_full_sell:
                self.holding_repo.remove(holding)
                remaining_holding = None
                description = f"Sold all {format_quantity(sold)} shares of {asset.ticker}"
            else:
                remaining_holding = self.holding_repo.update_obj(holding, {"quantity": remaining})
                description = f"Sold {format_quantity(sold)} shares of {asset.ticker}"

            total_amount = quantize(sold * sell_price)
            transaction = self.transaction_repo.create({
                "account_id": account_id,
                "asset_id": asset_id,
                "transaction_type": TransactionType.SELL,
                "transaction_date": self.clock(),
                "quantity": sold,
                "price_per_unit": sell_price,
                "total_amount": total_amount,
                "description": description,
            })

        logger.info(f"{description} at {sell_price} from account {account_id}")
        return SellResult(
            message=f"Successfully sold {format_quantity(sold)} shares of {asset.ticker}",
            ticker=asset.ticker,
            quantity=sold,
            sell_price=sell_price,
            total_amount=total_amount,
            is_full_sell=is_full_sell,
            remaining_holding=HoldingOut.model_validate(remaining_holding) if remaining_holding else None,
            transaction=TransactionOut.model_validate(transaction),
        )

    def add_to_portfolio(
            self,
            username: str,
            ticker: str,
            account_id: int,
            quantity: Number,
            price: Optional[Number] = None,
            transaction_date: Optional[datetime] = None,
            update_market_price: bool = False,
            description: Optional[str] = None,
    ) -> BuyResult:
        """
        Buy a ticker into one of the user's accounts, creating the asset on
        first sight. Purchase price: explicit, then cached, then live.
        """
        symbol = normalize_ticker(ticker)
        require_positive(quantity, "Quantity")
        account = self.accounts.get_user_account(username, account_id)

        asset, market_price_updated = self._find_or_create_asset(symbol, update_market_price)

        if price is not None:
            price_used = require_positive(price, "Price")
        elif asset.current_price is not None:
            price_used = to_decimal(asset.current_price)
        else:
            try:
                price_used = to_decimal(self.market_data.get_asset_data(symbol).current_price)
            except UpstreamUnavailable as e:
                raise PriceUnavailable(f"No price available for {symbol}") from e

        holding, transaction = self._record_buy(
            account.id,
            asset.id,
            quantity,
            price_used,
            transaction_date,
            description or f"Bought {quantity} shares of {symbol}",
        )
        return BuyResult(
            message=f"Successfully added {quantity} shares of {symbol} to portfolio",
            holding=HoldingOut.model_validate(holding),
            transaction=TransactionOut.model_validate(transaction),
            price_used=price_used,
            market_price_updated=market_price_updated,
        )

    def sell_by_ticker(
            self,
            username: str,
            ticker: str,
            quantity: Optional[Number] = None,
            price: Optional[Number] = None,
            account_id: Optional[int] = None,
    ) -> SellResult:
        symbol = normalize_ticker(ticker)
        account = self.accounts.get_user_account(username, account_id)
        holding = self.holding_repo.get_for_account_ticker(account.id, symbol)
        if not holding:
            raise NotFound(f"No holding found for {symbol} in account {account.id}")
        return self.apply_sell(account.id, holding.asset_id, quantity, price)

    def sell_holding(
            self,
            holding_id: int,
            quantity: Optional[Number] = None,
            price: Optional[Number] = None,
    ) -> SellResult:
        holding = self.find_one(holding_id)
        return self.apply_sell(holding.account_id, holding.asset_id, quantity, price)

    def _record_buy(
            self,
            account_id: int,
            asset_id: int,
            quantity: Number,
            price: Number,
            transaction_date: Optional[datetime],
            description: Optional[str],
    ) -> Tuple[Holding, Transaction]:
        qty = require_positive(quantity, "Quantity")
        unit_price = require_positive(price, "Price")

        self._get_account(account_id)
        asset = self._get_asset(asset_id)

        with unit_of_work(self.db):
            holding = self.holding_repo.get_for_account_asset(account_id, asset_id, for_update=True)
            if holding:
                old_qty = quantize(to_decimal(holding.quantity))
                old_avg = to_decimal(holding.average_cost_basis)
                new_qty = old_qty + qty
                new_avg = quantize((old_qty * old_avg + qty * unit_price) / new_qty)
                holding = self.holding_repo.update_obj(holding, {
                    "quantity": new_qty,
                    "average_cost_basis": new_avg,
                })
            else:
                holding = self.holding_repo.create({
                    "account_id": account_id,
                    "asset_id": asset_id,
                    "quantity": qty,
                    "average_cost_basis": unit_price,
                })

            transaction = self.transaction_repo.create({
                "account_id": account_id,
                "asset_id": asset_id,
                "transaction_type": TransactionType.BUY,
                "transaction_date": transaction_date or self.clock(),
                "quantity": qty,
                "price_per_unit": unit_price,
                "total_amount": quantize(qty * unit_price),
                "description": description,
            })

        logger.info(
            f"Bought {qty} {asset.ticker} at {unit_price} in account {account_id}; "
            f"holding now {holding.quantity} @ {holding.average_cost_basis}"
        )
        return holding, transaction

    def _resolve_sell_price(self, asset: Asset) -> Decimal:
        try:
            return to_decimal(self.market_data.get_asset_data(asset.ticker).current_price)
        except UpstreamUnavailable:
            if asset.current_price is not None:
                logger.warning(f"Live quote for {asset.ticker} unavailable, selling at last cached price")
                return to_decimal(asset.current_price)
        raise PriceUnavailable(f"No price available for {asset.ticker}")

    def _find_or_create_asset(self, symbol: str, update_market_price: bool) -> Tuple[Asset, bool]:
        if update_market_price:
            return self.market_data.upsert_asset(symbol).asset, True

        asset = self.asset_repo.get_by_ticker(symbol)
        if asset:
            return asset, False

        if not self.market_data.validate_ticker(symbol):
            raise InvalidInput(f"Invalid ticker: {symbol}")

        return self.market_data.upsert_asset(symbol).asset, True

    def _get_account(self, account_id: int) -> Account:
        return self.accounts.get_account(account_id)

    def _get_asset(self, asset_id: int) -> Asset:
        asset = self.asset_repo.get(asset_id)
        if not asset:
            raise NotFound(f"Asset with ID {asset_id} not found")
        return asset
