"""Trade execution: quote, ledger, funds check and one atomic write."""

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Callable, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger, log_audit_event
from ...exceptions import NotFoundError, StoreUnavailable, TradeExecutionFailed
from ...ormdb.database import get_session_sync
from ...ormdb.models import utcnow
from ...ormdb.repositories import (
    HoldingRepository,
    PortfolioRepository,
    ProfileRepository,
    TransactionRepository,
)
from ..currency import CurrencyConverter
from ..market_data import QuoteCacheGateway, normalize_symbol, parse_market
from .ledger import HoldingAction, apply_trade, validate_order
from .models import Position, TradeRequest, TradeResult, UserContext
from .settlement import CashSettlement, to_cents

logger = get_logger(__name__)


class TradeExecutor:
    """
    Executes paper trades.

    Validation, pricing, the ledger transition and the funds check all happen
    before any write. The transaction insert, holding mutation and cash update
    then share one session and commit together; any store failure rolls all
    three back and surfaces as TradeExecutionFailed.

    Trades on the same (portfolio, symbol, market) are serialized by an
    in-process lock. Separate processes are not coordinated and the last
    holding write wins.
    """

    def __init__(
        self,
        gateway: QuoteCacheGateway,
        converter: CurrencyConverter,
        session_factory: Callable[[], Session] = get_session_sync,
        settlement: Optional[CashSettlement] = None,
    ):
        self.gateway = gateway
        self.converter = converter
        self.session_factory = session_factory
        self.settlement = settlement or CashSettlement()
        self.logger = logger.bind(component="trade_executor")
        # Per-holding locks, dropped once no trade holds or awaits them
        self._locks: Dict[Tuple[int, str, str], asyncio.Lock] = {}
        self._lock_users: Dict[Tuple[int, str, str], int] = {}

    async def execute_trade(self, user: UserContext, request: TradeRequest) -> TradeResult:
        """
        Execute a buy or sell for the user.

        Raises:
            InvalidOrder: Malformed order
            NotFoundError: Portfolio or profile missing or not owned by the user
            QuoteUnavailable: No price could be obtained
            InsufficientShares: Over-sell of a long holding
            InsufficientFunds: Buy exceeds cash balance
            StoreUnavailable: Reading current state failed
            TradeExecutionFailed: The write unit failed and was rolled back
        """
        symbol = normalize_symbol(request.symbol)
        market = parse_market(request.market)
        side = validate_order(request.side, request.shares, request.price)

        quote_stale = False
        symbol_name = symbol
        if request.price is not None:
            price = Decimal(str(request.price))
        else:
            quote = await self.gateway.get_quote(symbol, market)
            price = quote.price
            symbol_name = quote.name
            quote_stale = quote.stale

        async with self._holding_lock((request.portfolio_id, symbol, market.value)):
            session = self.session_factory()
            try:
                return self._execute_locked(
                    session,
                    user,
                    request.portfolio_id,
                    symbol,
                    symbol_name,
                    market,
                    side,
                    request.shares,
                    price,
                    quote_stale,
                )
            finally:
                session.close()

    @asynccontextmanager
    async def _holding_lock(self, key: Tuple[int, str, str]) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    def _execute_locked(
        self,
        session: Session,
        user: UserContext,
        portfolio_id: int,
        symbol: str,
        symbol_name: str,
        market,
        side,
        shares: int,
        price: Decimal,
        quote_stale: bool,
    ) -> TradeResult:
        profiles = ProfileRepository(session)
        holdings = HoldingRepository(session)

        try:
            portfolio = PortfolioRepository(session).get_for_user(
                portfolio_id, user.user_id
            )
            profile = profiles.get_by_user_id(user.user_id)
            holding = holdings.get_holding(portfolio_id, symbol, market.value)
        except SQLAlchemyError as e:
            self.logger.error("Failed to read trade state", error=str(e))
            raise StoreUnavailable("read", str(e)) from e

        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        if profile is None:
            raise NotFoundError("Profile", user.user_id)

        current_shares = holding.shares if holding is not None else 0
        current_cost = holding.average_cost if holding is not None else Decimal("0")
        outcome = apply_trade(symbol, current_shares, current_cost, side, shares, price)

        home_amount = self.converter.to_home(price * shares, market.value)
        # Funds are checked before the first write
        self.settlement.check_funds(profile.cash_balance, side, home_amount)

        stage = "transaction"
        try:
            transaction = TransactionRepository(session).add_transaction(
                portfolio_id=portfolio_id,
                user_id=user.user_id,
                symbol=symbol,
                symbol_name=symbol_name,
                market=market.value,
                side=side.value,
                shares=shares,
                price=price,
                currency=market.currency,
                realized_pnl=outcome.realized_pnl,
                transaction_date=utcnow(),
            )

            stage = "holding"
            if outcome.action is HoldingAction.CREATE:
                holdings.add_holding(
                    portfolio_id,
                    user.user_id,
                    symbol,
                    market.value,
                    outcome.shares,
                    outcome.average_cost,
                )
            elif outcome.action is HoldingAction.UPDATE:
                holdings.update_holding(holding, outcome.shares, outcome.average_cost)
            else:
                holdings.delete_holding(holding)

            stage = "settlement"
            new_balance = self.settlement.settle(profiles, profile, side, home_amount)

            stage = "commit"
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error(
                "Trade write failed, rolled back",
                portfolio_id=portfolio_id,
                symbol=symbol,
                stage=stage,
                error=str(e),
            )
            raise TradeExecutionFailed(str(e), stage=stage) from e

        user.cash_balance = new_balance

        self.logger.info(
            "Executed trade",
            portfolio_id=portfolio_id,
            symbol=symbol,
            market=market.value,
            side=side.value,
            shares=shares,
            price=str(price),
            holding_action=outcome.action.value,
        )
        log_audit_event(
            "trade_executed",
            user_id=user.user_id,
            transaction_id=transaction.id,
            portfolio_id=portfolio_id,
            symbol=symbol,
            side=side.value,
            shares=shares,
            price=str(price),
            home_amount=str(to_cents(home_amount)),
        )

        position = None
        if outcome.action is not HoldingAction.DELETE:
            position = Position(symbol, market.value, outcome.shares, outcome.average_cost)

        return TradeResult(
            transaction_id=transaction.id,
            portfolio_id=portfolio_id,
            symbol=symbol,
            symbol_name=symbol_name,
            market=market.value,
            side=side,
            shares=shares,
            price=price,
            currency=market.currency,
            home_amount=to_cents(home_amount),
            realized_pnl=outcome.realized_pnl,
            holding=position,
            cash_balance=new_balance,
            executed_at=transaction.transaction_date,
            quote_stale=quote_stale,
        )
