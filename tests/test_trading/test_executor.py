"""Tests for trade execution against an isolated database."""

import asyncio
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from papertrade.exceptions import (
    InsufficientFunds,
    InsufficientShares,
    InvalidOrder,
    NotFoundError,
    QuoteUnavailable,
    TradeExecutionFailed,
)
from papertrade.ormdb.models import Holding, Profile, Transaction
from papertrade.ormdb.repositories import (
    HoldingRepository,
    ProfileRepository,
    TransactionRepository,
)
from papertrade.services.trading import Side, TradeRequest


def store_state(session_factory, user_id="user-1"):
    """Cash balance, holdings and transaction count as persisted."""
    session = session_factory()
    try:
        profile = session.query(Profile).filter(Profile.user_id == user_id).one()
        holdings = {
            (h.symbol, h.market): (h.shares, Decimal(h.average_cost))
            for h in session.query(Holding).filter(Holding.user_id == user_id)
        }
        count = session.query(Transaction).filter(Transaction.user_id == user_id).count()
        return Decimal(profile.cash_balance), holdings, count
    finally:
        session.close()


def order(portfolio_id, symbol, market, side, shares, price=None):
    return TradeRequest(
        portfolio_id=portfolio_id,
        symbol=symbol,
        market=market,
        side=side,
        shares=shares,
        price=Decimal(str(price)) if price is not None else None,
    )


class TestTradeExecution:
    """Test successful trade paths."""

    @pytest.mark.asyncio
    async def test_buy_with_explicit_price(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "aapl", "us", "buy", 100, 180)
        )

        assert result.side is Side.BUY
        assert result.symbol == "AAPL"
        assert result.market == "US"
        assert result.currency == "USD"
        assert result.home_amount == Decimal("18000.00")
        assert result.holding.shares == 100
        assert result.holding.average_cost == Decimal("180")
        assert result.cash_balance == Decimal("982000.00")
        assert user.cash_balance == Decimal("982000.00")

        cash, holdings, count = store_state(session_factory)
        assert cash == Decimal("982000.00")
        assert holdings == {("AAPL", "US"): (100, Decimal("180"))}
        assert count == 1

    @pytest.mark.asyncio
    async def test_buy_at_quoted_price(
        self, trading_service, user, main_portfolio_id, fake_provider
    ):
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "MSFT", "US", "buy", 10)
        )

        assert fake_provider.calls == ["MSFT"]
        assert result.price == Decimal("420.0")
        assert result.symbol_name == "MSFT"
        assert result.quote_stale is False
        assert result.cash_balance == Decimal("995800.00")

    @pytest.mark.asyncio
    async def test_hk_buy_debits_home_currency(
        self, trading_service, user, main_portfolio_id
    ):
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "5", "HK", "buy", 500, 65)
        )

        assert result.currency == "HKD"
        assert result.home_amount == Decimal("4193.55")
        assert result.cash_balance == Decimal("995806.45")

    @pytest.mark.asyncio
    async def test_buy_buy_sell_sequence(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 100, 180)
        )
        second = await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 50, 190)
        )
        third = await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "sell", 30, 195)
        )

        assert second.holding.shares == 150
        assert round(second.holding.average_cost, 4) == Decimal("183.3333")
        assert third.holding.shares == 120
        assert round(third.realized_pnl, 2) == Decimal("350.00")
        # 1,000,000 - 18,000 - 9,500 + 5,850
        assert third.cash_balance == Decimal("978350.00")

        _, holdings, count = store_state(session_factory)
        shares, cost = holdings[("AAPL", "US")]
        assert shares == 120
        assert round(cost, 4) == Decimal("183.3333")
        assert count == 3

    @pytest.mark.asyncio
    async def test_sell_without_position_opens_short(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "MSFT", "US", "sell", 10, 420)
        )

        assert result.holding.shares == -10
        assert result.cash_balance == Decimal("1004200.00")

        _, holdings, _ = store_state(session_factory)
        assert holdings == {("MSFT", "US"): (-10, Decimal("420"))}

    @pytest.mark.asyncio
    async def test_round_trip_removes_holding(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 100)
        )
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "sell", 10, 110)
        )

        assert result.holding is None
        assert result.realized_pnl == Decimal("100")

        cash, holdings, count = store_state(session_factory)
        assert holdings == {}
        assert count == 2
        assert cash == Decimal("1000100.00")

    @pytest.mark.asyncio
    async def test_transaction_record_fields(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        result = await trading_service.execute_trade(
            user, order(main_portfolio_id, "600000", "CN", "buy", 100, 12.5)
        )

        session = session_factory()
        try:
            rows = TransactionRepository(session).list_transactions("user-1")
        finally:
            session.close()

        assert len(rows) == 1
        record = rows[0]
        assert record.id == result.transaction_id
        assert record.side == "buy"
        assert record.shares == 100
        assert Decimal(record.price) == Decimal("12.5")
        assert record.currency == "CNY"
        assert record.market == "CN"


class TestTradeRejection:
    """Test that rejected trades leave no trace."""

    @pytest.mark.asyncio
    async def test_insufficient_funds_leaves_balance_unchanged(
        self, trading_service, user, main_portfolio_id, session_factory, set_cash_balance
    ):
        set_cash_balance("user-1", 1000)

        with pytest.raises(InsufficientFunds):
            await trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 150)
            )

        cash, holdings, count = store_state(session_factory)
        assert cash == Decimal("1000")
        assert holdings == {}
        assert count == 0

    @pytest.mark.asyncio
    async def test_oversell_leaves_holding_unchanged(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 100)
        )

        with pytest.raises(InsufficientShares):
            await trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "sell", 20, 100)
            )

        cash, holdings, count = store_state(session_factory)
        assert holdings == {("AAPL", "US"): (10, Decimal("100"))}
        assert count == 1
        assert cash == Decimal("999000.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "side,shares,price,market",
        [
            ("buy", 0, 100, "US"),
            ("buy", -5, 100, "US"),
            ("hold", 10, 100, "US"),
            ("buy", 10, 0, "US"),
            ("buy", 10, 100, "XX"),
        ],
    )
    async def test_invalid_orders_rejected_before_quote(
        self,
        trading_service,
        user,
        main_portfolio_id,
        fake_provider,
        session_factory,
        side,
        shares,
        price,
        market,
    ):
        request = TradeRequest(
            portfolio_id=main_portfolio_id,
            symbol="AAPL",
            market=market,
            side=side,
            shares=shares,
            price=Decimal(str(price)),
        )

        with pytest.raises(InvalidOrder):
            await trading_service.execute_trade(user, request)

        assert fake_provider.calls == []
        assert store_state(session_factory)[2] == 0

    @pytest.mark.asyncio
    async def test_quote_unavailable_aborts_trade(
        self, trading_service, user, main_portfolio_id, fake_provider, session_factory
    ):
        fake_provider.failing = True

        with pytest.raises(QuoteUnavailable):
            await trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "buy", 1)
            )

        assert store_state(session_factory)[2] == 0

    @pytest.mark.asyncio
    async def test_foreign_portfolio_not_found(
        self, trading_service, user, session_factory
    ):
        other = trading_service.get_user_context("user-2")
        other_portfolio = trading_service.portfolio_manager.list_portfolios(
            other.user_id
        )[0]

        with pytest.raises(NotFoundError):
            await trading_service.execute_trade(
                user, order(other_portfolio.id, "AAPL", "US", "buy", 1, 100)
            )

        assert store_state(session_factory, "user-2")[2] == 0


class TestTradeAtomicity:
    """Test that a failed write unit is rolled back completely."""

    @pytest.mark.asyncio
    async def test_holding_write_failure_rolls_back_transaction(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(HoldingRepository, "add_holding", side_effect=error):
            with pytest.raises(TradeExecutionFailed) as exc_info:
                await trading_service.execute_trade(
                    user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 100)
                )

        assert exc_info.value.details == {"stage": "holding"}
        cash, holdings, count = store_state(session_factory)
        assert cash == Decimal("1000000.00")
        assert holdings == {}
        assert count == 0

    @pytest.mark.asyncio
    async def test_settlement_failure_rolls_back_holding_and_transaction(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 100)
        )

        error = OperationalError("UPDATE", {}, Exception("database is locked"))
        with patch.object(ProfileRepository, "set_cash_balance", side_effect=error):
            with pytest.raises(TradeExecutionFailed) as exc_info:
                await trading_service.execute_trade(
                    user, order(main_portfolio_id, "AAPL", "US", "sell", 4, 120)
                )

        assert exc_info.value.details == {"stage": "settlement"}
        cash, holdings, count = store_state(session_factory)
        assert cash == Decimal("999000.00")
        assert holdings == {("AAPL", "US"): (10, Decimal("100"))}
        assert count == 1

    @pytest.mark.asyncio
    async def test_transaction_insert_failure(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        error = OperationalError("INSERT", {}, Exception("disk full"))
        with patch.object(TransactionRepository, "add_transaction", side_effect=error):
            with pytest.raises(TradeExecutionFailed) as exc_info:
                await trading_service.execute_trade(
                    user, order(main_portfolio_id, "AAPL", "US", "buy", 10, 100)
                )

        assert exc_info.value.status_code == 500
        assert exc_info.value.details == {"stage": "transaction"}
        assert store_state(session_factory)[0] == Decimal("1000000.00")

    @pytest.mark.asyncio
    async def test_concurrent_sells_cannot_oversell(
        self, trading_service, user, main_portfolio_id, session_factory
    ):
        await trading_service.execute_trade(
            user, order(main_portfolio_id, "AAPL", "US", "buy", 15, 100)
        )

        results = await asyncio.gather(
            trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "sell", 10, 100)
            ),
            trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "sell", 10, 100)
            ),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientShares)

        _, holdings, count = store_state(session_factory)
        assert holdings == {("AAPL", "US"): (5, Decimal("100"))}
        assert count == 2

    @pytest.mark.asyncio
    async def test_holding_locks_are_released_after_trades(
        self, trading_service, user, main_portfolio_id
    ):
        executor = trading_service.trade_executor

        await asyncio.gather(
            trading_service.execute_trade(
                user, order(main_portfolio_id, "AAPL", "US", "buy", 5, 100)
            ),
            trading_service.execute_trade(
                user, order(main_portfolio_id, "MSFT", "US", "buy", 5, 100)
            ),
            trading_service.execute_trade(
                user, order(main_portfolio_id, "MSFT", "US", "sell", 50, 100)
            ),
            return_exceptions=True,
        )

        assert executor._locks == {}
        assert executor._lock_users == {}

    @pytest.mark.asyncio
    async def test_holding_lock_kept_while_a_trade_waits(self, trading_service):
        executor = trading_service.trade_executor
        key = (1, "AAPL", "US")
        order_of_entry = []
        release = asyncio.Event()

        async def first():
            async with executor._holding_lock(key):
                order_of_entry.append("first")
                await release.wait()

        async def second():
            async with executor._holding_lock(key):
                order_of_entry.append("second")

        first_task = asyncio.create_task(first())
        await asyncio.sleep(0)
        second_task = asyncio.create_task(second())
        await asyncio.sleep(0)

        assert executor._lock_users[key] == 2
        assert order_of_entry == ["first"]

        release.set()
        await asyncio.gather(first_task, second_task)

        assert order_of_entry == ["first", "second"]
        assert key not in executor._locks
        assert key not in executor._lock_users
