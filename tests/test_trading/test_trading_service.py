"""Tests for TradingService portfolio views."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from papertrade.exceptions import NotFoundError
from papertrade.services.market_data import QuoteCacheGateway
from papertrade.services.trading import TradeRequest, TradingService, create_trading_service


async def buy(service, user, portfolio_id, symbol, market, shares, price):
    return await service.execute_trade(
        user,
        TradeRequest(
            portfolio_id=portfolio_id,
            symbol=symbol,
            market=market,
            side="buy",
            shares=shares,
            price=Decimal(str(price)),
        ),
    )


class TestUserContext:
    def test_context_carries_balance(self, trading_service):
        context = trading_service.get_user_context("fresh", "fresh@example.com")

        assert context.user_id == "fresh"
        assert context.email == "fresh@example.com"
        assert context.cash_balance == Decimal("1000000.00")


class TestPortfolioOverview:
    """Test portfolio overview valuation."""

    @pytest.mark.asyncio
    async def test_overview_values_holdings_at_quotes(
        self, trading_service, user, main_portfolio_id
    ):
        await buy(trading_service, user, main_portfolio_id, "5", "HK", 500, 65)

        overview = await trading_service.get_portfolio_overview(user, main_portfolio_id)

        assert overview.name == "Main Portfolio"
        assert overview.cash_balance == Decimal("995806.45")
        assert overview.realized_pnl == Decimal("0")

        row = overview.valuation.holdings[0]
        assert row.symbol == "5"
        assert row.current_price == Decimal("65.8")
        assert round(row.current_value, 2) == Decimal("4245.16")
        assert round(row.unrealized_pnl, 2) == Decimal("51.61")
        assert round(overview.valuation.totals.total_pnl, 2) == Decimal("51.61")

    @pytest.mark.asyncio
    async def test_overview_degrades_when_quotes_fail(
        self, trading_service, user, main_portfolio_id, fake_provider
    ):
        await buy(trading_service, user, main_portfolio_id, "AAPL", "US", 10, 100)
        fake_provider.failing = True

        overview = await trading_service.get_portfolio_overview(user, main_portfolio_id)

        row = overview.valuation.holdings[0]
        assert row.price_available is False
        assert row.current_value == Decimal("1000")
        assert overview.valuation.totals.total_pnl == Decimal("0")

    @pytest.mark.asyncio
    async def test_overview_of_foreign_portfolio_not_found(self, trading_service, user):
        other = trading_service.get_user_context("user-2")
        foreign = trading_service.portfolio_manager.list_portfolios(other.user_id)[0]

        with pytest.raises(NotFoundError):
            await trading_service.get_portfolio_overview(user, foreign.id)


class TestListPortfolios:
    """Test the portfolio list with computed values."""

    @pytest.mark.asyncio
    async def test_each_portfolio_has_its_own_totals(
        self, trading_service, user, main_portfolio_id, fake_provider
    ):
        growth = trading_service.create_portfolio(user, "Growth")
        await buy(trading_service, user, main_portfolio_id, "AAPL", "US", 10, 180)
        await buy(trading_service, user, growth.id, "AAPL", "US", 2, 200)
        await buy(trading_service, user, growth.id, "MSFT", "US", 1, 400)

        summaries = await trading_service.list_portfolios(user)

        by_name = {s.name: s for s in summaries}
        assert [s.name for s in summaries] == ["Growth", "Main Portfolio"]
        assert by_name["Main Portfolio"].num_holdings == 1
        assert by_name["Main Portfolio"].totals.total_value == Decimal("1815.0")
        assert by_name["Growth"].num_holdings == 2
        assert by_name["Growth"].totals.total_cost == Decimal("800")
        assert by_name["Growth"].totals.total_value == Decimal("783.0")
        assert sorted(fake_provider.calls) == ["AAPL", "MSFT"]

    @pytest.mark.asyncio
    async def test_new_user_sees_empty_default_portfolio(self, trading_service, user):
        summaries = await trading_service.list_portfolios(user)

        assert len(summaries) == 1
        assert summaries[0].num_holdings == 0
        assert summaries[0].totals.total_value == Decimal("0")


class TestCreateTradingService:
    def test_wires_components_from_settings(self, session_factory):
        settings = SimpleNamespace(
            marketstack_api_key="key",
            marketstack_base_url="http://api.marketstack.com/v1",
            quote_request_timeout_seconds=5.0,
            quote_cache_ttl_minutes=30,
            quote_fetch_retries=1,
            usd_to_hkd=Decimal("7.75"),
            hkd_to_cny=Decimal("0.89"),
            starting_cash_balance=Decimal("50000"),
            default_portfolio_name="Starter",
        )

        service = create_trading_service(settings, session_factory)

        assert isinstance(service, TradingService)
        assert isinstance(service.gateway, QuoteCacheGateway)
        assert service.gateway.retries == 1
        assert service.gateway.ttl.total_seconds() == 1800
        assert service.portfolio_manager.starting_balance == Decimal("50000")
        assert service.portfolio_manager.default_portfolio_name == "Starter"
