"""Tests for holding valuation and P/L aggregation."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from papertrade.services.market_data import Market, Quote
from papertrade.services.trading import Position, ValuationCalculator
from papertrade.services.trading.valuation import pnl_percent

from conftest import eod_bar


def make_quote(symbol, market, price, stale=False):
    price = Decimal(str(price))
    return Quote(
        symbol=symbol,
        market=Market(market),
        name=symbol,
        price=price,
        open=price,
        high=price,
        low=price,
        close=price,
        volume=0,
        change=Decimal("0"),
        change_percent=Decimal("0"),
        as_of_date="2026-10-16",
        last_updated=datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc),
        stale=stale,
    )


@pytest.fixture
def calculator(converter):
    return ValuationCalculator(converter)


class TestValuateHolding:
    """Test single-holding valuation."""

    def test_hk_holding_in_home_currency(self, calculator):
        row = calculator.valuate_holding(
            Position("5", "HK", 500, Decimal("65")), make_quote("5", "HK", "65.8")
        )

        assert row.currency == "HKD"
        assert row.current_price == Decimal("65.8")
        assert round(row.current_value, 2) == Decimal("4245.16")
        assert round(row.cost_value, 2) == Decimal("4193.55")
        assert round(row.unrealized_pnl, 2) == Decimal("51.61")
        assert round(row.unrealized_pnl_pct, 4) == Decimal("1.2308")
        assert row.price_available is True

    def test_missing_quote_values_at_cost(self, calculator):
        row = calculator.valuate_holding(Position("AAPL", "US", 10, Decimal("100")), None)

        assert row.current_price == Decimal("100")
        assert row.current_value == row.cost_value == Decimal("1000")
        assert row.unrealized_pnl == Decimal("0")
        assert row.price_available is False

    def test_stale_quote_is_flagged(self, calculator):
        row = calculator.valuate_holding(
            Position("AAPL", "US", 10, Decimal("100")),
            make_quote("AAPL", "US", 110, stale=True),
        )

        assert row.quote_stale is True
        assert row.unrealized_pnl == Decimal("100")

    def test_short_loses_when_price_rises(self, calculator):
        row = calculator.valuate_holding(
            Position("MSFT", "US", -5, Decimal("400")), make_quote("MSFT", "US", 420)
        )

        assert row.current_value == Decimal("-2100")
        assert row.cost_value == Decimal("-2000")
        assert row.unrealized_pnl == Decimal("-100")
        assert row.unrealized_pnl_pct == Decimal("-5")


class TestValuate:
    """Test portfolio totals."""

    def test_long_and_short_reported_separately(self, calculator):
        positions = [
            Position("AAPL", "US", 10, Decimal("100")),
            Position("MSFT", "US", -5, Decimal("400")),
        ]
        quotes = {
            ("AAPL", "US"): make_quote("AAPL", "US", 110),
            ("MSFT", "US"): make_quote("MSFT", "US", 420),
        }

        valuation = calculator.valuate(positions, quotes)

        assert len(valuation.holdings) == 2
        totals = valuation.totals
        assert totals.long_value == Decimal("1100")
        assert totals.short_value == Decimal("2100")
        assert totals.total_value == Decimal("-1000")
        assert totals.total_cost == Decimal("-1000")
        assert totals.total_pnl == Decimal("0")

    def test_missing_quotes_degrade_to_cost(self, calculator):
        positions = [
            Position("AAPL", "US", 10, Decimal("100")),
            Position("0700", "HK", 100, Decimal("77.5")),
        ]
        quotes = {("AAPL", "US"): make_quote("AAPL", "US", 120)}

        valuation = calculator.valuate(positions, quotes)

        assert [h.price_available for h in valuation.holdings] == [True, False]
        assert valuation.totals.total_value == Decimal("2200")
        assert valuation.totals.total_cost == Decimal("2000")
        assert valuation.totals.total_pnl == Decimal("200")
        assert valuation.totals.total_pnl_pct == Decimal("10")

    def test_empty_portfolio(self, calculator):
        valuation = calculator.valuate([], {})

        assert valuation.holdings == []
        assert valuation.totals.total_value == Decimal("0")
        assert valuation.totals.total_pnl_pct == Decimal("0")

    def test_pnl_percent_zero_cost_guard(self):
        assert pnl_percent(Decimal("5"), Decimal("0")) == Decimal("0")
        assert pnl_percent(Decimal("-5"), Decimal("-50")) == Decimal("-10")


class TestLiveValuation:
    """Test valuation with quotes from the gateway."""

    @pytest.mark.asyncio
    async def test_failed_symbol_is_valued_at_cost(self, calculator, gateway):
        positions = [
            Position("AAPL", "US", 10, Decimal("100")),
            Position("ZZZZ", "US", 10, Decimal("50")),
        ]

        valuation = await calculator.valuate_live(positions, gateway)

        by_symbol = {h.symbol: h for h in valuation.holdings}
        assert by_symbol["AAPL"].current_price == Decimal("181.5")
        assert by_symbol["ZZZZ"].price_available is False
        assert by_symbol["ZZZZ"].unrealized_pnl == Decimal("0")

    @pytest.mark.asyncio
    async def test_malformed_quote_is_valued_at_cost(
        self, calculator, gateway, fake_provider
    ):
        fake_provider.bars["MSFT"] = eod_bar("MSFT", "N/A")
        positions = [
            Position("AAPL", "US", 10, Decimal("100")),
            Position("MSFT", "US", 2, Decimal("400")),
        ]

        valuation = await calculator.valuate_live(positions, gateway)

        assert len(valuation.holdings) == 2
        by_symbol = {h.symbol: h for h in valuation.holdings}
        assert by_symbol["AAPL"].current_price == Decimal("181.5")
        assert by_symbol["MSFT"].price_available is False
        assert by_symbol["MSFT"].current_value == Decimal("800")
        assert by_symbol["MSFT"].unrealized_pnl == Decimal("0")

    @pytest.mark.asyncio
    async def test_quotes_fetched_once_per_symbol(
        self, calculator, gateway, fake_provider
    ):
        positions = [
            Position("AAPL", "US", 10, Decimal("100")),
            Position("AAPL", "US", -3, Decimal("190")),
        ]

        quotes = await calculator.fetch_quotes(positions, gateway)

        assert list(quotes) == [("AAPL", "US")]
        assert fake_provider.calls == ["AAPL"]
