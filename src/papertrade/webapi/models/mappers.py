"""Conversions from service-layer objects to API response models."""

from decimal import ROUND_HALF_UP, Decimal

from ...ormdb.models import Profile
from ...services.market_data import Quote
from ...services.trading import (
    HoldingValuation,
    PortfolioOverview,
    PortfolioSummary,
    TradeResult,
    TransactionHistory,
    TransactionView,
    ValuationTotals,
)
from .responses import (
    HoldingData,
    PortfolioData,
    PortfolioOverviewData,
    PositionData,
    ProfileData,
    QuoteData,
    TradeData,
    TransactionData,
    TransactionHistoryData,
    ValuationTotalsData,
)


def money(value) -> float:
    """Round to cents."""
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def price(value) -> float:
    return float(Decimal(value).quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP))


def profile_data(profile: Profile) -> ProfileData:
    return ProfileData(
        user_id=profile.user_id,
        email=profile.email,
        cash_balance=money(profile.cash_balance),
        created_at=profile.created_at,
    )


def quote_data(quote: Quote) -> QuoteData:
    return QuoteData(
        symbol=quote.symbol,
        market=quote.market.value,
        name=quote.name,
        currency=quote.currency,
        price=price(quote.price),
        open=price(quote.open),
        high=price(quote.high),
        low=price(quote.low),
        close=price(quote.close),
        volume=quote.volume,
        change=price(quote.change),
        change_percent=money(quote.change_percent),
        as_of_date=quote.as_of_date,
        last_updated=quote.last_updated,
        stale=quote.stale,
    )


def totals_data(totals: ValuationTotals) -> ValuationTotalsData:
    return ValuationTotalsData(
        total_value=money(totals.total_value),
        total_cost=money(totals.total_cost),
        total_pnl=money(totals.total_pnl),
        total_pnl_pct=money(totals.total_pnl_pct),
        long_value=money(totals.long_value),
        short_value=money(totals.short_value),
    )


def holding_data(row: HoldingValuation) -> HoldingData:
    return HoldingData(
        symbol=row.symbol,
        market=row.market,
        shares=row.shares,
        average_cost=price(row.average_cost),
        current_price=price(row.current_price),
        currency=row.currency,
        current_value=money(row.current_value),
        cost_value=money(row.cost_value),
        unrealized_pnl=money(row.unrealized_pnl),
        unrealized_pnl_pct=money(row.unrealized_pnl_pct),
        price_available=row.price_available,
        quote_stale=row.quote_stale,
    )


def portfolio_data(summary: PortfolioSummary) -> PortfolioData:
    return PortfolioData(
        id=summary.portfolio_id,
        name=summary.name,
        description=summary.description,
        created_at=summary.created_at,
        num_holdings=summary.num_holdings,
        totals=totals_data(summary.totals),
    )


def overview_data(overview: PortfolioOverview) -> PortfolioOverviewData:
    return PortfolioOverviewData(
        id=overview.portfolio_id,
        name=overview.name,
        description=overview.description,
        created_at=overview.created_at,
        cash_balance=money(overview.cash_balance),
        realized_pnl=money(overview.realized_pnl),
        holdings=[holding_data(row) for row in overview.valuation.holdings],
        totals=totals_data(overview.valuation.totals),
    )


def trade_data(result: TradeResult) -> TradeData:
    holding = None
    if result.holding is not None:
        holding = PositionData(
            symbol=result.holding.symbol,
            market=result.holding.market,
            shares=result.holding.shares,
            average_cost=price(result.holding.average_cost),
        )

    return TradeData(
        transaction_id=result.transaction_id,
        portfolio_id=result.portfolio_id,
        symbol=result.symbol,
        symbol_name=result.symbol_name,
        market=result.market,
        side=result.side.value,
        shares=result.shares,
        price=price(result.price),
        currency=result.currency,
        home_amount=money(result.home_amount),
        realized_pnl=money(result.realized_pnl),
        holding=holding,
        cash_balance=money(result.cash_balance),
        executed_at=result.executed_at,
        quote_stale=result.quote_stale,
    )


def transaction_data(view: TransactionView) -> TransactionData:
    return TransactionData(
        id=view.id,
        portfolio_id=view.portfolio_id,
        symbol=view.symbol,
        symbol_name=view.symbol_name,
        market=view.market,
        side=view.side,
        shares=view.shares,
        price=price(view.price),
        currency=view.currency,
        total_amount=money(view.total_amount),
        home_amount=money(view.home_amount),
        realized_pnl=money(view.realized_pnl),
        transaction_date=view.transaction_date,
    )


def history_data(history: TransactionHistory) -> TransactionHistoryData:
    return TransactionHistoryData(
        transactions=[transaction_data(t) for t in history.transactions],
        count=history.count,
        total_bought=money(history.total_bought),
        total_sold=money(history.total_sold),
    )
