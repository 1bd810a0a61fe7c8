"""Valuation and P/L of holdings in home currency."""

import asyncio
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ...config.logging import get_logger
from ...exceptions import PaperTradeException
from ..currency import CurrencyConverter, currency_for_market
from ..market_data import Quote, QuoteCacheGateway
from .models import HoldingValuation, Position, Valuation, ValuationTotals

logger = get_logger(__name__)

QuoteKey = Tuple[str, str]


def pnl_percent(pnl: Decimal, cost: Decimal) -> Decimal:
    """P/L relative to the absolute cost; 0 when cost is 0."""
    if cost == 0:
        return Decimal("0")
    return pnl / abs(cost) * 100


class ValuationCalculator:
    """Values holdings against quotes and aggregates long/short exposure."""

    def __init__(self, converter: CurrencyConverter):
        self.converter = converter
        self.logger = logger.bind(component="valuation")

    def valuate_holding(
        self, position: Position, quote: Optional[Quote]
    ) -> HoldingValuation:
        """
        Value one holding.

        Without a quote the holding's own average cost stands in for the
        current price, so its P/L is zero.
        """
        average_cost = Decimal(position.average_cost)
        price = quote.price if quote is not None else average_cost

        current_value = self.converter.to_home(position.shares * price, position.market)
        cost_value = self.converter.to_home(
            position.shares * average_cost, position.market
        )
        pnl = current_value - cost_value

        return HoldingValuation(
            symbol=position.symbol,
            market=position.market,
            shares=position.shares,
            average_cost=average_cost,
            current_price=price,
            currency=currency_for_market(position.market),
            current_value=current_value,
            cost_value=cost_value,
            unrealized_pnl=pnl,
            unrealized_pnl_pct=pnl_percent(pnl, cost_value),
            price_available=quote is not None,
            quote_stale=quote.stale if quote is not None else False,
        )

    def valuate(
        self, positions: Iterable[Position], quotes: Mapping[QuoteKey, Quote]
    ) -> Valuation:
        """
        Value every holding and compute totals.

        Args:
            positions: Holdings to value
            quotes: Quotes keyed by (symbol, market); missing keys fall back to cost

        Returns:
            Valuation with per-holding rows and totals. Long and short
            exposure are reported separately, short as an absolute amount.
        """
        rows = [
            self.valuate_holding(p, quotes.get((p.symbol, p.market)))
            for p in positions
        ]
        return Valuation(holdings=rows, totals=self.totals(rows))

    @staticmethod
    def totals(rows: List[HoldingValuation]) -> ValuationTotals:
        totals = ValuationTotals()
        for row in rows:
            totals.total_value += row.current_value
            totals.total_cost += row.cost_value
            if row.shares > 0:
                totals.long_value += row.current_value
            else:
                totals.short_value += abs(row.current_value)

        totals.total_pnl = totals.total_value - totals.total_cost
        totals.total_pnl_pct = pnl_percent(totals.total_pnl, totals.total_cost)
        return totals

    async def valuate_live(
        self, positions: List[Position], gateway: QuoteCacheGateway
    ) -> Valuation:
        """Fetch quotes for all holdings concurrently, then value them."""
        quotes = await self.fetch_quotes(positions, gateway)
        return self.valuate(positions, quotes)

    async def fetch_quotes(
        self, positions: List[Position], gateway: QuoteCacheGateway
    ) -> Dict[QuoteKey, Quote]:
        """Quotes keyed by (symbol, market); a failed symbol is simply absent."""
        keys = list(dict.fromkeys((p.symbol, p.market) for p in positions))
        results = await asyncio.gather(
            *(self._quote_or_none(gateway, symbol, market) for symbol, market in keys)
        )
        return {key: quote for key, quote in zip(keys, results) if quote is not None}

    async def _quote_or_none(
        self, gateway: QuoteCacheGateway, symbol: str, market: str
    ) -> Optional[Quote]:
        try:
            return await gateway.get_quote(symbol, market)
        except PaperTradeException as e:
            self.logger.warning(
                "Valuing holding at cost, quote unavailable",
                symbol=symbol,
                market=market,
                error=e.message,
            )
            return None
