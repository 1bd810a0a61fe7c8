"""Data models for paper trading, valuation and history."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from ...exceptions import InvalidOrder


class Side(str, Enum):
    """Order direction. Direction lives here, never in the share count sign."""

    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        return 1 if self is Side.BUY else -1


def parse_side(side) -> Side:
    """Coerce "buy"/"sell" (any case) into a Side."""
    if isinstance(side, Side):
        return side
    try:
        return Side(str(side).strip().lower())
    except ValueError:
        raise InvalidOrder(
            f"Invalid side '{side}'. Must be 'buy' or 'sell'", field="side"
        )


@dataclass
class UserContext:
    """Request-scoped identity passed into every trading call."""

    user_id: str
    email: Optional[str] = None
    cash_balance: Optional[Decimal] = None


@dataclass
class TradeRequest:
    """Request for executing a paper trade."""

    portfolio_id: int
    symbol: str
    market: str
    side: str  # "buy" or "sell"
    shares: int
    price: Optional[Decimal] = None  # Native currency; quoted when omitted


@dataclass
class Position:
    """Open holding as seen by valuation: signed shares and native cost basis."""

    symbol: str
    market: str
    shares: int
    average_cost: Decimal


@dataclass
class TradeResult:
    """Result of an executed trade."""

    transaction_id: int
    portfolio_id: int
    symbol: str
    symbol_name: str
    market: str
    side: Side
    shares: int
    price: Decimal
    currency: str
    home_amount: Decimal
    realized_pnl: Decimal  # Native currency
    holding: Optional[Position]  # None when the trade closed the position
    cash_balance: Decimal
    executed_at: datetime
    quote_stale: bool = False


@dataclass
class HoldingValuation:
    """Valuation of one holding in home currency."""

    symbol: str
    market: str
    shares: int
    average_cost: Decimal
    current_price: Decimal  # Native currency
    currency: str
    current_value: Decimal
    cost_value: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Decimal
    price_available: bool = True
    quote_stale: bool = False


@dataclass
class ValuationTotals:
    """Aggregates across holdings. Long and short exposure are kept apart."""

    total_value: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    total_pnl: Decimal = Decimal("0")
    total_pnl_pct: Decimal = Decimal("0")
    long_value: Decimal = Decimal("0")
    short_value: Decimal = Decimal("0")


@dataclass
class Valuation:
    """Per-holding valuations plus totals."""

    holdings: List[HoldingValuation] = field(default_factory=list)
    totals: ValuationTotals = field(default_factory=ValuationTotals)


@dataclass
class PortfolioSummary:
    """Portfolio row with computed values, as shown in the portfolio list."""

    portfolio_id: int
    name: str
    description: Optional[str]
    created_at: datetime
    num_holdings: int
    totals: ValuationTotals


@dataclass
class PortfolioOverview:
    """Full view of one portfolio."""

    portfolio_id: int
    name: str
    description: Optional[str]
    created_at: datetime
    cash_balance: Decimal
    realized_pnl: Decimal  # Home currency
    valuation: Valuation


@dataclass
class TransactionView:
    """Read-side projection of a transaction record."""

    id: int
    portfolio_id: int
    symbol: str
    symbol_name: Optional[str]
    market: str
    side: str
    shares: int
    price: Decimal
    currency: str
    total_amount: Decimal  # Native currency
    home_amount: Decimal
    realized_pnl: Decimal  # Native currency
    transaction_date: datetime


@dataclass
class TransactionHistory:
    """Filtered transaction list with per-side totals in home currency."""

    transactions: List[TransactionView] = field(default_factory=list)
    total_bought: Decimal = Decimal("0")
    total_sold: Decimal = Decimal("0")

    @property
    def count(self) -> int:
        return len(self.transactions)
