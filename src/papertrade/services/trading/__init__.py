"""Paper trading: position ledger, settlement, execution, valuation and history."""

from .executor import TradeExecutor
from .history import TransactionHistoryService
from .ledger import HoldingAction, LedgerOutcome, apply_trade, validate_order
from .models import (
    HoldingValuation,
    PortfolioOverview,
    PortfolioSummary,
    Position,
    Side,
    TradeRequest,
    TradeResult,
    TransactionHistory,
    TransactionView,
    UserContext,
    Valuation,
    ValuationTotals,
    parse_side,
)
from .portfolio_manager import PortfolioManager
from .service import TradingService, create_trading_service
from .settlement import CashSettlement, to_cents
from .valuation import ValuationCalculator

__all__ = [
    "CashSettlement",
    "HoldingAction",
    "HoldingValuation",
    "LedgerOutcome",
    "PortfolioManager",
    "PortfolioOverview",
    "PortfolioSummary",
    "Position",
    "Side",
    "TradeExecutor",
    "TradeRequest",
    "TradeResult",
    "TradingService",
    "TransactionHistory",
    "TransactionHistoryService",
    "TransactionView",
    "UserContext",
    "Valuation",
    "ValuationCalculator",
    "ValuationTotals",
    "apply_trade",
    "create_trading_service",
    "parse_side",
    "to_cents",
    "validate_order",
]
