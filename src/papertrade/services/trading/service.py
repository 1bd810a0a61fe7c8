"""Main trading service orchestration."""

from datetime import date
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...config.settings import get_settings
from ...ormdb.database import get_session_sync
from ...ormdb.models import Portfolio, Profile
from ..currency import CurrencyConverter, get_currency_converter
from ..market_data import Quote, QuoteCacheGateway, create_quote_gateway
from .executor import TradeExecutor
from .history import TransactionHistoryService
from .models import (
    PortfolioOverview,
    PortfolioSummary,
    TradeRequest,
    TradeResult,
    TransactionHistory,
    UserContext,
)
from .portfolio_manager import PortfolioManager
from .valuation import ValuationCalculator

logger = get_logger(__name__)


class TradingService:
    """Service for paper trading, portfolio valuation and history."""

    def __init__(
        self,
        gateway: QuoteCacheGateway,
        converter: CurrencyConverter,
        portfolio_manager: PortfolioManager,
        session_factory: Callable[[], Session] = get_session_sync,
    ):
        self.logger = logger.bind(component="trading_service")
        self.gateway = gateway
        self.converter = converter

        # Initialize component managers
        self.portfolio_manager = portfolio_manager
        self.trade_executor = TradeExecutor(gateway, converter, session_factory)
        self.valuation = ValuationCalculator(converter)
        self.history = TransactionHistoryService(converter, session_factory)

    def ensure_user_profile(self, user_id: str, email: Optional[str] = None) -> Profile:
        """Provision the profile and default portfolio on first login."""
        return self.portfolio_manager.ensure_user_profile(user_id, email)

    def get_user_context(self, user_id: str, email: Optional[str] = None) -> UserContext:
        """Build the request-scoped context for a user, provisioning if needed."""
        profile = self.ensure_user_profile(user_id, email)
        return UserContext(
            user_id=profile.user_id,
            email=profile.email or email,
            cash_balance=profile.cash_balance,
        )

    async def get_quote(self, symbol: str, market: str) -> Quote:
        return await self.gateway.get_quote(symbol, market)

    async def get_quotes(self, pairs: List[Tuple[str, str]]) -> List[Quote]:
        return await self.gateway.get_quotes(pairs)

    async def execute_trade(self, user: UserContext, request: TradeRequest) -> TradeResult:
        """
        Execute a paper trade.

        Args:
            user: Request-scoped user context
            request: Trade request details

        Returns:
            TradeResult with execution details
        """
        return await self.trade_executor.execute_trade(user, request)

    def create_portfolio(
        self, user: UserContext, name: str, description: Optional[str] = None
    ) -> Portfolio:
        return self.portfolio_manager.create_portfolio(user.user_id, name, description)

    def delete_portfolio(self, user: UserContext, portfolio_id: int) -> None:
        self.portfolio_manager.delete_portfolio(user.user_id, portfolio_id)

    async def list_portfolios(self, user: UserContext) -> List[PortfolioSummary]:
        """
        List the user's portfolios, newest first, each with computed values.

        Quotes are fetched once for every distinct holding across portfolios.
        """
        portfolios = self.portfolio_manager.list_portfolios(user.user_id)
        positions = {
            p.id: self.portfolio_manager.get_positions(p.id) for p in portfolios
        }

        all_positions = [pos for group in positions.values() for pos in group]
        quotes = await self.valuation.fetch_quotes(all_positions, self.gateway)

        summaries = []
        for portfolio in portfolios:
            valuation = self.valuation.valuate(positions[portfolio.id], quotes)
            summaries.append(
                PortfolioSummary(
                    portfolio_id=portfolio.id,
                    name=portfolio.name,
                    description=portfolio.description,
                    created_at=portfolio.created_at,
                    num_holdings=len(valuation.holdings),
                    totals=valuation.totals,
                )
            )
        return summaries

    async def get_portfolio_overview(
        self, user: UserContext, portfolio_id: int
    ) -> PortfolioOverview:
        """Holdings valued at current prices, cash balance and realized P/L."""
        portfolio = self.portfolio_manager.get_portfolio(user.user_id, portfolio_id)
        profile = self.portfolio_manager.get_profile(user.user_id)

        positions = self.portfolio_manager.get_positions(portfolio.id)
        valuation = await self.valuation.valuate_live(positions, self.gateway)

        return PortfolioOverview(
            portfolio_id=portfolio.id,
            name=portfolio.name,
            description=portfolio.description,
            created_at=portfolio.created_at,
            cash_balance=profile.cash_balance,
            realized_pnl=self.history.realized_pnl(user.user_id, portfolio.id),
            valuation=valuation,
        )

    def get_transaction_history(
        self,
        user: UserContext,
        portfolio_id: Optional[int] = None,
        on_date: Optional[date] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        side: Any = None,
        symbol: Optional[str] = None,
    ) -> TransactionHistory:
        if portfolio_id is not None:
            # Ownership check; raises NotFoundError for someone else's portfolio
            self.portfolio_manager.get_portfolio(user.user_id, portfolio_id)

        return self.history.get_history(
            user.user_id,
            portfolio_id=portfolio_id,
            on_date=on_date,
            start=start,
            end=end,
            side=side,
            symbol=symbol,
        )


def create_trading_service(
    settings=None, session_factory: Callable[[], Session] = get_session_sync
) -> TradingService:
    """Wire a TradingService from application settings."""
    settings = settings or get_settings()
    return TradingService(
        gateway=create_quote_gateway(settings, session_factory),
        converter=get_currency_converter(settings),
        portfolio_manager=PortfolioManager(
            starting_balance=settings.starting_cash_balance,
            default_portfolio_name=settings.default_portfolio_name,
            session_factory=session_factory,
        ),
        session_factory=session_factory,
    )
