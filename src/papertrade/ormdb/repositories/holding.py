"""Repository for holding operations."""

from decimal import Decimal
from typing import List, Optional

from ..models import Holding, utcnow
from .base import BaseRepository


class HoldingRepository(BaseRepository):
    """Repository for per-portfolio, per-symbol holdings."""

    def get_holding(
        self, portfolio_id: int, symbol: str, market: str
    ) -> Optional[Holding]:
        """Get the holding for a symbol/market within a portfolio."""
        return (
            self.session.query(Holding)
            .filter(
                Holding.portfolio_id == portfolio_id,
                Holding.symbol == symbol,
                Holding.market == market,
            )
            .first()
        )

    def list_for_portfolio(self, portfolio_id: int) -> List[Holding]:
        """Get all holdings of a portfolio ordered by symbol."""
        return (
            self.session.query(Holding)
            .filter(Holding.portfolio_id == portfolio_id)
            .order_by(Holding.market, Holding.symbol)
            .all()
        )

    def add_holding(
        self,
        portfolio_id: int,
        user_id: str,
        symbol: str,
        market: str,
        shares: int,
        average_cost: Decimal,
    ) -> Holding:
        """Create a holding."""
        holding = Holding(
            portfolio_id=portfolio_id,
            user_id=user_id,
            symbol=symbol,
            market=market,
            shares=shares,
            average_cost=average_cost,
        )
        self.session.add(holding)
        self.session.flush()
        return holding

    def update_holding(
        self, holding: Holding, shares: int, average_cost: Decimal
    ) -> Holding:
        """Overwrite share count and cost basis of a holding."""
        holding.shares = shares
        holding.average_cost = average_cost
        holding.updated_at = utcnow()
        self.session.flush()
        return holding

    def delete_holding(self, holding: Holding) -> None:
        """Delete a holding that netted to zero."""
        self.session.delete(holding)
        self.session.flush()
