"""Repository for portfolio operations."""

from typing import List, Optional

from sqlalchemy import desc

from ..models import Portfolio
from .base import BaseRepository


class PortfolioRepository(BaseRepository):
    """Repository for portfolio operations."""

    def get_for_user(self, portfolio_id: int, user_id: str) -> Optional[Portfolio]:
        """Get a portfolio only if it is owned by the given user."""
        return (
            self.session.query(Portfolio)
            .filter(Portfolio.id == portfolio_id, Portfolio.user_id == user_id)
            .first()
        )

    def get_by_name(self, user_id: str, name: str) -> Optional[Portfolio]:
        """Get a user's portfolio by name."""
        return (
            self.session.query(Portfolio)
            .filter(Portfolio.user_id == user_id, Portfolio.name == name)
            .first()
        )

    def list_for_user(self, user_id: str) -> List[Portfolio]:
        """Get all portfolios of a user, newest first."""
        return (
            self.session.query(Portfolio)
            .filter(Portfolio.user_id == user_id)
            .order_by(desc(Portfolio.created_at), desc(Portfolio.id))
            .all()
        )

    def create_portfolio(
        self, user_id: str, name: str, description: Optional[str] = None
    ) -> Portfolio:
        """Create a portfolio."""
        portfolio = Portfolio(user_id=user_id, name=name, description=description)
        self.session.add(portfolio)
        self.session.flush()
        return portfolio

    def delete_portfolio(self, portfolio: Portfolio) -> None:
        """Delete a portfolio together with its holdings and transactions."""
        self.session.delete(portfolio)
        self.session.flush()
