"""Profile provisioning and portfolio management."""

from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...exceptions import InvalidOrder, NotFoundError, StoreUnavailable
from ...ormdb.database import get_session_sync, session_scope
from ...ormdb.models import Portfolio, Profile
from ...ormdb.repositories import (
    HoldingRepository,
    PortfolioRepository,
    ProfileRepository,
)
from .models import Position

logger = get_logger(__name__)


class PortfolioManager:
    """Manages user profiles, portfolios and their holdings."""

    def __init__(
        self,
        starting_balance: Decimal,
        default_portfolio_name: str = "Main Portfolio",
        session_factory: Callable[[], Session] = get_session_sync,
    ):
        self.logger = logger.bind(component="portfolio_manager")
        self.starting_balance = starting_balance
        self.default_portfolio_name = default_portfolio_name
        self.session_factory = session_factory

    def ensure_user_profile(self, user_id: str, email: Optional[str] = None) -> Profile:
        """
        Return the user's profile, provisioning it on first login.

        A new profile gets the starting cash balance and the default
        portfolio. An existing profile is only read, so deleted portfolios
        stay deleted.

        Args:
            user_id: Stable identity reference
            email: Email recorded on the profile

        Returns:
            The user's Profile
        """
        if not user_id or not str(user_id).strip():
            raise InvalidOrder("User id is required", field="user_id")

        profile = self._find_profile(user_id)
        if profile is not None:
            return profile

        try:
            return self._provision(user_id, email)
        except StoreUnavailable as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise
            # Another request provisioned the same user first
            self.logger.info("Profile created concurrently, re-reading", user_id=user_id)
            return self.get_profile(user_id)

    def _provision(self, user_id: str, email: Optional[str]) -> Profile:
        with session_scope("provision profile", self.session_factory) as session:
            profile = ProfileRepository(session).create_profile(
                user_id, email, self.starting_balance
            )
            PortfolioRepository(session).create_portfolio(
                user_id,
                self.default_portfolio_name,
                "Default portfolio for trading",
            )

        self.logger.info(
            "Provisioned profile",
            user_id=user_id,
            starting_balance=str(self.starting_balance),
            portfolio=self.default_portfolio_name,
        )
        return profile

    def _find_profile(self, user_id: str) -> Optional[Profile]:
        with session_scope("read profile", self.session_factory) as session:
            return ProfileRepository(session).get_by_user_id(user_id)

    def get_profile(self, user_id: str) -> Profile:
        profile = self._find_profile(user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    def create_portfolio(
        self, user_id: str, name: str, description: Optional[str] = None
    ) -> Portfolio:
        """Create a named portfolio. Names are unique per user."""
        name = (name or "").strip()
        if not name:
            raise InvalidOrder("Portfolio name is required", field="name")

        with session_scope("create portfolio", self.session_factory) as session:
            repository = PortfolioRepository(session)
            if repository.get_by_name(user_id, name) is not None:
                raise InvalidOrder(
                    f"Portfolio '{name}' already exists", field="name"
                )
            portfolio = repository.create_portfolio(user_id, name, description or None)

        self.logger.info(
            "Created portfolio", user_id=user_id, portfolio_id=portfolio.id, name=name
        )
        return portfolio

    def list_portfolios(self, user_id: str) -> List[Portfolio]:
        """Get all portfolios of a user, newest first."""
        with session_scope("list portfolios", self.session_factory) as session:
            return PortfolioRepository(session).list_for_user(user_id)

    def get_portfolio(self, user_id: str, portfolio_id: int) -> Portfolio:
        with session_scope("read portfolio", self.session_factory) as session:
            portfolio = PortfolioRepository(session).get_for_user(portfolio_id, user_id)

        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    def delete_portfolio(self, user_id: str, portfolio_id: int) -> None:
        """Delete a portfolio with its holdings and transactions."""
        with session_scope("delete portfolio", self.session_factory) as session:
            repository = PortfolioRepository(session)
            portfolio = repository.get_for_user(portfolio_id, user_id)
            if portfolio is None:
                raise NotFoundError("Portfolio", portfolio_id)
            repository.delete_portfolio(portfolio)

        self.logger.info("Deleted portfolio", user_id=user_id, portfolio_id=portfolio_id)

    def get_positions(self, portfolio_id: int) -> List[Position]:
        """Open holdings of a portfolio."""
        with session_scope("list holdings", self.session_factory) as session:
            holdings = HoldingRepository(session).list_for_portfolio(portfolio_id)
            return [
                Position(h.symbol, h.market, h.shares, h.average_cost)
                for h in holdings
            ]
