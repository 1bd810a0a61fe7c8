"""Transaction history queries and realized P/L."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...exceptions import InvalidOrder
from ...ormdb.database import get_session_sync, session_scope
from ...ormdb.models import Transaction
from ...ormdb.repositories import TransactionRepository
from ..currency import CurrencyConverter
from ..market_data import normalize_symbol
from .models import Side, TransactionHistory, TransactionView, parse_side

logger = get_logger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a calendar day in UTC."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class TransactionHistoryService:
    """Read-side access to the transaction log."""

    def __init__(
        self,
        converter: CurrencyConverter,
        session_factory: Callable[[], Session] = get_session_sync,
    ):
        self.converter = converter
        self.session_factory = session_factory
        self.logger = logger.bind(component="transaction_history")

    def get_history(
        self,
        user_id: str,
        portfolio_id: Optional[int] = None,
        on_date: Optional[date] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        side=None,
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> TransactionHistory:
        """
        Get a user's transactions, newest first, with per-side totals.

        Args:
            user_id: Owner of the transactions
            portfolio_id: Restrict to one portfolio
            on_date: Restrict to one calendar day (UTC); excludes start/end
            start: First calendar day included
            end: Last calendar day included
            side: "buy" or "sell"
            symbol: Restrict to one symbol
            limit: Maximum number of transactions

        Returns:
            TransactionHistory with bought/sold totals in home currency
        """
        if on_date is not None and (start is not None or end is not None):
            raise InvalidOrder(
                "Filter by a single date or by a date range, not both", field="date"
            )
        if start is not None and end is not None and start > end:
            raise InvalidOrder("Start date is after end date", field="start")

        lower = upper = None
        if on_date is not None:
            lower, upper = day_bounds(on_date)
        if start is not None:
            lower = day_bounds(start)[0]
        if end is not None:
            upper = day_bounds(end)[1]

        side_value = parse_side(side).value if side is not None else None
        symbol_value = normalize_symbol(symbol) if symbol else None

        with session_scope("list transactions", self.session_factory) as session:
            rows = TransactionRepository(session).list_transactions(
                user_id,
                portfolio_id=portfolio_id,
                start=lower,
                end=upper,
                side=side_value,
                symbol=symbol_value,
                limit=limit,
            )

        history = TransactionHistory(transactions=[self._to_view(t) for t in rows])
        for view in history.transactions:
            if view.side == Side.BUY.value:
                history.total_bought += view.home_amount
            else:
                history.total_sold += view.home_amount

        self.logger.debug(
            "Listed transactions",
            user_id=user_id,
            portfolio_id=portfolio_id,
            count=history.count,
        )
        return history

    def realized_pnl(self, user_id: str, portfolio_id: int) -> Decimal:
        """Realized P/L of a portfolio in home currency."""
        with session_scope("list transactions", self.session_factory) as session:
            rows = TransactionRepository(session).list_transactions(
                user_id, portfolio_id=portfolio_id
            )

        return sum(
            (
                self.converter.to_home(Decimal(t.realized_pnl or 0), t.market)
                for t in rows
            ),
            Decimal("0"),
        )

    def _to_view(self, transaction: Transaction) -> TransactionView:
        price = Decimal(transaction.price)
        total = price * transaction.shares
        return TransactionView(
            id=transaction.id,
            portfolio_id=transaction.portfolio_id,
            symbol=transaction.symbol,
            symbol_name=transaction.symbol_name,
            market=transaction.market,
            side=transaction.side,
            shares=transaction.shares,
            price=price,
            currency=transaction.currency,
            total_amount=total,
            home_amount=self.converter.to_home(total, transaction.market),
            realized_pnl=Decimal(transaction.realized_pnl or 0),
            transaction_date=transaction.transaction_date,
        )
