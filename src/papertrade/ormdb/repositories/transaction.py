"""Repository for transaction operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc

from ..models import Transaction
from .base import BaseRepository


class TransactionRepository(BaseRepository):
    """Repository for the append-only transaction log."""

    def add_transaction(
        self,
        portfolio_id: int,
        user_id: str,
        symbol: str,
        symbol_name: Optional[str],
        market: str,
        side: str,
        shares: int,
        price: Decimal,
        currency: str,
        realized_pnl: Decimal,
        transaction_date: Optional[datetime] = None,
    ) -> Transaction:
        """Append a transaction record."""
        transaction = Transaction(
            portfolio_id=portfolio_id,
            user_id=user_id,
            symbol=symbol,
            symbol_name=symbol_name,
            market=market,
            side=side,
            shares=shares,
            price=price,
            currency=currency,
            realized_pnl=realized_pnl,
        )
        if transaction_date is not None:
            transaction.transaction_date = transaction_date

        self.session.add(transaction)
        self.session.flush()
        return transaction

    def list_transactions(
        self,
        user_id: str,
        portfolio_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        side: Optional[str] = None,
        symbol: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """
        Get a user's transactions, newest first.

        Args:
            user_id: Owner of the transactions
            portfolio_id: Restrict to one portfolio
            start: Inclusive lower bound on transaction date
            end: Exclusive upper bound on transaction date
            side: "buy" or "sell"
            symbol: Restrict to one symbol
            limit: Maximum number of rows
        """
        query = self.session.query(Transaction).filter(Transaction.user_id == user_id)

        if portfolio_id is not None:
            query = query.filter(Transaction.portfolio_id == portfolio_id)
        if start is not None:
            query = query.filter(Transaction.transaction_date >= start)
        if end is not None:
            query = query.filter(Transaction.transaction_date < end)
        if side is not None:
            query = query.filter(Transaction.side == side)
        if symbol is not None:
            query = query.filter(Transaction.symbol == symbol)

        query = query.order_by(desc(Transaction.transaction_date), desc(Transaction.id))
        if limit is not None:
            query = query.limit(limit)

        return query.all()
