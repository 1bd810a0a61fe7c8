"""SQLAlchemy ORM models for the papertrade application."""

import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime.datetime:
    """Timezone-aware current time used for all timestamp columns."""
    return datetime.datetime.now(datetime.UTC)


class Profile(Base):
    """Per-user simulation state: identity reference and cash balance (USD)."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=True)
    cash_balance = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self):
        return f"<Profile(user_id='{self.user_id}', cash_balance={self.cash_balance})>"


class Portfolio(Base):
    """Named grouping of holdings and transactions owned by one user."""

    __tablename__ = "portfolios"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    holdings = relationship(
        "Holding", back_populates="portfolio", cascade="all, delete-orphan"
    )
    transactions = relationship(
        "Transaction", back_populates="portfolio", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Portfolio(user_id='{self.user_id}', name='{self.name}')>"


class Holding(Base):
    """Net open position in one symbol/market. Shares are signed; never zero."""

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "symbol", "market", name="uq_holding_symbol"),
        CheckConstraint("shares != 0", name="ck_holding_nonzero"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        Integer, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    user_id = Column(String, nullable=False, index=True)
    symbol = Column(String, nullable=False)
    market = Column(String(2), nullable=False)
    shares = Column(Integer, nullable=False)
    average_cost = Column(Numeric(18, 6), nullable=False)  # Native currency
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    portfolio = relationship("Portfolio", back_populates="holdings")

    def __repr__(self):
        return f"<Holding(symbol='{self.symbol}', market='{self.market}', shares={self.shares}, average_cost={self.average_cost})>"


class Transaction(Base):
    """Append-only record of one executed order."""

    __tablename__ = "transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        Integer, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    user_id = Column(String, nullable=False, index=True)
    symbol = Column(String, nullable=False, index=True)
    symbol_name = Column(String, nullable=True)
    market = Column(String(2), nullable=False)
    side = Column(String(4), nullable=False)  # "buy" or "sell"
    shares = Column(Integer, nullable=False)  # Always positive
    price = Column(Numeric(18, 6), nullable=False)
    currency = Column(String(3), nullable=False)
    realized_pnl = Column(Numeric(18, 6), nullable=False, default=0)
    transaction_date = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    portfolio = relationship("Portfolio", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction(symbol='{self.symbol}', side='{self.side}', shares={self.shares}, price={self.price})>"


class StockCache(Base):
    """Shared quote cache entry keyed by (symbol, market)."""

    __tablename__ = "stock_cache"
    __table_args__ = (
        UniqueConstraint("symbol", "market", name="uq_stock_cache_symbol"),
    )

    id = Column(Integer, primary_key=True, index=True)
    symbol = Column(String, nullable=False)
    market = Column(String(2), nullable=False)
    name = Column(String, nullable=True)
    price = Column(Numeric(18, 6), nullable=False)
    open = Column(Numeric(18, 6), nullable=True)
    high = Column(Numeric(18, 6), nullable=True)
    low = Column(Numeric(18, 6), nullable=True)
    volume = Column(BigInteger, nullable=True)
    change = Column(Numeric(18, 6), nullable=True)
    change_percent = Column(Numeric(18, 6), nullable=True)
    as_of_date = Column(String, nullable=True)  # YYYY-MM-DD of the EOD bar
    last_updated = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<StockCache(symbol='{self.symbol}', market='{self.market}', price={self.price})>"
