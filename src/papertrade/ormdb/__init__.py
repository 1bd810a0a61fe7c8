"""Database module for SQLAlchemy ORM integration."""

from .database import (
    Base,
    check_database_health,
    create_tables,
    get_engine,
    get_session_factory,
    get_session_sync,
    session_scope,
)
from .models import Holding, Portfolio, Profile, StockCache, Transaction
from .repositories import (
    HoldingRepository,
    PortfolioRepository,
    ProfileRepository,
    StockCacheRepository,
    TransactionRepository,
)

__all__ = [
    # Database components
    "Base",
    "check_database_health",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "get_session_sync",
    "session_scope",
    # Models
    "Holding",
    "Portfolio",
    "Profile",
    "StockCache",
    "Transaction",
    # Repositories
    "HoldingRepository",
    "PortfolioRepository",
    "ProfileRepository",
    "StockCacheRepository",
    "TransactionRepository",
]
