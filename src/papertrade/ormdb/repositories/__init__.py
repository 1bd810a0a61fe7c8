"""Repository classes for database operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .holding import HoldingRepository
from .portfolio import PortfolioRepository
from .profile import ProfileRepository
from .stock_cache import StockCacheRepository
from .transaction import TransactionRepository

__all__ = [
    "BaseRepository",
    "HoldingRepository",
    "PortfolioRepository",
    "ProfileRepository",
    "StockCacheRepository",
    "TransactionRepository",
]
