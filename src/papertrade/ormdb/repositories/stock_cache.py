"""Repository for the shared quote cache."""

from typing import Any, Optional

from ..models import StockCache, utcnow
from .base import BaseRepository


class StockCacheRepository(BaseRepository):
    """Repository for quote cache entries keyed by (symbol, market)."""

    def get_entry(self, symbol: str, market: str) -> Optional[StockCache]:
        """Get the cached quote for a symbol/market pair."""
        return (
            self.session.query(StockCache)
            .filter(StockCache.symbol == symbol, StockCache.market == market)
            .first()
        )

    def upsert_entry(self, symbol: str, market: str, **fields: Any) -> StockCache:
        """Insert or overwrite the cache entry in place. Last writer wins."""
        entry = self.get_entry(symbol, market)
        if entry is None:
            entry = StockCache(symbol=symbol, market=market)
            self.session.add(entry)

        for key, value in fields.items():
            setattr(entry, key, value)
        if "last_updated" not in fields:
            entry.last_updated = utcnow()

        self.session.flush()
        return entry
