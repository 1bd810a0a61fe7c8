"""Quote cache gateway: time-boxed cache in front of the market-data provider."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...config.settings import get_settings
from ...exceptions import QuoteUnavailable
from ...ormdb.database import get_session_sync
from ...ormdb.models import StockCache, utcnow
from ...ormdb.repositories import StockCacheRepository
from .models import (
    Market,
    Quote,
    compute_change,
    normalize_symbol,
    parse_market,
    provider_symbol,
)
from .provider import MarketDataProvider, MarketDataProviderError, MarketstackClient

logger = get_logger(__name__)


def _to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None:
        return default
    return Decimal(str(value))


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class QuoteCacheGateway:
    """
    Resolves (symbol, market) to a Quote.

    A cached quote younger than the freshness window is returned unchanged.
    Otherwise the provider is called; on success the cache entry is
    overwritten. If the provider fails, a cached entry of any age is returned
    flagged ``stale``; with no cached entry ``QuoteUnavailable`` is raised.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        session_factory: Callable[[], Session] = get_session_sync,
        ttl: timedelta = timedelta(hours=1),
        retries: int = 2,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.provider = provider
        self.session_factory = session_factory
        self.ttl = ttl
        self.retries = retries
        self.clock = clock
        self.logger = logger.bind(component="quote_gateway")

    async def get_quote(self, symbol: str, market) -> Quote:
        market = parse_market(market)
        symbol = normalize_symbol(symbol)

        cached = self._read_cache(symbol, market)
        if cached is not None and self._is_fresh(cached):
            self.logger.debug("Quote cache hit", symbol=symbol, market=market.value)
            return cached

        try:
            bar = await self._fetch_with_retry(provider_symbol(symbol, market))
            quote = self._build_quote(symbol, market, bar)
        except MarketDataProviderError as e:
            if cached is not None:
                self.logger.warning(
                    "Returning stale cache due to provider error",
                    symbol=symbol,
                    market=market.value,
                    cached_at=cached.last_updated.isoformat(),
                    error=str(e),
                )
                return replace(cached, stale=True)

            self.logger.error(
                "Quote unavailable", symbol=symbol, market=market.value, error=str(e)
            )
            raise QuoteUnavailable(symbol, market.value, str(e)) from e

        self._write_cache(quote)
        return quote

    async def get_quotes(
        self, pairs: List[Tuple[str, Any]]
    ) -> List[Quote]:
        """Fetch several quotes concurrently; any failure propagates."""
        return list(
            await asyncio.gather(
                *(self.get_quote(symbol, market) for symbol, market in pairs)
            )
        )

    def _is_fresh(self, quote: Quote) -> bool:
        return self.clock() - _as_utc(quote.last_updated) < self.ttl

    async def _fetch_with_retry(self, formatted_symbol: str) -> Dict[str, Any]:
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.provider.fetch_latest_eod(formatted_symbol)
            except MarketDataProviderError as e:
                self.logger.warning(
                    "Provider fetch failed",
                    symbol=formatted_symbol,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(e),
                )
                if attempt == attempts:
                    raise

    def _build_quote(self, symbol: str, market: Market, bar: Dict[str, Any]) -> Quote:
        try:
            close = _to_decimal(bar.get("close"))
            if close is None or not close.is_finite():
                raise MarketDataProviderError(f"No close price for {symbol}")

            open_ = _to_decimal(bar.get("open"), close)
            high = _to_decimal(bar.get("high"), close)
            low = _to_decimal(bar.get("low"), close)
            change, change_percent = compute_change(close, open_)
            volume = int(bar.get("volume") or 0)
            date = bar.get("date")
            as_of_date = str(date)[:10] if date else None
        except (ArithmeticError, ValueError, TypeError) as e:
            raise MarketDataProviderError(
                f"Malformed quote data for {symbol}: {e!r}"
            ) from e

        return Quote(
            symbol=symbol,
            market=market,
            name=bar.get("name") or symbol,
            price=close,
            open=open_,
            high=high,
            low=low,
            close=close,
            volume=volume,
            change=change,
            change_percent=change_percent,
            as_of_date=as_of_date,
            last_updated=self.clock(),
        )

    def _read_cache(self, symbol: str, market: Market) -> Optional[Quote]:
        session = self.session_factory()
        try:
            entry = StockCacheRepository(session).get_entry(symbol, market.value)
            return self._entry_to_quote(entry) if entry is not None else None
        except SQLAlchemyError as e:
            self.logger.warning("Quote cache read failed", symbol=symbol, error=str(e))
            return None
        finally:
            session.close()

    def _write_cache(self, quote: Quote) -> None:
        session = self.session_factory()
        try:
            StockCacheRepository(session).upsert_entry(
                quote.symbol,
                quote.market.value,
                name=quote.name,
                price=quote.price,
                open=quote.open,
                high=quote.high,
                low=quote.low,
                volume=quote.volume,
                change=quote.change,
                change_percent=quote.change_percent,
                as_of_date=quote.as_of_date,
                last_updated=quote.last_updated,
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.warning(
                "Quote cache write failed", symbol=quote.symbol, error=str(e)
            )
        finally:
            session.close()

    @staticmethod
    def _entry_to_quote(entry: StockCache) -> Quote:
        price = Decimal(entry.price)
        last_updated = _as_utc(entry.last_updated)
        return Quote(
            symbol=entry.symbol,
            market=Market(entry.market),
            name=entry.name or entry.symbol,
            price=price,
            open=_to_decimal(entry.open, price),
            high=_to_decimal(entry.high, price),
            low=_to_decimal(entry.low, price),
            close=price,
            volume=entry.volume or 0,
            change=_to_decimal(entry.change, Decimal("0")),
            change_percent=_to_decimal(entry.change_percent, Decimal("0")),
            as_of_date=entry.as_of_date or last_updated.date().isoformat(),
            last_updated=last_updated,
        )


def create_quote_gateway(
    settings=None, session_factory: Callable[[], Session] = get_session_sync
) -> QuoteCacheGateway:
    """Build a gateway backed by Marketstack from application settings."""
    settings = settings or get_settings()
    provider = MarketstackClient(
        api_key=settings.marketstack_api_key,
        base_url=settings.marketstack_base_url,
        timeout_seconds=settings.quote_request_timeout_seconds,
    )
    return QuoteCacheGateway(
        provider=provider,
        session_factory=session_factory,
        ttl=timedelta(minutes=settings.quote_cache_ttl_minutes),
        retries=settings.quote_fetch_retries,
    )
