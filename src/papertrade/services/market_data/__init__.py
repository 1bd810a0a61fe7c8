"""Market data: quote models, provider client and the quote cache gateway."""

from .gateway import QuoteCacheGateway, create_quote_gateway
from .models import (
    EXAMPLE_STOCKS,
    SUPPORTED_MARKETS,
    Market,
    Quote,
    compute_change,
    normalize_symbol,
    parse_market,
    provider_symbol,
)
from .provider import MarketDataProvider, MarketDataProviderError, MarketstackClient

__all__ = [
    "EXAMPLE_STOCKS",
    "SUPPORTED_MARKETS",
    "Market",
    "MarketDataProvider",
    "MarketDataProviderError",
    "MarketstackClient",
    "Quote",
    "QuoteCacheGateway",
    "compute_change",
    "create_quote_gateway",
    "normalize_symbol",
    "parse_market",
    "provider_symbol",
]
