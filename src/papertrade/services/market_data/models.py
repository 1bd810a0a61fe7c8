"""Quote and market models for market data."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from ...exceptions import InvalidOrder


class Market(Enum):
    """Supported exchanges and their native currency and provider suffix."""

    HK = "HK"
    CN = "CN"
    US = "US"

    @property
    def currency(self) -> str:
        return _MARKET_CURRENCIES[self]

    @property
    def provider_suffix(self) -> str:
        return _MARKET_SUFFIXES[self]


_MARKET_CURRENCIES = {Market.HK: "HKD", Market.CN: "CNY", Market.US: "USD"}
_MARKET_SUFFIXES = {Market.HK: ".XHKG", Market.CN: ".XSHG", Market.US: ""}

SUPPORTED_MARKETS: List[Dict[str, str]] = [
    {"code": "HK", "name": "Hong Kong Stock Exchange", "suffix": ".XHKG"},
    {"code": "CN", "name": "Shanghai Stock Exchange", "suffix": ".XSHG"},
    {"code": "US", "name": "US Stock Market", "suffix": ""},
]

EXAMPLE_STOCKS: Dict[str, List[Dict[str, str]]] = {
    "HK": [
        {"symbol": "0005", "name": "HSBC Holdings"},
        {"symbol": "0700", "name": "Tencent Holdings"},
        {"symbol": "0941", "name": "China Mobile"},
        {"symbol": "1299", "name": "AIA Group"},
    ],
    "CN": [
        {"symbol": "600000", "name": "Pudong Development Bank"},
        {"symbol": "600036", "name": "China Merchants Bank"},
        {"symbol": "601398", "name": "Industrial and Commercial Bank of China"},
    ],
    "US": [
        {"symbol": "AAPL", "name": "Apple Inc."},
        {"symbol": "MSFT", "name": "Microsoft Corporation"},
        {"symbol": "GOOGL", "name": "Alphabet Inc."},
        {"symbol": "TSLA", "name": "Tesla Inc."},
    ],
}


def parse_market(market) -> Market:
    """Coerce a market code into a Market, rejecting unsupported codes."""
    if isinstance(market, Market):
        return market
    try:
        return Market(str(market).strip().upper())
    except ValueError:
        supported = ", ".join(m.value for m in Market)
        raise InvalidOrder(
            f"Unsupported market '{market}'. Supported markets: {supported}",
            field="market",
        )


def normalize_symbol(symbol: str) -> str:
    """Exchange-neutral symbol as stored on holdings and transactions."""
    if not symbol or not isinstance(symbol, str) or not symbol.strip():
        raise InvalidOrder("Symbol must be a non-empty string", field="symbol")
    return symbol.strip().upper()


def provider_symbol(symbol: str, market: Market) -> str:
    """
    Format a symbol the way the market-data provider expects it.

    Hong Kong codes are zero-padded to four digits, e.g. ``5`` -> ``0005.XHKG``.
    Shanghai listings get ``.XSHG``; US tickers are used as-is.
    """
    symbol = normalize_symbol(symbol)
    if market == Market.HK:
        return f"{symbol.zfill(4)}{market.provider_suffix}"
    return f"{symbol}{market.provider_suffix}"


def compute_change(close: Decimal, open_: Decimal) -> tuple[Decimal, Decimal]:
    """Change versus open and change percent; percent is 0 when open is 0."""
    change = close - open_
    if open_ == 0:
        return change, Decimal("0")
    return change, change / open_ * 100


@dataclass
class Quote:
    """Normalized end-of-day quote for a symbol/market pair (native currency)."""

    symbol: str
    market: Market
    name: str
    price: Decimal
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int
    change: Decimal
    change_percent: Decimal
    as_of_date: Optional[str]
    last_updated: datetime
    stale: bool = field(default=False)

    @property
    def currency(self) -> str:
        return self.market.currency
