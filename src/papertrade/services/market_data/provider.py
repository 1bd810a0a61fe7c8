"""Market-data provider client for end-of-day quotes."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict

import aiohttp

from ...config.logging import get_logger

logger = get_logger(__name__)


class MarketDataProviderError(Exception):
    """Provider call failed, timed out, or returned no usable data."""


class MarketDataProvider(ABC):
    """Abstract source of latest end-of-day bars."""

    @abstractmethod
    async def fetch_latest_eod(self, provider_symbol: str) -> Dict[str, Any]:
        """
        Fetch the latest end-of-day bar for an already-formatted symbol.

        Returns:
            Raw bar with at least ``open``, ``high``, ``low``, ``close``,
            ``volume``, ``date`` and ``symbol`` keys

        Raises:
            MarketDataProviderError: On transport errors, timeouts, error
                responses or empty results
        """
        raise NotImplementedError


class MarketstackClient(MarketDataProvider):
    """Client for the Marketstack ``/eod/latest`` endpoint."""

    def __init__(self, api_key: str, base_url: str, timeout_seconds: float = 10.0):
        if not api_key:
            raise ValueError("Marketstack API key is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.logger = logger.bind(component="marketstack_client")

    async def fetch_latest_eod(self, provider_symbol: str) -> Dict[str, Any]:
        url = f"{self.base_url}/eod/latest"
        params = {"access_key": self.api_key, "symbols": provider_symbol}

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params) as response:
                    payload = await response.json(content_type=None)
                    if response.status != 200:
                        message = "provider error"
                        error = payload.get("error") if isinstance(payload, dict) else None
                        if isinstance(error, dict):
                            message = error.get("message") or message
                        elif error:
                            message = str(error)
                        raise MarketDataProviderError(
                            f"HTTP {response.status}: {message}"
                        )
        except asyncio.TimeoutError as e:
            raise MarketDataProviderError(
                f"Request for {provider_symbol} timed out"
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise MarketDataProviderError(str(e)) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise MarketDataProviderError(f"No data found for {provider_symbol}")

        self.logger.debug("Fetched EOD bar", symbol=provider_symbol)
        return data[0]
