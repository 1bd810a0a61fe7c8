"""
papertrade - Main application entry point.

A paper trading simulator: users hold a simulated USD cash balance and trade
HK, CN and US equities against end-of-day quotes.
"""

import asyncio
import sys

import uvicorn
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from papertrade.config.logging import get_logger
from papertrade.config.settings import get_required_env_vars, get_settings
from papertrade.exceptions import PaperTradeException
from papertrade.services.trading import create_trading_service
from papertrade.utils.config import (
    initialize_application,
    initialize_logging,
    validate_environment,
)


async def print_quote(symbol: str, market: str) -> None:
    """Fetch one quote through the cache gateway and print it."""
    service = create_trading_service()
    quote = await service.get_quote(symbol, market)
    stale = " (stale)" if quote.stale else ""
    print(
        f"{quote.symbol} [{quote.market.value}] {quote.price} {quote.currency} "
        f"change {quote.change} ({quote.change_percent:.2f}%) "
        f"as of {quote.as_of_date}{stale}"
    )


def main() -> None:
    """Main application entry point."""
    initialize_logging()

    logger = get_logger(__name__)
    logger.info("Starting papertrade application")

    settings = get_settings()

    # Missing configuration is fatal
    if not validate_environment():
        print(
            "Please set the required environment variables before running the application."
        )
        print(f"Required variables: {', '.join(get_required_env_vars())}")
        sys.exit(1)

    logger.info("Environment validation passed")
    initialize_application()

    if "-quote" in sys.argv:
        try:
            index = sys.argv.index("-quote")
            symbol, market = sys.argv[index + 1], sys.argv[index + 2]
        except IndexError:
            print("Usage: main.py -quote SYMBOL MARKET")
            sys.exit(1)

        try:
            asyncio.run(print_quote(symbol, market))
        except PaperTradeException as e:
            logger.error("Quote lookup failed", error=e.message)
            print(f"Error: {e.message}")
            sys.exit(1)
        return

    logger.info(
        "Starting API server",
        host=settings.endpoint_host,
        port=settings.endpoint_port,
    )
    try:
        uvicorn.run(
            "papertrade.webapi.app:app",
            host=settings.endpoint_host,
            port=settings.endpoint_port,
            reload=settings.api_reload,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        print("\nShutting down...")


if __name__ == "__main__":
    main()
