"""Shared test configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from papertrade.services.market_data import MarketDataProvider, MarketDataProviderError


class FakeProvider(MarketDataProvider):
    """In-memory provider keyed by provider-formatted symbol."""

    def __init__(self, bars: Dict[str, Dict[str, Any]] = None):
        self.bars = bars or {}
        self.calls: List[str] = []
        self.failing = False

    async def fetch_latest_eod(self, provider_symbol: str) -> Dict[str, Any]:
        self.calls.append(provider_symbol)
        if self.failing:
            raise MarketDataProviderError("provider down")
        if provider_symbol not in self.bars:
            raise MarketDataProviderError(f"No data found for {provider_symbol}")
        return dict(self.bars[provider_symbol])


class FakeClock:
    """Settable clock for freshness-window tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def eod_bar(symbol: str, close, open_=None, high=None, low=None, volume=1000):
    """Provider bar in the shape Marketstack returns."""
    return {
        "symbol": symbol,
        "open": open_ if open_ is not None else close,
        "high": high if high is not None else close,
        "low": low if low is not None else close,
        "close": close,
        "volume": volume,
        "date": "2026-10-16T00:00:00+0000",
        "exchange": "XNAS",
    }


@pytest.fixture
def isolated_db():
    """Create an isolated database for testing."""
    temp_fd, temp_path = tempfile.mkstemp(suffix=".db")
    db_url = f"sqlite:///{temp_path}"

    try:
        engine = create_engine(db_url, connect_args={"check_same_thread": False})

        from papertrade.ormdb.database import Base, _configure_sqlite
        from papertrade.ormdb import models  # noqa: F401

        event.listen(engine, "connect", _configure_sqlite)
        SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
        )
        Base.metadata.create_all(bind=engine)

        yield {
            "engine": engine,
            "session_factory": SessionLocal,
            "db_url": db_url,
            "db_path": temp_path,
        }

        engine.dispose()

    finally:
        os.close(temp_fd)
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(temp_path + suffix):
                os.unlink(temp_path + suffix)


@pytest.fixture
def session_factory(isolated_db):
    return isolated_db["session_factory"]


@pytest.fixture
def fake_provider():
    return FakeProvider(
        {
            "AAPL": eod_bar("AAPL", 181.5, open_=180.0, high=182.0, low=179.5),
            "MSFT": eod_bar("MSFT", 420.0, open_=415.0),
            "0005.XHKG": eod_bar(
                "0005.XHKG", 65.8, open_=65.5, high=66.2, low=65.1, volume=1234567
            ),
            "0700.XHKG": eod_bar("0700.XHKG", 380.0, open_=378.0),
            "600000.XSHG": eod_bar("600000.XSHG", 12.7, open_=12.5),
        }
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def converter():
    from papertrade.services.currency import CurrencyConverter

    return CurrencyConverter(
        rates={
            ("USD", "HKD"): Decimal("7.75"),
            ("HKD", "CNY"): Decimal("0.89"),
        }
    )


@pytest.fixture
def gateway(fake_provider, session_factory, clock):
    from papertrade.services.market_data import QuoteCacheGateway

    return QuoteCacheGateway(
        provider=fake_provider,
        session_factory=session_factory,
        ttl=timedelta(hours=1),
        retries=0,
        clock=clock,
    )


@pytest.fixture
def trading_service(gateway, converter, session_factory):
    from papertrade.services.trading import PortfolioManager, TradingService

    return TradingService(
        gateway=gateway,
        converter=converter,
        portfolio_manager=PortfolioManager(
            starting_balance=Decimal("1000000.00"),
            default_portfolio_name="Main Portfolio",
            session_factory=session_factory,
        ),
        session_factory=session_factory,
    )


@pytest.fixture
def user(trading_service):
    """Provisioned user with the default starting balance."""
    return trading_service.get_user_context("user-1", "trader@example.com")


@pytest.fixture
def main_portfolio_id(trading_service, user):
    return trading_service.portfolio_manager.list_portfolios(user.user_id)[0].id


@pytest.fixture
def set_cash_balance(session_factory):
    """Overwrite a user's cash balance directly in the store."""

    def _set(user_id: str, amount) -> None:
        from papertrade.ormdb.repositories import ProfileRepository

        session = session_factory()
        try:
            repository = ProfileRepository(session)
            repository.set_cash_balance(
                repository.get_by_user_id(user_id), Decimal(str(amount))
            )
            session.commit()
        finally:
            session.close()

    return _set


@pytest.fixture
def test_env_vars():
    """Required environment for settings tests."""
    return {
        "BACKEND_URL": "sqlite:///:memory:",
        "BACKEND_ACCESS_KEY": "test_access_key",
        "MARKETSTACK_API_KEY": "test_marketstack_key",
        "ENDPOINT_AUTH_TOKEN": "test_auth_token",
    }


@pytest.fixture(autouse=True)
def clean_settings_cache():
    """Clear cached settings between tests to avoid state pollution."""
    from papertrade.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
