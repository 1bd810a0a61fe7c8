"""Fixed-rate currency conversion between market currencies and the home currency."""

from decimal import Decimal
from typing import Dict, Optional, Tuple

from ..config.settings import get_settings

HOME_CURRENCY = "USD"

_MARKET_CURRENCIES = {"HK": "HKD", "CN": "CNY", "US": "USD"}


def currency_for_market(market: str) -> str:
    """Native currency code of a market; unknown markets report the home currency."""
    return _MARKET_CURRENCIES.get(str(market).upper(), HOME_CURRENCY)


class CurrencyConverter:
    """
    Converts amounts using a static table of directional rates.

    Each entry ``(A, B): r`` means ``1 A = r B``; the reverse direction is
    derived by division. Pairs without a direct entry are routed through
    ``intermediate`` (HKD by default), so CNY reaches USD via HKD.
    """

    def __init__(
        self,
        rates: Dict[Tuple[str, str], Decimal],
        home_currency: str = HOME_CURRENCY,
        intermediate: str = "HKD",
    ):
        self.rates = rates
        self.home_currency = home_currency
        self.intermediate = intermediate

    def _direct_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        if (from_currency, to_currency) in self.rates:
            return self.rates[(from_currency, to_currency)]
        if (to_currency, from_currency) in self.rates:
            return 1 / self.rates[(to_currency, from_currency)]
        return None

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        if from_currency == to_currency:
            return amount

        # CNY -> USD evaluates as amount / hkd_to_cny / usd_to_hkd
        if (from_currency, to_currency) in self.rates:
            return amount * self.rates[(from_currency, to_currency)]
        if (to_currency, from_currency) in self.rates:
            return amount / self.rates[(to_currency, from_currency)]

        via = self.intermediate
        if (
            self._direct_rate(from_currency, via) is not None
            and self._direct_rate(via, to_currency) is not None
        ):
            return self.convert(self.convert(amount, from_currency, via), via, to_currency)

        raise ValueError(
            f"Exchange rate from {from_currency} to {to_currency} not available."
        )

    def to_home(self, amount: Decimal, market: str) -> Decimal:
        """Convert an amount in the market's native currency to the home currency."""
        currency = currency_for_market(market)
        return self.convert(amount, currency, self.home_currency)

    def from_home(self, amount_home: Decimal, market: str) -> Decimal:
        """Convert a home-currency amount into the market's native currency."""
        currency = currency_for_market(market)
        return self.convert(amount_home, self.home_currency, currency)


def get_currency_converter(settings=None) -> CurrencyConverter:
    """Build the converter from the configured USD->HKD and HKD->CNY rates."""
    settings = settings or get_settings()
    return CurrencyConverter(
        rates={
            ("USD", "HKD"): Decimal(settings.usd_to_hkd),
            ("HKD", "CNY"): Decimal(settings.hkd_to_cny),
        }
    )
