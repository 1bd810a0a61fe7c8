"""Exception hierarchy for the papertrade core."""

from typing import Any, Dict, Optional


class PaperTradeException(Exception):
    """Base exception for papertrade errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidOrder(PaperTradeException):
    """Malformed trade or portfolio input, rejected before any store access."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"field": field} if field else {},
        )


class InsufficientShares(PaperTradeException):
    """Sell order exceeds the currently held long quantity."""

    def __init__(self, symbol: str, held: int, requested: int):
        super().__init__(
            message=f"Insufficient shares. You own {held} shares of {symbol}, "
            f"cannot sell {requested}.",
            status_code=409,
            details={"symbol": symbol, "held": held, "requested": requested},
        )


class InsufficientFunds(PaperTradeException):
    """Buy order exceeds the simulated cash balance."""

    def __init__(self, required: Any, available: Any):
        super().__init__(
            message=f"Insufficient funds: trade requires {required} but only "
            f"{available} is available.",
            status_code=409,
            details={"required": str(required), "available": str(available)},
        )


class QuoteUnavailable(PaperTradeException):
    """No fresh or stale quote could be obtained for a symbol/market pair."""

    def __init__(self, symbol: str, market: str, reason: str = ""):
        message = f"Quote unavailable for {symbol} in {market} market"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            status_code=503,
            details={"symbol": symbol, "market": market},
        )


class TradeExecutionFailed(PaperTradeException):
    """The multi-step trade write failed and was rolled back."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(
            message=f"Trade execution failed: {message}",
            status_code=500,
            details={"stage": stage} if stage else {},
        )


class StoreUnavailable(PaperTradeException):
    """Backend read or write failed for reasons unrelated to business rules."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            message=f"Data store {operation} failed: {message}",
            status_code=503,
            details={"operation": operation},
        )


class NotFoundError(PaperTradeException):
    """Resource does not exist or is not owned by the caller."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)},
        )


class ConfigurationError(PaperTradeException):
    """Required configuration is missing or invalid."""

    def __init__(self, setting: str, message: str):
        super().__init__(
            message=f"Configuration error for '{setting}': {message}",
            status_code=500,
            details={"setting": setting},
        )
