"""API request and response models."""

from .requests import PortfolioCreateRequest, TradeCreateRequest
from .responses import (
    BaseResponse,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    PortfolioListResponse,
    PortfolioOverviewResponse,
    PortfolioResponse,
    ProfileResponse,
    QuoteResponse,
    StatusResponse,
    SuccessResponse,
    TradeResponse,
    TransactionHistoryResponse,
)

__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "HealthResponse",
    "HealthStatus",
    "PortfolioCreateRequest",
    "PortfolioListResponse",
    "PortfolioOverviewResponse",
    "PortfolioResponse",
    "ProfileResponse",
    "QuoteResponse",
    "StatusResponse",
    "SuccessResponse",
    "TradeCreateRequest",
    "TradeResponse",
    "TransactionHistoryResponse",
]
