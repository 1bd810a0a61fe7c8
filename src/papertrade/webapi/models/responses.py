"""Response models for the papertrade API."""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# Generic type for data responses
T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseResponse(BaseModel):
    """Base response model for all API responses."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Response timestamp"
    )
    request_id: Optional[str] = Field(
        None, description="Unique request identifier for tracking"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        """Serialize datetime to ISO format with Z suffix."""
        return dt.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic success response with typed data."""

    success: bool = Field(True, description="Always true for success responses")
    data: T = Field(..., description="Response data")
    message: Optional[str] = Field(None, description="Optional success message")


class ErrorResponse(BaseResponse):
    """Error response model."""

    success: bool = Field(False, description="Always false for error responses")
    error: Dict[str, Any] = Field(..., description="Error details")


class HealthStatus(BaseModel):
    """Health status model."""

    status: str = Field(..., description="Overall health status: healthy, unhealthy")
    services: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Individual service statuses"
    )
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: Optional[str] = Field(None, description="Application version")


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = Field(True, description="Always true for health responses")
    health: HealthStatus = Field(..., description="Detailed health information")


class StatusResponse(SuccessResponse[Dict[str, Any]]):
    """Generic status response."""

    data: Dict[str, Any] = Field(..., description="Status data")

    @classmethod
    def create(
        cls,
        data: Dict[str, Any],
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "StatusResponse":
        """Create a status response."""
        return cls(success=True, data=data, message=message, request_id=request_id)


class ProfileData(BaseModel):
    """Simulation profile of the current user."""

    user_id: str
    email: Optional[str] = None
    cash_balance: float = Field(..., description="Cash balance in USD")
    created_at: Optional[datetime] = None


class QuoteData(BaseModel):
    """End-of-day quote in the market's native currency."""

    symbol: str
    market: str
    name: str
    currency: str
    price: float
    open: float
    high: float
    low: float
    close: float
    volume: int
    change: float
    change_percent: float
    as_of_date: Optional[str] = None
    last_updated: datetime
    stale: bool = Field(False, description="Served from an expired cache entry")


class ValuationTotalsData(BaseModel):
    """Totals in USD. Long and short exposure are reported separately."""

    total_value: float
    total_cost: float
    total_pnl: float
    total_pnl_pct: float
    long_value: float
    short_value: float


class HoldingData(BaseModel):
    """One valued holding."""

    symbol: str
    market: str
    shares: int
    average_cost: float
    current_price: float
    currency: str
    current_value: float
    cost_value: float
    unrealized_pnl: float
    unrealized_pnl_pct: float
    price_available: bool
    quote_stale: bool


class PortfolioData(BaseModel):
    """Portfolio list entry with computed values."""

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    num_holdings: int
    totals: ValuationTotalsData


class PortfolioOverviewData(BaseModel):
    """One portfolio with valued holdings, cash and realized P/L."""

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    cash_balance: float
    realized_pnl: float
    holdings: List[HoldingData]
    totals: ValuationTotalsData


class PositionData(BaseModel):
    symbol: str
    market: str
    shares: int
    average_cost: float


class TradeData(BaseModel):
    """Executed trade."""

    transaction_id: int
    portfolio_id: int
    symbol: str
    symbol_name: str
    market: str
    side: str
    shares: int
    price: float
    currency: str
    home_amount: float
    realized_pnl: float
    holding: Optional[PositionData] = Field(
        None, description="Holding after the trade; null when it was closed"
    )
    cash_balance: float
    executed_at: datetime
    quote_stale: bool


class TransactionData(BaseModel):
    id: int
    portfolio_id: int
    symbol: str
    symbol_name: Optional[str] = None
    market: str
    side: str
    shares: int
    price: float
    currency: str
    total_amount: float
    home_amount: float
    realized_pnl: float
    transaction_date: datetime


class TransactionHistoryData(BaseModel):
    """Filtered transactions with per-side totals in USD."""

    transactions: List[TransactionData]
    count: int
    total_bought: float
    total_sold: float


class ProfileResponse(SuccessResponse[ProfileData]):
    data: ProfileData


class QuoteResponse(SuccessResponse[QuoteData]):
    data: QuoteData


class PortfolioListResponse(SuccessResponse[List[PortfolioData]]):
    data: List[PortfolioData]


class PortfolioResponse(SuccessResponse[PortfolioData]):
    data: PortfolioData


class PortfolioOverviewResponse(SuccessResponse[PortfolioOverviewData]):
    data: PortfolioOverviewData


class TradeResponse(SuccessResponse[TradeData]):
    data: TradeData


class TransactionHistoryResponse(SuccessResponse[TransactionHistoryData]):
    data: TransactionHistoryData
