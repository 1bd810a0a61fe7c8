"""Request models for the papertrade API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PortfolioCreateRequest(BaseModel):
    """Request model for creating a portfolio."""

    name: str = Field(..., description="Portfolio name", min_length=1, max_length=100)
    description: Optional[str] = Field(
        None, description="Portfolio description", max_length=500
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Strip surrounding whitespace; reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class TradeCreateRequest(BaseModel):
    """Request model for executing a trade."""

    portfolio_id: int = Field(..., description="Portfolio to trade in")
    symbol: str = Field(
        ..., description="Stock symbol (e.g., AAPL, 0700, 600000)", max_length=20
    )
    market: str = Field(..., description="Market code: HK, CN or US")
    side: str = Field(..., description="Order side: buy or sell")
    shares: int = Field(..., description="Number of shares, a positive integer")
    price: Optional[Decimal] = Field(
        None,
        description="Execution price in the market's currency; "
        "the latest quote is used when omitted",
    )
