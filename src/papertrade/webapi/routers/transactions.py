"""Transaction history endpoint."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ...config.logging import get_logger
from ...services.trading import TradingService, UserContext
from ..dependencies import get_current_user, get_trading_service
from ..models.mappers import history_data
from ..models.responses import TransactionHistoryResponse

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=TransactionHistoryResponse,
    summary="Transaction History",
    description="Transactions newest first, with total bought and sold in USD",
)
async def list_transactions(
    request: Request,
    portfolio_id: Optional[int] = Query(None, description="Restrict to one portfolio"),
    date_: Optional[date] = Query(None, alias="date", description="Single day (UTC)"),
    start: Optional[date] = Query(None, description="First day of a range"),
    end: Optional[date] = Query(None, description="Last day of a range"),
    side: Optional[str] = Query(None, description="buy or sell"),
    symbol: Optional[str] = Query(None, description="Restrict to one symbol"),
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> TransactionHistoryResponse:
    history = service.get_transaction_history(
        user,
        portfolio_id=portfolio_id,
        on_date=date_,
        start=start,
        end=end,
        side=side,
        symbol=symbol,
    )
    return TransactionHistoryResponse(
        data=history_data(history),
        request_id=getattr(request.state, "request_id", None),
    )
