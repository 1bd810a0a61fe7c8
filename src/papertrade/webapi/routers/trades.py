"""Trade execution endpoint."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services.trading import TradeRequest, TradingService, UserContext
from ..dependencies import get_current_user, get_trading_service
from ..models.mappers import trade_data
from ..models.requests import TradeCreateRequest
from ..models.responses import TradeResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=TradeResponse,
    status_code=201,
    summary="Execute Trade",
    description="Buy or sell shares at the given price or the latest quote",
)
async def execute_trade(
    body: TradeCreateRequest,
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> TradeResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.info(
        "Trade requested",
        user_id=user.user_id,
        portfolio_id=body.portfolio_id,
        symbol=body.symbol,
        side=body.side,
        shares=body.shares,
        request_id=request_id,
    )

    result = await service.execute_trade(
        user,
        TradeRequest(
            portfolio_id=body.portfolio_id,
            symbol=body.symbol,
            market=body.market,
            side=body.side,
            shares=body.shares,
            price=body.price,
        ),
    )

    return TradeResponse(
        data=trade_data(result),
        message=f"{result.side.value} {result.shares} {result.symbol} executed",
        request_id=request_id,
    )
