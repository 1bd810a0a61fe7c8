"""Quote and market catalogue endpoints."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services.market_data import EXAMPLE_STOCKS, SUPPORTED_MARKETS
from ...services.trading import TradingService
from ..dependencies import get_trading_service, verify_auth_token
from ..models.mappers import quote_data
from ..models.responses import QuoteResponse, StatusResponse

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_auth_token)])


@router.get(
    "/markets",
    response_model=StatusResponse,
    summary="Supported Markets",
    description="Supported markets with example symbols",
)
async def list_markets(request: Request) -> StatusResponse:
    return StatusResponse.create(
        data={"markets": SUPPORTED_MARKETS, "examples": EXAMPLE_STOCKS},
        request_id=getattr(request.state, "request_id", None),
    )


@router.get(
    "/quotes/{market}/{symbol}",
    response_model=QuoteResponse,
    summary="Get Quote",
    description="Latest end-of-day quote, served from cache when fresh",
)
async def get_quote(
    market: str,
    symbol: str,
    request: Request,
    service: TradingService = Depends(get_trading_service),
) -> QuoteResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.info("Quote requested", symbol=symbol, market=market, request_id=request_id)

    quote = await service.get_quote(symbol, market)
    return QuoteResponse(data=quote_data(quote), request_id=request_id)
