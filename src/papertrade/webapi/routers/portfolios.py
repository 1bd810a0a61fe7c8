"""Portfolio endpoints."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services.trading import TradingService, UserContext, ValuationTotals
from ..dependencies import get_current_user, get_trading_service
from ..models.mappers import overview_data, portfolio_data, totals_data
from ..models.requests import PortfolioCreateRequest
from ..models.responses import (
    PortfolioData,
    PortfolioListResponse,
    PortfolioOverviewResponse,
    PortfolioResponse,
    StatusResponse,
)

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=PortfolioListResponse,
    summary="List Portfolios",
    description="The user's portfolios, newest first, with computed values",
)
async def list_portfolios(
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> PortfolioListResponse:
    summaries = await service.list_portfolios(user)
    return PortfolioListResponse(
        data=[portfolio_data(s) for s in summaries],
        request_id=getattr(request.state, "request_id", None),
    )


@router.post(
    "",
    response_model=PortfolioResponse,
    status_code=201,
    summary="Create Portfolio",
)
async def create_portfolio(
    body: PortfolioCreateRequest,
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> PortfolioResponse:
    request_id = getattr(request.state, "request_id", None)
    portfolio = service.create_portfolio(user, body.name, body.description)

    logger.info(
        "Portfolio created via API",
        user_id=user.user_id,
        portfolio_id=portfolio.id,
        request_id=request_id,
    )
    return PortfolioResponse(
        data=PortfolioData(
            id=portfolio.id,
            name=portfolio.name,
            description=portfolio.description,
            created_at=portfolio.created_at,
            num_holdings=0,
            totals=totals_data(ValuationTotals()),
        ),
        message=f"Portfolio '{portfolio.name}' created",
        request_id=request_id,
    )


@router.get(
    "/{portfolio_id}",
    response_model=PortfolioOverviewResponse,
    summary="Portfolio Overview",
    description="Holdings valued at current prices, totals, cash and realized P/L",
)
async def get_portfolio(
    portfolio_id: int,
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> PortfolioOverviewResponse:
    overview = await service.get_portfolio_overview(user, portfolio_id)
    return PortfolioOverviewResponse(
        data=overview_data(overview),
        request_id=getattr(request.state, "request_id", None),
    )


@router.delete(
    "/{portfolio_id}",
    response_model=StatusResponse,
    summary="Delete Portfolio",
    description="Delete a portfolio with its holdings and transactions",
)
async def delete_portfolio(
    portfolio_id: int,
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> StatusResponse:
    service.delete_portfolio(user, portfolio_id)
    return StatusResponse.create(
        data={"status": "deleted", "portfolio_id": portfolio_id},
        request_id=getattr(request.state, "request_id", None),
    )
