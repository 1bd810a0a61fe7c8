"""Session endpoint: first-login provisioning."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...services.trading import TradingService, UserContext
from ..dependencies import get_current_user, get_trading_service
from ..models.mappers import profile_data
from ..models.responses import ProfileResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/session",
    response_model=ProfileResponse,
    summary="Start Session",
    description="Provision the profile and Main Portfolio on first login",
)
async def start_session(
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: TradingService = Depends(get_trading_service),
) -> ProfileResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.info("Session started", user_id=user.user_id, request_id=request_id)

    profile = service.portfolio_manager.get_profile(user.user_id)
    return ProfileResponse(data=profile_data(profile), request_id=request_id)
