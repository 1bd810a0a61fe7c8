"""Request dependencies: authentication, identity and the trading service."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..services.trading import TradingService, UserContext, create_trading_service

logger = get_logger(__name__)

# Bearer token is only enforced when ENDPOINT_AUTH_TOKEN is configured
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_trading_service() -> TradingService:
    """Dependency to get the shared trading service instance."""
    return create_trading_service()


def verify_auth_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """
    Verify the bearer token when one is configured.

    Raises:
        HTTPException: 401 if the token is missing or does not match
    """
    expected_token = get_settings().endpoint_auth_token
    if not expected_token:
        return None

    if credentials is None or credentials.credentials != expected_token:
        logger.warning(
            "Invalid authentication attempt",
            token_provided=credentials is not None,
        )
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return credentials.credentials


def get_current_user(
    x_user_id: Optional[str] = Header(None, description="Stable user identifier"),
    x_user_email: Optional[str] = Header(None, description="User email"),
    token: Optional[str] = Depends(verify_auth_token),
    service: TradingService = Depends(get_trading_service),
) -> UserContext:
    """
    Resolve the caller into a request-scoped UserContext.

    The profile and default portfolio are provisioned on first sight.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id header is required")

    return service.get_user_context(x_user_id.strip(), x_user_email)
