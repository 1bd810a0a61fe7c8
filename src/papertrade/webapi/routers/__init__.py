"""API routers."""

from fastapi import APIRouter

from . import health, portfolios, quotes, session, trades, transactions

# Create main API router
router = APIRouter()

router.include_router(health.router, tags=["Health & Status"])
router.include_router(session.router, tags=["Session"])
router.include_router(quotes.router, tags=["Quotes"])
router.include_router(portfolios.router, prefix="/portfolios", tags=["Portfolios"])
router.include_router(trades.router, prefix="/trades", tags=["Trades"])
router.include_router(
    transactions.router, prefix="/transactions", tags=["Transactions"]
)

__all__ = ["router"]
