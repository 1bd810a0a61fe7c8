"""FastAPI application exposing the paper trading core."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config.logging import get_logger
from ..ormdb.database import create_tables
from .exceptions import setup_exception_handlers
from .routers import router as api_router
from .routers.health import API_VERSION

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting papertrade API")

    try:
        create_tables()
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e), exc_info=True)
        raise RuntimeError(f"Database initialization failed: {str(e)}")

    logger.info("papertrade API started successfully")

    yield

    logger.info("papertrade API shutdown completed")


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        query_params=str(request.query_params),
        user_id=request.headers.get("x-user-id"),
        remote_addr=request.client.host if request.client else None,
    )

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )

    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="papertrade API",
        description="""
        Paper trading simulator for HK, CN and US equities.

        * **Quotes**: end-of-day prices with a one hour cache
        * **Trades**: buy and sell against a simulated USD cash balance
        * **Portfolios**: holdings valued in USD with long and short totals
        * **History**: transactions filtered by portfolio, date, side and symbol
        """,
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Add middleware for request tracking
    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(api_router)

    logger.info("FastAPI application created")
    return app


# Create the app instance
app = create_app()
