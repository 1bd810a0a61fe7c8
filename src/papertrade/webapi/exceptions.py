"""Exception handlers rendering every error as an ErrorResponse body."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config.logging import get_logger
from ..exceptions import PaperTradeException
from .models.responses import ErrorResponse

logger = get_logger(__name__)


def _error_response(request: Request, status_code: int, error: dict) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    body = ErrorResponse(success=False, error=error, request_id=request_id)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def papertrade_exception_handler(
    request: Request, exc: PaperTradeException
) -> JSONResponse:
    """Handle domain exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(
        request,
        exc.status_code,
        {
            "type": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
            "status_code": exc.status_code,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    logger.warning(
        "Validation error occurred",
        field_errors=field_errors,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(
        request,
        422,
        {
            "type": "ValidationError",
            "message": "Request validation failed",
            "details": {"field_errors": field_errors},
            "status_code": 422,
        },
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
    )

    return _error_response(
        request,
        exc.status_code,
        {
            "type": "HTTPException",
            "message": str(exc.detail),
            "status_code": exc.status_code,
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unexpected exception occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    # Internal details are not exposed
    return _error_response(
        request,
        500,
        {
            "type": "InternalServerError",
            "message": "An unexpected error occurred",
            "status_code": 500,
        },
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(PaperTradeException, papertrade_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
