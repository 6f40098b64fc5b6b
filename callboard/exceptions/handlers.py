import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import (
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitError,
    StoreError,
    ViewNotFoundError,
)

logger = logging.getLogger(__name__)


async def store_error_handler(_request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Record store error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Record store error: {exc.message}", "retryable": True},
    )


async def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    logger.warning("Not found: %s", exc.message)
    return JSONResponse(status_code=404, content={"detail": exc.message})


async def view_not_found_error_handler(_request: Request, exc: ViewNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message})


async def invalid_range_error_handler(_request: Request, exc: InvalidRangeError) -> JSONResponse:
    logger.warning("Rejected date range: %s", exc.message)
    return JSONResponse(status_code=422, content={"detail": exc.message})


async def invalid_transition_error_handler(
    _request: Request, exc: InvalidTransitionError
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": exc.message, "current": exc.current, "target": exc.target},
    )


async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning("Rate limit hit for %s", exc.service)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded for {exc.service}", "retryable": True},
    )
