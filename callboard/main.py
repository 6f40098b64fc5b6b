import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from callboard.config import Settings
from callboard.exceptions.custom import (
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitError,
    StoreError,
    ViewNotFoundError,
)
from callboard.exceptions.handlers import (
    invalid_range_error_handler,
    invalid_transition_error_handler,
    not_found_error_handler,
    rate_limit_error_handler,
    store_error_handler,
    view_not_found_error_handler,
)
from callboard.mappers.time_window import get_timezone
from callboard.routers.details import router as details_router
from callboard.routers.records import router as records_router
from callboard.routers.views import router as views_router
from callboard.services.record_store import RecordStoreService
from callboard.services.status_lifecycle import StatusLifecycleService
from callboard.views import ViewStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    tz = get_timezone(settings.business_timezone)

    async with httpx.AsyncClient(timeout=settings.store_timeout_seconds) as client:
        store = RecordStoreService(client, settings.supabase_url, settings.supabase_key)
        views = ViewStore(
            store,
            tz,
            max_views=settings.max_views,
            calls_refresh_seconds=settings.calls_refresh_seconds,
        )

        app.state.business_timezone = tz
        app.state.view_store = views
        app.state.lifecycle_service = StatusLifecycleService(store, views)

        logger.info("Callboard started (business timezone %s)", tz.key)
        try:
            yield
        finally:
            views.close_all()


app = FastAPI(title="Callboard", lifespan=lifespan)

app.add_exception_handler(StoreError, store_error_handler)
app.add_exception_handler(NotFoundError, not_found_error_handler)
app.add_exception_handler(ViewNotFoundError, view_not_found_error_handler)
app.add_exception_handler(InvalidRangeError, invalid_range_error_handler)
app.add_exception_handler(InvalidTransitionError, invalid_transition_error_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)

app.include_router(views_router)
app.include_router(details_router)
app.include_router(records_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
