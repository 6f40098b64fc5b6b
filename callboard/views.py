from __future__ import annotations

import itertools
import logging
import uuid
from zoneinfo import ZoneInfo

from callboard.exceptions.custom import ViewNotFoundError
from callboard.schemas.store import Collection
from callboard.services.detail import DetailAggregator
from callboard.services.list_query import CONTROLLERS, ListQueryController
from callboard.services.record_store import RecordStoreService

logger = logging.getLogger(__name__)

View = ListQueryController | DetailAggregator


class ViewStore:
    """Live per-screen controllers and detail views, keyed by view id.

    Also the invalidation target for status changes: every live view showing
    a touched collection re-reads it.
    """

    def __init__(
        self,
        store: RecordStoreService,
        tz: ZoneInfo,
        *,
        max_views: int = 500,
        calls_refresh_seconds: float = 0,
    ) -> None:
        self._store = store
        self._tz = tz
        self._max_views = max_views
        self._calls_refresh_seconds = calls_refresh_seconds
        self._views: dict[str, View] = {}
        self._touched: dict[str, int] = {}
        self._clock = itertools.count()

    def __len__(self) -> int:
        return len(self._views)

    def _register(self, view: View) -> str:
        view_id = uuid.uuid4().hex[:12]
        self._views[view_id] = view
        self._touched[view_id] = next(self._clock)
        self._evict()
        return view_id

    def _evict(self) -> None:
        if len(self._views) <= self._max_views:
            return
        # Least recently used views go first
        candidates = sorted(self._touched, key=self._touched.get)
        while len(self._views) > self._max_views and candidates:
            view_id = candidates.pop(0)
            logger.info("Evicting idle view %s", view_id)
            self.close(view_id)

    async def open_list(self, collection: Collection, **kwargs) -> tuple[str, ListQueryController]:
        controller = CONTROLLERS[collection](self._store, self._tz, **kwargs)
        view_id = self._register(controller)
        await controller.load()
        if collection == Collection.calls and self._calls_refresh_seconds > 0:
            controller.start_auto_refresh(self._calls_refresh_seconds)
        return view_id, controller

    async def open_detail(self, entity_type: str, entity_id: str) -> tuple[str, DetailAggregator]:
        """Load first so a missing entity never registers a view."""
        aggregator = DetailAggregator(self._store)
        await aggregator.load_detail(entity_type, entity_id)
        return self._register(aggregator), aggregator

    def get(self, view_id: str) -> View:
        view = self._views.get(view_id)
        if view is None:
            raise ViewNotFoundError(view_id)
        self._touched[view_id] = next(self._clock)
        return view

    def get_list(self, view_id: str) -> ListQueryController:
        view = self.get(view_id)
        if not isinstance(view, ListQueryController):
            raise ViewNotFoundError(view_id)
        return view

    def get_detail(self, view_id: str) -> DetailAggregator:
        view = self.get(view_id)
        if not isinstance(view, DetailAggregator):
            raise ViewNotFoundError(view_id)
        return view

    def close(self, view_id: str) -> None:
        view = self._views.pop(view_id, None)
        self._touched.pop(view_id, None)
        if view is None:
            raise ViewNotFoundError(view_id)
        if isinstance(view, ListQueryController):
            view.close()

    def close_all(self) -> None:
        for view_id in list(self._views):
            self.close(view_id)

    async def invalidate(self, collection: Collection) -> None:
        """Re-read every live view that shows *collection*.

        A failing view is logged and skipped so the rest still re-read.
        """
        for view_id, view in list(self._views.items()):
            try:
                if isinstance(view, ListQueryController):
                    if view.collection == collection:
                        await view.refresh()
                elif collection in view.collections:
                    await view.reload()
            except Exception:
                logger.exception(
                    "Failed to re-read view %s after %s change", view_id, collection.value
                )
