import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from callboard.exceptions.custom import InvalidRangeError, RateLimitError, StoreError
from callboard.mappers.time_window import resolve
from callboard.schemas.records import ContactStatus, Record
from callboard.schemas.store import Collection, EqFilter, Filter, Order, RangeFilter, SearchFilter
from callboard.schemas.timeframe import DraftRange, Timeframe, TimeframeSelector, TimeWindow
from callboard.services.record_store import RecordStoreService

logger = logging.getLogger(__name__)


class ListQueryController:
    """Owns the timeframe/filter state and record list of one list view.

    Every load or refresh takes the next sequence number; a response is only
    applied if no later query was issued in the meantime.
    """

    collection: Collection
    time_field: str
    order: Order
    default_timeframe: Timeframe | None = Timeframe.today

    def __init__(
        self,
        store: RecordStoreService,
        tz: ZoneInfo,
        *,
        timeframe: TimeframeSelector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._tz = tz
        self._clock = clock
        self.draft: DraftRange | None = None
        if timeframe is not None and not timeframe.is_complete:
            self.draft = DraftRange(start_date=timeframe.start_date, end_date=timeframe.end_date)
            timeframe = None
        elif timeframe is not None:
            resolve(timeframe, tz, now=self._now())
        if timeframe is None and self.default_timeframe is not None:
            timeframe = TimeframeSelector(timeframe=self.default_timeframe)
        self.timeframe: TimeframeSelector | None = timeframe
        self.records: list[Record] = []
        self.window: TimeWindow | None = None
        self.loading = False
        self.refreshing = False
        self.error: str | None = None
        self.last_loaded_at: datetime | None = None
        self.closed = False

        self._seq = 0
        self._flag_seq: dict[str, int] = {"loading": 0, "refreshing": 0}
        self._refresh_task: asyncio.Task | None = None
        self._refresh_interval: float | None = None

    # --- query building ---

    def _now(self) -> datetime:
        return self._clock() if self._clock else datetime.now(timezone.utc)

    def current_window(self) -> TimeWindow | None:
        if self.timeframe is None:
            return None
        return resolve(self.timeframe, self._tz, now=self._now())

    def extra_filters(self) -> list[Filter]:
        return []

    def build_filters(self, window: TimeWindow | None) -> list[Filter]:
        filters: list[Filter] = []
        if window is not None:
            filters.append(
                RangeFilter(field=self.time_field, start=window.start, end=window.end)
            )
        filters.extend(self.extra_filters())
        return filters

    # --- load / refresh ---

    async def load(self) -> bool:
        return await self._fetch("loading")

    async def refresh(self) -> bool:
        return await self._fetch("refreshing")

    async def _fetch(self, flag: str) -> bool:
        """Query the store and apply the result unless superseded.

        Returns True when this call's result was applied.
        """
        window = self.current_window()
        filters = self.build_filters(window)

        self._seq += 1
        seq = self._seq
        self._flag_seq[flag] = seq
        setattr(self, flag, True)

        try:
            records = await self._store.query(self.collection, filters, self.order)
        except (StoreError, RateLimitError) as exc:
            if seq != self._seq:
                logger.debug(
                    "Discarding superseded %s failure (seq=%d, latest=%d)",
                    self.collection.value, seq, self._seq,
                )
                return False
            self.error = getattr(exc, "message", None) or str(exc)
            logger.warning(
                "Failed to fetch %s, keeping %d previous records: %s",
                self.collection.value, len(self.records), self.error,
            )
            return False
        finally:
            if self._flag_seq[flag] == seq:
                setattr(self, flag, False)

        if seq != self._seq:
            logger.debug(
                "Discarding superseded %s response (seq=%d, latest=%d)",
                self.collection.value, seq, self._seq,
            )
            return False

        self.records = records
        self.window = window
        self.error = None
        self.last_loaded_at = datetime.now(timezone.utc)
        return True

    # --- timeframe ---

    async def set_timeframe(self, selector: TimeframeSelector) -> bool:
        """Switch timeframe and load.

        A custom selector missing a bound only updates the draft; nothing is
        queried until both bounds are present and confirmed.
        """
        if selector.timeframe != Timeframe.custom:
            self.draft = None
        elif not selector.is_complete:
            self.draft = DraftRange(start_date=selector.start_date, end_date=selector.end_date)
            return False
        else:
            resolve(selector, self._tz, now=self._now())
            self.draft = DraftRange(start_date=selector.start_date, end_date=selector.end_date)

        self.timeframe = selector
        self._reset_auto_refresh()
        return await self.load()

    def set_draft(self, start_date: date | None, end_date: date | None) -> DraftRange:
        self.draft = DraftRange(start_date=start_date, end_date=end_date)
        return self.draft

    async def confirm_draft(self) -> bool:
        if self.draft is None:
            raise InvalidRangeError("No custom range has been entered")
        selector = TimeframeSelector.custom(self.draft.start_date, self.draft.end_date)
        resolve(selector, self._tz, now=self._now())
        return await self.set_timeframe(selector)

    # --- periodic refresh ---

    @property
    def auto_refresh_active(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def start_auto_refresh(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self.stop_auto_refresh()
        self._refresh_interval = interval
        self._refresh_task = asyncio.create_task(self._auto_refresh_loop(interval))
        logger.debug("Auto refresh every %.1fs for %s", interval, self.collection.value)

    def stop_auto_refresh(self) -> None:
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None

    def _reset_auto_refresh(self) -> None:
        if self._refresh_task is not None and self._refresh_interval:
            self.start_auto_refresh(self._refresh_interval)

    async def _auto_refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except Exception:
                logger.exception("Auto refresh of %s failed", self.collection.value)

    def close(self) -> None:
        self.stop_auto_refresh()
        self._refresh_interval = None
        self.closed = True


class CallsListController(ListQueryController):
    collection = Collection.calls
    time_field = "call_time"
    order = Order(field="call_time", ascending=False)


class AppointmentsListController(ListQueryController):
    collection = Collection.appointments
    time_field = "appointment_time"
    order = Order(field="appointment_time", ascending=True)


class ContactsListController(ListQueryController):
    collection = Collection.contacts
    time_field = "created_at"
    order = Order(field="created_at", ascending=False)
    default_timeframe = None

    def __init__(
        self,
        *args,
        status_filter: ContactStatus | None = ContactStatus.needs_attention,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.status_filter = status_filter

    def extra_filters(self) -> list[Filter]:
        if self.status_filter is None:
            return []
        return [EqFilter(field="status", value=self.status_filter.value)]

    async def set_status_filter(self, status: ContactStatus | None) -> bool:
        """None shows contacts in every status."""
        self.status_filter = status
        return await self.load()


class CustomersListController(ListQueryController):
    collection = Collection.customers
    time_field = "created_at"
    order = Order(field="created_at", ascending=False)
    default_timeframe = None

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.search: str | None = None

    def extra_filters(self) -> list[Filter]:
        if not self.search:
            return []
        return [SearchFilter(field="name", term=self.search)]

    async def set_search(self, term: str | None) -> bool:
        self.search = (term or "").strip() or None
        return await self.load()


CONTROLLERS: dict[Collection, type[ListQueryController]] = {
    Collection.calls: CallsListController,
    Collection.appointments: AppointmentsListController,
    Collection.contacts: ContactsListController,
    Collection.customers: CustomersListController,
}
