import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import httpx
import pytest
import respx
from httpx import Response

from callboard.exceptions.custom import InvalidRangeError, StoreError
from callboard.mappers.time_window import end_of_day, start_of_day
from callboard.schemas.records import Appointment, Call, ContactStatus
from callboard.schemas.store import Collection, EqFilter, RangeFilter, SearchFilter
from callboard.schemas.timeframe import Timeframe, TimeframeSelector
from callboard.services.list_query import (
    AppointmentsListController,
    CallsListController,
    ContactsListController,
    CustomersListController,
)
from callboard.services.record_store import RecordStoreService

NY = ZoneInfo("America/New_York")
NOW = datetime(2024, 6, 15, 16, 0, tzinfo=timezone.utc)
CALLS_URL = "https://store.test/rest/v1/calls"


def _clock():
    return NOW


def _call(call_id: str, hour: int = 12) -> Call:
    return Call(id=call_id, call_time=datetime(2024, 6, 15, hour, tzinfo=NY))


def _store(*results):
    store = AsyncMock()
    store.query.side_effect = list(results) if results else None
    if not results:
        store.query.return_value = []
    return store


def _query_args(store, index=-1):
    args = store.query.call_args_list[index].args
    return args[0], args[1], args[2]


# --- load / query shape ---


async def test_calls_load_today_window_and_order():
    store = _store([_call("c1")])
    controller = CallsListController(store, NY, clock=_clock)

    applied = await controller.load()

    assert applied is True
    assert [c.id for c in controller.records] == ["c1"]
    assert controller.loading is False
    assert controller.error is None

    collection, filters, order = _query_args(store)
    assert collection == Collection.calls
    assert filters == [
        RangeFilter(
            field="call_time",
            start=start_of_day(date(2024, 6, 15), NY),
            end=end_of_day(date(2024, 6, 15), NY),
        )
    ]
    assert order.field == "call_time"
    assert order.ascending is False


async def test_appointments_ordered_earliest_first():
    store = _store([])
    controller = AppointmentsListController(store, NY, clock=_clock)
    await controller.load()

    collection, filters, order = _query_args(store)
    assert collection == Collection.appointments
    assert filters[0].field == "appointment_time"
    assert order.field == "appointment_time"
    assert order.ascending is True


async def test_contacts_filter_by_status_without_timeframe():
    store = _store([], [])
    controller = ContactsListController(store, NY, clock=_clock)
    assert controller.timeframe is None

    await controller.load()
    _, filters, order = _query_args(store)
    assert filters == [EqFilter(field="status", value="Needs Attention")]
    assert order.field == "created_at"
    assert order.ascending is False

    await controller.set_status_filter(None)
    _, filters, _ = _query_args(store)
    assert filters == []


async def test_contacts_status_filter_and_timeframe_combine():
    store = _store([])
    controller = ContactsListController(
        store, NY, clock=_clock, status_filter=ContactStatus.booked,
        timeframe=TimeframeSelector.week(),
    )
    await controller.load()

    _, filters, _ = _query_args(store)
    assert isinstance(filters[0], RangeFilter)
    assert filters[0].field == "created_at"
    assert filters[1] == EqFilter(field="status", value="Booked")


async def test_customers_search():
    store = _store([], [])
    controller = CustomersListController(store, NY, clock=_clock)

    await controller.set_search("  ana ")
    _, filters, _ = _query_args(store)
    assert filters == [SearchFilter(field="name", term="ana")]

    await controller.set_search("")
    _, filters, _ = _query_args(store)
    assert filters == []


# --- loading vs refreshing ---


async def test_load_sets_loading_refresh_sets_refreshing():
    seen: list[tuple[bool, bool]] = []
    controller = None

    async def _query(*_args):
        seen.append((controller.loading, controller.refreshing))
        return []

    store = AsyncMock()
    store.query.side_effect = _query
    controller = CallsListController(store, NY, clock=_clock)

    await controller.load()
    await controller.refresh()

    assert seen == [(True, False), (False, True)]
    assert controller.loading is False
    assert controller.refreshing is False


# --- supersession ---


async def test_slow_first_load_does_not_overwrite_second():
    first_gate = asyncio.Event()
    responses = {1: [_call("stale")], 2: [_call("fresh")]}
    calls = 0

    async def _query(*_args):
        nonlocal calls
        calls += 1
        n = calls
        if n == 1:
            await first_gate.wait()
        return responses[n]

    store = AsyncMock()
    store.query.side_effect = _query
    controller = CallsListController(store, NY, clock=_clock)

    first = asyncio.create_task(controller.load())
    await asyncio.sleep(0)
    second_applied = await controller.load()

    first_gate.set()
    first_applied = await first

    assert second_applied is True
    assert first_applied is False
    assert [c.id for c in controller.records] == ["fresh"]
    assert controller.loading is False


async def test_superseded_failure_does_not_set_error():
    gate = asyncio.Event()
    calls = 0

    async def _query(*_args):
        nonlocal calls
        calls += 1
        if calls == 1:
            await gate.wait()
            raise StoreError("timeout")
        return [_call("ok")]

    store = AsyncMock()
    store.query.side_effect = _query
    controller = CallsListController(store, NY, clock=_clock)

    first = asyncio.create_task(controller.refresh())
    await asyncio.sleep(0)
    await controller.load()
    gate.set()
    await first

    assert controller.error is None
    assert [c.id for c in controller.records] == ["ok"]
    assert controller.refreshing is False


# --- errors ---


async def test_failed_query_keeps_previous_records():
    store = _store([_call("c1")], StoreError("down", status_code=503))
    controller = CallsListController(store, NY, clock=_clock)

    await controller.load()
    applied = await controller.refresh()

    assert applied is False
    assert [c.id for c in controller.records] == ["c1"]
    assert controller.error == "down"
    assert controller.refreshing is False


async def test_successful_retry_clears_error():
    store = _store(StoreError("down"), [_call("c1")])
    controller = CallsListController(store, NY, clock=_clock)

    await controller.load()
    assert controller.error == "down"
    assert controller.loading is False

    await controller.refresh()
    assert controller.error is None
    assert len(controller.records) == 1


# --- timeframe / draft ---


async def test_set_timeframe_triggers_load():
    store = _store([], [])
    controller = CallsListController(store, NY, clock=_clock)

    await controller.set_timeframe(TimeframeSelector.month())

    assert store.query.await_count == 1
    assert controller.timeframe.timeframe == Timeframe.month
    assert controller.window.start == start_of_day(date(2024, 6, 1), NY)


async def test_incomplete_custom_stays_idle():
    store = _store()
    controller = CallsListController(store, NY, clock=_clock)

    applied = await controller.set_timeframe(TimeframeSelector.custom(date(2024, 6, 1), None))

    assert applied is False
    store.query.assert_not_awaited()
    assert controller.timeframe.timeframe == Timeframe.today
    assert controller.draft.start_date == date(2024, 6, 1)
    assert controller.draft.end_date is None


async def test_draft_then_confirm_queries_custom_window():
    store = _store([_call("c1")])
    controller = CallsListController(store, NY, clock=_clock)

    controller.set_draft(date(2024, 6, 1), None)
    controller.set_draft(date(2024, 6, 1), date(2024, 6, 3))
    store.query.assert_not_awaited()

    await controller.confirm_draft()

    assert store.query.await_count == 1
    _, filters, _ = _query_args(store)
    assert filters[0].start == start_of_day(date(2024, 6, 1), NY)
    assert filters[0].end == end_of_day(date(2024, 6, 3), NY)
    assert controller.timeframe.timeframe == Timeframe.custom


async def test_confirm_inverted_draft_rejected_before_query():
    store = _store()
    controller = CallsListController(store, NY, clock=_clock)
    controller.set_draft(date(2024, 6, 3), date(2024, 6, 1))

    with pytest.raises(InvalidRangeError):
        await controller.confirm_draft()

    store.query.assert_not_awaited()
    assert controller.timeframe.timeframe == Timeframe.today


async def test_confirm_without_draft_rejected():
    controller = CallsListController(_store(), NY, clock=_clock)
    with pytest.raises(InvalidRangeError):
        await controller.confirm_draft()


async def test_switching_away_from_custom_clears_draft():
    store = _store([], [])
    controller = CallsListController(store, NY, clock=_clock)

    await controller.set_timeframe(TimeframeSelector.custom(date(2024, 6, 1), date(2024, 6, 2)))
    assert controller.draft is not None

    await controller.set_timeframe(TimeframeSelector.week())
    assert controller.draft is None


# --- periodic refresh ---


async def test_auto_refresh_calls_refresh_periodically():
    store = _store()
    controller = CallsListController(store, NY, clock=_clock)

    controller.start_auto_refresh(0.01)
    await asyncio.sleep(0.055)
    controller.close()

    count = store.query.await_count
    assert count >= 2
    assert controller.auto_refresh_active is False

    await asyncio.sleep(0.03)
    assert store.query.await_count == count


async def test_auto_refresh_never_stacks():
    controller = CallsListController(_store(), NY, clock=_clock)

    controller.start_auto_refresh(10)
    first = controller._refresh_task
    controller.start_auto_refresh(10)
    second = controller._refresh_task
    await asyncio.sleep(0.01)

    assert first is not second
    assert first.cancelled()
    assert controller.auto_refresh_active is True
    controller.close()


async def test_timeframe_change_resets_timer():
    controller = CallsListController(_store(), NY, clock=_clock)
    controller.start_auto_refresh(10)
    before = controller._refresh_task

    await controller.set_timeframe(TimeframeSelector.week())
    await asyncio.sleep(0.01)

    assert before.cancelled()
    assert controller.auto_refresh_active is True
    controller.close()


async def test_timeframe_change_without_timer_does_not_start_one():
    controller = CallsListController(_store(), NY, clock=_clock)
    await controller.set_timeframe(TimeframeSelector.week())
    assert controller.auto_refresh_active is False


def test_auto_refresh_rejects_non_positive_interval():
    controller = CallsListController(_store(), NY, clock=_clock)
    with pytest.raises(ValueError):
        controller.start_auto_refresh(0)


@respx.mock
async def test_malformed_refresh_keeps_previous_records():
    rows = [{"id": "a", "call_time": "2024-06-15T14:00:00Z"}]
    respx.get(CALLS_URL).mock(side_effect=[
        Response(200, json=rows),
        Response(200, json=[{"id": "b", "call_time": None}]),
    ])

    async with httpx.AsyncClient() as client:
        store = RecordStoreService(client, "https://store.test", "test-key")
        controller = CallsListController(store, NY, clock=_clock)

        assert await controller.load() is True
        assert await controller.refresh() is False

    assert [c.id for c in controller.records] == ["a"]
    assert "Malformed calls record" in controller.error
    assert controller.refreshing is False
