import logging
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Response

from callboard.dependencies import BusinessTzDep, ViewStoreDep
from callboard.mappers.formatting import record_payload
from callboard.schemas.responses import (
    DraftRequest,
    FilterRequest,
    ListViewResponse,
    OpenListRequest,
)
from callboard.schemas.store import Collection
from callboard.schemas.timeframe import TimeframeSelector
from callboard.services.list_query import (
    ContactsListController,
    CustomersListController,
    ListQueryController,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/views", tags=["views"])


def build_list_response(
    view_id: str, controller: ListQueryController, tz: ZoneInfo
) -> ListViewResponse:
    status_filter = getattr(controller, "status_filter", None)
    return ListViewResponse(
        view_id=view_id,
        collection=controller.collection.value,
        timeframe=controller.timeframe,
        draft=controller.draft,
        window=controller.window,
        status_filter=status_filter.value if status_filter else None,
        search=getattr(controller, "search", None),
        loading=controller.loading,
        refreshing=controller.refreshing,
        auto_refresh=controller.auto_refresh_active,
        error=controller.error,
        last_loaded_at=controller.last_loaded_at,
        records=[record_payload(r, tz) for r in controller.records],
    )


@router.post("/{collection}", response_model=ListViewResponse, status_code=201)
async def open_list_view(
    collection: Collection,
    views: ViewStoreDep,
    tz: BusinessTzDep,
    request: OpenListRequest | None = None,
) -> ListViewResponse:
    kwargs: dict = {}
    if request and request.timeframe:
        kwargs["timeframe"] = request.timeframe
    if collection == Collection.contacts:
        kwargs["status_filter"] = request.status if request else OpenListRequest().status

    view_id, controller = await views.open_list(collection, **kwargs)
    logger.info("Opened %s view %s", collection.value, view_id)
    return build_list_response(view_id, controller, tz)


@router.get("/{view_id}", response_model=ListViewResponse)
async def get_list_view(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> ListViewResponse:
    return build_list_response(view_id, views.get_list(view_id), tz)


@router.put("/{view_id}/timeframe", response_model=ListViewResponse)
async def set_timeframe(
    view_id: str,
    selector: TimeframeSelector,
    views: ViewStoreDep,
    tz: BusinessTzDep,
) -> ListViewResponse:
    controller = views.get_list(view_id)
    await controller.set_timeframe(selector)
    return build_list_response(view_id, controller, tz)


@router.put("/{view_id}/draft", response_model=ListViewResponse)
async def set_draft(
    view_id: str,
    draft: DraftRequest,
    views: ViewStoreDep,
    tz: BusinessTzDep,
) -> ListViewResponse:
    controller = views.get_list(view_id)
    controller.set_draft(draft.start_date, draft.end_date)
    return build_list_response(view_id, controller, tz)


@router.post("/{view_id}/draft/confirm", response_model=ListViewResponse)
async def confirm_draft(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> ListViewResponse:
    controller = views.get_list(view_id)
    await controller.confirm_draft()
    return build_list_response(view_id, controller, tz)


@router.put("/{view_id}/filter", response_model=ListViewResponse)
async def set_filter(
    view_id: str,
    body: FilterRequest,
    views: ViewStoreDep,
    tz: BusinessTzDep,
) -> ListViewResponse:
    controller = views.get_list(view_id)
    if isinstance(controller, ContactsListController):
        await controller.set_status_filter(body.status)
    elif isinstance(controller, CustomersListController):
        await controller.set_search(body.search)
    else:
        await controller.load()
    return build_list_response(view_id, controller, tz)


@router.post("/{view_id}/refresh", response_model=ListViewResponse)
async def refresh_view(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> ListViewResponse:
    controller = views.get_list(view_id)
    await controller.refresh()
    return build_list_response(view_id, controller, tz)


@router.delete("/{view_id}", status_code=204)
async def close_view(view_id: str, views: ViewStoreDep) -> Response:
    views.close(view_id)
    return Response(status_code=204)
