from zoneinfo import ZoneInfo

from fastapi import APIRouter, Response

from callboard.dependencies import BusinessTzDep, ViewStoreDep
from callboard.mappers.formatting import record_payload
from callboard.schemas.responses import DetailViewResponse
from callboard.services.detail import DetailAggregator, EntityType

router = APIRouter(prefix="/details", tags=["details"])


def build_detail_response(
    view_id: str, detail: DetailAggregator, tz: ZoneInfo
) -> DetailViewResponse:
    return DetailViewResponse(
        view_id=view_id,
        entity_type=detail.entity_type.value,
        entity=record_payload(detail.entity, tz),
        history=[record_payload(item, tz) for item in detail.history],
        expanded=sorted(detail.expanded),
        latest=record_payload(detail.latest, tz) if detail.latest else None,
        service_interest=detail.service_interest,
    )


@router.get("/views/{view_id}", response_model=DetailViewResponse)
async def get_detail_view(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> DetailViewResponse:
    return build_detail_response(view_id, views.get_detail(view_id), tz)


@router.post("/views/{view_id}/toggle/{item_id}", response_model=DetailViewResponse)
async def toggle_item(
    view_id: str, item_id: str, views: ViewStoreDep, tz: BusinessTzDep
) -> DetailViewResponse:
    detail = views.get_detail(view_id)
    detail.toggle(item_id)
    return build_detail_response(view_id, detail, tz)


@router.post("/views/{view_id}/expand_all", response_model=DetailViewResponse)
async def expand_all(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> DetailViewResponse:
    detail = views.get_detail(view_id)
    detail.expand_all()
    return build_detail_response(view_id, detail, tz)


@router.post("/views/{view_id}/collapse_all", response_model=DetailViewResponse)
async def collapse_all(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> DetailViewResponse:
    detail = views.get_detail(view_id)
    detail.collapse_all()
    return build_detail_response(view_id, detail, tz)


@router.post("/views/{view_id}/reload", response_model=DetailViewResponse)
async def reload_detail(view_id: str, views: ViewStoreDep, tz: BusinessTzDep) -> DetailViewResponse:
    detail = views.get_detail(view_id)
    await detail.reload()
    return build_detail_response(view_id, detail, tz)


@router.delete("/views/{view_id}", status_code=204)
async def close_detail_view(view_id: str, views: ViewStoreDep) -> Response:
    views.close(view_id)
    return Response(status_code=204)


@router.post("/{entity_type}/{entity_id}", response_model=DetailViewResponse, status_code=201)
async def open_detail_view(
    entity_type: EntityType, entity_id: str, views: ViewStoreDep, tz: BusinessTzDep
) -> DetailViewResponse:
    view_id, detail = await views.open_detail(entity_type, entity_id)
    return build_detail_response(view_id, detail, tz)


