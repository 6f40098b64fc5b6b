from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from callboard.services.status_lifecycle import StatusLifecycleService
from callboard.views import ViewStore


def get_view_store(request: Request) -> ViewStore:
    return request.app.state.view_store


def get_lifecycle_service(request: Request) -> StatusLifecycleService:
    return request.app.state.lifecycle_service


def get_business_timezone(request: Request) -> ZoneInfo:
    return request.app.state.business_timezone


ViewStoreDep = Annotated[ViewStore, Depends(get_view_store)]
LifecycleDep = Annotated[StatusLifecycleService, Depends(get_lifecycle_service)]
BusinessTzDep = Annotated[ZoneInfo, Depends(get_business_timezone)]
