from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from callboard.schemas.records import ContactStatus, FollowupStatus
from callboard.schemas.timeframe import DraftRange, TimeframeSelector, TimeWindow


class ListViewResponse(BaseModel):
    view_id: str
    collection: str
    timeframe: TimeframeSelector | None = None
    draft: DraftRange | None = None
    window: TimeWindow | None = None
    status_filter: str | None = None
    search: str | None = None
    loading: bool
    refreshing: bool
    auto_refresh: bool
    error: str | None = None
    last_loaded_at: datetime | None = None
    records: list[dict]


class DetailViewResponse(BaseModel):
    view_id: str
    entity_type: str
    entity: dict
    history: list[dict]
    expanded: list[str]
    latest: dict | None = None
    service_interest: str | None = None


class DraftRequest(BaseModel):
    start_date: date | None = None
    end_date: date | None = None


class FilterRequest(BaseModel):
    status: ContactStatus | None = None
    search: str | None = None


class OpenListRequest(BaseModel):
    timeframe: TimeframeSelector | None = None
    status: ContactStatus | None = ContactStatus.needs_attention


class FollowupRequest(BaseModel):
    status: FollowupStatus


class ContactStatusRequest(BaseModel):
    status: ContactStatus


class NotesRequest(BaseModel):
    notes: str
