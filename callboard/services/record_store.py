import logging
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from callboard.exceptions.custom import NotFoundError, RateLimitError, StoreError
from callboard.schemas.records import Appointment, Call, Contact, Customer, Record
from callboard.schemas.store import (
    Collection,
    EqFilter,
    Filter,
    Order,
    RangeFilter,
    SearchFilter,
)

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"

COLLECTION_MODELS: dict[Collection, type[Record]] = {
    Collection.calls: Call,
    Collection.contacts: Contact,
    Collection.appointments: Appointment,
    Collection.customers: Customer,
}

# Embedded relations returned alongside list rows
LIST_SELECTS: dict[Collection, str] = {
    Collection.calls: "*,contacts(id,name,phone,email,status)",
    Collection.appointments: "*,customers(id,name,phone,email)",
    Collection.contacts: "*",
    Collection.customers: "*",
}


def format_instant(instant: datetime) -> str:
    """UTC ISO 8601 with a Z suffix, microsecond precision."""
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def build_filter_params(filters: list[Filter]) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for f in filters:
        if isinstance(f, RangeFilter):
            params.append((f.field, f"gte.{format_instant(f.start)}"))
            params.append((f.field, f"lte.{format_instant(f.end)}"))
        elif isinstance(f, EqFilter):
            params.append((f.field, f"eq.{f.value}"))
        elif isinstance(f, SearchFilter):
            params.append((f.field, f"ilike.*{f.term}*"))
    return params


class RecordStoreService:
    """Client for a PostgREST-style record store (e.g. Supabase)."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str):
        self._client = client
        self._base_url = base_url.rstrip("/") + REST_PATH
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def collection_url(self, collection: Collection) -> str:
        return f"{self._base_url}/{collection.value}"

    async def _send(
        self,
        method: str,
        collection: Collection,
        params: list[tuple[str, str]],
        json: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[Record]:
        try:
            resp = await self._client.request(
                method,
                self.collection_url(collection),
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code == 429:
            raise RateLimitError("record store")
        if resp.status_code >= 400:
            raise StoreError(resp.text, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreError(
                f"Undecodable {collection.value} payload: {exc}",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(data, list):
            raise StoreError(
                f"Unexpected {collection.value} payload: {type(data).__name__}",
                status_code=resp.status_code,
            )

        model = COLLECTION_MODELS[collection]
        try:
            return [model.model_validate(row) for row in data]
        except ValidationError as exc:
            logger.warning("Malformed %s row from store: %s", collection.value, exc)
            raise StoreError(
                f"Malformed {collection.value} record: {exc.error_count()} validation error(s)",
                status_code=resp.status_code,
            ) from exc

    async def query(
        self,
        collection: Collection,
        filters: list[Filter] | None = None,
        order: Order | None = None,
        select: str | None = None,
    ) -> list[Record]:
        params = [("select", select or LIST_SELECTS[collection])]
        params.extend(build_filter_params(filters or []))
        if order:
            direction = "asc" if order.ascending else "desc"
            params.append(("order", f"{order.field}.{direction}"))

        records = await self._send("GET", collection, params)
        logger.info("Fetched %d %s", len(records), collection.value)
        return records

    async def get(self, collection: Collection, record_id: str) -> Record:
        params = [("select", "*"), ("id", f"eq.{record_id}"), ("limit", "1")]
        records = await self._send("GET", collection, params)
        if not records:
            raise NotFoundError(collection.value, record_id)

        logger.info("Fetched %s %s", collection.value, record_id)
        return records[0]

    async def update(
        self, collection: Collection, record_id: str, patch: dict
    ) -> Record:
        records = await self._send(
            "PATCH",
            collection,
            [("id", f"eq.{record_id}")],
            json=patch,
            headers={"Prefer": "return=representation"},
        )
        if not records:
            raise NotFoundError(collection.value, record_id)

        logger.info("Updated %s %s: %s", collection.value, record_id, sorted(patch))
        return records[0]
