"""Integration tests for the /details router."""

import respx
from httpx import AsyncClient, Response

STORE_URL = "https://store.test/rest/v1"
CALLS_URL = f"{STORE_URL}/calls"
CONTACTS_URL = f"{STORE_URL}/contacts"
CUSTOMERS_URL = f"{STORE_URL}/customers"
APPOINTMENTS_URL = f"{STORE_URL}/appointments"

CONTACT = {
    "id": "k1",
    "name": "Ana",
    "phone": "+15551230000",
    "status": "Needs Attention",
    "created_at": "2024-06-01T12:00:00Z",
}

CALLS = [
    {"id": "c2", "call_time": "2024-06-15T14:00:00Z", "contact_id": "k1", "service_interest": "AC repair"},
    {"id": "c1", "call_time": "2024-06-10T14:00:00Z", "contact_id": "k1"},
]


def _mock_contact_detail():
    respx.get(CONTACTS_URL).mock(return_value=Response(200, json=[CONTACT]))
    return respx.get(CALLS_URL).mock(return_value=Response(200, json=CALLS))


async def _open_contact(client: AsyncClient) -> dict:
    resp = await client.post("/details/contact/k1")
    assert resp.status_code == 201
    return resp.json()


@respx.mock
async def test_open_contact_detail(client):
    calls_route = _mock_contact_detail()

    detail = await _open_contact(client)

    assert detail["entity"]["name"] == "Ana"
    assert [c["id"] for c in detail["history"]] == ["c2", "c1"]
    assert detail["latest"]["id"] == "c2"
    assert detail["service_interest"] == "AC repair"
    assert detail["expanded"] == []

    params = calls_route.calls.last.request.url.params
    assert params["contact_id"] == "eq.k1"
    assert params["order"] == "call_time.desc"


@respx.mock
async def test_open_customer_detail(client):
    respx.get(CUSTOMERS_URL).mock(return_value=Response(200, json=[{
        "id": "u1", "name": "Bo", "email": "bo@example.com", "created_at": "2024-05-01T12:00:00Z",
    }]))
    route = respx.get(APPOINTMENTS_URL).mock(return_value=Response(200, json=[]))

    resp = await client.post("/details/customer/u1")

    assert resp.status_code == 201
    assert resp.json()["history"] == []
    assert resp.json()["latest"] is None
    assert route.calls.last.request.url.params["order"] == "appointment_time.desc"


@respx.mock
async def test_open_missing_contact(client):
    respx.get(CONTACTS_URL).mock(return_value=Response(200, json=[]))

    resp = await client.post("/details/contact/nope")
    assert resp.status_code == 404


async def test_unknown_entity_type(client):
    resp = await client.post("/details/vendor/v1")
    assert resp.status_code == 422


@respx.mock
async def test_expand_toggle_collapse_without_refetch(client):
    calls_route = _mock_contact_detail()
    detail = await _open_contact(client)
    view_id = detail["view_id"]

    resp = await client.post(f"/details/views/{view_id}/expand_all")
    assert resp.json()["expanded"] == ["c1", "c2"]

    resp = await client.post(f"/details/views/{view_id}/toggle/c2")
    assert resp.json()["expanded"] == ["c1"]

    resp = await client.post(f"/details/views/{view_id}/collapse_all")
    assert resp.json()["expanded"] == []

    assert calls_route.call_count == 1


@respx.mock
async def test_reload_and_close(client):
    calls_route = _mock_contact_detail()
    detail = await _open_contact(client)
    view_id = detail["view_id"]

    resp = await client.post(f"/details/views/{view_id}/reload")
    assert resp.status_code == 200
    assert calls_route.call_count == 2

    resp = await client.delete(f"/details/views/{view_id}")
    assert resp.status_code == 204
    assert (await client.get(f"/details/views/{view_id}")).status_code == 404


@respx.mock
async def test_contact_status_change_reloads_open_detail(client):
    calls_route = _mock_contact_detail()
    respx.patch(CONTACTS_URL).mock(return_value=Response(200, json=[{**CONTACT, "status": "Booked"}]))
    await _open_contact(client)

    resp = await client.patch("/contacts/k1/status", json={"status": "Booked"})

    assert resp.status_code == 200
    # contacts then calls invalidation each reload the detail view
    assert calls_route.call_count == 3


@respx.mock
async def test_entity_id_named_like_a_view_action(client):
    contacts_route = respx.get(CONTACTS_URL).mock(
        return_value=Response(200, json=[{**CONTACT, "id": "reload"}])
    )
    respx.get(CALLS_URL).mock(return_value=Response(200, json=[]))

    resp = await client.post("/details/contact/reload")

    assert resp.status_code == 201
    assert resp.json()["entity"]["id"] == "reload"
    assert contacts_route.calls.last.request.url.params["id"] == "eq.reload"
