from fastapi import APIRouter

from callboard.dependencies import BusinessTzDep, LifecycleDep
from callboard.mappers.formatting import record_payload
from callboard.schemas.responses import ContactStatusRequest, FollowupRequest, NotesRequest

router = APIRouter(tags=["records"])


@router.patch("/calls/{call_id}/followup")
async def set_call_followup(
    call_id: str, body: FollowupRequest, lifecycle: LifecycleDep, tz: BusinessTzDep
) -> dict:
    call = await lifecycle.set_call_followup(call_id, body.status)
    return record_payload(call, tz)


@router.patch("/contacts/{contact_id}/status")
async def set_contact_status(
    contact_id: str, body: ContactStatusRequest, lifecycle: LifecycleDep, tz: BusinessTzDep
) -> dict:
    contact = await lifecycle.set_contact_status(contact_id, body.status)
    return record_payload(contact, tz)


@router.patch("/contacts/{contact_id}/notes")
async def save_contact_notes(
    contact_id: str, body: NotesRequest, lifecycle: LifecycleDep, tz: BusinessTzDep
) -> dict:
    contact = await lifecycle.save_contact_notes(contact_id, body.notes)
    return record_payload(contact, tz)


@router.post("/appointments/{appointment_id}/complete")
async def complete_appointment(
    appointment_id: str, lifecycle: LifecycleDep, tz: BusinessTzDep
) -> dict:
    appointment = await lifecycle.complete_appointment(appointment_id)
    return record_payload(appointment, tz)
