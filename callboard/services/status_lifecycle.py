import logging

from callboard.exceptions.custom import InvalidTransitionError
from callboard.mappers.status_rules import (
    build_completion_patch,
    build_contact_status_patch,
    build_followup_patch,
    check_appointment_completion,
)
from callboard.schemas.records import Appointment, Call, Contact
from callboard.schemas.store import Collection
from callboard.services.record_store import RecordStoreService
from callboard.views import ViewStore

logger = logging.getLogger(__name__)


class StatusLifecycleService:
    """Validates and persists status changes, then invalidates list views.

    Local state is never patched: after a successful write every live list
    of the touched collection re-reads from the store.
    """

    def __init__(self, store: RecordStoreService, invalidator: ViewStore) -> None:
        self._store = store
        self._invalidator = invalidator

    async def _invalidate(self, *collections: Collection) -> None:
        for collection in collections:
            await self._invalidator.invalidate(collection)

    async def set_call_followup(self, call_id: str, status: str) -> Call:
        patch = build_followup_patch(status)
        call = await self._store.update(Collection.calls, call_id, patch)
        logger.info(
            "Call %s follow-up -> %s (needs_followup=%s)",
            call_id, patch["followup_status"], patch["needs_followup"],
        )
        await self._invalidate(Collection.calls)
        return call

    async def set_contact_status(self, contact_id: str, status: str) -> Contact:
        patch = build_contact_status_patch(status)
        contact = await self._store.update(Collection.contacts, contact_id, patch)
        logger.info("Contact %s status -> %s", contact_id, patch["status"])
        # Call lists embed the contact's status
        await self._invalidate(Collection.contacts, Collection.calls)
        return contact

    async def save_contact_notes(self, contact_id: str, notes: str) -> Contact:
        contact = await self._store.update(
            Collection.contacts, contact_id, {"notes": notes}
        )
        logger.info("Saved notes for contact %s", contact_id)
        await self._invalidate(Collection.contacts)
        return contact

    async def complete_appointment(self, appointment_id: str) -> Appointment:
        current = await self._store.get(Collection.appointments, appointment_id)
        try:
            check_appointment_completion(current.status)
        except InvalidTransitionError as exc:
            logger.warning(
                "Refused to complete appointment %s: %s", appointment_id, exc.message
            )
            raise

        appointment = await self._store.update(
            Collection.appointments, appointment_id, build_completion_patch()
        )
        logger.info("Appointment %s completed", appointment_id)
        await self._invalidate(Collection.appointments)
        return appointment
