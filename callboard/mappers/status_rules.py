"""Status transition and derivation rules.

No I/O. The lifecycle service applies these before anything is written.
"""

from callboard.exceptions.custom import InvalidTransitionError
from callboard.schemas.records import AppointmentStatus, ContactStatus, FollowupStatus

RESOLVED_FOLLOWUP_STATUSES = frozenset({FollowupStatus.completed, FollowupStatus.booked})


def parse_followup_status(value: str) -> FollowupStatus:
    try:
        return FollowupStatus(value)
    except ValueError:
        raise InvalidTransitionError(
            f"Unknown follow-up status: {value!r}", target=str(value)
        ) from None


def parse_contact_status(value: str) -> ContactStatus:
    try:
        return ContactStatus(value)
    except ValueError:
        raise InvalidTransitionError(
            f"Unknown contact status: {value!r}", target=str(value)
        ) from None


def needs_followup(status: FollowupStatus) -> bool:
    return status not in RESOLVED_FOLLOWUP_STATUSES


def build_followup_patch(status: str) -> dict:
    """Patch for a call follow-up change. Always carries both fields."""
    followup = parse_followup_status(status)
    return {
        "followup_status": followup.value,
        "needs_followup": needs_followup(followup),
    }


def build_contact_status_patch(status: str) -> dict:
    return {"status": parse_contact_status(status).value}


def check_appointment_completion(current: AppointmentStatus | str) -> None:
    """Only Booked -> Completed is allowed."""
    if current != AppointmentStatus.booked:
        raise InvalidTransitionError(
            f"Cannot complete an appointment with status {current!s}",
            current=str(current),
            target=AppointmentStatus.completed.value,
        )


def build_completion_patch() -> dict:
    return {"status": AppointmentStatus.completed.value}
