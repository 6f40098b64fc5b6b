from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FollowupStatus(StrEnum):
    pending = "Pending"
    completed = "Completed"
    booked = "Booked"


class ContactStatus(StrEnum):
    needs_attention = "Needs Attention"
    contacted = "Contacted"
    booked = "Booked"
    not_interested = "Not Interested"


class AppointmentStatus(StrEnum):
    booked = "Booked"
    completed = "Completed"
    cancelled = "Cancelled"


class Record(BaseModel):
    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    id: str


class ContactSummary(Record):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    status: ContactStatus | None = None


class CustomerSummary(Record):
    name: str | None = None
    phone: str | None = None
    email: str | None = None


class Call(Record):
    phone_number: str | None = None
    call_time: datetime
    duration: int = Field(default=0, ge=0)
    contact_id: str | None = None
    transcript: str | None = None
    summary: str | None = None
    recording_url: str | None = None
    service_interest: str | None = None
    followup_status: FollowupStatus = FollowupStatus.pending
    needs_followup: bool = True
    contact: ContactSummary | None = Field(default=None, alias="contacts")


class Contact(Record):
    name: str
    phone: str | None = None
    email: str | None = None
    status: ContactStatus = ContactStatus.needs_attention
    notes: str | None = None
    service_interest: str | None = None
    created_at: datetime


class Appointment(Record):
    appointment_time: datetime
    service: str | None = None
    status: AppointmentStatus = AppointmentStatus.booked
    notes: str | None = None
    customer_id: str | None = None
    customer: CustomerSummary | None = Field(default=None, alias="customers")


class Customer(Record):
    name: str
    phone: str | None = None
    email: str | None = None
    created_at: datetime
