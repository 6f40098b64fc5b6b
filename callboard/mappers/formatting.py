"""Display helpers rendering values in the business timezone."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    """Naive values are stored UTC; never read them in the host's zone."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz)


def format_duration(seconds: int | None) -> str:
    """12 -> "0:12", 125 -> "2:05". Missing or zero -> "0:00"."""
    if not seconds:
        return "0:00"
    minutes, remaining = divmod(int(seconds), 60)
    return f"{minutes}:{remaining:02d}"


def format_date(instant: datetime, tz: ZoneInfo) -> str:
    """"Jun 5, 2024" in the business timezone."""
    local = to_local(instant, tz)
    return f"{local:%b} {local.day}, {local.year}"


def format_datetime(instant: datetime, tz: ZoneInfo) -> str:
    """"Jun 5, 2024 • 9:05 PM" in the business timezone."""
    local = to_local(instant, tz)
    hour = local.hour % 12 or 12
    return f"{format_date(local, tz)} • {hour}:{local:%M %p}"


def display_fields(record, tz: ZoneInfo) -> dict[str, str]:
    """Pre-rendered strings for a record's timestamps and durations."""
    fields: dict[str, str] = {}
    if call_time := getattr(record, "call_time", None):
        fields["call_time"] = format_datetime(call_time, tz)
        fields["duration"] = format_duration(getattr(record, "duration", None))
    if appointment_time := getattr(record, "appointment_time", None):
        fields["appointment_time"] = format_datetime(appointment_time, tz)
    if created_at := getattr(record, "created_at", None):
        fields["created_at"] = format_date(created_at, tz)
    return fields


def record_payload(record, tz: ZoneInfo) -> dict:
    """JSON-ready record with its display strings under "display"."""
    payload = record.model_dump(mode="json")
    payload["display"] = display_fields(record, tz)
    return payload
