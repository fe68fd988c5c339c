from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

from booking_engine.domain.entities.selection import Selection

PRODID = "-//Booking Engine//Appointments//EN"


def _format_ics_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def build_ics(
    booking_reference: str,
    service_name: str,
    appointments: list[Selection],
    tz: tzinfo,
    practitioner_name: str | None = None,
    now: datetime | None = None,
) -> str:
    """Build an iCalendar document with one 1-hour VEVENT per appointment."""
    stamp = _format_ics_datetime(now or datetime.now(timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]

    for index, appointment in enumerate(appointments):
        hour = int(appointment.time.split(":")[0])
        start = datetime(
            appointment.date.year, appointment.date.month, appointment.date.day, hour, tzinfo=tz
        )
        end = start + timedelta(hours=1)
        description = f"Booking reference: {booking_reference}"
        if practitioner_name:
            description += f"\nPractitioner: {practitioner_name}"
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{booking_reference}-{index}@booking-engine",
                f"DTSTAMP:{stamp}",
                f"DTSTART:{_format_ics_datetime(start)}",
                f"DTEND:{_format_ics_datetime(end)}",
                f"SUMMARY:{_escape(f'Medical Appointment - {service_name}')}",
                f"DESCRIPTION:{_escape(description)}",
                "STATUS:CONFIRMED",
                "END:VEVENT",
            ]
        )

    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"
