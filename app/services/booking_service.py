from __future__ import annotations

import logging
import uuid
from collections.abc import Collection
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import HTTPException, status

from app.core.config import Settings, get_settings
from app.schemas.appointment import (
    Appointment,
    AppointmentCreateRequest,
    AppointmentDeletedResponse,
)
from app.services.appointment_store import AppointmentStore, create_appointment_store
from app.services.civil_clock import CivilClock

logger = logging.getLogger(__name__)


class BookingRejectionReason(str, Enum):
    MISSING_FIELDS = "MissingFields"
    INVALID_DATE_TIME = "InvalidDateTime"
    PAST_BOOKING = "PastBooking"
    SLOT_TAKEN = "SlotTaken"


_REJECTION_MESSAGES = {
    BookingRejectionReason.MISSING_FIELDS: "Missing required fields",
    BookingRejectionReason.INVALID_DATE_TIME: "Invalid date or time format",
    BookingRejectionReason.PAST_BOOKING: "Cannot book past times",
    BookingRejectionReason.SLOT_TAKEN: "Slot already booked",
}


@dataclass(frozen=True)
class BookingRejection:
    reason: BookingRejectionReason

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self.reason]


def build_date_time_token(date_value: str, time_value: str) -> str:
    return f"{date_value.strip()}T{time_value.strip()}"


def validate_booking(
    payload: AppointmentCreateRequest,
    now: datetime,
    existing_date_times: Collection[str],
    *,
    clock: CivilClock,
) -> BookingRejection | None:
    """Apply the booking rules in order and return the first rejection, if any."""
    required_values = (payload.name, payload.email, payload.date, payload.time)
    if any(not (value or "").strip() for value in required_values):
        return BookingRejection(BookingRejectionReason.MISSING_FIELDS)

    try:
        requested_at = clock.compose(payload.date or "", payload.time or "")
    except ValueError:
        return BookingRejection(BookingRejectionReason.INVALID_DATE_TIME)

    if requested_at < now:
        return BookingRejection(BookingRejectionReason.PAST_BOOKING)

    if build_date_time_token(payload.date or "", payload.time or "") in existing_date_times:
        return BookingRejection(BookingRejectionReason.SLOT_TAKEN)

    return None


def build_appointment(payload: AppointmentCreateRequest, now: datetime) -> Appointment:
    return Appointment(
        id=str(uuid.uuid4()),
        date_time=build_date_time_token(payload.date or "", payload.time or ""),
        name=(payload.name or "").strip(),
        email=(payload.email or "").strip(),
        phone=payload.phone,
        reason=payload.reason,
        created_at=now.astimezone(UTC),
    )


class AppointmentService:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        appointment_store: AppointmentStore | None = None,
        clock: CivilClock | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.appointment_store = appointment_store or create_appointment_store(self.settings)
        self.clock = clock or CivilClock.from_settings(self.settings)

    def list_appointments(self) -> list[Appointment]:
        records = self.appointment_store.list_all()
        appointments = [Appointment.model_validate(record) for record in records]
        return sorted(appointments, key=lambda appointment: appointment.date_time)

    def create_appointment(self, payload: AppointmentCreateRequest) -> Appointment:
        now = self.clock.now()
        existing_date_times = {
            str(record.get("dateTime", ""))
            for record in self.appointment_store.list_all()
        }
        rejection = validate_booking(payload, now, existing_date_times, clock=self.clock)
        if rejection:
            logger.info(
                "Booking rejected (%s) for %s %s",
                rejection.reason.value,
                payload.date,
                payload.time,
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=rejection.message,
            )

        appointment = build_appointment(payload, now)
        self.appointment_store.insert(_to_record(appointment))
        logger.info("Booked appointment %s at %s", appointment.id, appointment.date_time)
        return appointment

    def delete_appointment(self, appointment_id: str) -> AppointmentDeletedResponse:
        self.appointment_store.delete_by_id(appointment_id)
        logger.info("Canceled appointment %s", appointment_id)
        return AppointmentDeletedResponse(message="Appointment canceled")


def _to_record(appointment: Appointment) -> dict[str, Any]:
    return appointment.model_dump(by_alias=True)
