from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import datetime, timedelta

from app.core.config import Settings, get_settings
from app.schemas.appointment import DayAvailability, Slot
from app.services.appointment_store import AppointmentStore, create_appointment_store
from app.services.civil_clock import CivilClock, is_business_day, time_label_to_minutes
from app.services.slot_generator import (
    DEFAULT_END_MINUTES,
    DEFAULT_START_MINUTES,
    DEFAULT_STEP_MINUTES,
    generate_time_slots,
)


def plan_availability(
    now: datetime,
    booked_date_times: Collection[str],
    *,
    clock: CivilClock,
    slots: Sequence[str] | None = None,
    business_days: int = 5,
    start_minutes: int = DEFAULT_START_MINUTES,
    closing_minutes: int = DEFAULT_END_MINUTES + DEFAULT_STEP_MINUTES,
) -> list[DayAvailability]:
    """Lay out the bookable slots for the next ``business_days`` weekdays.

    Today is included while it still has a slot starting after ``now``; once it
    is exhausted it is skipped and does not count toward ``business_days``.
    """
    all_slots = list(slots) if slots is not None else generate_time_slots()
    booked = set(booked_date_times)
    civil_now = clock.to_civil(now)
    today = civil_now.date()
    current_minutes = clock.minutes_of_day(civil_now)

    days: list[DayAvailability] = []
    current_day = today
    while len(days) < business_days:
        candidate_day = current_day
        current_day += timedelta(days=1)
        if not is_business_day(candidate_day):
            continue

        day_slots = all_slots
        if candidate_day == today:
            day_slots = _remaining_slots_today(
                all_slots,
                current_minutes=current_minutes,
                start_minutes=start_minutes,
                closing_minutes=closing_minutes,
            )
            if not day_slots:
                continue

        day_label = candidate_day.isoformat()
        days.append(
            DayAvailability(
                day=day_label,
                slots=[
                    Slot(
                        date=day_label,
                        time=time_label,
                        available=f"{day_label}T{time_label}" not in booked,
                    )
                    for time_label in day_slots
                ],
            ),
        )
    return days


def _remaining_slots_today(
    slots: Sequence[str],
    *,
    current_minutes: int,
    start_minutes: int,
    closing_minutes: int,
) -> list[str]:
    if current_minutes < start_minutes:
        return list(slots)
    if current_minutes >= closing_minutes:
        return []
    return [time_label for time_label in slots if time_label_to_minutes(time_label) > current_minutes]


class AvailabilityService:
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

    def get_available_slots(self) -> list[DayAvailability]:
        booked_date_times = {
            str(record.get("dateTime", ""))
            for record in self.appointment_store.list_all()
            if record.get("dateTime")
        }
        return plan_availability(
            self.clock.now(),
            booked_date_times,
            clock=self.clock,
            slots=generate_time_slots(
                self.settings.business_start_minutes,
                self.settings.business_end_minutes,
                self.settings.slot_duration_minutes,
            ),
            business_days=self.settings.availability_business_days,
            start_minutes=self.settings.business_start_minutes,
            closing_minutes=self.settings.business_closing_minutes,
        )
