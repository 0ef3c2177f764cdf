from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    date_time: str = Field(alias="dateTime")
    name: str
    email: str
    phone: str | None = None
    reason: str | None = None
    created_at: datetime = Field(alias="createdAt")


class AppointmentCreateRequest(BaseModel):
    # Presence is checked by the booking rules so that gaps map to a 400.
    date: str | None = None
    time: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    reason: str | None = None


class Slot(BaseModel):
    date: str
    time: str
    available: bool


class DayAvailability(BaseModel):
    day: str
    slots: list[Slot]


class AppointmentDeletedResponse(BaseModel):
    message: str
