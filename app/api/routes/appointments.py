from fastapi import APIRouter, status

from app.schemas.appointment import (
    Appointment,
    AppointmentCreateRequest,
    AppointmentDeletedResponse,
    DayAvailability,
)
from app.services.availability_service import AvailabilityService
from app.services.booking_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=list[Appointment])
def list_appointments() -> list[Appointment]:
    service = AppointmentService()
    return service.list_appointments()


@router.get("/available", response_model=list[DayAvailability])
def list_available_slots() -> list[DayAvailability]:
    service = AvailabilityService()
    return service.get_available_slots()


@router.post(
    "",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
)
def create_appointment(payload: AppointmentCreateRequest) -> Appointment:
    service = AppointmentService()
    return service.create_appointment(payload)


@router.delete("/{appointment_id}", response_model=AppointmentDeletedResponse)
def delete_appointment(appointment_id: str) -> AppointmentDeletedResponse:
    service = AppointmentService()
    return service.delete_appointment(appointment_id)
