"""
Appointments API Routes

Booking for patients, the doctor's dashboard listing and decisions, and the
Calendly availability passthrough.
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_appointment_service, get_current_doctor, get_scheduling_service
from app.domain.appointments.service import AppointmentService
from app.domain.auth.models import User
from app.services.calendly_service import CalendlyService
from app.api.v1.appointments.schemas import (
    AppointmentCreate, AppointmentResponse, AppointmentListResponse,
    AppointmentDetailResponse, AppointmentActionResponse,
    AvailabilityResponse, BookingResponse,
)

router = APIRouter()


@router.post("/appointments", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    appointment_data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book a consultation; the patient then completes the booking on Calendly"""
    appointment = await service.book_appointment(
        patient_name=appointment_data.patient_name,
        patient_email=appointment_data.patient_email,
        issues=appointment_data.issues,
        preferred_time=appointment_data.preferred_time,
    )
    return BookingResponse(
        message="Appointment initiated. Please complete booking on Calendly.",
        appointment_id=appointment.id,
        scheduling_url=appointment.scheduling_url,
        priority=appointment.priority,
        redirect_to_scheduler=appointment.scheduling_url is not None,
    )


@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(
    service: AppointmentService = Depends(get_appointment_service),
    current_doctor: User = Depends(get_current_doctor),
):
    """Dashboard listing ordered by priority, newest first within a priority"""
    appointments = await service.list_appointments()
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )


@router.get("/appointments/{appointment_id}", response_model=AppointmentDetailResponse)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
    current_doctor: User = Depends(get_current_doctor),
):
    appointment = await service.get_appointment(appointment_id)
    return AppointmentDetailResponse(appointment=AppointmentResponse.model_validate(appointment))


@router.post("/appointments/{appointment_id}/approve", response_model=AppointmentActionResponse)
async def approve_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
    current_doctor: User = Depends(get_current_doctor),
):
    """Approve a request and send the patient the meeting link"""
    appointment = await service.approve_appointment(appointment_id)
    return AppointmentActionResponse(
        message="Appointment approved",
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.post("/appointments/{appointment_id}/reject", response_model=AppointmentActionResponse)
async def reject_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
    current_doctor: User = Depends(get_current_doctor),
):
    """Reject a request and ask the patient to reschedule"""
    appointment = await service.reject_appointment(appointment_id)
    return AppointmentActionResponse(
        message="Appointment rejected",
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(scheduling: CalendlyService = Depends(get_scheduling_service)):
    """The doctor's availability schedules from Calendly"""
    data = await scheduling.get_availability()
    return AvailabilityResponse(data=data)
