# Appointments domain module
from app.domain.appointments.models import (
    Appointment,
    AppointmentStatus,
    PriorityLevel,
    PRIORITY_ORDER,
)

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "PriorityLevel",
    "PRIORITY_ORDER",
]
