"""
Appointments API Schemas

Pydantic models for appointment-related API requests and responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import datetime, timezone


class AppointmentCreate(BaseModel):
    """Schema for a patient's booking request"""
    patient_name: str = Field(..., min_length=1, max_length=255)
    patient_email: EmailStr
    issues: str = Field(..., min_length=1, max_length=5000)
    preferred_time: Optional[datetime] = None

    @field_validator("patient_name", "issues", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("preferred_time", mode="before")
    @classmethod
    def blank_time_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("preferred_time")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""
    id: str
    patient_name: str
    patient_email: str
    issues: str
    preferred_time: Optional[datetime] = None
    confirmed_time: Optional[datetime] = None
    priority: str
    status: str
    doctor_approved: bool
    scheduling_url: Optional[str] = None
    external_invitee_uri: Optional[str] = None
    external_event_uri: Optional[str] = None
    meeting_link: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    """Returned after a booking; the client redirects to scheduling_url"""
    success: bool = True
    message: str
    appointment_id: str
    scheduling_url: Optional[str] = None
    priority: str
    redirect_to_scheduler: bool


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: List[AppointmentResponse]


class AppointmentDetailResponse(BaseModel):
    success: bool = True
    appointment: AppointmentResponse


class AppointmentActionResponse(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse


class AvailabilityResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
