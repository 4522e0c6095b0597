"""
Appointments Domain Models

Implements the database model for patient consultation requests, together
with the triage priority levels and the lifecycle statuses an appointment
moves through.
"""

from sqlalchemy import Column, String, Boolean, Text, Index
import uuid
import enum

from app.infrastructure.database import Base, UTCDateTime, utcnow


class PriorityLevel(str, enum.Enum):
    """Triage priority assigned once at booking time"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# Dashboard ordering; anything not listed sorts last
PRIORITY_ORDER = {
    PriorityLevel.HIGH.value: 0,
    PriorityLevel.MEDIUM.value: 1,
    PriorityLevel.LOW.value: 2,
}


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle status"""
    PENDING = "pending"
    SCHEDULED = "scheduled"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Appointment(Base):
    """A patient's consultation request and everything learned about it since"""
    __tablename__ = "patients_appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    patient_name = Column(String(255), nullable=False)
    patient_email = Column(String(255), nullable=False, index=True)
    issues = Column(Text, nullable=False)
    preferred_time = Column(UTCDateTime())
    confirmed_time = Column(UTCDateTime())

    priority = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    doctor_approved = Column(Boolean, nullable=False, default=False)

    # Calendly references
    scheduling_url = Column(String(1024))
    external_invitee_uri = Column(String(1024), index=True)
    external_event_uri = Column(String(1024))
    meeting_link = Column(String(1024))

    cancellation_reason = Column(Text)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), default=utcnow, onupdate=utcnow)
    approved_at = Column(UTCDateTime())
    rejected_at = Column(UTCDateTime())
    cancelled_at = Column(UTCDateTime())

    __table_args__ = (
        Index("ix_appointments_email_created", "patient_email", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.id} {self.status} {self.priority}>"
