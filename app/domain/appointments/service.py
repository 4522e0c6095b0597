"""
Appointments Service Layer

Business logic for the appointment lifecycle: booking, the doctor's
approve/reject decision, and reconciliation with Calendly webhook events.

The appointment row is the only thing that must succeed. Triage always
yields a priority, the scheduling link degrades to None, and email
failures are logged by the email service and otherwise ignored.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
import logging

from app.core.config import Settings
from app.core.exceptions import ConflictError, NotFoundError
from app.domain.appointments.models import Appointment, AppointmentStatus, PRIORITY_ORDER
from app.domain.appointments.repository import AppointmentRepository
from app.domain.appointments.triage import TriageClassifier
from app.infrastructure import email_templates
from app.infrastructure.database import utcnow
from app.infrastructure.notifications import EmailService
from app.services.calendly_service import CalendlyService

logger = logging.getLogger(__name__)

INVITEE_CREATED = "invitee.created"
INVITEE_CANCELED = "invitee.canceled"

# target status -> statuses it may be entered from
ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED},
    AppointmentStatus.APPROVED: {AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED},
    AppointmentStatus.REJECTED: {AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED},
    AppointmentStatus.CANCELLED: {AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED},
}


def can_transition(current: str, target: AppointmentStatus) -> bool:
    return current in {status.value for status in ALLOWED_TRANSITIONS[target]}


def _text(value: Any) -> Optional[str]:
    """A non-empty string from a provider payload, otherwise None"""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _section(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_provider_time(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from a Calendly payload"""
    if not value:
        return None
    if not isinstance(value, str):
        logger.warning(f"Non-string time in Calendly payload: {value!r}")
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        logger.warning(f"Unparseable time in Calendly payload: {value!r}")
        return None


class AppointmentService:
    """Service layer for the appointment lifecycle"""

    def __init__(
        self,
        db,
        settings: Settings,
        triage_classifier: TriageClassifier,
        scheduling_service: CalendlyService,
        email_service: EmailService,
    ):
        self.db = db
        self.settings = settings
        self.appointment_repo = AppointmentRepository(db)
        self.triage = triage_classifier
        self.scheduling = scheduling_service
        self.email = email_service

    @property
    def dashboard_url(self) -> str:
        return f"{self.settings.APP_URL.rstrip('/')}/doctor-dashboard"

    # ==================== Booking ====================

    async def book_appointment(
        self,
        patient_name: str,
        patient_email: str,
        issues: str,
        preferred_time: Optional[datetime] = None,
    ) -> Appointment:
        """Classify, build the scheduling link, persist as pending, notify both parties"""
        patient_email = patient_email.strip().lower()

        priority = await self.triage.classify(issues)

        reservation = self.scheduling.reserve_slot(patient_name, patient_email, preferred_time)
        if not reservation.success:
            logger.warning(f"Scheduling link unavailable for {patient_email}: {reservation.error}")

        appointment = await self.appointment_repo.create({
            "patient_name": patient_name,
            "patient_email": patient_email,
            "issues": issues,
            "preferred_time": preferred_time,
            "priority": priority.value,
            "status": AppointmentStatus.PENDING.value,
            "doctor_approved": False,
            "scheduling_url": reservation.scheduling_url,
        })
        logger.info(f"Appointment {appointment.id} booked with priority {appointment.priority}")

        await self.email.send(
            appointment.patient_email,
            "Your Consultation Request Has Been Received",
            email_templates.booking_received_template(
                appointment.patient_name, appointment.priority,
                appointment.preferred_time, appointment.scheduling_url,
            ),
        )
        await self.email.send_to_doctor(
            f"New Consultation Request ({appointment.priority}) - {appointment.patient_name}",
            email_templates.new_booking_doctor_template(
                appointment.patient_name, appointment.patient_email, appointment.issues,
                appointment.priority, appointment.preferred_time, self.dashboard_url,
            ),
        )
        return appointment

    # ==================== Dashboard ====================

    async def list_appointments(self) -> List[Appointment]:
        """Newest first, then stably grouped by priority (High, Medium, Low, unknown)"""
        appointments = await self.appointment_repo.list_all()
        return sorted(
            appointments,
            key=lambda appointment: PRIORITY_ORDER.get(appointment.priority, len(PRIORITY_ORDER)),
        )

    async def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    # ==================== Doctor decision ====================

    async def approve_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.get_appointment(appointment_id)

        if appointment.status == AppointmentStatus.APPROVED.value:
            logger.info(f"Appointment {appointment.id} already approved")
            return appointment
        self._ensure_transition(appointment, AppointmentStatus.APPROVED)

        meeting_link = appointment.meeting_link or (
            f"{self.settings.MEETING_BASE_URL.rstrip('/')}/{appointment.id[:10]}"
        )
        appointment = await self._transition(appointment, AppointmentStatus.APPROVED, {
            "doctor_approved": True,
            "meeting_link": meeting_link,
            "approved_at": utcnow(),
        })

        await self.email.send(
            appointment.patient_email,
            "Appointment Confirmed",
            email_templates.appointment_approved_template(
                appointment.patient_name,
                appointment.confirmed_time or appointment.preferred_time,
                appointment.meeting_link,
            ),
        )
        return appointment

    async def reject_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.get_appointment(appointment_id)

        if appointment.status == AppointmentStatus.REJECTED.value:
            logger.info(f"Appointment {appointment.id} already rejected")
            return appointment
        self._ensure_transition(appointment, AppointmentStatus.REJECTED)

        appointment = await self._transition(appointment, AppointmentStatus.REJECTED, {
            "doctor_approved": False,
            "rejected_at": utcnow(),
        })

        # Free the slot on Calendly if the patient already picked one
        if appointment.external_event_uri:
            cancelled = await self.scheduling.cancel(
                appointment.external_event_uri,
                reason="The doctor is not available at the requested time",
            )
            if not cancelled:
                logger.warning(f"Could not cancel Calendly event for rejected appointment {appointment.id}")

        await self.email.send(
            appointment.patient_email,
            "Appointment Rescheduling Required",
            email_templates.appointment_rejected_template(
                appointment.patient_name, self.settings.APP_URL,
            ),
        )
        return appointment

    # ==================== Calendly reconciliation ====================

    async def handle_webhook_event(self, event_type: Optional[str], payload: Dict[str, Any]) -> Optional[Appointment]:
        if event_type == INVITEE_CREATED:
            return await self.reconcile_invitee_created(payload)
        if event_type == INVITEE_CANCELED:
            return await self.reconcile_invitee_canceled(payload)
        logger.info(f"Unhandled Calendly event type: {event_type}")
        return None

    async def reconcile_invitee_created(self, payload: Dict[str, Any]) -> Optional[Appointment]:
        """Patient picked a slot on Calendly: pending -> scheduled"""
        invitee_uri = _text(payload.get("uri"))
        email = _text(payload.get("email"))
        name = _text(payload.get("name"))

        if not email and invitee_uri:
            invitee = _section(await self.scheduling.fetch_invitee(invitee_uri))
            if invitee:
                email = _text(invitee.get("email"))
                name = name or _text(invitee.get("name"))
        if not email:
            logger.error(f"invitee.created without a resolvable email (invitee {invitee_uri})")
            return None
        email = email.strip().lower()

        scheduled_event = _section(payload.get("scheduled_event"))
        event_uri = _text(scheduled_event.get("uri")) or _text(payload.get("event"))
        start_time = _text(scheduled_event.get("start_time"))
        join_url = _text(_section(scheduled_event.get("location")).get("join_url"))

        if event_uri and not (start_time and join_url):
            details = await self.scheduling.fetch_event(event_uri)
            if details:
                start_time = start_time or details.start_time
                join_url = join_url or details.join_url
            else:
                logger.warning(f"Reconciliation incomplete for {email}: event details unavailable")

        appointment = await self.appointment_repo.get_latest_by_email(email)
        if not appointment:
            logger.warning(f"No appointment found for Calendly invitee {email}, dropping event")
            return None

        patch = {
            "external_invitee_uri": invitee_uri,
            "external_event_uri": event_uri,
            "confirmed_time": parse_provider_time(start_time),
        }

        if appointment.status == AppointmentStatus.APPROVED.value:
            # Keep the decision and the link already sent to the patient
            logger.info(f"Appointment {appointment.id} already approved, storing Calendly references only")
            return await self.appointment_repo.update(appointment, patch)

        if not can_transition(appointment.status, AppointmentStatus.SCHEDULED):
            logger.warning(
                f"Ignoring invitee.created for appointment {appointment.id} in status {appointment.status}"
            )
            return None

        if join_url:
            patch["meeting_link"] = join_url
        appointment = await self._transition(appointment, AppointmentStatus.SCHEDULED, patch)
        logger.info(f"Appointment {appointment.id} scheduled via Calendly")

        patient_name = name or appointment.patient_name
        await self.email.send(
            appointment.patient_email,
            "Your Medical Consultation is Confirmed",
            email_templates.appointment_scheduled_patient_template(
                patient_name, appointment.confirmed_time, appointment.meeting_link,
            ),
        )
        await self.email.send_to_doctor(
            f"Appointment Confirmed - {patient_name}",
            email_templates.appointment_scheduled_doctor_template(
                patient_name, appointment.patient_email, appointment.confirmed_time,
                appointment.meeting_link, self.dashboard_url,
            ),
        )
        return appointment

    async def reconcile_invitee_canceled(self, payload: Dict[str, Any]) -> Optional[Appointment]:
        """Patient cancelled on Calendly: pending|scheduled -> cancelled, unless it is a reschedule"""
        invitee_uri = _text(payload.get("uri"))
        if not invitee_uri:
            logger.error("invitee.canceled without an invitee URI")
            return None

        appointment = await self.appointment_repo.get_by_invitee_uri(invitee_uri)
        if not appointment:
            logger.warning(f"No appointment found for cancelled invitee {invitee_uri}")
            return None

        if payload.get("rescheduled") is True:
            # A fresh invitee.created for the new slot follows and refreshes the record
            logger.info(f"Appointment {appointment.id} rescheduled on Calendly, awaiting the new booking")
            return appointment

        if appointment.status == AppointmentStatus.CANCELLED.value:
            return appointment
        if not can_transition(appointment.status, AppointmentStatus.CANCELLED):
            logger.warning(
                f"Ignoring invitee.canceled for appointment {appointment.id} in status {appointment.status}"
            )
            return None

        reason = _text(_section(payload.get("cancellation")).get("reason"))
        appointment = await self._transition(appointment, AppointmentStatus.CANCELLED, {
            "cancelled_at": utcnow(),
            "cancellation_reason": reason,
        })
        logger.info(f"Appointment {appointment.id} cancelled via Calendly")

        await self.email.send(
            appointment.patient_email,
            "Appointment Cancelled",
            email_templates.appointment_cancelled_patient_template(appointment.patient_name),
        )
        await self.email.send_to_doctor(
            f"Appointment Cancelled - {appointment.patient_name}",
            email_templates.appointment_cancelled_doctor_template(
                appointment.patient_name, appointment.patient_email, reason,
            ),
        )
        return appointment

    # ==================== Helpers ====================

    def _ensure_transition(self, appointment: Appointment, target: AppointmentStatus) -> None:
        if not can_transition(appointment.status, target):
            raise ConflictError(
                f"Cannot move appointment from {appointment.status} to {target.value}",
                details={"current_status": appointment.status, "requested_status": target.value},
                error_code="INVALID_STATUS_TRANSITION",
            )

    async def _transition(
        self, appointment: Appointment, target: AppointmentStatus, patch: Dict[str, Any]
    ) -> Appointment:
        """Conditional update keyed on the status we read, so a concurrent change is not overwritten"""
        updated = await self.appointment_repo.update_by_filter(
            {"id": appointment.id, "status": appointment.status},
            {**patch, "status": target.value},
        )
        if updated is None:
            raise ConflictError(
                "Appointment was modified concurrently",
                error_code="CONCURRENT_MODIFICATION",
            )
        return updated
