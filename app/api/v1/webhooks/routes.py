import json
import logging

from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_appointment_service, get_settings
from app.core.config import Settings
from app.core.exceptions import ValidationError
from app.domain.appointments.service import AppointmentService
from app.infrastructure.webhook_security import verify_calendly_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/calendly", status_code=status.HTTP_200_OK)
async def calendly_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Receive Calendly invitee events.

    The signature is checked against the raw body before anything is parsed.
    Events that match no appointment are acknowledged so Calendly stops retrying.
    """
    raw_body = await verify_calendly_webhook(request, settings)

    try:
        body = json.loads(raw_body)
    except ValueError as e:
        raise ValidationError("Invalid JSON payload", error_code="INVALID_PAYLOAD") from e
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload", error_code="INVALID_PAYLOAD")

    payload = body.get("payload") or {}
    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be an object", error_code="INVALID_PAYLOAD")

    event_type = body.get("event")
    logger.info(f"Received Calendly webhook: {event_type}")

    appointment = await service.handle_webhook_event(event_type, payload)
    return {
        "success": True,
        "appointment_id": appointment.id if appointment else None,
    }
