from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlencode
import logging

import httpx

from app.core.config import Settings
from app.core.exceptions import ExternalServiceError, handle_external_service_error

logger = logging.getLogger(__name__)


@dataclass
class ReservationResult:
    success: bool
    scheduling_url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ScheduledEventDetails:
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    join_url: Optional[str] = None


class CalendlyService:
    """Service for interacting with the Calendly API"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.CALENDLY_API_KEY
        self.scheduling_url = settings.CALENDLY_SCHEDULING_URL
        self.availability_url = settings.CALENDLY_AVAILABILITY_URL
        self.timeout = settings.CALENDLY_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self.transport,
        )

    def reserve_slot(
        self, name: str, email: str, preferred_time: Optional[datetime] = None
    ) -> ReservationResult:
        """
        Build the scheduling link the patient is redirected to.

        With an API key the link is pre-filled with the patient's name, email
        and a date hint; without one the bare scheduling URL is returned.
        Booking never blocks on this step.
        """
        if not self.is_configured:
            logger.warning("Calendly not configured, returning bare scheduling URL")
            return ReservationResult(success=True, scheduling_url=self.scheduling_url)

        try:
            hint = preferred_time or datetime.now(timezone.utc)
            params = {
                "name": name,
                "email": email,
                "date": hint.strftime("%Y-%m-%d"),
                "month": hint.strftime("%Y-%m"),
            }
            separator = "&" if "?" in self.scheduling_url else "?"
            return ReservationResult(
                success=True,
                scheduling_url=f"{self.scheduling_url}{separator}{urlencode(params)}",
            )
        except Exception as e:
            logger.error(f"Failed to build Calendly scheduling link: {e}")
            return ReservationResult(success=False, error=str(e))

    async def _get_resource(self, uri: str) -> Optional[dict[str, Any]]:
        if not self.is_configured:
            logger.warning(f"Calendly API key not configured, cannot fetch {uri}")
            return None
        try:
            async with self._client() as client:
                response = await client.get(uri)
                response.raise_for_status()
                return response.json().get("resource")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch Calendly resource {uri}: {e}")
            return None

    async def fetch_invitee(self, invitee_uri: str) -> Optional[dict[str, Any]]:
        """Invitee resource (name, email, event URI) or None"""
        return await self._get_resource(invitee_uri)

    async def fetch_event(self, event_uri: str) -> Optional[ScheduledEventDetails]:
        """Scheduled time range and generated meeting link of an event, or None"""
        resource = await self._get_resource(event_uri)
        if resource is None:
            return None
        location = resource.get("location") or {}
        return ScheduledEventDetails(
            start_time=resource.get("start_time"),
            end_time=resource.get("end_time"),
            join_url=location.get("join_url"),
        )

    async def cancel(self, event_uri: str, reason: Optional[str] = None) -> bool:
        """Cancel a scheduled event; False on any failure"""
        if not self.is_configured:
            logger.warning(f"Calendly API key not configured, cannot cancel {event_uri}")
            return False

        data = {}
        if reason:
            data["reason"] = reason

        try:
            async with self._client() as client:
                logger.info(f"Attempting to cancel Calendly event {event_uri}")
                response = await client.post(f"{event_uri.rstrip('/')}/cancellation", json=data)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP {e.response.status_code} cancelling Calendly event {event_uri}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Error cancelling Calendly event {event_uri}: {e}")
            return False

        logger.info(f"Cancelled Calendly event {event_uri}")
        return True

    async def get_availability(self) -> dict[str, Any]:
        """The doctor's availability schedules as returned by Calendly"""
        if not self.is_configured:
            raise ExternalServiceError(
                "Calendly API key not configured",
                details={"service_name": "calendly"},
                error_code="CALENDLY_NOT_CONFIGURED",
            )
        try:
            async with self._client() as client:
                response = await client.get(self.availability_url)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise handle_external_service_error(e, "calendly", "get availability") from e
