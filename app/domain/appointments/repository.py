"""
Appointments Repository Layer

Provides data access operations for appointment records.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select

from app.core.exceptions import handle_database_error
from app.domain.appointments.models import Appointment

# Written once at creation
IMMUTABLE_FIELDS = frozenset({"id", "priority", "created_at"})


class AppointmentRepository:
    """Repository for appointment data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, appointment_data: dict) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        try:
            self.db.add(appointment)
            await self.db.commit()
            await self.db.refresh(appointment)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise handle_database_error(e, "create appointment") from e
        return appointment

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID"""
        result = await self.db.execute(
            select(Appointment).where(Appointment.id == appointment_id)
        )
        return result.scalar_one_or_none()

    async def get_latest_by_email(self, email: str) -> Optional[Appointment]:
        """Most recently created appointment for a patient email"""
        result = await self.db.execute(
            select(Appointment)
            .where(Appointment.patient_email == email)
            .order_by(Appointment.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_invitee_uri(self, invitee_uri: str) -> Optional[Appointment]:
        """Get appointment by its stored Calendly invitee reference"""
        result = await self.db.execute(
            select(Appointment)
            .where(Appointment.external_invitee_uri == invitee_uri)
            .order_by(Appointment.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Appointment]:
        """All appointments, newest first"""
        result = await self.db.execute(
            select(Appointment).order_by(Appointment.created_at.desc())
        )
        return list(result.scalars().all())

    async def update(self, appointment: Appointment, update_data: Dict[str, Any]) -> Appointment:
        """Apply a patch to a loaded appointment"""
        forbidden = IMMUTABLE_FIELDS.intersection(update_data)
        if forbidden:
            raise ValueError(f"Cannot update immutable fields: {', '.join(sorted(forbidden))}")

        for key, value in update_data.items():
            if not hasattr(appointment, key):
                raise ValueError(f"Unknown appointment field: {key}")
            setattr(appointment, key, value)
        try:
            await self.db.commit()
            await self.db.refresh(appointment)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise handle_database_error(e, "update appointment") from e
        return appointment

    async def update_by_filter(
        self,
        filters: Dict[str, Any],
        update_data: Dict[str, Any],
    ) -> Optional[Appointment]:
        """Patch the first appointment matching all filters; None if nothing matches"""
        query = select(Appointment)
        for key, value in filters.items():
            query = query.where(getattr(Appointment, key) == value)
        result = await self.db.execute(query.limit(1))
        appointment = result.scalar_one_or_none()
        if appointment is None:
            return None
        return await self.update(appointment, update_data)
