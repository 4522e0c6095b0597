from typing import AsyncGenerator, Optional
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.domain.appointments.service import AppointmentService
from app.domain.auth.models import User
from app.domain.auth.service import AuthenticationService
from app.services.calendly_service import CalendlyService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Session from the database owned by the application lifespan"""
    async with request.app.state.database.session() as session:
        yield session


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthenticationService:
    return AuthenticationService(db, settings)


def get_appointment_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AppointmentService:
    state = request.app.state
    return AppointmentService(
        db,
        settings,
        triage_classifier=state.triage_classifier,
        scheduling_service=state.scheduling_service,
        email_service=state.email_service,
    )


def get_session_token(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_doctor(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> User:
    return await auth_service.get_doctor(token)


def get_scheduling_service(request: Request) -> CalendlyService:
    return request.app.state.scheduling_service
