import json
from typing import AsyncGenerator, List, Optional, Tuple

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import create_app
from app.core.config import Settings
from app.domain.appointments.service import AppointmentService
from app.domain.appointments.triage import TriageClassifier
from app.infrastructure.database import Database
from app.infrastructure.webhook_security import SIGNATURE_HEADER, create_webhook_signature
from app.services.calendly_service import CalendlyService

WEBHOOK_SIGNING_KEY = "test-webhook-signing-key"
DOCTOR_EMAIL = "doctor@example.com"


class FakeEmailService:
    """Records outgoing mail instead of talking to SMTP"""

    def __init__(self, doctor_email: Optional[str] = DOCTOR_EMAIL):
        self.doctor_email = doctor_email
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, to: Optional[str], subject: str, html_content: str) -> bool:
        if not to:
            return False
        self.sent.append((to, subject, html_content))
        return True

    async def send_to_doctor(self, subject: str, html_content: str) -> bool:
        if not self.doctor_email:
            return False
        return await self.send(self.doctor_email, subject, html_content)

    def recipients(self) -> List[str]:
        return [to for to, _, _ in self.sent]

    def subjects_for(self, recipient: str) -> List[str]:
        return [subject for to, subject, _ in self.sent if to == recipient]


class StubTextGenerator:
    """Returns a canned model answer, or raises it when it is an exception"""

    def __init__(self, answer):
        self.answer = answer
        self.prompts: List[str] = []

    async def generate_content(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


@pytest.fixture(scope="function")
def settings(tmp_path) -> Settings:
    """Isolated settings: throwaway SQLite file, no SMTP, Calendly or Gemini credentials."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret-key",
        ENVIRONMENT="test",
        LOG_LEVEL="DEBUG",
        DOCTOR_EMAIL=DOCTOR_EMAIL,
        EMAIL_USER=None,
        EMAIL_PASSWORD=None,
        CALENDLY_API_KEY=None,
        CALENDLY_WEBHOOK_SIGNING_KEY=WEBHOOK_SIGNING_KEY,
        CALENDLY_WEBHOOK_VERIFY_SIGNATURE=True,
        GEMINI_API_KEY=None,
        TRIAGE_USE_AI=False,
    )


@pytest.fixture(scope="function")
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh schema for each test."""
    db = Database(settings.DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture(scope="function")
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture(scope="function")
def scheduling_service(settings: Settings) -> CalendlyService:
    return CalendlyService(settings)


@pytest.fixture(scope="function")
def appointment_service(
    db_session: AsyncSession,
    settings: Settings,
    scheduling_service: CalendlyService,
    email_service: FakeEmailService,
) -> AppointmentService:
    return AppointmentService(
        db_session,
        settings,
        triage_classifier=TriageClassifier(),
        scheduling_service=scheduling_service,
        email_service=email_service,
    )


@pytest.fixture(scope="function")
def test_app(settings, database, email_service, scheduling_service):
    """Application with state wired by hand; ASGITransport does not run the lifespan."""
    application = create_app(settings)
    application.state.database = database
    application.state.email_service = email_service
    application.state.scheduling_service = scheduling_service
    application.state.triage_classifier = TriageClassifier()
    return application


@pytest.fixture(scope="function")
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://testserver") as ac:
        yield ac


async def register(client: AsyncClient, email: str, password: str = "secret123",
                   name: str = "Test User", is_doctor: bool = False):
    return await client.post("/api/auth/register", json={
        "name": name,
        "email": email,
        "password": password,
        "isDoctor": is_doctor,
    })


async def login(client: AsyncClient, email: str, password: str = "secret123"):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture(scope="function")
async def doctor_client(client: AsyncClient) -> AsyncClient:
    """Client carrying a doctor's session cookie."""
    await register(client, "dr.house@example.com", name="Gregory House", is_doctor=True)
    response = await login(client, "dr.house@example.com")
    assert response.status_code == 200
    return client


@pytest.fixture(scope="function")
def signed_webhook():
    """Build (body, headers) for a Calendly event signed with the test key."""

    def _build(event: str, payload, timestamp: Optional[str] = None):
        body = json.dumps({"event": event, "payload": payload}).encode("utf-8")
        signature = create_webhook_signature(WEBHOOK_SIGNING_KEY, body, timestamp)
        return body, {SIGNATURE_HEADER: signature, "Content-Type": "application/json"}

    return _build


@pytest.fixture(scope="function")
def booking_data() -> dict:
    """Sample booking request."""
    return {
        "patient_name": "Jane Doe",
        "patient_email": "Jane.Doe@Example.com",
        "issues": "Mild headache for two days",
        "preferred_time": "2030-05-01T10:00:00Z",
    }
