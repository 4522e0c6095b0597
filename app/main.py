from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.api.v1.api import api_router
from app.domain.appointments.triage import TriageClassifier
from app.infrastructure.database import Database
from app.infrastructure.notifications import EmailService
from app.services.ai_service import build_text_service
from app.services.calendly_service import CalendlyService

logger = logging.getLogger(__name__)


def init_state(app: FastAPI, settings: Settings, database: Database) -> None:
    """Attach the shared services every request resolves through app.state"""
    app.state.settings = settings
    app.state.database = database
    app.state.email_service = EmailService(settings)
    app.state.scheduling_service = CalendlyService(settings)
    app.state.triage_classifier = TriageClassifier(build_text_service(settings))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        await database.create_all()
        init_state(app, settings, database)
        logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
        yield
        await database.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Set all CORS enabled origins
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
