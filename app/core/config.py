import warnings
from functools import lru_cache
from typing import List, Union, Optional
from pydantic import AnyHttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Doctor Consultation"
    API_V1_STR: str = "/api"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./doctor_consultation.db"
    DATABASE_ECHO: bool = False

    # Session tokens
    SECRET_KEY: Optional[str] = None
    ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "auth-token"

    # SMTP
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_TIMEOUT_SECONDS: float = 10.0
    DOCTOR_EMAIL: Optional[str] = None

    # Links rendered into emails
    APP_URL: str = "http://localhost:3000"
    MEETING_BASE_URL: str = "https://meet.google.com"

    # Calendly
    CALENDLY_API_KEY: Optional[str] = None
    CALENDLY_SCHEDULING_URL: str = "https://calendly.com/doctor-consultation/15min"
    CALENDLY_AVAILABILITY_URL: str = "https://api.calendly.com/user_availability_schedules"
    CALENDLY_WEBHOOK_SIGNING_KEY: Optional[str] = None
    CALENDLY_WEBHOOK_VERIFY_SIGNATURE: bool = True
    CALENDLY_TIMEOUT_SECONDS: float = 10.0

    # Gemini
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    TRIAGE_USE_AI: bool = True

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "Settings":
        if self.DATABASE_URL.startswith("postgresql://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)

        # asyncpg takes ssl=, not sslmode=
        self.DATABASE_URL = self.DATABASE_URL.replace("sslmode=require", "ssl=require")
        return self

    @model_validator(mode="after")
    def ensure_secret_key(self) -> "Settings":
        if not self.SECRET_KEY:
            warnings.warn(
                "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION",
                RuntimeWarning,
                stacklevel=2,
            )
            self.SECRET_KEY = INSECURE_SECRET_KEY
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
