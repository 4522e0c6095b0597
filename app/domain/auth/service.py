from typing import Dict, Any, Tuple
import logging

from app.core.config import Settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_session_token,
    decode_session_token,
)
from app.domain.auth.models import User
from app.domain.auth.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Service layer for authentication operations"""

    def __init__(self, db, settings: Settings):
        self.db = db
        self.settings = settings
        self.user_repo = UserRepository(db)

    async def register_user(self, name: str, email: str, password: str, is_doctor: bool = False) -> User:
        """Register a new user"""
        user = await self.user_repo.create({
            "name": name,
            "email": email.strip().lower(),
            "password_hash": get_password_hash(password),
            "is_doctor": is_doctor,
        })
        logger.info(f"Registered {'doctor' if user.is_doctor else 'patient'} account {user.id}")
        return user

    async def authenticate_user(self, email: str, password: str) -> Tuple[User, str]:
        """Check credentials and issue a session token"""
        user = await self.user_repo.get_by_email(email.strip().lower())

        # Same message for unknown email and wrong password
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password", error_code="INVALID_CREDENTIALS")

        token = create_session_token(self.settings, user.id, user.session_claims())
        return user, token

    def get_session_claims(self, token: str) -> Dict[str, Any]:
        """Claims as embedded at login; not re-checked against the account store"""
        return decode_session_token(self.settings, token)

    async def get_doctor(self, token: str) -> User:
        """Resolve the session to a doctor account, re-reading the role from the store"""
        claims = decode_session_token(self.settings, token)
        user = await self.user_repo.get_by_id(claims.get("sub"))
        if not user:
            raise AuthenticationError("Account no longer exists", error_code="UNKNOWN_ACCOUNT")
        if not user.is_doctor:
            raise AuthorizationError("Doctor access required")
        return user
