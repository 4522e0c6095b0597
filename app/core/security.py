from datetime import datetime, timedelta, timezone
from typing import Dict, Any
import jwt
from passlib.context import CryptContext

from app.core.config import Settings
from app.core.exceptions import AuthenticationError

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


def create_session_token(settings: Settings, subject: str, data: Dict[str, Any]) -> str:
    """Create the signed session token stored in the auth cookie"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({
        "exp": now + timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS),
        "iat": now,
        "sub": subject,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(settings: Settings, token: str) -> Dict[str, Any]:
    """Decode and validate a session token, raising AuthenticationError on failure"""
    if not token:
        raise AuthenticationError("Not authenticated")
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session expired", error_code="TOKEN_EXPIRED") from e
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid or expired token", error_code="INVALID_TOKEN") from e
