from sqlalchemy import Column, String, Boolean
from app.infrastructure.database import Base, UTCDateTime, utcnow
import uuid


class User(Base):
    """Patient or doctor account"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    # Uniqueness is enforced here, not by a lookup before insert
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_doctor = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    def session_claims(self) -> dict:
        """Identity claims embedded in the session token"""
        return {
            "email": self.email,
            "name": self.name,
            "isDoctor": bool(self.is_doctor),
        }

    def __repr__(self) -> str:
        return f"<User {self.email} doctor={self.is_doctor}>"
