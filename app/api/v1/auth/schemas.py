from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """Schema for creating a new account"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str
    is_doctor: bool = Field(False, alias="isDoctor")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of an account"""
    id: str
    name: str
    email: str
    is_doctor: bool = Field(serialization_alias="isDoctor")


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user_id: str = Field(serialization_alias="userId")


class UserEnvelope(BaseModel):
    success: bool = True
    message: str = ""
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
