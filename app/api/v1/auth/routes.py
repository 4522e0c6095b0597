from typing import Optional
from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_auth_service, get_session_token, get_settings
from app.core.config import Settings
from app.domain.auth.service import AuthenticationService
from app.api.v1.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    SuccessResponse,
    UserEnvelope,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Create a patient or doctor account"""
    user = await auth_service.register_user(
        name=register_data.name,
        email=register_data.email,
        password=register_data.password,
        is_doctor=register_data.is_doctor,
    )
    return RegisterResponse(message="Registration successful! Please sign in.", user_id=user.id)


@router.post("/login", response_model=UserEnvelope, status_code=status.HTTP_200_OK)
async def login(
    login_data: LoginRequest,
    response: Response,
    auth_service: AuthenticationService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Authenticate and set the session cookie"""
    user, token = await auth_service.authenticate_user(login_data.email, login_data.password)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=settings.SESSION_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
    )
    return UserEnvelope(
        message="Login successful",
        user=UserResponse(id=user.id, name=user.name, email=user.email, is_doctor=user.is_doctor),
    )


@router.get("/user", response_model=UserEnvelope, status_code=status.HTTP_200_OK)
async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Identity from the session cookie, as issued at login"""
    claims = auth_service.get_session_claims(token)
    return UserEnvelope(
        user=UserResponse(
            id=claims["sub"],
            name=claims.get("name", ""),
            email=claims.get("email", ""),
            is_doctor=bool(claims.get("isDoctor", False)),
        )
    )


@router.post("/logout", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Clear the session cookie"""
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return SuccessResponse(message="Logged out successfully")
