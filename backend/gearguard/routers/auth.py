"""
Auth router - account signup, login and password reset requests.
These endpoints are public.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gearguard.config import Settings
from gearguard.database import get_db
from gearguard.schemas import (
    ApiResponse,
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    SignupRequest,
    success
)
from gearguard.security import get_settings
from gearguard.services.auth_service import AuthService

router = APIRouter()


@router.post("/signup", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
def signup(
    data: SignupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Register a new account and return a token for it.
    """
    return success(AuthService.signup(db, data, settings), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Exchange email and password for a token.
    """
    return success(AuthService.login(db, data, settings), "Login successful")


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Request a password reset. The answer is the same whether or not the
    account exists.
    """
    AuthService.forgot_password(db, data.email)
    return success(message="If an account exists for this email, a password reset link has been sent")
