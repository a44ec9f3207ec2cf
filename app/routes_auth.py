# routes_auth.py
"""
Routes for registration, login and password reset.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps import get_db, get_mailer, get_settings
from app.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.services.password_reset import consume_reset, request_reset
from app.services.security import issue_session_token
from app.services.users import authenticate, create_user
from config import Settings
from models import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_to_dict(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email}


@router.post("/register", status_code=201)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = create_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        rounds=settings.bcrypt_rounds,
    )
    return {
        "message": "User registered successfully",
        "token": issue_session_token(user, settings),
        "user": user_to_dict(user),
    }


@router.post("/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = authenticate(db, body.email, body.password)
    return {
        "message": "Login successful",
        "token": issue_session_token(user, settings),
        "user": user_to_dict(user),
    }


@router.post("/forgot-password")
def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer=Depends(get_mailer),
):
    """
    Always answers with the same message for known and unknown emails.
    Fails with 500 only when mail is unavailable.
    """
    message = request_reset(db, body.email, mailer, settings)
    return {"message": message}


@router.post("/reset-password/{token}")
def reset_password(
    token: str,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    consume_reset(db, token, body.password, settings)
    return {
        "message": "Password has been reset successfully. You can now login with your new password."
    }
