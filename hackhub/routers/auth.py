import logging
import re
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from ..auth import (
    hash_password,
    authenticate_user,
    create_session,
    delete_session,
    start_email_verification,
    get_user_by_verification_code,
    start_password_reset,
    get_user_by_reset_token,
)
from ..config import CLIENT_URL, SESSION_COOKIE_NAME, SESSION_EXPIRE_DAYS
from ..database import get_session
from ..dependencies import get_current_user, require_user
from ..errors import AuthenticationError, ConflictError, ValidationError
from ..models.user import User
from ..serializers import user_profile
from ..services.notifications import (
    send_verification_email,
    send_welcome_email,
    send_password_reset_email,
    send_reset_success_email,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
RESET_MESSAGE = "If the email exists, a reset link has been sent"


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: str
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    code: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    skills: Optional[List[str]] = None
    avatar: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=6)


def _set_session_cookie(response: Response, session_token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        max_age=SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        samesite="lax"
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    """Create the account right away and email a verification code."""
    email = payload.email.strip().lower()
    if not re.match(EMAIL_PATTERN, email):
        raise ValidationError("Invalid email format")

    existing_user = db.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise ConflictError("User already exists")

    user = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password)
    )
    code = start_email_verification(user)
    db.add(user)
    db.commit()
    db.refresh(user)

    send_verification_email(user.email, code)
    logger.info("User %s registered", user.id)

    session = create_session(db, user.id)
    _set_session_cookie(response, session.session_token)

    return {
        "message": "Account created. A verification code has been sent to your email.",
        "user": user_profile(user)
    }


@router.post("/verify-email")
async def verify_email(
    payload: VerifyEmailRequest,
    db: Session = Depends(get_session)
):
    user = get_user_by_verification_code(db, payload.code.strip())
    if not user:
        raise ValidationError("Invalid or expired verification code")

    user.is_verified = True
    user.verification_code = None
    user.verification_code_expires_at = None
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)

    send_welcome_email(user.email, user.name)

    return {"message": "Email verified successfully", "user": user_profile(user)}


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    user.last_login = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)

    session = create_session(db, user.id)
    _set_session_cookie(response, session.session_token)

    return {"message": "Login successful", "user": user_profile(user)}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_session)
):
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if session_token:
        delete_session(db, session_token)

    response.delete_cookie(key=SESSION_COOKIE_NAME)
    return {"message": "Logout successful"}


@router.get("/me")
async def me(current_user: Optional[User] = Depends(get_current_user)):
    """Report the session state; anonymous callers get ``authenticated: false``."""
    if not current_user:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": user_profile(current_user)}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(current_user, field, value)
    current_user.updated_at = datetime.utcnow()

    db.add(current_user)
    db.commit()
    db.refresh(current_user)

    return {"message": "Profile updated successfully", "user": user_profile(current_user)}


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_session)
):
    """Store a reset token and email a link; the answer never reveals whether the email exists."""
    email = payload.email.strip().lower()
    if not email:
        raise ValidationError("Email is required")

    user = db.exec(select(User).where(User.email == email)).first()
    if user:
        token = start_password_reset(user)
        db.add(user)
        db.commit()

        # The token stays saved even if delivery fails
        send_password_reset_email(user.email, f"{CLIENT_URL}/reset-password/{token}")

    return {"message": RESET_MESSAGE}


@router.post("/reset-password/{token}")
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_session)
):
    user = get_user_by_reset_token(db, token)
    if not user:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(payload.password)
    user.reset_password_token = None
    user.reset_password_expires_at = None
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()

    send_reset_success_email(user.email)
    logger.info("Password reset for user %s", user.id)

    return {"message": "Password reset successful"}
