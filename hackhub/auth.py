import secrets
import bcrypt
from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import Session, select
from hackhub.config import (
    SESSION_EXPIRE_DAYS,
    VERIFICATION_CODE_EXPIRE_MINUTES,
    RESET_TOKEN_EXPIRE_MINUTES,
)
from hackhub.models import User, Judge, Session as SessionModel, JudgeSession


def hash_password(password: str) -> str:
    """Hash a password using bcrypt. Truncates to 72 bytes for bcrypt compatibility."""
    # Bcrypt has a 72-byte limit on the password bytes
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
    # Return as string for database storage
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    password_bytes = plain_password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    hashed_bytes = hashed_password.encode('utf-8')
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def generate_session_token() -> str:
    """Generate a secure random session token."""
    return secrets.token_urlsafe(32)


def generate_verification_code() -> str:
    """Six-digit email verification code."""
    return f"{secrets.randbelow(900000) + 100000}"


def generate_reset_token() -> str:
    return secrets.token_hex(20)


def create_session(db: Session, user_id: int) -> SessionModel:
    """Create a new session for a user."""
    session = SessionModel(
        user_id=user_id,
        session_token=generate_session_token(),
        expires_at=datetime.utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)
    )

    db.add(session)
    db.commit()
    db.refresh(session)

    return session


def get_user_by_session_token(db: Session, session_token: str) -> Optional[User]:
    """Get user by session token if session is valid."""
    statement = select(SessionModel).where(SessionModel.session_token == session_token)
    session = db.exec(statement).first()

    if not session:
        return None

    # Check if session has expired
    if session.expires_at < datetime.utcnow():
        db.delete(session)
        db.commit()
        return None

    return db.get(User, session.user_id)


def delete_session(db: Session, session_token: str) -> bool:
    """Delete a session (logout)."""
    statement = select(SessionModel).where(SessionModel.session_token == session_token)
    session = db.exec(statement).first()

    if session:
        db.delete(session)
        db.commit()
        return True

    return False


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    statement = select(User).where(User.email == email.strip().lower())
    user = db.exec(statement).first()

    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


def start_email_verification(user: User) -> str:
    """Attach a fresh verification code to ``user``; the caller commits."""
    code = generate_verification_code()
    user.verification_code = code
    user.verification_code_expires_at = datetime.utcnow() + timedelta(minutes=VERIFICATION_CODE_EXPIRE_MINUTES)
    return code


def get_user_by_verification_code(db: Session, code: str) -> Optional[User]:
    statement = select(User).where(
        User.verification_code == code,
        User.verification_code_expires_at > datetime.utcnow()
    )
    return db.exec(statement).first()


def start_password_reset(user: User) -> str:
    """Attach a fresh reset token to ``user``; the caller commits."""
    token = generate_reset_token()
    user.reset_password_token = token
    user.reset_password_expires_at = datetime.utcnow() + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES)
    return token


def get_user_by_reset_token(db: Session, token: str) -> Optional[User]:
    statement = select(User).where(
        User.reset_password_token == token,
        User.reset_password_expires_at > datetime.utcnow()
    )
    return db.exec(statement).first()


def create_judge_session(db: Session, judge_id: int) -> JudgeSession:
    """Create a bearer-token session for a judge."""
    session = JudgeSession(
        judge_id=judge_id,
        session_token=generate_session_token(),
        expires_at=datetime.utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)
    )

    db.add(session)
    db.commit()
    db.refresh(session)

    return session


def get_judge_by_token(db: Session, token: str) -> Optional[Judge]:
    """Get the judge behind a bearer token if the session is still valid."""
    statement = select(JudgeSession).where(JudgeSession.session_token == token)
    session = db.exec(statement).first()

    if not session:
        return None

    if session.expires_at < datetime.utcnow():
        db.delete(session)
        db.commit()
        return None

    return db.get(Judge, session.judge_id)


def authenticate_judge(db: Session, email: str, password: str) -> Optional[Judge]:
    """Authenticate an active judge by email and password."""
    statement = select(Judge).where(
        Judge.email == email.strip().lower(),
        Judge.is_active == True  # noqa: E712
    )
    judge = db.exec(statement).first()

    if not judge:
        return None

    if not verify_password(password, judge.password_hash):
        return None

    return judge
