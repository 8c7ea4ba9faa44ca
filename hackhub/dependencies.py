from typing import Optional
from fastapi import Request, Depends
from sqlmodel import Session

from .auth import get_user_by_session_token, get_judge_by_token
from .config import SESSION_COOKIE_NAME
from .database import get_session
from .errors import AuthenticationError, PermissionDeniedError
from .models.judge import Judge
from .models.user import User


async def get_current_user(
    request: Request,
    db: Session = Depends(get_session)
) -> Optional[User]:
    """Get the current logged-in user from session cookie."""
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_token:
        return None

    return get_user_by_session_token(db, session_token)


async def require_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """Require a logged-in user."""
    if not current_user:
        raise AuthenticationError("Unauthorized - no valid session")
    return current_user


async def require_judge(
    request: Request,
    db: Session = Depends(get_session)
) -> Judge:
    """Require an active judge identified by an ``Authorization: Bearer`` token."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Access token required")

    judge = get_judge_by_token(db, token.strip())
    if not judge:
        raise PermissionDeniedError("Invalid or expired token")
    if not judge.is_active:
        raise PermissionDeniedError("Judge not found or inactive")
    return judge
