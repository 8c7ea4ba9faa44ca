import logging
import re
from typing import Literal, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, col

from ..auth import authenticate_judge, create_judge_session, hash_password
from ..config import JUDGE_CODES
from ..database import get_session
from ..dependencies import require_judge
from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..models.judge import SPECIALIZATIONS, Judge
from ..models.submission import Submission
from ..serializers import badge_out, judge_out, submission_out
from ..services.scoring import award_badge, record_score, remove_badge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/judge", tags=["judge"])

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class JudgeRegister(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: str
    password: str = Field(min_length=6)
    judge_code: str
    specialization: Literal[SPECIALIZATIONS] = "general"


class JudgeLogin(BaseModel):
    email: str
    password: str


class ScoreRequest(BaseModel):
    # Presence, range and finiteness are checked by validate_criteria
    innovation: Optional[float] = None
    technical: Optional[float] = None
    design: Optional[float] = None
    presentation: Optional[float] = None
    overall: Optional[float] = None
    feedback: str = Field(default="", max_length=500)


class BadgeRequest(BaseModel):
    type: str
    name: Optional[str] = None
    description: Optional[str] = None


def get_submission_or_404(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id)
    if not submission:
        raise NotFoundError("Submission")
    return submission


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_judge(payload: JudgeRegister, db: Session = Depends(get_session)):
    email = payload.email.strip().lower()
    if not re.match(EMAIL_PATTERN, email):
        raise ValidationError("Invalid email format")

    if db.exec(select(Judge).where(Judge.email == email)).first():
        raise ConflictError("Judge already exists with this email")

    judge_code = payload.judge_code.strip()
    if judge_code not in JUDGE_CODES:
        raise ValidationError("Invalid judge code")

    if db.exec(select(Judge).where(Judge.judge_code == judge_code)).first():
        raise ConflictError("Judge code has already been used")

    judge = Judge(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        judge_code=judge_code,
        specialization=payload.specialization
    )
    db.add(judge)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Judge already exists with this email or code")
    db.refresh(judge)

    session = create_judge_session(db, judge.id)
    logger.info("Judge %s registered", judge.id)

    return {
        "message": "Judge registered successfully",
        "token": session.session_token,
        "judge": judge_out(judge)
    }


@router.post("/login")
async def login_judge(payload: JudgeLogin, db: Session = Depends(get_session)):
    judge = authenticate_judge(db, payload.email, payload.password)
    if not judge:
        raise AuthenticationError("Invalid credentials")

    session = create_judge_session(db, judge.id)
    return {"message": "Login successful", "token": session.session_token, "judge": judge_out(judge)}


@router.get("/verify")
async def verify_judge(judge: Judge = Depends(require_judge)):
    return {"judge": judge_out(judge)}


@router.get("/submissions")
async def list_submissions(
    judge: Judge = Depends(require_judge),
    db: Session = Depends(get_session)
):
    statement = select(Submission).order_by(col(Submission.created_at).asc(), col(Submission.id).asc())
    submissions = db.exec(statement).all()
    return {"submissions": [submission_out(submission) for submission in submissions]}


@router.post("/submissions/{submission_id}/score")
async def score_submission(
    submission_id: int,
    payload: ScoreRequest,
    judge: Judge = Depends(require_judge),
    db: Session = Depends(get_session)
):
    submission = get_submission_or_404(db, submission_id)
    values = payload.model_dump(exclude={"feedback"})

    submission = record_score(db, submission, judge, values, payload.feedback)
    return {"message": "Score submitted successfully", "submission": submission_out(submission)}


@router.post("/submissions/{submission_id}/badge")
async def add_badge(
    submission_id: int,
    payload: BadgeRequest,
    judge: Judge = Depends(require_judge),
    db: Session = Depends(get_session)
):
    submission = get_submission_or_404(db, submission_id)
    badge = award_badge(
        db,
        submission,
        payload.type,
        judge=judge,
        name=payload.name,
        description=payload.description
    )
    db.refresh(submission)
    return {
        "message": "Badge awarded successfully",
        "badge": badge_out(badge),
        "submission": submission_out(submission)
    }


@router.delete("/submissions/{submission_id}/badge/{badge_index}")
async def delete_badge(
    submission_id: int,
    badge_index: int,
    judge: Judge = Depends(require_judge),
    db: Session = Depends(get_session)
):
    submission = get_submission_or_404(db, submission_id)
    submission = remove_badge(db, submission, badge_index)

    logger.info("Judge %s removed badge %s from submission %s", judge.id, badge_index, submission.id)
    return {"message": "Badge removed successfully", "submission": submission_out(submission)}
