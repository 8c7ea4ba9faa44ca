import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, func

from ..errors import ConflictError, PermissionDeniedError, ValidationError
from ..models.judge import Judge
from ..models.project import Project
from ..models.submission import (
    BADGE_CATALOGUE,
    SCORE_CRITERIA,
    SCORE_MAX,
    SCORE_MIN,
    Submission,
    SubmissionBadge,
    SubmissionScore,
)
from ..models.user import User
from .membership import is_team_owner

logger = logging.getLogger(__name__)

FIRST_SUBMISSION_BADGE = "first-riser"


def calculate_final_score(scores: Iterable[SubmissionScore]) -> float:
    """
    Mean of every individual criterion value across all judges.

    Equivalent to the sum of each judge's five-criterion total divided by
    (number of judges x 5). No scores gives 0.
    """
    scores = list(scores)
    if not scores:
        return 0.0
    total = sum(score.total for score in scores)
    return total / (len(scores) * len(SCORE_CRITERIA))


def validate_criteria(values: Dict[str, Any]) -> Dict[str, float]:
    """Check all five criteria are present and within 0-10 inclusive."""
    cleaned = {}
    for criterion in SCORE_CRITERIA:
        value = values.get(criterion)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{criterion} score is required")
        if not math.isfinite(value):
            raise ValidationError(f"{criterion} score must be a finite number")
        if value < SCORE_MIN or value > SCORE_MAX:
            raise ValidationError(f"{criterion} score must be between {SCORE_MIN} and {SCORE_MAX}")
        cleaned[criterion] = float(value)
    return cleaned


def count_active_judges(db: Session) -> int:
    return db.exec(select(func.count(Judge.id)).where(Judge.is_active == True)).one()  # noqa: E712


def review_status(submission: Submission, judges_scored: int, active_judges: int) -> str:
    """
    Next status after a score is recorded.

    - submitted -> under-review on the first score
    - -> reviewed once the distinct judges who scored reach the judge count
      snapshotted at submission time (the current active count when that
      snapshot was 0)
    """
    status = submission.status
    if status == "submitted" and judges_scored > 0:
        status = "under-review"
    required = submission.required_judges or active_judges
    if required > 0 and judges_scored >= required:
        status = "reviewed"
    return status


def _is_duplicate_score(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return "unique_submission_judge" in message or "submission_scores.judge_id" in message


def _upsert_score_row(
    db: Session,
    submission_id: int,
    judge_id: int,
    criteria: Dict[str, float],
    feedback: str
) -> SubmissionScore:
    def write() -> SubmissionScore:
        row = db.exec(
            select(SubmissionScore).where(
                SubmissionScore.submission_id == submission_id,
                SubmissionScore.judge_id == judge_id
            )
        ).first()
        if row is None:
            row = SubmissionScore(submission_id=submission_id, judge_id=judge_id, **criteria)
        else:
            for criterion, value in criteria.items():
                setattr(row, criterion, value)
        row.feedback = feedback
        row.scored_at = datetime.utcnow()
        db.add(row)
        db.flush()
        return row

    try:
        return write()
    except IntegrityError as exc:
        if not _is_duplicate_score(exc):
            raise
        # A concurrent first insert by the same judge won the unique
        # constraint; overwrite that row instead.
        db.rollback()
        return write()


def record_score(
    db: Session,
    submission: Submission,
    judge: Judge,
    values: Dict[str, Any],
    feedback: Optional[str] = None
) -> Submission:
    """
    Create or overwrite ``judge``'s score on ``submission``.

    Each judge holds at most one score row per submission. After the write
    the final score and status are recomputed and persisted in the same
    commit.
    """
    criteria = validate_criteria(values)
    submission_id, judge_id = submission.id, judge.id

    _upsert_score_row(db, submission_id, judge_id, criteria, feedback or "")

    submission = db.get(Submission, submission_id)
    scores = db.exec(
        select(SubmissionScore).where(SubmissionScore.submission_id == submission_id)
    ).all()
    judges_scored = len({score.judge_id for score in scores})

    submission.final_score = calculate_final_score(scores)
    submission.status = review_status(submission, judges_scored, count_active_judges(db))
    submission.updated_at = datetime.utcnow()
    db.add(submission)
    db.commit()
    db.refresh(submission)

    logger.info(
        "Judge %s scored submission %s (final score %.2f, status %s)",
        judge_id, submission_id, submission.final_score, submission.status
    )
    return submission


def award_badge(
    db: Session,
    submission: Submission,
    badge_type: str,
    judge: Optional[Judge] = None,
    name: Optional[str] = None,
    description: Optional[str] = None
) -> SubmissionBadge:
    """Attach a badge; each badge type appears at most once per submission."""
    if badge_type not in BADGE_CATALOGUE:
        raise ValidationError(f"Unknown badge type: {badge_type}")
    if any(badge.badge_type == badge_type for badge in submission.badges):
        raise ConflictError("Badge already awarded")

    default_name, default_description = BADGE_CATALOGUE[badge_type]
    badge = SubmissionBadge(
        submission_id=submission.id,
        badge_type=badge_type,
        name=name or default_name,
        description=description or default_description,
        awarded_by_id=judge.id if judge else None
    )
    db.add(badge)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Badge already awarded")
    db.refresh(badge)

    logger.info("Badge %s awarded to submission %s", badge_type, submission.id)
    return badge


def remove_badge(db: Session, submission: Submission, index: int) -> Submission:
    """Remove the badge at ``index`` (0-based, insertion order)."""
    badges = list(submission.badges)
    if index < 0 or index >= len(badges):
        raise ValidationError("Invalid badge index")

    db.delete(badges[index])
    db.commit()
    db.refresh(submission)
    return submission


def submit_project(
    db: Session,
    project: Project,
    user: User,
    live_link: str,
    github_link: str,
    description: str = "",
    tech_stack: Optional[List[str]] = None
) -> Submission:
    """
    Enter ``project`` for judging.

    Only the owner of the project's team may submit, and each project is
    submitted once. The submission row, the project's submission linkage and
    the automatic first-submission badge are written in one commit.
    """
    live_link = (live_link or "").strip()
    github_link = (github_link or "").strip()
    if not live_link or not github_link:
        raise ValidationError("Project ID, live link, and GitHub link are required")

    if project.team is None or not is_team_owner(project.team, user):
        raise PermissionDeniedError("Only team owner can submit project")

    existing = db.exec(select(Submission.id).where(Submission.project_id == project.id)).first()
    if existing is not None:
        raise ConflictError("Project already submitted")

    submission = Submission(
        project_id=project.id,
        team_id=project.team_id,
        submitted_by_id=user.id,
        live_link=live_link,
        github_link=github_link,
        description=description or "",
        tech_stack=list(tech_stack or []),
        required_judges=count_active_judges(db)
    )
    db.add(submission)
    try:
        db.flush()

        project.is_submitted = True
        project.submission_id = submission.id
        project.links = {**(project.links or {}), "live_demo": live_link, "repository": github_link}
        project.updated_at = datetime.utcnow()
        db.add(project)

        total_submissions = db.exec(select(func.count(Submission.id))).one()
        if total_submissions == 1:
            name, badge_description = BADGE_CATALOGUE[FIRST_SUBMISSION_BADGE]
            db.add(SubmissionBadge(
                submission_id=submission.id,
                badge_type=FIRST_SUBMISSION_BADGE,
                name=name,
                description=badge_description
            ))

        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Project already submitted")

    db.refresh(submission)
    logger.info("Project %s submitted by user %s as submission %s", project.id, user.id, submission.id)
    return submission


def effective_final_score(submission: Submission) -> float:
    """Stored final score, or a freshly computed mean when it is zero or unset."""
    if submission.final_score and submission.final_score > 0:
        return submission.final_score
    return calculate_final_score(submission.scores)


def rank_submissions(submissions: Iterable[Submission]) -> List[Dict[str, Any]]:
    """
    Order by final score descending; ties go to the earlier submission.

    Ranks are 1-based positions in that order and are never stored.
    """
    scored = [(submission, effective_final_score(submission)) for submission in submissions]
    scored.sort(key=lambda item: (-item[1], item[0].created_at))
    return [
        {"rank": position, "submission": submission, "final_score": score}
        for position, (submission, score) in enumerate(scored, start=1)
    ]


def build_leaderboard(db: Session) -> List[Dict[str, Any]]:
    """
    Rank reviewed submissions that have at least one score.

    Until any submission is reviewed, every scored submission is ranked so
    the board is visible while judging is still in progress.
    """
    scored = db.exec(select(Submission).where(Submission.scores.any())).all()
    reviewed = [submission for submission in scored if submission.status == "reviewed"]
    return rank_submissions(reviewed or scored)
