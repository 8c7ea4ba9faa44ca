import logging
import secrets

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import ConflictError, NotFoundError
from ..models.team import Team, TeamMember
from ..models.user import User
from .membership import is_member

logger = logging.getLogger(__name__)

INVITE_CODE_BYTES = 4
MAX_CODE_ATTEMPTS = 10


def generate_code() -> str:
    """Generate a short invite code: 8 uppercase hex characters."""
    return secrets.token_hex(INVITE_CODE_BYTES).upper()


def issue_invite_code(db: Session) -> str:
    """Generate a code no team is using yet, retrying on collision."""
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code()
        taken = db.exec(select(Team.id).where(Team.invite_code == code)).first()
        if taken is None:
            return code
        logger.info("Invite code collision, regenerating")
    raise RuntimeError("Could not generate a unique invite code")


def _is_code_collision(exc: IntegrityError) -> bool:
    return "invite_code" in str(exc.orig)


def save_with_invite_code(db: Session, team: Team) -> Team:
    """
    Give ``team`` a fresh invite code and commit it.

    The lookup in ``issue_invite_code`` can race with another request
    claiming the same code, so a unique violation on the code is retried
    with a new one, up to ``MAX_CODE_ATTEMPTS`` times.
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        team.invite_code = issue_invite_code(db)
        db.add(team)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_code_collision(exc):
                raise
            logger.info("Invite code taken at commit, regenerating")
            continue
        db.refresh(team)
        return team
    raise RuntimeError("Could not generate a unique invite code")


def regenerate_invite_code(db: Session, team: Team) -> str:
    save_with_invite_code(db, team)
    logger.info("Invite code regenerated for team %s", team.id)
    return team.invite_code


def join_team(db: Session, invite_code: str, user: User) -> Team:
    """
    Add ``user`` to the team holding ``invite_code`` as a plain member.

    The membership row is both the team's member entry and the user's team
    list entry, so a single insert updates both sides.
    """
    team = db.exec(select(Team).where(Team.invite_code == invite_code)).first()
    if not team:
        raise NotFoundError("Team", "Invalid invite code")

    if is_member(team, user):
        raise ConflictError("You are already a member of this team")

    db.add(TeamMember(team_id=team.id, user_id=user.id, role="member"))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You are already a member of this team")

    db.refresh(team)
    logger.info("User %s joined team %s", user.id, team.id)
    return team
