import logging
from datetime import datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, col, or_

from ..database import get_session
from ..dependencies import require_user
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..models.team import Team, TeamMember
from ..models.user import User
from ..serializers import team_out, user_summary
from ..services.identity import same_id
from ..services.invite_codes import join_team, regenerate_invite_code, save_with_invite_code
from ..services.membership import (
    find_member,
    is_member,
    is_team_owner,
    require_member,
    require_team_manager,
    role_of,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams", tags=["teams"])


class TeamCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: str = Field(default="", max_length=500)


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)


class MemberAdd(BaseModel):
    user_id: int
    role: Literal["admin", "member"] = "member"


def get_team_or_404(db: Session, team_id: int) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFoundError("Team")
    return team


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = Team(
        name=payload.name.strip(),
        description=payload.description.strip(),
        owner_id=current_user.id
    )
    # Creator is listed as the owner member in the same commit
    team.members.append(TeamMember(user_id=current_user.id, role="owner"))
    save_with_invite_code(db, team)

    logger.info("Team %s created by user %s", team.id, current_user.id)
    return {"message": "Team created successfully", "team": team_out(team)}


@router.get("")
async def list_teams(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Teams the current user belongs to, newest first."""
    statement = (
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == current_user.id)
        .order_by(col(Team.created_at).desc(), col(Team.id).desc())
    )
    teams = db.exec(statement).all()
    return {"teams": [team_out(team) for team in teams]}


@router.get("/users/search")
async def search_users(
    q: str = "",
    team_id: Optional[int] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Find users to invite, skipping people already on ``team_id``."""
    query = q.strip()
    if len(query) < 2:
        return {"users": []}

    exclude_ids = []
    if team_id is not None:
        team = db.get(Team, team_id)
        if team:
            exclude_ids = [member.user_id for member in team.members]

    statement = (
        select(User)
        .where(or_(col(User.name).ilike(f"%{query}%"), col(User.email).ilike(f"%{query}%")))
        .where(col(User.id).not_in(exclude_ids))
        .limit(10)
    )
    users = db.exec(statement).all()
    return {"users": [user_summary(user) for user in users]}


@router.get("/search/all")
async def search_all_teams(
    q: str = "",
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    query = q.strip()
    if len(query) < 2:
        return {"teams": []}

    statement = (
        select(Team)
        .where(or_(col(Team.name).ilike(f"%{query}%"), col(Team.description).ilike(f"%{query}%")))
        .order_by(col(Team.created_at).desc(), col(Team.id).desc())
        .limit(20)
    )
    teams = db.exec(statement).all()

    results = []
    for team in teams:
        results.append({
            "id": team.id,
            "name": team.name,
            "description": team.description,
            "owner_id": team.owner_id,
            "member_count": len(team.members),
            "is_member": is_member(team, current_user),
            "member_role": role_of(team, current_user),
            "created_at": team.created_at,
        })
    return {"teams": results}


@router.get("/{team_id}")
async def get_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)
    require_member(team, current_user)
    return {"team": team_out(team)}


@router.post("/join/{invite_code}")
async def join_with_code(
    invite_code: str,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = join_team(db, invite_code.strip().upper(), current_user)
    return {"message": "Successfully joined the team", "team": team_out(team)}


@router.put("/{team_id}")
async def update_team(
    team_id: int,
    payload: TeamUpdate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)
    require_team_manager(team, current_user)

    if payload.name is not None:
        team.name = payload.name.strip()
    if payload.description is not None:
        team.description = payload.description.strip()
    team.updated_at = datetime.utcnow()

    db.add(team)
    db.commit()
    db.refresh(team)

    return {"message": "Team updated successfully", "team": team_out(team)}


@router.post("/{team_id}/regenerate-code")
async def regenerate_code(
    team_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)
    require_team_manager(team, current_user)

    invite_code = regenerate_invite_code(db, team)
    return {"message": "Invite code regenerated successfully", "invite_code": invite_code}


@router.post("/{team_id}/members")
async def add_member(
    team_id: int,
    payload: MemberAdd,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)
    require_team_manager(team, current_user)

    user_to_add = db.get(User, payload.user_id)
    if not user_to_add:
        raise NotFoundError("User")

    if is_member(team, user_to_add):
        raise ConflictError("User is already a member of this team")

    db.add(TeamMember(team_id=team.id, user_id=user_to_add.id, role=payload.role))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User is already a member of this team")
    db.refresh(team)

    logger.info("User %s added to team %s by %s", user_to_add.id, team.id, current_user.id)
    return {"message": "Member added successfully", "team": team_out(team)}


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: int,
    user_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)
    require_team_manager(team, current_user)

    if same_id(user_id, current_user):
        raise ValidationError("You cannot remove yourself from the team")

    member = find_member(team, user_id)
    if not member:
        raise ValidationError("User is not a member of this team")

    if member.role == "owner":
        raise PermissionDeniedError("The team owner cannot be removed")

    db.delete(member)
    db.commit()
    db.refresh(team)

    logger.info("User %s removed from team %s by %s", user_id, team.id, current_user.id)
    return {"message": "Member removed successfully", "team": team_out(team)}


@router.delete("/{team_id}")
async def delete_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = get_team_or_404(db, team_id)

    if not is_team_owner(team, current_user):
        raise PermissionDeniedError("Only team owner can delete the team")

    if team.projects:
        raise ValidationError("Cannot delete team with existing projects. Please delete all projects first.")

    # Membership rows go with the team, which clears every member's team list
    db.delete(team)
    db.commit()

    logger.info("Team %s deleted by user %s", team_id, current_user.id)
    return {"message": "Team deleted successfully"}
