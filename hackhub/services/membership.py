from typing import Any, Optional

from ..errors import PermissionDeniedError
from ..models.team import Team, TeamMember
from .identity import same_id

MANAGER_ROLES = ("owner", "admin")


def find_member(team: Team, user: Any) -> Optional[TeamMember]:
    """Return the membership row of ``user`` in ``team``, if any."""
    for member in team.members:
        if same_id(member.user_id, user):
            return member
    return None


def is_member(team: Team, user: Any) -> bool:
    return find_member(team, user) is not None


def role_of(team: Team, user: Any) -> Optional[str]:
    member = find_member(team, user)
    return member.role if member else None


def is_team_owner(team: Team, user: Any) -> bool:
    # The member list is authoritative over Team.owner_id
    return role_of(team, user) == "owner"


def can_manage_team(team: Team, user: Any) -> bool:
    """Owners and admins may edit the team, its members and its invite code."""
    return role_of(team, user) in MANAGER_ROLES


def require_member(team: Team, user: Any, message: str = "Access denied") -> None:
    if not is_member(team, user):
        raise PermissionDeniedError(message)


def require_team_manager(team: Team, user: Any) -> None:
    if not can_manage_team(team, user):
        raise PermissionDeniedError("Insufficient permissions")
