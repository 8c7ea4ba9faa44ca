import logging
from datetime import datetime
from typing import Dict, List, Literal, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlmodel import Session, select, col, or_

from ..database import get_session
from ..dependencies import require_user
from ..errors import ConflictError, NotFoundError
from ..models.project import PRIORITIES, PROJECT_CATEGORIES, PROJECT_STATUSES, Project, ProjectCollaborator
from ..models.team import Team
from ..models.user import User
from ..serializers import project_out, task_out
from ..services.access import (
    is_collaborator,
    require_project_access,
    require_project_editor,
    require_project_owner,
)
from ..services.membership import require_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


class ProjectCreate(BaseModel):
    title: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    short_description: str = Field(default="", max_length=200)
    tags: List[str] = []
    category: Literal[PROJECT_CATEGORIES] = "other"
    team_id: int
    due_date: Optional[datetime] = None


class ProjectUpdate(BaseModel):
    """Client-editable fields; progress and submission state are derived."""
    title: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, min_length=10, max_length=2000)
    short_description: Optional[str] = Field(default=None, max_length=200)
    tags: Optional[List[str]] = None
    category: Optional[Literal[PROJECT_CATEGORIES]] = None
    status: Optional[Literal[PROJECT_STATUSES]] = None
    priority: Optional[Literal[PRIORITIES]] = None
    due_date: Optional[datetime] = None
    links: Optional[Dict[str, str]] = None


class CollaboratorAdd(BaseModel):
    user_id: int


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project")
    return project


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = db.get(Team, payload.team_id)
    if not team:
        raise NotFoundError("Team")
    require_member(team, current_user, "You are not a member of this team")

    project = Project(
        title=payload.title.strip(),
        description=payload.description,
        short_description=payload.short_description,
        tags=[tag.strip().lower() for tag in payload.tags if tag.strip()],
        category=payload.category,
        team_id=team.id,
        owner_id=current_user.id,
        due_date=payload.due_date
    )
    project.collaborators.append(ProjectCollaborator(user_id=current_user.id))
    # Listed under the team through team_id
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info("Project %s created in team %s by user %s", project.id, team.id, current_user.id)
    return {"message": "Project created successfully", "project": project_out(project)}


@router.get("")
async def list_projects(
    team_id: Optional[int] = None,
    status: Optional[str] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Projects the current user owns or collaborates on."""
    collaborating = select(ProjectCollaborator.project_id).where(
        ProjectCollaborator.user_id == current_user.id
    )
    statement = select(Project).where(
        or_(Project.owner_id == current_user.id, col(Project.id).in_(collaborating))
    )
    if team_id is not None:
        statement = statement.where(Project.team_id == team_id)
    if status:
        statement = statement.where(Project.status == status)
    statement = statement.order_by(col(Project.updated_at).desc(), col(Project.id).desc())

    projects = db.exec(statement).all()
    return {"projects": [project_out(project) for project in projects]}


@router.get("/{project_id}")
async def get_project(
    project_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_project_or_404(db, project_id)
    require_project_access(project, current_user)

    data = project_out(project)
    data["tasks"] = [task_out(task) for task in project.tasks]
    return {"project": data}


@router.put("/{project_id}")
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_project_or_404(db, project_id)
    require_project_editor(project, current_user)

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(project, field, value)
    project.updated_at = datetime.utcnow()

    db.add(project)
    db.commit()
    db.refresh(project)

    return {"message": "Project updated successfully", "project": project_out(project)}


@router.post("/{project_id}/collaborators")
async def add_collaborator(
    project_id: int,
    payload: CollaboratorAdd,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_project_or_404(db, project_id)
    require_project_owner(project, current_user, "add collaborators")

    user_to_add = db.get(User, payload.user_id)
    if not user_to_add:
        raise NotFoundError("User")

    if is_collaborator(project, user_to_add):
        raise ConflictError("User is already a collaborator")

    project.collaborators.append(ProjectCollaborator(user_id=user_to_add.id))
    project.updated_at = datetime.utcnow()
    db.add(project)
    db.commit()
    db.refresh(project)

    return {"message": "Collaborator added successfully", "collaborators": project.collaborator_ids}


@router.post("/{project_id}/toggle-showcase")
async def toggle_showcase(
    project_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_project_or_404(db, project_id)
    require_project_owner(project, current_user, "toggle showcase visibility")

    project.is_public = not project.is_public
    db.add(project)
    db.commit()
    db.refresh(project)

    visibility = "public" if project.is_public else "private"
    return {"message": f"Project is now {visibility}", "is_public": project.is_public}


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_project_or_404(db, project_id)
    require_project_owner(project, current_user, "delete the project")

    if project.is_submitted:
        raise ConflictError("Submitted projects cannot be deleted")

    # Tasks, collaborators and showcase activity are removed with the project
    db.delete(project)
    db.commit()

    logger.info("Project %s deleted by user %s", project_id, current_user.id)
    return {"message": "Project and all associated tasks deleted successfully"}
