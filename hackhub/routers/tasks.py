import logging
from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlmodel import Session, select, col, or_

from ..database import get_session
from ..dependencies import require_user
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models.project import PRIORITIES, Project, ProjectCollaborator
from ..models.task import TASK_STATUSES, Task, TaskComment
from ..models.user import User
from ..serializers import task_out
from ..services.access import (
    can_access_project,
    can_delete_task,
    can_update_task,
    require_project_access,
)
from ..services.progress import refresh_project_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    priority: Literal[PRIORITIES] = "medium"
    project_id: int
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None
    estimated_hours: float = Field(default=0, ge=0)
    tags: List[str] = []


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[Literal[TASK_STATUSES]] = None
    priority: Optional[Literal[PRIORITIES]] = None
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None


class CommentCreate(BaseModel):
    text: str = Field(default="", max_length=500)


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise NotFoundError("Task")
    return task


def _require_task_access(task: Task, user: User) -> Project:
    project = task.project
    if project is None or not can_access_project(project, user):
        raise PermissionDeniedError("Access denied")
    return project


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = db.get(Project, payload.project_id)
    if not project:
        raise NotFoundError("Project")
    require_project_access(project, current_user)

    if payload.assigned_to is not None and not db.get(User, payload.assigned_to):
        raise NotFoundError("User", "Assigned user not found")

    task = Task(
        title=payload.title.strip(),
        description=payload.description,
        priority=payload.priority,
        project_id=project.id,
        assigned_to_id=payload.assigned_to,
        created_by_id=current_user.id,
        due_date=payload.due_date,
        estimated_hours=payload.estimated_hours,
        tags=payload.tags
    )
    db.add(task)
    refresh_project_progress(db, project)
    db.commit()
    db.refresh(task)

    logger.info("Task %s created in project %s by user %s", task.id, project.id, current_user.id)
    return {"message": "Task created successfully", "task": task_out(task)}


@router.get("")
async def list_tasks(
    project_id: Optional[int] = None,
    status: Optional[str] = None,
    assigned_to: Optional[int] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Tasks of one project, or of every project the caller owns or collaborates on."""
    statement = select(Task)

    if project_id is not None:
        project = db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project")
        require_project_access(project, current_user)
        statement = statement.where(Task.project_id == project.id)
    else:
        collaborating = select(ProjectCollaborator.project_id).where(
            ProjectCollaborator.user_id == current_user.id
        )
        own_projects = select(Project.id).where(
            or_(Project.owner_id == current_user.id, col(Project.id).in_(collaborating))
        )
        statement = statement.where(col(Task.project_id).in_(own_projects))

    if status:
        statement = statement.where(Task.status == status)
    if assigned_to is not None:
        statement = statement.where(Task.assigned_to_id == assigned_to)
    statement = statement.order_by(col(Task.created_at).desc(), col(Task.id).desc())

    tasks = db.exec(statement).all()
    return {"tasks": [task_out(task) for task in tasks]}


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = get_task_or_404(db, task_id)
    _require_task_access(task, current_user)
    return {"task": task_out(task, include_comments=True)}


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = get_task_or_404(db, task_id)
    project = _require_task_access(task, current_user)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not can_update_task(task, current_user, changes.keys(), project):
        raise PermissionDeniedError("Insufficient permissions")

    if "assigned_to" in changes:
        assignee_id = changes.pop("assigned_to")
        if not db.get(User, assignee_id):
            raise NotFoundError("User", "Assigned user not found")
        task.assigned_to_id = assignee_id

    status_changed = "status" in changes and changes["status"] != task.status
    for field, value in changes.items():
        setattr(task, field, value)
    task.updated_at = datetime.utcnow()
    db.add(task)

    if status_changed:
        refresh_project_progress(db, project)
    db.commit()
    db.refresh(task)

    return {"message": "Task updated successfully", "task": task_out(task)}


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = get_task_or_404(db, task_id)
    _require_task_access(task, current_user)

    text = payload.text.strip()
    if not text:
        raise ValidationError("Comment text is required")

    task.comments.append(TaskComment(user_id=current_user.id, text=text))
    db.add(task)
    db.commit()
    db.refresh(task)

    return {"message": "Comment added successfully", "task": task_out(task, include_comments=True)}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = get_task_or_404(db, task_id)
    project = task.project

    if not can_delete_task(task, current_user, project):
        raise PermissionDeniedError("Only task creator or project owner can delete the task")

    db.delete(task)
    if project is not None:
        refresh_project_progress(db, project)
    db.commit()

    logger.info("Task %s deleted by user %s", task_id, current_user.id)
    return {"message": "Task deleted successfully"}
