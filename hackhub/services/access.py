"""
Access decisions for projects and tasks.

A project is readable by its owner, its collaborators and every member of
its team. Task access is the access of the parent project. Mutations layer
narrower rules on top:

- owner only: add collaborators, toggle showcase visibility, delete
- owner or collaborator: update project fields
- task creator or project owner: delete a task
- project owner, collaborators and the task creator: edit any task field;
  the assignee may only change the status

Every ``require_*`` helper raises ``PermissionDeniedError``; loading the
aggregate (and raising ``NotFoundError``) is the caller's job.
"""

from typing import Any, Iterable, Optional

from ..errors import PermissionDeniedError
from ..models.project import Project
from ..models.task import Task
from ..models.team import Team
from .identity import same_id
from .membership import is_member

TASK_SELF_SERVICE_FIELDS = frozenset({"status"})


def is_project_owner(project: Project, user: Any) -> bool:
    return same_id(project.owner_id, user)


def is_collaborator(project: Project, user: Any) -> bool:
    return any(same_id(collaborator.user_id, user) for collaborator in project.collaborators)


def can_access_project(project: Project, user: Any, team: Optional[Team] = None) -> bool:
    if is_project_owner(project, user):
        return True
    if is_collaborator(project, user):
        return True
    team = team if team is not None else project.team
    return team is not None and is_member(team, user)


def can_edit_project(project: Project, user: Any) -> bool:
    return is_project_owner(project, user) or is_collaborator(project, user)


def can_access_task(task: Task, user: Any, project: Optional[Project] = None) -> bool:
    project = project if project is not None else task.project
    return project is not None and can_access_project(project, user)


def can_update_task(
    task: Task,
    user: Any,
    fields: Iterable[str],
    project: Optional[Project] = None
) -> bool:
    project = project if project is not None else task.project
    if project is None or not can_access_project(project, user):
        return False
    if can_edit_project(project, user) or same_id(task.created_by_id, user):
        return True
    return same_id(task.assigned_to_id, user) and set(fields) <= TASK_SELF_SERVICE_FIELDS


def can_delete_task(task: Task, user: Any, project: Optional[Project] = None) -> bool:
    project = project if project is not None else task.project
    if same_id(task.created_by_id, user):
        return True
    return project is not None and is_project_owner(project, user)


def require_project_access(project: Project, user: Any) -> None:
    if not can_access_project(project, user):
        raise PermissionDeniedError("Access denied")


def require_project_editor(project: Project, user: Any) -> None:
    if not can_edit_project(project, user):
        raise PermissionDeniedError("Insufficient permissions")


def require_project_owner(project: Project, user: Any, action: str) -> None:
    if not is_project_owner(project, user):
        raise PermissionDeniedError(f"Only project owner can {action}")
