from typing import Iterable, Tuple

from sqlmodel import Session, select

from ..models.project import Project
from ..models.task import Task


def calculate_progress(statuses: Iterable[str]) -> Tuple[int, int, int]:
    """
    Return (progress, total, completed) for a project's task statuses.

    Progress is the percentage of completed tasks rounded half up, 0 with
    no tasks.
    """
    statuses = list(statuses)
    total = len(statuses)
    completed = sum(1 for status in statuses if status == "completed")
    if total == 0:
        return 0, 0, 0
    return int(completed * 100 / total + 0.5), total, completed


def refresh_project_progress(db: Session, project: Project) -> None:
    """Recompute the derived progress fields; the caller commits."""
    db.flush()
    statuses = db.exec(select(Task.status).where(Task.project_id == project.id)).all()
    project.progress, project.total_tasks, project.completed_tasks = calculate_progress(statuses)
    db.add(project)
