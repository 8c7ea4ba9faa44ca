from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from sqlmodel import SQLModel, Field, Relationship, Column, JSON

if TYPE_CHECKING:
    from .project import Project

TASK_STATUSES = ("todo", "in-progress", "review", "completed")


class TaskComment(SQLModel, table=True):
    __tablename__ = "task_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    text: str = Field(max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    task: Optional["Task"] = Relationship(back_populates="comments")


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    description: str = Field(default="", max_length=1000)
    status: str = Field(default="todo", index=True)  # see TASK_STATUSES
    priority: str = Field(default="medium")  # low, medium, high, urgent
    project_id: int = Field(foreign_key="projects.id", index=True)
    assigned_to_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    created_by_id: int = Field(foreign_key="users.id")
    due_date: Optional[datetime] = Field(default=None)
    estimated_hours: float = Field(default=0)
    actual_hours: float = Field(default=0)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    project: Optional["Project"] = Relationship(back_populates="tasks")
    comments: List[TaskComment] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TaskComment.id"}
    )
