from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional
from sqlmodel import SQLModel, Field, Relationship, UniqueConstraint, Column, JSON

if TYPE_CHECKING:
    from .task import Task
    from .team import Team

PROJECT_CATEGORIES = ("web", "mobile", "ai", "blockchain", "iot", "game", "other")
PROJECT_STATUSES = ("planning", "in-progress", "testing", "completed", "paused")
PRIORITIES = ("low", "medium", "high", "urgent")


class ProjectCollaborator(SQLModel, table=True):
    __tablename__ = "project_collaborators"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="unique_project_collaborator"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    added_at: datetime = Field(default_factory=datetime.utcnow)

    project: Optional["Project"] = Relationship(back_populates="collaborators")


class ShowcaseLike(SQLModel, table=True):
    __tablename__ = "showcase_likes"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="unique_showcase_like"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    project: Optional["Project"] = Relationship(back_populates="likes")


class ShowcaseComment(SQLModel, table=True):
    __tablename__ = "showcase_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    text: str = Field(max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    project: Optional["Project"] = Relationship(back_populates="comments")


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, max_length=100)
    description: str = Field(max_length=2000)
    short_description: str = Field(default="", max_length=200)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    category: str = Field(default="other", index=True)  # see PROJECT_CATEGORIES
    team_id: int = Field(foreign_key="teams.id", index=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    status: str = Field(default="planning")  # see PROJECT_STATUSES
    priority: str = Field(default="medium")  # see PRIORITIES
    due_date: Optional[datetime] = Field(default=None)
    links: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))

    # Derived from tasks, never set by clients
    progress: int = Field(default=0)
    total_tasks: int = Field(default=0)
    completed_tasks: int = Field(default=0)

    # Submission linkage
    is_submitted: bool = Field(default=False)
    submission_id: Optional[int] = Field(default=None, index=True)

    # Showcase
    is_public: bool = Field(default=False, index=True)
    views: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    team: Optional["Team"] = Relationship(back_populates="projects")
    collaborators: List[ProjectCollaborator] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ProjectCollaborator.id"}
    )
    likes: List[ShowcaseLike] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    comments: List[ShowcaseComment] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ShowcaseComment.id"}
    )
    tasks: List["Task"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Task.id"}
    )

    @property
    def collaborator_ids(self) -> List[int]:
        return [collaborator.user_id for collaborator in self.collaborators]
