from datetime import datetime
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship, UniqueConstraint, Column, JSON

SUBMISSION_STATUSES = ("submitted", "under-review", "reviewed")
SCORE_CRITERIA = ("innovation", "technical", "design", "presentation", "overall")
SCORE_MIN = 0
SCORE_MAX = 10

# Closed set of award kinds: type -> (name, description)
BADGE_CATALOGUE = {
    "first-riser": ("The First Riser", "First team to submit their project"),
    "last-arrival": ("The Last Arrival", "Last team to make it in before the deadline"),
    "innovation-master": ("Innovation Master", "Most innovative idea of the event"),
    "tech-wizard": ("Tech Wizard", "Most impressive technical execution"),
    "design-guru": ("Design Guru", "Best design and user experience"),
    "peoples-choice": ("People's Choice", "Favourite project of the audience"),
}
BADGE_TYPES = tuple(BADGE_CATALOGUE)


class SubmissionScore(SQLModel, table=True):
    """One judge's five-criterion score; at most one row per judge per submission."""
    __tablename__ = "submission_scores"
    __table_args__ = (UniqueConstraint("submission_id", "judge_id", name="unique_submission_judge"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    submission_id: int = Field(foreign_key="submissions.id", index=True)
    judge_id: int = Field(foreign_key="judges.id", index=True)
    innovation: float
    technical: float
    design: float
    presentation: float
    overall: float
    feedback: str = Field(default="", max_length=500)
    scored_at: datetime = Field(default_factory=datetime.utcnow)

    submission: Optional["Submission"] = Relationship(back_populates="scores")

    @property
    def total(self) -> float:
        return sum(getattr(self, criterion) for criterion in SCORE_CRITERIA)


class SubmissionBadge(SQLModel, table=True):
    __tablename__ = "submission_badges"
    __table_args__ = (UniqueConstraint("submission_id", "badge_type", name="unique_submission_badge"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    submission_id: int = Field(foreign_key="submissions.id", index=True)
    badge_type: str  # see BADGE_TYPES
    name: str
    description: str
    awarded_by_id: Optional[int] = Field(default=None, foreign_key="judges.id")  # None for automatic badges
    awarded_at: datetime = Field(default_factory=datetime.utcnow)

    submission: Optional["Submission"] = Relationship(back_populates="badges")


class Submission(SQLModel, table=True):
    __tablename__ = "submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", unique=True, index=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    submitted_by_id: int = Field(foreign_key="users.id")
    live_link: str
    github_link: str
    description: str = Field(default="", max_length=1000)
    tech_stack: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    status: str = Field(default="submitted", index=True)  # see SUBMISSION_STATUSES

    # Active judges when submitted; the count needed to reach "reviewed"
    required_judges: int = Field(default=0)

    final_score: float = Field(default=0, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Badge order is insertion order; removal is by position in this list
    scores: List[SubmissionScore] = Relationship(
        back_populates="submission",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "SubmissionScore.id"}
    )
    badges: List[SubmissionBadge] = Relationship(
        back_populates="submission",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "SubmissionBadge.id"}
    )
