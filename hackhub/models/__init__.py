from .user import User
from .session import Session, JudgeSession
from .team import Team, TeamMember
from .project import Project, ProjectCollaborator, ShowcaseLike, ShowcaseComment
from .task import Task, TaskComment
from .judge import Judge
from .submission import Submission, SubmissionScore, SubmissionBadge

__all__ = [
    "User",
    "Session",
    "JudgeSession",
    "Team",
    "TeamMember",
    "Project",
    "ProjectCollaborator",
    "ShowcaseLike",
    "ShowcaseComment",
    "Task",
    "TaskComment",
    "Judge",
    "Submission",
    "SubmissionScore",
    "SubmissionBadge",
]
