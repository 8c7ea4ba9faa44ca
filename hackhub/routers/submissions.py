from typing import List
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..errors import NotFoundError
from ..models.project import Project
from ..models.team import Team
from ..models.user import User
from ..serializers import submission_out
from ..services.scoring import build_leaderboard, submit_project

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


class SubmissionCreate(BaseModel):
    project_id: int
    live_link: str = ""
    github_link: str = ""
    description: str = ""
    tech_stack: List[str] = []


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_submission(
    payload: SubmissionCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = db.get(Project, payload.project_id)
    if not project:
        raise NotFoundError("Project")

    submission = submit_project(
        db,
        project,
        current_user,
        live_link=payload.live_link,
        github_link=payload.github_link,
        description=payload.description,
        tech_stack=payload.tech_stack
    )
    return {"message": "Project submitted successfully", "submission": submission_out(submission)}


@router.get("/leaderboard")
async def get_leaderboard(db: Session = Depends(get_session)):
    """Public ranking; see ``build_leaderboard`` for which submissions appear."""
    leaderboard = []
    for entry in build_leaderboard(db):
        submission = entry["submission"]
        project = db.get(Project, submission.project_id)
        team = db.get(Team, submission.team_id)
        leaderboard.append({
            "rank": entry["rank"],
            "final_score": round(entry["final_score"], 2),
            "submission": submission_out(submission),
            "project": {
                "id": project.id,
                "title": project.title,
                "description": project.description,
                "category": project.category,
            } if project else None,
            "team": {"id": team.id, "name": team.name} if team else None,
        })
    return {"leaderboard": leaderboard}
