import logging
import math
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, col, func, or_

from ..database import get_session
from ..dependencies import get_current_user, require_user
from ..errors import NotFoundError, ValidationError
from ..models.project import Project, ShowcaseComment, ShowcaseLike
from ..models.team import Team
from ..models.user import User
from ..serializers import project_out, user_summary
from ..services.access import is_collaborator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/showcase", tags=["showcase"])


class CommentCreate(BaseModel):
    text: str = Field(default="", max_length=500)


def get_public_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project or not project.is_public:
        raise NotFoundError("Project", "Project not found or not public")
    return project


def _showcase_card(db: Session, project: Project, current_user: Optional[User]):
    data = project_out(project)
    team = db.get(Team, project.team_id)
    data["team"] = {"id": team.id, "name": team.name} if team else None
    data["owner"] = user_summary(db.get(User, project.owner_id))
    data["user_liked"] = current_user is not None and any(
        like.user_id == current_user.id for like in project.likes
    )
    return data


@router.get("")
async def list_showcase(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=50),
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Literal["recent", "popular", "views"] = "recent",
    current_user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    """Public projects, paginated; ``user_liked`` is filled in for signed-in callers."""
    filters = [Project.is_public == True]  # noqa: E712
    if category and category != "all":
        filters.append(Project.category == category)
    if search and search.strip():
        term = f"%{search.strip()}%"
        filters.append(or_(
            col(Project.title).ilike(term),
            col(Project.description).ilike(term),
            col(Project.short_description).ilike(term)
        ))

    total = db.exec(select(func.count(Project.id)).where(*filters)).one()

    statement = select(Project).where(*filters)
    if sort == "popular":
        likes_count = (
            select(func.count(ShowcaseLike.id))
            .where(ShowcaseLike.project_id == Project.id)
            .correlate(Project)
            .scalar_subquery()
        )
        statement = statement.order_by(likes_count.desc(), col(Project.updated_at).desc())
    elif sort == "views":
        statement = statement.order_by(col(Project.views).desc(), col(Project.updated_at).desc())
    else:
        statement = statement.order_by(col(Project.updated_at).desc(), col(Project.id).desc())
    statement = statement.offset((page - 1) * limit).limit(limit)

    projects = db.exec(statement).all()
    return {
        "projects": [_showcase_card(db, project, current_user) for project in projects],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/stats")
async def showcase_stats(db: Session = Depends(get_session)):
    public = Project.is_public == True  # noqa: E712

    total_projects = db.exec(select(func.count(Project.id)).where(public)).one()
    total_views = db.exec(select(func.coalesce(func.sum(Project.views), 0)).where(public)).one()
    total_likes = db.exec(
        select(func.count(ShowcaseLike.id))
        .join(Project, Project.id == ShowcaseLike.project_id)
        .where(public)
    ).one()
    by_category = db.exec(
        select(Project.category, func.count(Project.id))
        .where(public)
        .group_by(Project.category)
        .order_by(func.count(Project.id).desc())
    ).all()

    return {
        "total_projects": total_projects,
        "total_views": total_views,
        "total_likes": total_likes,
        "categories": [{"category": category, "count": count} for category, count in by_category],
    }


@router.get("/{project_id}")
async def get_showcase_project(
    project_id: int,
    current_user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    project = get_public_project_or_404(db, project_id)

    # Collaborators looking at their own project do not count as views
    if current_user is None or not is_collaborator(project, current_user):
        project.views += 1
        db.add(project)
        db.commit()
        db.refresh(project)

    data = _showcase_card(db, project, current_user)
    data["comments_list"] = [
        {
            "id": comment.id,
            "user": user_summary(db.get(User, comment.user_id)),
            "text": comment.text,
            "created_at": comment.created_at,
        }
        for comment in project.comments
    ]
    return {"project": data}


@router.post("/{project_id}/like")
async def toggle_like(
    project_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_public_project_or_404(db, project_id)

    existing = db.exec(
        select(ShowcaseLike).where(
            ShowcaseLike.project_id == project.id,
            ShowcaseLike.user_id == current_user.id
        )
    ).first()

    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(ShowcaseLike(project_id=project.id, user_id=current_user.id))
        liked = True

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request already stored this like
        db.rollback()
        liked = True

    total_likes = db.exec(
        select(func.count(ShowcaseLike.id)).where(ShowcaseLike.project_id == project_id)
    ).one()
    return {"liked": liked, "total_likes": total_likes}


@router.post("/{project_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_showcase_comment(
    project_id: int,
    payload: CommentCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    project = get_public_project_or_404(db, project_id)

    text = payload.text.strip()
    if not text:
        raise ValidationError("Comment text is required")

    comment = ShowcaseComment(project_id=project.id, user_id=current_user.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return {
        "message": "Comment added successfully",
        "comment": {
            "id": comment.id,
            "user": user_summary(current_user),
            "text": comment.text,
            "created_at": comment.created_at,
        },
    }
