"""Plain-dict views of the models returned by the JSON routers."""

from typing import Any, Dict, Optional

from .models import Judge, Project, Submission, SubmissionBadge, SubmissionScore, Task, Team, User


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "avatar": user.avatar}


def user_profile(user: User) -> Dict[str, Any]:
    return {
        **user_summary(user),
        "bio": user.bio,
        "skills": user.skills or [],
        "is_verified": user.is_verified,
        "team_ids": user.team_ids,
        "last_login": user.last_login,
        "created_at": user.created_at,
    }


def team_out(team: Team) -> Dict[str, Any]:
    return {
        "id": team.id,
        "name": team.name,
        "description": team.description,
        "owner_id": team.owner_id,
        "invite_code": team.invite_code,
        "members": [
            {"user": user_summary(member.user), "role": member.role, "joined_at": member.joined_at}
            for member in team.members
        ],
        "projects": [
            {"id": project.id, "title": project.title, "status": project.status, "progress": project.progress}
            for project in team.projects
        ],
        "stats": {
            "total_projects": len(team.projects),
            "completed_projects": sum(1 for project in team.projects if project.status == "completed"),
            "total_members": len(team.members),
        },
        "created_at": team.created_at,
    }


def project_out(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "short_description": project.short_description,
        "tags": project.tags or [],
        "category": project.category,
        "team_id": project.team_id,
        "owner_id": project.owner_id,
        "collaborators": project.collaborator_ids,
        "status": project.status,
        "priority": project.priority,
        "progress": project.progress,
        "metrics": {
            "total_tasks": project.total_tasks,
            "completed_tasks": project.completed_tasks,
        },
        "due_date": project.due_date,
        "links": project.links or {},
        "is_submitted": project.is_submitted,
        "submission_id": project.submission_id,
        "showcase": {
            "is_public": project.is_public,
            "views": project.views,
            "likes": len(project.likes),
            "comments": len(project.comments),
        },
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def task_out(task: Task, include_comments: bool = False) -> Dict[str, Any]:
    data = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "project_id": task.project_id,
        "assigned_to": task.assigned_to_id,
        "created_by": task.created_by_id,
        "due_date": task.due_date,
        "estimated_hours": task.estimated_hours,
        "actual_hours": task.actual_hours,
        "tags": task.tags or [],
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }
    if include_comments:
        data["comments"] = [
            {"id": comment.id, "user_id": comment.user_id, "text": comment.text, "created_at": comment.created_at}
            for comment in task.comments
        ]
    return data


def score_out(score: SubmissionScore) -> Dict[str, Any]:
    return {
        "judge_id": score.judge_id,
        "innovation": score.innovation,
        "technical": score.technical,
        "design": score.design,
        "presentation": score.presentation,
        "overall": score.overall,
        "feedback": score.feedback,
        "scored_at": score.scored_at,
    }


def badge_out(badge: SubmissionBadge) -> Dict[str, Any]:
    return {
        "type": badge.badge_type,
        "name": badge.name,
        "description": badge.description,
        "awarded_by": badge.awarded_by_id,
        "awarded_at": badge.awarded_at,
    }


def submission_out(submission: Submission) -> Dict[str, Any]:
    return {
        "id": submission.id,
        "project_id": submission.project_id,
        "team_id": submission.team_id,
        "submitted_by": submission.submitted_by_id,
        "live_link": submission.live_link,
        "github_link": submission.github_link,
        "description": submission.description,
        "tech_stack": submission.tech_stack or [],
        "status": submission.status,
        "scores": [score_out(score) for score in submission.scores],
        "badges": [badge_out(badge) for badge in submission.badges],
        "final_score": submission.final_score,
        "created_at": submission.created_at,
        "updated_at": submission.updated_at,
    }


def judge_out(judge: Judge) -> Dict[str, Any]:
    return {
        "id": judge.id,
        "name": judge.name,
        "email": judge.email,
        "specialization": judge.specialization,
    }
