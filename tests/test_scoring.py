from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from hackhub.errors import ConflictError, PermissionDeniedError, ValidationError
from hackhub.models import Submission, SubmissionScore
from hackhub.services.progress import calculate_progress
from hackhub.services.scoring import (
    award_badge,
    build_leaderboard,
    calculate_final_score,
    rank_submissions,
    record_score,
    remove_badge,
    review_status,
    submit_project,
    validate_criteria,
)


def score(innovation, technical, design, presentation, overall, judge_id=1):
    return SubmissionScore(
        submission_id=1,
        judge_id=judge_id,
        innovation=innovation,
        technical=technical,
        design=design,
        presentation=presentation,
        overall=overall
    )


def criteria(value):
    return {name: value for name in ("innovation", "technical", "design", "presentation", "overall")}


def test_final_score_single_judge():
    assert calculate_final_score([score(7, 8, 6, 9, 5)]) == 7.0

def test_final_score_is_mean_of_every_criterion():
    scores = [score(10, 10, 10, 10, 10, judge_id=1), score(5, 5, 5, 5, 5, judge_id=2)]
    # (50 + 25) / (2 * 5)
    assert calculate_final_score(scores) == 7.5

def test_final_score_without_scores():
    assert calculate_final_score([]) == 0.0

def test_validate_criteria_bounds():
    assert validate_criteria(criteria(0)) == criteria(0.0)
    assert validate_criteria(criteria(10))["overall"] == 10.0

    with pytest.raises(ValidationError):
        validate_criteria(criteria(11))
    with pytest.raises(ValidationError):
        validate_criteria(criteria(-1))

    missing = criteria(5)
    del missing["design"]
    with pytest.raises(ValidationError) as excinfo:
        validate_criteria(missing)
    assert "design" in excinfo.value.message

def test_validate_criteria_rejects_non_finite_values():
    with pytest.raises(ValidationError) as excinfo:
        validate_criteria({**criteria(5), "innovation": float("nan")})
    assert "innovation" in excinfo.value.message

    with pytest.raises(ValidationError):
        validate_criteria({**criteria(5), "overall": float("inf")})

def test_only_the_judge_unique_constraint_counts_as_a_duplicate_score():
    from sqlalchemy.exc import IntegrityError

    from hackhub.services.scoring import _is_duplicate_score

    duplicate = IntegrityError(
        "INSERT", {}, Exception("UNIQUE constraint failed: submission_scores.submission_id, submission_scores.judge_id")
    )
    not_null = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: submission_scores.innovation"))

    assert _is_duplicate_score(duplicate)
    assert not _is_duplicate_score(not_null)

def test_review_status_transitions():
    submission = Submission(project_id=1, team_id=1, submitted_by_id=1, live_link="l", github_link="g",
                            required_judges=2)

    assert review_status(submission, 1, 3) == "under-review"
    assert review_status(submission, 2, 3) == "reviewed"

def test_review_status_falls_back_to_active_count():
    submission = Submission(project_id=1, team_id=1, submitted_by_id=1, live_link="l", github_link="g",
                            required_judges=0)

    assert review_status(submission, 1, 2) == "under-review"
    assert review_status(submission, 2, 2) == "reviewed"
    # no judges at all never completes the review
    assert review_status(submission, 0, 0) == "submitted"

def test_progress_rounds_half_up():
    assert calculate_progress([]) == (0, 0, 0)
    assert calculate_progress(["completed", "todo", "todo"]) == (33, 3, 1)
    assert calculate_progress(["completed", "completed", "todo"]) == (67, 3, 2)
    assert calculate_progress(["completed"] + ["todo"] * 7) == (13, 8, 1)
    assert calculate_progress(["completed", "review"]) == (50, 2, 1)

def test_rank_submissions_orders_by_score_then_submission_time():
    now = datetime(2026, 3, 1, 12, 0, 0)
    early = Submission(id=1, project_id=1, team_id=1, submitted_by_id=1, live_link="l", github_link="g",
                       final_score=8.0, created_at=now)
    late = Submission(id=2, project_id=2, team_id=2, submitted_by_id=2, live_link="l", github_link="g",
                      final_score=8.0, created_at=now + timedelta(minutes=5))
    best = Submission(id=3, project_id=3, team_id=3, submitted_by_id=3, live_link="l", github_link="g",
                      final_score=9.5, created_at=now + timedelta(minutes=10))

    ranked = rank_submissions([late, best, early])

    assert [entry["submission"].id for entry in ranked] == [3, 1, 2]
    assert [entry["rank"] for entry in ranked] == [1, 2, 3]


# Database-backed scoring

@pytest.fixture(name="submission")
def submission_fixture(session, make_user, make_team, make_project, make_judge):
    owner = make_user()
    team = make_team(owner)
    project = make_project(team, owner)
    # two judges active when the project is submitted
    make_judge()
    make_judge()
    return submit_project(session, project, owner, "https://demo.example.com", "https://github.com/team/demo")

def test_submit_project_links_project_and_awards_first_badge(session, submission):
    assert submission.status == "submitted"
    assert submission.required_judges == 2
    assert [badge.badge_type for badge in submission.badges] == ["first-riser"]
    assert submission.badges[0].name == "The First Riser"

def test_submit_project_updates_project_in_same_commit(session, submission):
    from hackhub.models import Project

    project = session.get(Project, submission.project_id)
    assert project.is_submitted is True
    assert project.submission_id == submission.id
    assert project.links["live_demo"] == "https://demo.example.com"
    assert project.links["repository"] == "https://github.com/team/demo"

def test_second_submission_of_a_project_conflicts(session, submission):
    from hackhub.models import Project, User

    project = session.get(Project, submission.project_id)
    owner = session.get(User, submission.submitted_by_id)

    with pytest.raises(ConflictError):
        submit_project(session, project, owner, "https://a.example.com", "https://github.com/a/b")

    assert len(session.exec(select(Submission)).all()) == 1

def test_only_team_owner_may_submit(session, make_user, make_team, make_project):
    owner = make_user()
    member = make_user()
    team = make_team(owner, members=[(member, "admin")])
    project = make_project(team, member)

    with pytest.raises(PermissionDeniedError):
        submit_project(session, project, member, "https://a.example.com", "https://github.com/a/b")

def test_submit_requires_both_links(session, make_user, make_team, make_project):
    owner = make_user()
    project = make_project(make_team(owner), owner)

    with pytest.raises(ValidationError):
        submit_project(session, project, owner, "https://a.example.com", "  ")

def test_only_first_submission_gets_first_riser(session, submission, make_user, make_team, make_project):
    owner = make_user()
    project = make_project(make_team(owner), owner, title="Second")

    second = submit_project(session, project, owner, "https://b.example.com", "https://github.com/b/b")

    assert second.badges == []

def test_rescoring_overwrites_the_judges_row(session, submission, make_judge):
    judge = make_judge()

    record_score(session, submission, judge, criteria(4), "first pass")
    updated = record_score(session, submission, judge, {**criteria(8), "overall": 10}, "second pass")

    rows = [row for row in updated.scores if row.judge_id == judge.id]
    assert len(rows) == 1
    assert rows[0].innovation == 8
    assert rows[0].overall == 10
    assert rows[0].feedback == "second pass"
    assert updated.final_score == pytest.approx(8.4)

def test_scoring_moves_submission_through_review(session, submission):
    from hackhub.models import Judge

    first, second = session.exec(select(Judge).order_by(Judge.id)).all()[:2]

    after_first = record_score(session, submission, first, criteria(6))
    assert after_first.status == "under-review"

    after_second = record_score(session, submission, second, criteria(8))
    assert after_second.status == "reviewed"
    assert after_second.final_score == 7.0

def test_threshold_is_snapshotted_at_submission(session, submission, make_judge):
    from hackhub.models import Judge

    first = session.exec(select(Judge).order_by(Judge.id)).first()
    # a judge registering later does not raise the bar for this submission
    make_judge()
    make_judge()

    record_score(session, submission, first, criteria(5))
    late_judge = session.exec(select(Judge).order_by(Judge.id.desc())).first()
    result = record_score(session, submission, late_judge, criteria(5))

    assert result.status == "reviewed"

def test_award_badge_once_per_type(session, submission, make_judge):
    judge = make_judge()

    badge = award_badge(session, submission, "tech-wizard", judge=judge)
    assert badge.name == "Tech Wizard"
    assert badge.awarded_by_id == judge.id

    with pytest.raises(ConflictError):
        award_badge(session, submission, "tech-wizard", judge=judge)

def test_award_badge_rejects_unknown_type(session, submission):
    with pytest.raises(ValidationError):
        award_badge(session, submission, "best-hair")

def test_award_badge_custom_text(session, submission):
    badge = award_badge(session, submission, "design-guru", name="Pixel Perfect", description="Lovely UI")
    assert badge.name == "Pixel Perfect"
    assert badge.description == "Lovely UI"

def test_remove_badge_by_index(session, submission):
    award_badge(session, submission, "peoples-choice")

    updated = remove_badge(session, submission, 0)
    assert [badge.badge_type for badge in updated.badges] == ["peoples-choice"]

    with pytest.raises(ValidationError):
        remove_badge(session, updated, 5)
    with pytest.raises(ValidationError):
        remove_badge(session, updated, -1)
    session.refresh(updated)
    assert [badge.badge_type for badge in updated.badges] == ["peoples-choice"]

def test_leaderboard_prefers_reviewed_submissions(session, submission, make_user, make_team, make_project):
    from hackhub.models import Judge

    owner = make_user()
    other = submit_project(
        session, make_project(make_team(owner), owner, title="Other"), owner,
        "https://o.example.com", "https://github.com/o/o"
    )
    first, second = session.exec(select(Judge).order_by(Judge.id)).all()[:2]

    # only scored submissions appear; while nothing is reviewed all of them do
    record_score(session, other, first, criteria(9))
    board = build_leaderboard(session)
    assert [entry["submission"].id for entry in board] == [other.id]

    record_score(session, submission, first, criteria(3))
    board = build_leaderboard(session)
    assert [entry["submission"].id for entry in board] == [other.id, submission.id]

    # once one is reviewed, unreviewed submissions drop off
    record_score(session, submission, second, criteria(3))
    board = build_leaderboard(session)
    assert [entry["submission"].id for entry in board] == [submission.id]
    assert board[0]["rank"] == 1
    assert board[0]["final_score"] == 3.0
