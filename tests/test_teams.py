from sqlmodel import select

from hackhub.models import Team, TeamMember


def test_create_team_makes_creator_owner(client, user, login):
    login(user)
    response = client.post("/api/teams", json={"name": "Night Owls", "description": "We code late"})

    assert response.status_code == 201
    team = response.json()["team"]
    assert team["owner_id"] == user.id
    assert len(team["invite_code"]) == 8
    assert [(m["user"]["id"], m["role"]) for m in team["members"]] == [(user.id, "owner")]
    assert team["stats"] == {"total_projects": 0, "completed_projects": 0, "total_members": 1}

    me = client.get("/api/auth/me").json()
    assert me["user"]["team_ids"] == [team["id"]]

def test_create_team_retries_when_code_is_claimed_before_commit(client, user, make_user, make_team, login,
                                                                  monkeypatch):
    from hackhub.services import invite_codes

    taken = make_team(make_user())
    codes = iter([taken.invite_code, "FRESH003"])
    monkeypatch.setattr(invite_codes, "issue_invite_code", lambda db: next(codes))

    login(user)
    response = client.post("/api/teams", json={"name": "Night Owls", "description": "We code late"})

    assert response.status_code == 201
    team = response.json()["team"]
    assert team["invite_code"] == "FRESH003"
    assert [(m["user"]["id"], m["role"]) for m in team["members"]] == [(user.id, "owner")]

def test_list_teams_only_returns_own_teams(client, make_user, make_team, login):
    alice, bob = make_user(), make_user()
    mine = make_team(alice)
    make_team(bob)

    login(alice)
    response = client.get("/api/teams")

    assert response.status_code == 200
    assert [team["id"] for team in response.json()["teams"]] == [mine.id]

def test_get_team_requires_membership(client, make_user, make_team, login):
    owner, outsider = make_user(), make_user()
    team = make_team(owner)

    login(outsider)
    assert client.get(f"/api/teams/{team.id}").status_code == 403

    login(owner)
    assert client.get(f"/api/teams/{team.id}").status_code == 200

def test_get_missing_team_is_not_found(client, user, login):
    login(user)
    response = client.get("/api/teams/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Team not found"

def test_join_with_invite_code(client, make_user, make_team, login):
    owner, joiner = make_user(), make_user()
    team = make_team(owner)

    login(joiner)
    response = client.post(f"/api/teams/join/{team.invite_code.lower()}")
    assert response.status_code == 200
    members = response.json()["team"]["members"]
    assert [(m["user"]["id"], m["role"]) for m in members][-1] == (joiner.id, "member")

    again = client.post(f"/api/teams/join/{team.invite_code}")
    assert again.status_code == 409

def test_join_with_unknown_code(client, user, login):
    login(user)
    response = client.post("/api/teams/join/ZZZZZZZZ")
    assert response.status_code == 404
    assert response.json()["detail"] == "Invalid invite code"

def test_update_team_requires_manager(client, make_user, make_team, login):
    owner, admin, member = make_user(), make_user(), make_user()
    team = make_team(owner, members=[(admin, "admin"), (member, "member")])

    login(member)
    assert client.put(f"/api/teams/{team.id}", json={"name": "Renamed"}).status_code == 403

    login(admin)
    response = client.put(f"/api/teams/{team.id}", json={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["team"]["name"] == "Renamed"

def test_regenerate_code(client, make_user, make_team, login):
    owner, member = make_user(), make_user()
    team = make_team(owner, members=[(member, "member")])
    old_code = team.invite_code

    login(member)
    assert client.post(f"/api/teams/{team.id}/regenerate-code").status_code == 403

    login(owner)
    response = client.post(f"/api/teams/{team.id}/regenerate-code")
    assert response.status_code == 200
    assert response.json()["invite_code"] != old_code

def test_add_member(client, make_user, make_team, login):
    owner, newcomer = make_user(), make_user()
    team = make_team(owner)

    login(owner)
    response = client.post(f"/api/teams/{team.id}/members", json={"user_id": newcomer.id, "role": "admin"})
    assert response.status_code == 200
    roles = {m["user"]["id"]: m["role"] for m in response.json()["team"]["members"]}
    assert roles[newcomer.id] == "admin"

    duplicate = client.post(f"/api/teams/{team.id}/members", json={"user_id": newcomer.id})
    assert duplicate.status_code == 409

    missing = client.post(f"/api/teams/{team.id}/members", json={"user_id": 999})
    assert missing.status_code == 404

def test_add_member_cannot_grant_owner(client, make_user, make_team, login):
    owner, newcomer = make_user(), make_user()
    team = make_team(owner)

    login(owner)
    response = client.post(f"/api/teams/{team.id}/members", json={"user_id": newcomer.id, "role": "owner"})
    assert response.status_code == 422

def test_remove_member(client, session, make_user, make_team, login):
    owner, admin, member = make_user(), make_user(), make_user()
    team = make_team(owner, members=[(admin, "admin"), (member, "member")])

    login(admin)
    assert client.delete(f"/api/teams/{team.id}/members/{admin.id}").status_code == 400
    assert client.delete(f"/api/teams/{team.id}/members/{owner.id}").status_code == 403

    response = client.delete(f"/api/teams/{team.id}/members/{member.id}")
    assert response.status_code == 200
    assert member.id not in [m["user"]["id"] for m in response.json()["team"]["members"]]

    session.refresh(member)
    assert member.team_ids == []

    assert client.delete(f"/api/teams/{team.id}/members/{member.id}").status_code == 400

def test_delete_team(client, session, make_user, make_team, make_project, login):
    owner, admin = make_user(), make_user()
    team = make_team(owner, members=[(admin, "admin")])
    team_id = team.id

    login(admin)
    assert client.delete(f"/api/teams/{team_id}").status_code == 403

    project = make_project(team, owner)
    login(owner)
    assert client.delete(f"/api/teams/{team_id}").status_code == 400

    session.delete(project)
    session.commit()
    response = client.delete(f"/api/teams/{team_id}")
    assert response.status_code == 200

    assert session.get(Team, team_id) is None
    session.refresh(admin)
    assert admin.team_ids == []
    assert session.exec(select(TeamMember).where(TeamMember.team_id == team_id)).all() == []

def test_search_users_excludes_team_members(client, make_user, make_team, login):
    owner = make_user(name="Alice Smith")
    teammate = make_user(name="Alice Jones")
    outsider = make_user(name="Alicia Keys")
    team = make_team(owner, members=[(teammate, "member")])

    login(owner)
    response = client.get("/api/teams/users/search", params={"q": "ali", "team_id": team.id})
    assert response.status_code == 200
    assert [u["id"] for u in response.json()["users"]] == [outsider.id]

    assert client.get("/api/teams/users/search", params={"q": "a"}).json() == {"users": []}

def test_search_all_teams(client, make_user, make_team, login):
    owner, other = make_user(), make_user()
    make_team(owner, name="Rocket Club")
    make_team(other, name="Rocket Science")

    login(owner)
    response = client.get("/api/teams/search/all", params={"q": "rocket"})
    assert response.status_code == 200
    results = {team["name"]: team for team in response.json()["teams"]}
    assert results["Rocket Club"]["is_member"] is True
    assert results["Rocket Club"]["member_role"] == "owner"
    assert results["Rocket Science"]["is_member"] is False
    assert results["Rocket Science"]["member_role"] is None
