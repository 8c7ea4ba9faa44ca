import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from hackhub.auth import create_judge_session, create_session, hash_password
from hackhub.config import SESSION_COOKIE_NAME
from hackhub.database import get_session
from hackhub.models import Judge, Project, ProjectCollaborator, Team, TeamMember, User

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)

@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Factory for users; returns the stored User."""
    counter = {"n": 0}

    def make_user(name=None, email=None, password="password123"):
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password)
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return make_user

@pytest.fixture(name="user")
def user_fixture(make_user):
    return make_user(name="Test User", email="test@example.com")

@pytest.fixture(name="token_for")
def token_for_fixture(session: Session):
    """Create a valid session token for a user."""
    def token_for(user: User) -> str:
        return create_session(session, user.id).session_token

    return token_for

@pytest.fixture(name="login")
def login_fixture(client: TestClient, token_for):
    """Act as ``user`` for the following requests."""
    def login(user: User) -> None:
        client.cookies.clear()
        client.cookies.set(SESSION_COOKIE_NAME, token_for(user))

    return login

@pytest.fixture(name="make_team")
def make_team_fixture(session: Session):
    """Factory for a team owned by ``owner``; extra members are (user, role) pairs."""
    counter = {"n": 0}

    def make_team(owner: User, members=(), name=None):
        counter["n"] += 1
        team = Team(
            name=name or f"Team {counter['n']}",
            owner_id=owner.id,
            invite_code=f"CODE{counter['n']:04d}"
        )
        team.members.append(TeamMember(user_id=owner.id, role="owner"))
        for member, role in members:
            team.members.append(TeamMember(user_id=member.id, role=role))
        session.add(team)
        session.commit()
        session.refresh(team)
        return team

    return make_team

@pytest.fixture(name="make_project")
def make_project_fixture(session: Session):
    """Factory for a project in ``team`` owned by ``owner``."""
    def make_project(team: Team, owner: User, title="Hack Project", is_public=False, **fields):
        project = Project(
            title=title,
            description="A project built during the hackathon",
            team_id=team.id,
            owner_id=owner.id,
            is_public=is_public,
            **fields
        )
        project.collaborators.append(ProjectCollaborator(user_id=owner.id))
        session.add(project)
        session.commit()
        session.refresh(project)
        return project

    return make_project

@pytest.fixture(name="make_judge")
def make_judge_fixture(session: Session):
    counter = {"n": 0}

    def make_judge(is_active=True, password="judgepass"):
        counter["n"] += 1
        judge = Judge(
            name=f"Judge {counter['n']}",
            email=f"judge{counter['n']}@example.com",
            password_hash=hash_password(password),
            judge_code=f"TESTCODE{counter['n']}",
            is_active=is_active
        )
        session.add(judge)
        session.commit()
        session.refresh(judge)
        return judge

    return make_judge

@pytest.fixture(name="judge_headers")
def judge_headers_fixture(session: Session):
    """Authorization headers carrying a fresh bearer token for ``judge``."""
    def judge_headers(judge: Judge) -> dict:
        token = create_judge_session(session, judge.id).session_token
        return {"Authorization": f"Bearer {token}"}

    return judge_headers
