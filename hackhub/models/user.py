from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from sqlmodel import SQLModel, Field, Relationship, Column, JSON

if TYPE_CHECKING:
    from .team import TeamMember


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str

    # Profile
    avatar: str = Field(default="")
    bio: str = Field(default="", max_length=500)
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Email verification and password reset
    is_verified: bool = Field(default=False)
    verification_code: Optional[str] = Field(default=None, index=True)
    verification_code_expires_at: Optional[datetime] = Field(default=None)
    reset_password_token: Optional[str] = Field(default=None, index=True)
    reset_password_expires_at: Optional[datetime] = Field(default=None)

    last_login: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # The user's side of team membership is the same rows the team holds
    memberships: List["TeamMember"] = Relationship(back_populates="user")

    @property
    def team_ids(self) -> List[int]:
        return [membership.team_id for membership in self.memberships]
