from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

SPECIALIZATIONS = ("web", "mobile", "ai", "blockchain", "iot", "game", "general")


class Judge(SQLModel, table=True):
    __tablename__ = "judges"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str
    judge_code: str = Field(unique=True)  # the registration code this judge used
    avatar: str = Field(default="")
    is_active: bool = Field(default=True, index=True)
    specialization: str = Field(default="general", index=True)  # see SPECIALIZATIONS
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
