"""Identity tables and the read models shared by API and services."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field as SQLField, SQLModel


def normalize(value: str) -> str:
    return value.strip().lower()


class Role(SQLModel, table=True):
    __tablename__ = "roles"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    name: str = SQLField(index=True, unique=True)
    created_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False)


class User(SQLModel, table=True):
    """Durable identity record. Emails and user names are unique once normalized."""

    __tablename__ = "users"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    user_name: str
    normalized_user_name: str = SQLField(default="", index=True, unique=True)
    email: str
    normalized_email: str = SQLField(default="", index=True, unique=True)
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_url: Optional[str] = None
    password_hash: Optional[str] = None
    lockout_enabled: bool = SQLField(default=True)
    lockout_end: Optional[datetime] = None
    access_failed_count: int = SQLField(default=0)
    created_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False)


class UserRole(SQLModel, table=True):
    __tablename__ = "user_roles"

    user_id: str = SQLField(foreign_key="users.id", primary_key=True)
    role_id: str = SQLField(foreign_key="roles.id", primary_key=True)


class UserLogin(SQLModel, table=True):
    """External provider login linked to a local user."""

    __tablename__ = "user_logins"

    provider: str = SQLField(primary_key=True)
    provider_key: str = SQLField(primary_key=True)
    user_id: str = SQLField(foreign_key="users.id", index=True)
    created_at: datetime = SQLField(default_factory=datetime.utcnow, nullable=False)


class UserRead(BaseModel):
    id: str
    user_name: str
    email: str
    display_name: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    profile_url: Optional[str]
    created_at: datetime
    roles: List[str] = []

    model_config = ConfigDict(from_attributes=True)
