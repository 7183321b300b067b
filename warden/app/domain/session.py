"""Per-login session shape and the store-side record it is hydrated from."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

from pydantic import BaseModel, Field

# Grey silhouette shown when neither the login nor the store has an avatar.
DEFAULT_NO_PROFILE_IMG_URL = (
    "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 32 32'%3E"
    "%3Ccircle cx='16' cy='12' r='6' fill='%23bbb'/%3E"
    "%3Cpath d='M4 30c0-7 5-11 12-11s12 4 12 11z' fill='%23bbb'/%3E%3C/svg%3E"
)


class AuthSession(BaseModel):
    id: Optional[str] = None
    user_name: Optional[str] = None
    provider: str = "credentials"
    roles: Optional[Set[str]] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    authenticated_at: datetime = Field(default_factory=datetime.utcnow)


@dataclass
class IdentityRecord:
    user_id: str
    user_name: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    roles: List[str] = field(default_factory=list)


@dataclass
class ExternalClaims:
    """Profile data returned by an external provider at login."""

    provider: str
    subject: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    email_verified: bool = False
