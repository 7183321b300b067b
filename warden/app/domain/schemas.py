"""API I/O schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .models import UserRead


class LoginIn(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    id: Optional[str]
    user_name: Optional[str]
    provider: str
    roles: List[str]
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    display_name: Optional[str]
    profile_url: Optional[str]
    authenticated_at: datetime


class ProvidersOut(BaseModel):
    providers: List[str]


class UserOut(UserRead):
    pass
