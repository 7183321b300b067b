"""Dependency injection utilities."""
from collections.abc import Generator
from typing import Optional

from fastapi import Request
from sqlmodel import Session

from ..config import Settings
from .domain.session import AuthSession
from .infra.db import get_session
from .services.identity import IdentityStore
from .services.oauth import ProviderRegistry

SESSION_KEY = "auth"


def db_session() -> Generator[Session, None, None]:
    """Provide a scoped DB session to FastAPI endpoints."""
    with get_session() as session:
        yield session


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def providers(request: Request) -> ProviderRegistry:
    return request.app.state.providers


def identity_store(request: Request, session: Session) -> IdentityStore:
    settings = app_settings(request)
    return IdentityStore(session, settings.password, settings.lockout)


def current_session(request: Request) -> Optional[AuthSession]:
    data = request.session.get(SESSION_KEY)
    if not data:
        return None
    return AuthSession.model_validate(data)


def save_session(request: Request, auth: AuthSession) -> None:
    request.session[SESSION_KEY] = auth.model_dump(mode="json")
