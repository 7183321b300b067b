"""Copy identity-store attributes into a per-login session."""
from __future__ import annotations

from typing import Iterable, Optional

from ..domain.session import (
    DEFAULT_NO_PROFILE_IMG_URL,
    AuthSession,
    ExternalClaims,
    IdentityRecord,
)

ADMIN_ROLE = "Admin"


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def session_from_claims(claims: ExternalClaims) -> AuthSession:
    return AuthSession(
        provider=claims.provider,
        email=claims.email if claims.email_verified else None,
        first_name=claims.first_name,
        last_name=claims.last_name,
        display_name=claims.display_name,
        profile_url=claims.profile_url,
    )


def hydrate_session(
    session: AuthSession,
    record: IdentityRecord,
    admin_roles: Iterable[str] = (),
) -> AuthSession:
    """Return ``session`` filled from ``record``.

    Values already on the session win; the record fills the gaps. Roles are
    the exception and always come from the record. Admins also get every
    role in ``admin_roles``.
    """
    roles = set(record.roles)
    if ADMIN_ROLE in roles:
        roles.update(admin_roles)
    return session.model_copy(
        update={
            "id": record.user_id,
            "user_name": _first(session.user_name, record.user_name),
            "roles": roles,
            "email": _first(session.email, record.email),
            "first_name": _first(session.first_name, record.first_name),
            "last_name": _first(session.last_name, record.last_name),
            "display_name": _first(session.display_name, record.display_name),
            "profile_url": _first(
                session.profile_url, record.profile_url, DEFAULT_NO_PROFILE_IMG_URL
            ),
        }
    )
