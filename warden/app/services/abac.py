"""Role checks for authenticated sessions."""
import logging
from typing import Iterable, Optional

from fastapi import HTTPException, status

from ..domain.policy import PolicyContext, is_allowed
from ..domain.session import AuthSession

logger = logging.getLogger(__name__)


class AccessEvaluator:
    def __init__(self, session: Optional[AuthSession]) -> None:
        self.session = session

    def context(self) -> PolicyContext:
        if self.session is None:
            return PolicyContext(subject_id=None, roles=set())
        return PolicyContext(subject_id=self.session.id, roles=set(self.session.roles or ()))

    def enforce(self, required_roles: Iterable[str], resource: str) -> None:
        required = list(required_roles)
        if self.session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )
        if not is_allowed(self.context(), required):
            logger.info("denied %s on %s (needs one of %s)", self.session.email, resource, required)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
