"""Role-based access helpers."""
from dataclasses import dataclass
from typing import Iterable, Optional, Set


@dataclass
class PolicyContext:
    subject_id: Optional[str]
    roles: Set[str]


def is_allowed(context: PolicyContext, required_roles: Iterable[str]) -> bool:
    """True when the subject holds any of ``required_roles``.

    An empty requirement only asks for an authenticated subject.
    """
    if not context.subject_id:
        return False
    required = set(required_roles)
    if not required:
        return True
    return bool(required & context.roles)
