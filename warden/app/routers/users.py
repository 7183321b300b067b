"""User directory endpoints for privileged sessions."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from ..deps import current_session, db_session, identity_store
from ..domain.models import User
from ..domain.schemas import UserOut
from ..services.abac import AccessEvaluator
from ..services.identity import IdentityStore
from ..services.seeder import ADMIN, MANAGER

router = APIRouter()

DIRECTORY_ROLES = (ADMIN, MANAGER)


def _user_out(store: IdentityStore, user: User) -> UserOut:
    return UserOut.model_validate(user).model_copy(update={"roles": store.get_user_roles(user)})


@router.get("/", response_model=List[UserOut])
def list_users(request: Request, session: Session = Depends(db_session)):
    AccessEvaluator(current_session(request)).enforce(DIRECTORY_ROLES, "users")
    store = identity_store(request, session)
    return [_user_out(store, user) for user in store.list_users()]


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, request: Request, session: Session = Depends(db_session)):
    AccessEvaluator(current_session(request)).enforce(DIRECTORY_ROLES, f"users/{user_id}")
    store = identity_store(request, session)
    user = store.find_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_out(store, user)
