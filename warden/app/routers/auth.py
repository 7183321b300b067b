"""Sign-in, sign-out and external provider routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from ..deps import (
    SESSION_KEY,
    app_settings,
    current_session,
    db_session,
    identity_store,
    providers,
    save_session,
)
from ..domain.schemas import LoginIn, ProvidersOut, SessionOut
from ..domain.session import AuthSession
from ..services.hydrator import hydrate_session, session_from_claims
from ..services.identity import IdentityError, InvalidCredentials, LockedOut
from ..services.oauth import InvalidClaims, UnknownProvider, link_external_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_out(auth: AuthSession) -> SessionOut:
    return SessionOut(**auth.model_dump(exclude={"roles"}), roles=sorted(auth.roles or ()))


@router.post("/login", response_model=SessionOut)
def login(payload: LoginIn, request: Request, session: Session = Depends(db_session)):
    store = identity_store(request, session)
    user = store.find_user_by_email(payload.email)
    if user is None:
        logger.warning("sign-in for unknown email %s", payload.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    try:
        store.check_password(user, payload.password)
    except LockedOut as exc:
        # keep the failure counters; the request itself still fails
        session.commit()
        raise HTTPException(status_code=423, detail=str(exc))
    except InvalidCredentials:
        session.commit()
        logger.warning("bad password for %s", user.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    auth = hydrate_session(
        AuthSession(id=user.id, provider="credentials"),
        store.load_record(user.id),
        app_settings(request).admin_roles,
    )
    save_session(request, auth)
    return _session_out(auth)


@router.get("/session", response_model=SessionOut)
def read_session(request: Request):
    auth = current_session(request)
    if auth is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _session_out(auth)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    request.session.pop(SESSION_KEY, None)


@router.get("/providers", response_model=ProvidersOut)
def list_providers(request: Request):
    return ProvidersOut(providers=providers(request).names)


@router.get("/external/{provider}")
async def external_login(provider: str, request: Request):
    try:
        client = providers(request).client(provider)
    except UnknownProvider:
        raise HTTPException(status_code=404, detail="Provider not configured")
    redirect_uri = request.url_for("external_callback", provider=provider)
    return await client.authorize_redirect(request, str(redirect_uri))


@router.get("/external/{provider}/callback", name="external_callback")
async def external_callback(
    provider: str,
    request: Request,
    session: Session = Depends(db_session),
):
    try:
        claims = await providers(request).fetch_claims(provider, request)
    except UnknownProvider:
        raise HTTPException(status_code=404, detail="Provider not configured")
    except InvalidClaims as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    store = identity_store(request, session)
    try:
        user = link_external_user(store, claims)
    except IdentityError as exc:
        logger.warning("%s login refused: %s", provider, exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    auth = session_from_claims(claims)
    auth.id = user.id
    auth = hydrate_session(auth, store.load_record(user.id), app_settings(request).admin_roles)
    save_session(request, auth)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
