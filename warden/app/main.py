"""FastAPI application bootstrap for Warden."""
from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from ..config import Settings, configure_logging, load_settings
from .infra.db import init_db
from .routers import auth, users
from .services.oauth import ProviderRegistry
from .services.seeder import run_startup_seed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    init_db()
    if settings.seed_enabled:
        # blocks startup; a seeding failure aborts the process
        run_startup_seed(settings)
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Warden API", version="0.1.0", debug=settings.debug, lifespan=lifespan)
    app.state.settings = settings
    app.state.providers = ProviderRegistry(settings.config)

    # added last runs first: forwarded proto, then the session cookie
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=int(settings.session_max_age.total_seconds()),
        same_site="lax",
        https_only=settings.https_only,
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_hosts)

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(users.router, prefix="/users", tags=["users"])

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok"}

    return app


app = create_app()
