"SenseiiWyze web edge"
from __future__ import annotations

from pathlib import Path
import asyncio
import logging
import os
import sys as _sys
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from identity_access.domain import unknown_roles
from identity_access.provider import AuthProviderClient, AuthProviderConfig
from identity_access.routing import authorize, classify_path, needs_session
from identity_access.sessions import DEFAULT_COOKIE_NAME, SessionResolver
from identity_access.stores import SessionRecord, SessionStore

import config as _cfg

# Ensure imports as `main` and `backend.web.main` share one module instance.
if __name__ == "main":
    _sys.modules.setdefault("backend.web.main", _sys.modules[__name__])
elif __name__ == "backend.web.main":
    _sys.modules["main"] = _sys.modules[__name__]


def _under_pytest() -> bool:
    return "pytest" in _sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via SENSEIIWYZE_ENABLE_DOTENV (default true
      outside pytest).
    """
    if _under_pytest():
        return False
    flag = (os.getenv("SENSEIIWYZE_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------


class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return _cfg.current_environment()

    @property
    def dev_sign_in_enabled(self) -> bool:
        return _cfg.env_flag("ENABLE_DEV_SIGN_IN")

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env


logger = logging.getLogger("senseiiwyze.identity_access")
SETTINGS = AuthSettings()
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME)
SESSION_TTL_SECONDS = _cfg.session_ttl_seconds()

app = FastAPI(title="SenseiiWyze", description="Role-based learning dashboards", version="0.1.0")

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from routes.auth import auth_router
from routes.dashboards import dashboards_router

# --- Session Backend Setup -----------------------------------------------------


def load_provider_config() -> AuthProviderConfig:
    base_url = os.getenv("AUTH_BASE_URL", "http://localhost:3000")
    timeout = float(os.getenv("AUTH_PROVIDER_TIMEOUT_SECONDS", "5") or 5)
    return AuthProviderConfig(base_url=base_url, timeout_seconds=timeout)


SESSION_STORE = None
SESSION_RESOLVER: Optional[SessionResolver] = None

if _under_pytest():
    SESSION_STORE = SessionStore()
else:
    _backend = _cfg.sessions_backend()
    if _backend == "db":
        from identity_access.stores_db import DBSessionStore

        SESSION_STORE = DBSessionStore()
    elif _backend == "provider":
        SESSION_RESOLVER = SessionResolver(provider=AuthProviderClient(load_provider_config()), cookie_name=SESSION_COOKIE_NAME)
    else:
        SESSION_STORE = SessionStore()


def get_session_resolver() -> SessionResolver:
    """Return the provider resolver if configured, else one over SESSION_STORE.

    Looked up per request so tests can swap SESSION_STORE/SESSION_RESOLVER.
    """
    if SESSION_RESOLVER is not None:
        return SESSION_RESOLVER
    return SessionResolver(store=SESSION_STORE, cookie_name=SESSION_COOKIE_NAME)


async def resolve_session(request: Request) -> Optional[SessionRecord]:
    resolver = get_session_resolver()
    return await asyncio.to_thread(resolver.resolve, request.headers, request.cookies)


def user_context(rec: SessionRecord) -> dict:
    """Minimal, read-only user context exposed to downstream handlers."""
    return {
        "sub": rec.user_id,
        "name": rec.name,
        "email": rec.email,
        "role": rec.role,
        "organization_id": rec.active_organization_id,
    }


# --- Auth Middleware -----------------------------------------------------------


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    if not needs_session(classify_path(path)):
        return await call_next(request)

    rec = None
    try:
        rec = await resolve_session(request)
    except Exception as exc:
        # Any resolution failure counts as "no session".
        logger.warning("Session resolution failed: %s", exc.__class__.__name__)

    role = rec.role if rec else None
    decision = authorize(path, role, authenticated=rec is not None)
    if not decision.allowed:
        if rec is not None and unknown_roles(role):
            logger.info("Unrecognized role claim for user %s; redirecting to %s", rec.user_id, decision.location)
        return RedirectResponse(url=decision.location, status_code=302, headers={"Cache-Control": "private, no-store"})

    if rec is not None:
        request.state.user = user_context(rec)
    return await call_next(request)


# --- Security Headers Middleware ----------------------------------------------


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if SETTINGS.environment == "prod":
        csp = "default-src 'self'; script-src 'self'; style-src 'self'; img-src 'self' data:; connect-src 'self';"
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; connect-src 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Routers & Health ----------------------------------------------------------

app.include_router(auth_router)
app.include_router(dashboards_router)


@app.get("/health")
async def health_check():
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})
