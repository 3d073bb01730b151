"""
Authentication-related FastAPI routes (router-only module).

Why:
    Sign-in itself is handled by the hosted auth provider. This router serves
    the auth pages, answers session lookups for the browser and API clients,
    ends sessions, and offers a dev-only sign-in against the in-memory store.

Notes:
    - Shared state (session store, resolver, cookie name, settings) lives in
      `main`; handlers import it lazily so test monkeypatching of `main`
      attributes takes effect.
    - The sign-in and sign-up forms post straight to the auth provider
      (`AUTH_BASE_URL`); this app never sees passwords.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from identity_access.domain import ALLOWED_ROLES, default_route_for_role, parse_roles
from identity_access.stores import SessionStore

from auth_utils import clear_session_cookie, is_inapp_path, set_session_cookie
from components import Layout
from components.base import Component
from routes.security import _is_same_origin

auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("senseiiwyze.web.auth")

NO_STORE = {"Cache-Control": "private, no-store"}


def _main():
    import main

    return main


def _safe_callback(value: str | None) -> str | None:
    return value if is_inapp_path(value) else None


def _session_payload(rec) -> dict:
    return {
        "session": {
            "userId": rec.user_id,
            "expiresAt": rec.expires_at,
            "activeOrganizationId": rec.active_organization_id,
        },
        "user": {
            "id": rec.user_id,
            "email": rec.email,
            "name": rec.name,
            "role": rec.role,
        },
    }


def _render_auth_page(request: Request, *, title: str, form_html: str) -> HTMLResponse:
    layout = Layout(title=title, content=form_html, user=None, current_path=request.url.path)
    return HTMLResponse(content=layout.render(), headers=NO_STORE)


@auth_router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, callbackUrl: str | None = None):
    """
    Render the sign-in page.

    Behavior:
        - Authenticated callers never reach this handler; the middleware
          redirects them to their default dashboard.
        - `callbackUrl` is kept only when it is an absolute in-app path.
        - With ENABLE_DEV_SIGN_IN=true a dev form (email + role) is rendered
          instead of the provider's email/password form.
        - The provider form carries the callback as `callbackURL`, the name
          the provider reads.
    Permissions:
        Public.
    """
    mod = _main()
    callback = _safe_callback(callbackUrl)
    if mod.SETTINGS.dev_sign_in_enabled:
        hidden = f'<input type="hidden" name="callbackUrl" value="{Component.escape(callback)}">' if callback else ""
        role_options = "".join(
            f'<option value="{role}">{role}</option>' for role in sorted(ALLOWED_ROLES)
        )
        form = f"""
        <h1>Sign in (development)</h1>
        <form method="post" action="/api/auth/sign-in/dev" class="auth-form">
            <label>Email <input type="email" name="email" required></label>
            <label>Name <input type="text" name="name"></label>
            <label>Role <select name="role">{role_options}</select></label>
            {hidden}
            <button type="submit">Sign in</button>
        </form>"""
    else:
        provider = mod.load_provider_config()
        # The provider resolves relative callbacks against its own origin.
        target = f"{str(request.base_url).rstrip('/')}{callback}" if callback else ""
        hidden = f'<input type="hidden" name="callbackURL" value="{Component.escape(target)}">' if target else ""
        form = f"""
        <h1>Sign in</h1>
        <form method="post" action="{Component.escape(provider.sign_in_endpoint)}" class="auth-form">
            <label>Email <input type="email" name="email" required></label>
            <label>Password <input type="password" name="password" required></label>
            {hidden}
            <button type="submit">Sign in</button>
        </form>
        <p><a href="/forgot-password">Forgot password?</a> · <a href="/signup">Create account</a></p>"""
    return _render_auth_page(request, title="Sign in", form_html=form)


@auth_router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    """Render the account creation page (submits to the auth provider)."""
    provider = _main().load_provider_config()
    form = f"""
        <h1>Create account</h1>
        <form method="post" action="{Component.escape(provider.sign_up_endpoint)}" class="auth-form">
            <label>Name <input type="text" name="name" required></label>
            <label>Email <input type="email" name="email" required></label>
            <label>Password <input type="password" name="password" minlength="8" required></label>
            <button type="submit">Create account</button>
        </form>
        <p><a href="/login">Already have an account? Sign in</a></p>"""
    return _render_auth_page(request, title="Create account", form_html=form)


@auth_router.get("/api/auth/get-session")
async def get_session(request: Request):
    """
    Return the caller's session as `{session, user}` or JSON `null`.

    Mirrors the auth provider's contract so browser code can use either.
    Resolution errors are reported as 503 without details.
    """
    mod = _main()
    try:
        rec = await mod.resolve_session(request)
    except Exception as exc:
        logger.warning("get-session failed: %s", exc.__class__.__name__)
        return JSONResponse({"error": "session_unavailable"}, status_code=503, headers=NO_STORE)
    if rec is None:
        return JSONResponse(None, headers=NO_STORE)
    return JSONResponse(_session_payload(rec), headers=NO_STORE)


@auth_router.post("/api/auth/sign-out")
async def sign_out(request: Request):
    """
    End the current session and expire the cookie.

    Behavior:
        - Rejects cross-origin requests (403 csrf_violation).
        - Revokes the session where it lives: the store row (memory or db)
          or, with the provider backend, at the provider's sign-out
          endpoint. Backend errors are logged and never block sign-out.
        - Redirects (303) to /login.
    """
    mod = _main()
    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers=NO_STORE)
    try:
        resolver = mod.get_session_resolver()
        await asyncio.to_thread(resolver.end_session, request.headers, request.cookies)
    except Exception as exc:
        logger.warning("Session revoke failed during sign-out: %s", exc.__class__.__name__)
    resp = RedirectResponse(url="/login", status_code=303, headers=NO_STORE)
    clear_session_cookie(resp, name=mod.SESSION_COOKIE_NAME, environment=mod.SETTINGS.environment)
    return resp


@auth_router.post("/api/auth/sign-in/dev")
async def dev_sign_in(request: Request):
    """
    Development shortcut: create an in-memory session for any email + role.

    Permissions:
        Only available when ENABLE_DEV_SIGN_IN=true and the memory session
        backend is active; the startup guard forbids the flag in production.
    Errors:
        404 not_found (disabled), 409 unsupported_backend, 403 csrf_violation,
        400 invalid_email / invalid_role.
    """
    mod = _main()
    if not mod.SETTINGS.dev_sign_in_enabled:
        return JSONResponse({"error": "not_found"}, status_code=404, headers=NO_STORE)
    if not isinstance(mod.SESSION_STORE, SessionStore):
        return JSONResponse({"error": "unsupported_backend"}, status_code=409, headers=NO_STORE)
    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers=NO_STORE)

    form = await request.form()
    email = str(form.get("email") or "").strip().lower()
    role = str(form.get("role") or "").strip()
    name = str(form.get("name") or "").strip() or email.split("@")[0]
    if "@" not in email:
        return JSONResponse({"error": "invalid_email"}, status_code=400, headers=NO_STORE)
    tokens = parse_roles(role)
    if not tokens or any(token not in ALLOWED_ROLES for token in tokens):
        return JSONResponse({"error": "invalid_role"}, status_code=400, headers=NO_STORE)

    role_claim = ",".join(tokens)
    rec = mod.SESSION_STORE.create(
        user_id=f"dev:{quote(email)}",
        email=email,
        name=name,
        role=role_claim,
        ttl_seconds=mod.SESSION_TTL_SECONDS,
    )
    dest = _safe_callback(str(form.get("callbackUrl") or "")) or default_route_for_role(role_claim)
    resp = RedirectResponse(url=dest, status_code=303, headers=NO_STORE)
    set_session_cookie(
        resp,
        name=mod.SESSION_COOKIE_NAME,
        value=rec.token,
        environment=mod.SETTINGS.environment,
        max_age=rec.ttl_seconds,
    )
    return resp
