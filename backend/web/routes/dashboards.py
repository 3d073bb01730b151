"""
Role dashboards and the session API.

The edge middleware has already decided access before any handler here
runs: `/me`, `/team` and `/org` handlers only see callers whose role grants
the prefix. Handlers still read `request.state.user` defensively and send
anonymous callers to the login page.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from identity_access.domain import (
    ME_ROUTE,
    ORG_ROUTE,
    TEAM_ROUTE,
    allowed_prefixes,
    default_route_for_role,
    parse_roles,
)
from identity_access.permissions import permissions_for
from identity_access.routing import login_url

from components import Layout
from components.base import Component

dashboards_router = APIRouter(tags=["Dashboards"])

NO_STORE = {"Cache-Control": "private, no-store"}


@dataclass(frozen=True)
class Dashboard:
    route: str
    title: str
    resource: str  # permission resource shown on the landing page
    sections: dict[str, str]


DASHBOARDS: dict[str, Dashboard] = {
    ME_ROUTE: Dashboard(
        route=ME_ROUTE,
        title="My development",
        resource="personal",
        sections={"goals": "Goals", "games": "Games", "learn": "Learning"},
    ),
    TEAM_ROUTE: Dashboard(
        route=TEAM_ROUTE,
        title="Team",
        resource="team",
        sections={"tasks": "Tasks", "messages": "Messages", "courses": "Courses"},
    ),
    ORG_ROUTE: Dashboard(
        route=ORG_ROUTE,
        title="Organization",
        resource="organization",
        sections={"reports": "Reports", "strategy": "Strategy", "presentation": "Presentation"},
    ),
}


def _render_dashboard(request: Request, dashboard: Dashboard, section: str | None = None) -> HTMLResponse:
    user = getattr(request.state, "user", None)
    if not user:
        return RedirectResponse(url=login_url(request.url.path), status_code=302, headers=NO_STORE)
    if section is not None and section not in dashboard.sections:
        return HTMLResponse("<h1>Not found</h1>", status_code=404, headers=NO_STORE)

    actions = permissions_for(user.get("role")).get(dashboard.resource, [])
    cards = "".join(
        f'<a class="dashboard-card" href="{dashboard.route}/{key}">{Component.escape(label)}</a>'
        for key, label in dashboard.sections.items()
    )
    heading = dashboard.title if section is None else f"{dashboard.title} · {dashboard.sections[section]}"
    content = f"""
    <div class="container" data-dashboard="{dashboard.route.strip('/')}">
        <h1>{Component.escape(heading)}</h1>
        <p>Signed in as {Component.escape(user.get("name") or user.get("email"))}.</p>
        <nav class="dashboard-cards">{cards}</nav>
        <p class="permissions">Allowed actions: {Component.escape(", ".join(actions) or "view only")}</p>
    </div>
    """
    layout = Layout(title=heading, content=content, user=user, current_path=request.url.path)
    return HTMLResponse(content=layout.render(), headers=NO_STORE)


@dashboards_router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    # Public landing page; the middleware does not resolve sessions here.
    content = """
    <div class="container">
        <h1>Welcome to SenseiiWyze</h1>
        <p>Personal development, team coaching and organization insights in one place.</p>
        <p><a href="/login">Sign in</a> or <a href="/signup">create an account</a>.</p>
    </div>
    """
    layout = Layout(title="Welcome", content=content, user=None, current_path="/")
    return HTMLResponse(content=layout.render())


@dashboards_router.get("/dashboard")
async def dashboard_hub(request: Request):
    """Send the caller to their primary role's dashboard."""
    user = getattr(request.state, "user", None)
    if not user:
        return RedirectResponse(url=login_url(request.url.path), status_code=302, headers=NO_STORE)
    return RedirectResponse(url=default_route_for_role(user.get("role")), status_code=302, headers=NO_STORE)


@dashboards_router.get("/me", response_class=HTMLResponse)
async def me_dashboard(request: Request):
    return _render_dashboard(request, DASHBOARDS[ME_ROUTE])


@dashboards_router.get("/me/{section}", response_class=HTMLResponse)
async def me_section(request: Request, section: str):
    return _render_dashboard(request, DASHBOARDS[ME_ROUTE], section)


@dashboards_router.get("/team", response_class=HTMLResponse)
async def team_dashboard(request: Request):
    return _render_dashboard(request, DASHBOARDS[TEAM_ROUTE])


@dashboards_router.get("/team/{section}", response_class=HTMLResponse)
async def team_section(request: Request, section: str):
    return _render_dashboard(request, DASHBOARDS[TEAM_ROUTE], section)


@dashboards_router.get("/org", response_class=HTMLResponse)
async def org_dashboard(request: Request):
    return _render_dashboard(request, DASHBOARDS[ORG_ROUTE])


@dashboards_router.get("/org/{section}", response_class=HTMLResponse)
async def org_section(request: Request, section: str):
    return _render_dashboard(request, DASHBOARDS[ORG_ROUTE], section)


@dashboards_router.get("/api/session")
async def session_summary(request: Request):
    """
    Return the caller's identity, role tokens, dashboards and permissions.

    Permissions:
        API paths bypass the middleware's role checks, so this handler
        authenticates itself: 401 without a session, 503 when the session
        backend fails.
    """
    import main

    try:
        rec = await main.resolve_session(request)
    except Exception as exc:
        main.logger.warning("Session resolution failed: %s", exc.__class__.__name__)
        return JSONResponse({"error": "session_unavailable"}, status_code=503, headers=NO_STORE)
    if rec is None:
        return JSONResponse({"error": "unauthenticated"}, status_code=401, headers=NO_STORE)
    return JSONResponse(
        {
            "user": {"id": rec.user_id, "email": rec.email, "name": rec.name},
            "organizationId": rec.active_organization_id,
            "roles": parse_roles(rec.role),
            "defaultRoute": default_route_for_role(rec.role),
            "dashboards": list(allowed_prefixes(rec.role)),
            "permissions": permissions_for(rec.role),
        },
        headers=NO_STORE,
    )
