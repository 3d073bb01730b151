"""
Navigation Component for SenseiiWyze

Renders the sidebar with one entry per dashboard the user may open.
"""

from typing import Any, Dict, List, Optional, Tuple

from identity_access.domain import (
    ME_ROUTE,
    ORG_ROUTE,
    ROLE_FAMILY,
    TEAM_ROUTE,
    allowed_prefixes,
    primary_role,
)

from .base import Component

DASHBOARD_LINKS: Dict[str, Tuple[str, str]] = {
    ME_ROUTE: ("My development", "me"),
    TEAM_ROUTE: ("Team", "team"),
    ORG_ROUTE: ("Organization", "org"),
}

FAMILY_LABELS = {
    "learner": "Learner",
    "admin": "Team admin",
    "executive": "Executive",
}


class Navigation(Component):
    """Navigation component with role-based menu items"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: User dict with 'name' and raw 'role' claim (optional)
            current_path: The current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path or "/"

    def render(self) -> str:
        if not self.user:
            return self._render_public_nav()

        links = [self._create_nav_link(href, label) for href, label in self._get_nav_items()]
        links.append(self._render_sign_out())
        name = self.user.get("name", "")
        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar">
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-header"><span class="sidebar-title">SenseiiWyze</span></div>
            <div class="sidebar-items">
                {''.join(links)}
            </div>
            <div class="sidebar-footer">
                <div class="user-name">{self.escape(name)}</div>
                <div class="user-role">{self.escape(self.role_label(self.user.get("role")))}</div>
            </div>
        </nav>
    </aside>"""

    def _render_public_nav(self) -> str:
        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar">
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-header"><span class="sidebar-title">SenseiiWyze</span></div>
            <div class="sidebar-items">
                {self._create_nav_link("/login", "Sign in")}
                {self._create_nav_link("/signup", "Create account")}
            </div>
        </nav>
    </aside>"""

    def _get_nav_items(self) -> List[Tuple[str, str]]:
        """One link per dashboard granted by any role token.

        Visibility mirrors the middleware's prefix grants; unknown roles get
        no dashboard links.
        """
        role = (self.user or {}).get("role")
        return [(prefix, DASHBOARD_LINKS[prefix][0]) for prefix in allowed_prefixes(role) if prefix in DASHBOARD_LINKS]

    def _create_nav_link(self, href: str, text: str) -> str:
        path = self.current_path
        is_active = path == href or (href != "/" and path.startswith(href + "/"))
        aria_attr = ' aria-current="page"' if is_active else ""
        css = self.classes("sidebar-link", active=is_active)
        return f'\n        <a href="{href}" class="{css}"{aria_attr}>{self.escape(text)}</a>'

    def _render_sign_out(self) -> str:
        """Sign-out is a POST so it stays behind the same-origin check."""
        return """
        <form method="post" action="/api/auth/sign-out" class="sidebar-signout">
            <button type="submit" class="sidebar-link">Sign out</button>
        </form>"""

    @staticmethod
    def role_label(role: Optional[str]) -> str:
        family = ROLE_FAMILY.get(primary_role(role) or "")
        return FAMILY_LABELS.get(family or "", "User")
