"""
Page shell for server-rendered SenseiiWyze pages.

Wraps pre-rendered content with the document head, the role-aware sidebar
and a skip link. The body carries the viewer's role family so stylesheets
can tint dashboards per family.
"""

from typing import Any, Dict, Optional

from identity_access.domain import ROLE_FAMILY, primary_role

from .base import Component
from .navigation import Navigation


class Layout(Component):
    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        show_nav: bool = True,
        current_path: str = "/",
    ):
        """
        Args:
            title: Page title, escaped and suffixed with the product name
            content: Trusted HTML for the main region
            user: `request.state.user` of the viewer, or None when anonymous
            show_nav: Render the sidebar
            current_path: Path used to highlight the active dashboard link
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.current_path = current_path

    def _family(self) -> str:
        role = (self.user or {}).get("role")
        return ROLE_FAMILY.get(primary_role(role) or "", "anonymous")

    def render(self) -> str:
        sidebar = Navigation(self.user, self.current_path).render() if self.show_nav else ""
        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '  <meta charset="utf-8">\n'
            '  <meta name="viewport" content="width=device-width, initial-scale=1">\n'
            f"  <title>{self.escape(self.title)} - SenseiiWyze</title>\n"
            '  <link rel="stylesheet" href="/static/css/app.css">\n'
            "</head>\n"
            f'<body data-family="{self._family()}">\n'
            '  <a class="skip-link" href="#content">Skip to content</a>\n'
            f"  {sidebar}\n"
            f'  <main id="content" class="page">{self.content}</main>\n'
            "</body>\n"
            "</html>"
        )
