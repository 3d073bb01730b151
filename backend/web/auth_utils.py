"""
Shared authentication utilities.

Why:
    The middleware, the auth router and the dev sign-in all set or clear the
    session cookie. One helper keeps the cookie policy and the in-app
    redirect validation identical across them.
"""

from __future__ import annotations

import re

from starlette.responses import Response

# Absolute in-app paths only: no scheme/host, no "//", no "..", no query.
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/]*$")
MAX_INAPP_REDIRECT_LEN = 256


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    SameSite=Lax keeps the cookie on top-level navigations back from the auth
    provider; "Strict" would drop it after OAuth redirects.
    """
    return {"secure": True, "samesite": "lax", "httponly": True}


def set_session_cookie(response: Response, *, name: str, value: str, environment: str, max_age: int | None = None) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=name,
        value=value,
        httponly=opts["httponly"],
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age,
    )


def clear_session_cookie(response: Response, *, name: str, environment: str) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=name,
        value="",
        httponly=opts["httponly"],
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        expires=0,
        max_age=0,
    )


def is_inapp_path(value: str | None) -> bool:
    """Return True if value is an absolute in-app path, e.g. "/", "/team/tasks".

    Rejected: "team" (not absolute), "https://evil.com", "//evil.com",
    "/a?b", "/..".
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    return bool(INAPP_PATH_PATTERN.match(value))
