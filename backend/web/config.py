"""
Configuration and startup security checks for SenseiiWyze.

Why: A tenant dashboard must not boot with a default auth secret or a
plaintext database link in production. This module provides a single guard
that enforces minimal production safety constraints without burdening local
development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

PLACEHOLDER_PREFIXES = ("CHANGE_ME", "DUMMY", "TEST_ONLY")


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def current_environment() -> str:
    return (os.getenv("SENSEIIWYZE_ENV", "dev") or "dev").strip().lower()


def env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


def sessions_backend() -> str:
    """Return the configured session backend: memory, db or provider."""
    value = (os.getenv("SESSIONS_BACKEND", "memory") or "memory").strip().lower()
    if value not in {"memory", "db", "provider"}:
        raise SystemExit(f"Refusing to start: unknown SESSIONS_BACKEND '{value}'.")
    return value


def session_ttl_seconds() -> int:
    raw = os.getenv("SESSION_TTL_SECONDS", "")
    try:
        value = int(raw) if raw else 7 * 24 * 3600
    except ValueError:
        raise SystemExit("Refusing to start: SESSION_TTL_SECONDS must be an integer.")
    return max(60, value)


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - BETTER_AUTH_SECRET must be set and not a placeholder.
    - DATABASE_URL must not explicitly disable TLS.
    - AUTH_BASE_URL must use https.
    - The dev sign-in shortcut must be off.
    """
    if not _is_prod_like(current_environment()):
        return

    secret = (os.getenv("BETTER_AUTH_SECRET", "") or "").strip()
    if not secret or secret.upper().startswith(PLACEHOLDER_PREFIXES):
        raise SystemExit(
            "Refusing to start: BETTER_AUTH_SECRET is unset or a placeholder in production."
        )

    for key in ("DATABASE_URL", "SUPABASE_DB_URL"):
        if "sslmode=disable" in (os.getenv(key, "") or ""):
            raise SystemExit(
                f"Refusing to start: {key} contains sslmode=disable in production. Use sslmode=require."
            )

    auth_base = (os.getenv("AUTH_BASE_URL", "") or "").strip().lower()
    if auth_base.startswith("http://"):
        raise SystemExit("Refusing to start: AUTH_BASE_URL must use https in production (got http).")

    if env_flag("ENABLE_DEV_SIGN_IN"):
        raise SystemExit("Refusing to start: ENABLE_DEV_SIGN_IN must be false in production/staging.")
