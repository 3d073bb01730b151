"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and reset the app's shared
singletons (session store, resolver, settings override) before each test so
monkeypatches never leak across a full run.
"""
import importlib
import sys
from pathlib import Path

import pytest

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(REPO_ROOT), str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Clear env-driven toggles that may leak across tests.

    Individual tests opt into prod semantics or the dev sign-in explicitly.
    """
    for var in (
        "SENSEIIWYZE_ENV",
        "ENABLE_DEV_SIGN_IN",
        "SENSEIIWYZE_TRUST_PROXY",
        "SESSIONS_BACKEND",
        "AUTH_BASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_session_state(monkeypatch: pytest.MonkeyPatch):
    """Give every test a fresh in-memory SESSION_STORE and no provider resolver."""
    try:
        main = importlib.import_module("main")
        from identity_access.stores import SessionStore
    except ImportError:
        yield
        return

    monkeypatch.setattr(main, "SESSION_STORE", SessionStore(), raising=False)
    monkeypatch.setattr(main, "SESSION_RESOLVER", None, raising=False)
    main.SETTINGS.override_environment(None)
    yield
    main.SETTINGS.override_environment(None)
