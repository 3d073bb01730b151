"""
AuthProviderClient: session lookups against the hosted auth provider.

`provider.http_get` is monkeypatched; no network access.
"""
from __future__ import annotations

import pytest

from identity_access import provider
from identity_access.provider import (
    AuthProviderClient,
    AuthProviderConfig,
    AuthProviderError,
    session_from_payload,
)


class _Resp:
    def __init__(self, status_code: int, body=None, raise_json: bool = False):
        self.status_code = status_code
        self._body = body
        self._raise_json = raise_json

    def json(self):
        if self._raise_json:
            raise ValueError("not json")
        return self._body


PAYLOAD = {
    "session": {"token": "tok", "expiresAt": "2030-01-01T00:00:00.000Z", "activeOrganizationId": "org-1"},
    "user": {"id": "user-1", "email": "ada@example.com", "name": "Ada", "role": "admin,executive"},
}


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch):
    recorded: list[dict] = []
    responses: list[_Resp] = []

    def fake_get(url, headers, timeout):
        recorded.append({"url": url, "headers": headers, "timeout": timeout})
        return responses.pop(0)

    monkeypatch.setattr(provider, "http_get", fake_get)
    return recorded, responses


def _client() -> AuthProviderClient:
    return AuthProviderClient(AuthProviderConfig(base_url="https://auth.example.com/", timeout_seconds=2.5))


def test_forwards_only_cookie_and_authorization(calls):
    recorded, responses = calls
    responses.append(_Resp(200, PAYLOAD))
    rec = _client().get_session(
        {"cookie": "senseiiwyze.session_token=tok.sig", "x-forwarded-for": "10.0.0.1", "user-agent": "pytest"}
    )
    assert rec is not None and rec.user_id == "user-1"
    call = recorded[0]
    assert call["url"] == "https://auth.example.com/api/auth/get-session"
    assert call["timeout"] == 2.5
    assert set(call["headers"]) == {"cookie", "accept"}


def test_no_credentials_skips_the_provider(calls):
    recorded, _ = calls
    assert _client().get_session({"user-agent": "pytest"}) is None
    assert recorded == []


def test_null_body_and_401_mean_no_session(calls):
    _, responses = calls
    responses.extend([_Resp(200, None), _Resp(401)])
    client = _client()
    assert client.get_session({"authorization": "Bearer x"}) is None
    assert client.get_session({"authorization": "Bearer x"}) is None


def test_unexpected_status_raises(calls):
    _, responses = calls
    responses.append(_Resp(502))
    with pytest.raises(AuthProviderError) as exc:
        _client().get_session({"cookie": "a=b"})
    assert exc.value.code == "unexpected_status"
    assert exc.value.status_code == 502


def test_non_json_body_raises(calls):
    _, responses = calls
    responses.append(_Resp(200, raise_json=True))
    with pytest.raises(AuthProviderError) as exc:
        _client().get_session({"cookie": "a=b"})
    assert exc.value.code == "invalid_payload"


def test_payload_mapping_parses_iso_expiry_and_org():
    rec = session_from_payload(PAYLOAD)
    assert rec.role == "admin,executive"
    assert rec.active_organization_id == "org-1"
    assert rec.expires_at == 1893456000


def test_payload_mapping_accepts_epoch_and_missing_role():
    rec = session_from_payload({"session": {"expiresAt": 123}, "user": {"id": 7}})
    assert rec.user_id == "7"
    assert rec.role is None
    assert rec.expires_at == 123


@pytest.mark.parametrize("payload", [None, [], {"user": None}, {"user": {"email": "x@example.com"}}])
def test_payload_without_user_id_is_no_session(payload):
    assert session_from_payload(payload) is None


@pytest.fixture
def posts(monkeypatch: pytest.MonkeyPatch):
    recorded: list[dict] = []
    responses: list[_Resp] = []

    def fake_post(url, headers, timeout):
        recorded.append({"url": url, "headers": headers, "timeout": timeout})
        return responses.pop(0)

    monkeypatch.setattr(provider, "http_post", fake_post)
    return recorded, responses


def test_sign_out_posts_forwarded_credentials(posts):
    recorded, responses = posts
    responses.append(_Resp(200, {"success": True}))
    assert _client().sign_out({"cookie": "senseiiwyze.session_token=tok.sig", "referer": "http://app"}) is True
    call = recorded[0]
    assert call["url"] == "https://auth.example.com/api/auth/sign-out"
    assert set(call["headers"]) == {"cookie", "accept"}


def test_sign_out_without_credentials_or_session_is_a_noop(posts):
    recorded, responses = posts
    assert _client().sign_out({}) is False
    assert recorded == []
    responses.append(_Resp(401))
    assert _client().sign_out({"authorization": "Bearer x"}) is False


def test_sign_out_unexpected_status_raises(posts):
    _, responses = posts
    responses.append(_Resp(500))
    with pytest.raises(AuthProviderError) as exc:
        _client().sign_out({"cookie": "a=b"})
    assert exc.value.status_code == 500


def test_config_builds_provider_endpoints():
    cfg = AuthProviderConfig(base_url="https://auth.example.com/")
    assert cfg.session_endpoint == "https://auth.example.com/api/auth/get-session"
    assert cfg.sign_in_endpoint == "https://auth.example.com/api/auth/sign-in/email"
    assert cfg.sign_up_endpoint == "https://auth.example.com/api/auth/sign-up/email"
    assert cfg.sign_out_endpoint == "https://auth.example.com/api/auth/sign-out"
