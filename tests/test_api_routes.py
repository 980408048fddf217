"""
tests/test_api_routes.py -- Integration tests for the /live launcher routes.

These tests exercise the full stack: FastAPI routing -> bearer token
dependency -> verifier/gate/validator/issuer -> stores -> response model
serialization and the app-level error handlers. Unit tests for each service
live in their own modules; here the point is the wire contract.

Coverage:
  - GET /version: User-Agent gate (403) and camelCase body
  - POST /login: every credential and launcher outcome, no-store header
  - Malformed bodies and bad bearer tokens: bare 400
  - Expired tokens: status 102 "login expired"
  - GET/POST /validate and GET /gametoken, including the unverified refusal
  - The full login -> validate -> gametoken flow

Fixtures used (from conftest.py):
  - api_client: (client, account_store, ids) over the seeded reference data
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.credentials import hash_password
from auth.models import Account
from auth.tokens import SessionTokenCodec
from core.config import get_settings
from tests.conftest import ALICE_PASSWORD, BOB_PASSWORD, LAUNCHER_UA

_MODE_2_AGGREGATE = hashlib.sha1(b"h0ah2bh0ch2d").hexdigest()


def _login(client: TestClient, username: str = "alice", password: str = ALICE_PASSWORD, **extra):
    body = {"username": username, "password": password, "launcher": "hash-current", "mode": 2}
    body.update(extra)
    return client.post("/live/login", json=body)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _login_token(client: TestClient, mode: int = 2) -> str:
    resp = _login(client, mode=mode)
    assert resp.json()["status"] == 0
    return resp.json()["token"]


class TestVersion:
    def test_launcher_user_agent_gets_latest(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.get("/live/version", headers={"User-Agent": LAUNCHER_UA})
        assert resp.status_code == 200
        assert resp.json() == {
            "status": 0,
            "releaseDate": int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp()),
            "versionString": "1.2.0.0",
        }

    @pytest.mark.parametrize("user_agent", ["curl/8.0", "PSF Launcher v1.2", "PSF Launcher 1.2.0.0"])
    def test_other_user_agents_forbidden(self, api_client, user_agent) -> None:
        client, _store, _ids = api_client
        resp = client.get("/live/version", headers={"User-Agent": user_agent})
        assert resp.status_code == 403
        assert resp.content == b""


class TestLogin:
    def test_success_returns_token_and_no_store(self, api_client) -> None:
        client, _store, ids = api_client
        resp = _login(client)
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == "no-store"
        data = resp.json()
        assert data["status"] == 0
        claims = client.app.state.token_codec.parse(data["token"])
        assert claims.account == ids["alice"]
        assert claims.mode == 2
        assert claims.verified is False

    def test_mode_defaults_to_zero(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.post(
            "/live/login",
            json={"username": "alice", "password": ALICE_PASSWORD, "launcher": "hash-current"},
        )
        assert client.app.state.token_codec.parse(resp.json()["token"]).mode == 0

    @pytest.mark.parametrize(
        "username, password, launcher, status",
        [
            ("mallory", "whatever", "hash-current", 201),
            ("alice", "wrong", "hash-current", 201),
            ("bob", BOB_PASSWORD, "hash-current", 202),
            ("bob", "wrong", "hash-current", 201),
            ("legacy", "anything", "hash-current", 200),
            ("alice", ALICE_PASSWORD, "deadbeef", 101),
            ("alice", ALICE_PASSWORD, "hash-retired", 104),
        ],
    )
    def test_failure_outcomes(self, api_client, username, password, launcher, status) -> None:
        client, _store, _ids = api_client
        resp = _login(client, username=username, password=password, launcher=launcher)
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == "no-store"
        data = resp.json()
        assert data["status"] == status
        assert "token" not in data

    def test_wrong_password_does_not_reveal_which_part(self, api_client) -> None:
        client, _store, _ids = api_client
        unknown = _login(client, username="mallory", password="x").json()
        wrong = _login(client, password="x").json()
        assert unknown == wrong

    @pytest.mark.parametrize("username, password", [("dave", "p" * 80), ("erin", "é" * 40)])
    def test_password_longer_than_72_bytes(self, api_client, username, password) -> None:
        client, account_store, _ids = api_client
        account_store.create_account(Account(username=username, password=hash_password(password)))
        assert _login(client, username=username, password=password).json()["status"] == 0
        assert _login(client, username=username, password=password[:-1] + "x").json()["status"] == 0

    def test_largest_mode_round_trips(self, api_client) -> None:
        client, _store, _ids = api_client
        token = _login_token(client, mode=2**31 - 1)
        resp = client.get("/live/validate", headers=_bearer(token))
        assert resp.json()["files"] == ["a.dll", "b.dll", "c.pak"]

    def test_credentials_checked_before_launcher(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = _login(client, password="wrong", launcher="deadbeef")
        assert resp.json()["status"] == 201

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"username": "alice", "password": ALICE_PASSWORD},
            {"username": "alice", "password": ALICE_PASSWORD, "launcher": "hash-current", "mode": "two"},
            {"username": "alice", "password": ALICE_PASSWORD, "launcher": "hash-current", "mode": -1},
            {"username": "alice", "password": ALICE_PASSWORD, "launcher": "hash-current", "mode": 2**31},
            {"username": "alice", "password": ALICE_PASSWORD, "launcher": "hash-current", "mode": 2**70},
            {"username": "", "password": ALICE_PASSWORD, "launcher": "hash-current"},
        ],
    )
    def test_malformed_body_is_bare_400(self, api_client, body) -> None:
        client, _store, _ids = api_client
        resp = client.post("/live/login", json=body)
        assert resp.status_code == 400
        assert resp.content == b""

    def test_non_json_body_is_bare_400(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.post("/live/login", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400


class TestBearerToken:
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer "},
            {"Authorization": "Bearer not-a-token"},
            {"Authorization": "Basic YWxpY2U6cGFzcw=="},
        ],
    )
    @pytest.mark.parametrize("path", ["/live/validate", "/live/gametoken"])
    def test_missing_or_invalid_token_is_bare_400(self, api_client, headers, path) -> None:
        client, _store, _ids = api_client
        resp = client.get(path, headers=headers)
        assert resp.status_code == 400
        assert resp.content == b""

    def test_foreign_key_token_is_bare_400(self, api_client) -> None:
        client, _store, _ids = api_client
        token = SessionTokenCodec("z" * 40, get_settings().token_issuer).issue(account=1, mode=0)
        assert client.get("/live/validate", headers=_bearer(token)).status_code == 400

    def test_expired_token_is_status_102(self, api_client) -> None:
        client, _store, ids = api_client
        settings = get_settings()
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = SessionTokenCodec(settings.jwt_key, settings.token_issuer, clock=lambda: past).issue(
            account=ids["alice"], mode=2
        )
        resp = client.get("/live/validate", headers=_bearer(token))
        assert resp.status_code == 200
        assert resp.json() == {"status": 102, "errorText": "login expired"}


class TestValidate:
    def test_file_list_for_token_mode(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.get("/live/validate", headers=_bearer(_login_token(client, mode=2)))
        assert resp.json() == {"status": 0, "files": ["a.dll", "b.dll", "c.pak", "d.pak"]}

    def test_unknown_mode_lists_mode_zero(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.get("/live/validate", headers=_bearer(_login_token(client, mode=7)))
        assert resp.json()["files"] == ["a.dll", "b.dll", "c.pak"]

    def test_wrong_aggregate_is_corrupt_files(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.post(
            "/live/validate",
            headers=_bearer(_login_token(client)),
            json={"launcher": "hash-current", "files": "0" * 40},
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == 103
        assert "token" not in resp.json()

    def test_missing_files_field_is_bare_400(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.post(
            "/live/validate",
            headers=_bearer(_login_token(client)),
            json={"launcher": "hash-current"},
        )
        assert resp.status_code == 400

    def test_correct_aggregate_escalates(self, api_client) -> None:
        client, _store, ids = api_client
        resp = client.post(
            "/live/validate",
            headers=_bearer(_login_token(client)),
            json={"launcher": "hash-current", "files": _MODE_2_AGGREGATE},
        )
        data = resp.json()
        assert data["status"] == 0
        claims = client.app.state.token_codec.parse(data["token"])
        assert claims.verified is True
        assert claims.account == ids["alice"]
        assert claims.mode == 2


class TestGameToken:
    def test_unverified_session_is_refused(self, api_client) -> None:
        client, _store, _ids = api_client
        resp = client.get("/live/gametoken", headers=_bearer(_login_token(client)))
        assert resp.status_code == 200
        assert resp.json()["status"] == 105
        assert "gameToken" not in resp.json()


def test_login_validate_gametoken_flow(api_client) -> None:
    """Alice logs in for mode 2, proves her files, and gets a join secret."""
    client, account_store, ids = api_client

    version = client.get("/live/version", headers={"User-Agent": LAUNCHER_UA}).json()
    assert version["versionString"] == "1.2.0.0"

    token = _login_token(client, mode=2)
    files = client.get("/live/validate", headers=_bearer(token)).json()["files"]
    assert files == ["a.dll", "b.dll", "c.pak", "d.pak"]

    per_file = {"a.dll": "h0a", "b.dll": "h2b", "c.pak": "h0c", "d.pak": "h2d"}
    aggregate = hashlib.sha1("".join(per_file[name] for name in files).encode()).hexdigest()
    validated = client.post(
        "/live/validate",
        headers=_bearer(token),
        json={"launcher": "hash-current", "files": aggregate},
    ).json()
    assert validated["status"] == 0

    resp = client.get("/live/gametoken", headers=_bearer(validated["token"]))
    data = resp.json()
    assert data["status"] == 0
    assert len(data["gameToken"]) == 31
    assert data["gameToken"].isalnum()
    assert account_store.get_by_id(ids["alice"]).token == data["gameToken"]
