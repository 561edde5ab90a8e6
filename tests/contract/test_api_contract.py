from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from takeoff_import.api import AuthError, create_app
from takeoff_import.db.persistence import ComponentStore, PersistenceError
from takeoff_import.models.config_models import ImportConfig

"""HTTP contract for POST /import-takeoff."""

TOKENS = {"good-token": "user-1", "other-token": "user-2"}
ACCESS = {("user-1", "proj-1")}
CSV = "DRAWING,TYPE,QTY,CMDTY CODE\nP-001,Valve,2,VBALU-001\nP-002,Pipe,0,PP-1\n"


def authenticate(token: str) -> str:
    try:
        return TOKENS[token]
    except KeyError:
        raise AuthError("unknown token") from None


def authorize(user_id: str, project_id: str) -> bool:
    return (user_id, project_id) in ACCESS


class RecordingStore(ComponentStore):
    def __init__(self) -> None:
        self.calls = []

    def persist_components(self, drafts, context) -> int:
        self.calls.append((list(drafts), context))
        return len(drafts)


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def client(temp_workdir: Path, store: RecordingStore) -> TestClient:
    @contextmanager
    def factory():
        yield store

    cfg = ImportConfig(
        allowed_types=ImportConfig.default().allowed_types,
        error_log_dir=str(temp_workdir / "logs"),
    )
    app = create_app(config=cfg, authenticate=authenticate, authorize=authorize, persistence_factory=factory)
    return TestClient(app)


def _post(client: TestClient, body: dict, token: str | None = "good-token"):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return client.post("/import-takeoff", json=body, headers=headers)


def test_success(client, store):
    r = _post(client, {"projectId": "proj-1", "csvContent": CSV, "userId": "user-1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["componentsCreated"] == 2
    assert body["rowsProcessed"] == 1
    assert body["rowsSkipped"] == 1
    assert body["componentsByType"] == {"valve": 2}
    assert isinstance(body["durationMs"], int)
    assert "errors" not in body
    assert r.headers["access-control-allow-origin"] == "*"
    drafts, ctx = store.calls[0]
    assert ctx.project_id == "proj-1"
    assert ctx.user_id == "user-1"
    assert len(drafts) == 2


def test_validation_failure_is_http_200(client, store, temp_workdir: Path):
    csv = "DRAWING,TYPE,QTY,CMDTY CODE\nP-001,Valve,ABC,VBALU-001\n"
    r = _post(client, {"projectId": "proj-1", "csvContent": csv, "userId": "user-1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert body["errors"] == [
        {"row": 2, "column": "QTY", "reason": "Invalid data type: QTY must be a non-negative integer, got 'ABC'"}
    ]
    assert store.calls == []
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_missing_authorization_header(client):
    r = _post(client, {"projectId": "proj-1", "csvContent": CSV, "userId": "user-1"}, token=None)
    assert r.status_code == 401
    assert r.json() == {"success": False, "errors": [{"reason": "Missing authorization header"}]}
    assert r.headers["access-control-allow-origin"] == "*"


def test_invalid_token(client):
    r = _post(client, {"projectId": "proj-1", "csvContent": CSV, "userId": "user-1"}, token="expired")
    assert r.status_code == 401
    assert r.json()["errors"][0]["reason"] == "Invalid or expired authentication token"


def test_project_access_denied(client, store):
    r = _post(client, {"projectId": "proj-1", "csvContent": CSV, "userId": "user-2"}, token="other-token")
    assert r.status_code == 403
    assert r.json() == {"success": False, "errors": [{"reason": "Project not found or access denied"}]}
    assert r.headers["access-control-allow-origin"] == "*"
    assert store.calls == []


def test_components_attributed_to_token_user(client, store):
    _post(client, {"projectId": "proj-1", "csvContent": CSV, "userId": "someone-else"})
    assert store.calls[0][1].user_id == "user-1"


def test_malformed_body(client):
    r = _post(client, {"projectId": "proj-1"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["errors"][0]["row"] == 0
    assert "csvContent" in body["errors"][0]["reason"]


def test_cors_preflight(client):
    r = client.options(
        "/import-takeoff",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "POST"},
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    assert "authorization" in r.headers["access-control-allow-headers"]


def test_persistence_failure(temp_workdir: Path):
    class Failing(ComponentStore):
        def persist_components(self, drafts, context) -> int:
            raise PersistenceError("deadlock detected")

    @contextmanager
    def factory():
        yield Failing()

    app = create_app(authenticate=authenticate, authorize=authorize, persistence_factory=factory,
                     config=ImportConfig(allowed_types=("Valve", "Pipe"), error_log_dir=str(temp_workdir / "logs")))
    r = _post(TestClient(app), {"projectId": "proj-1", "csvContent": CSV, "userId": "user-1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert body["errors"] == [
        {"row": 0, "column": None, "reason": "Import failed: components could not be saved. No changes were made."}
    ]


def test_unavailable_store(temp_workdir: Path):
    @contextmanager
    def factory():
        raise ConnectionError("could not connect to server")
        yield  # pragma: no cover

    app = create_app(authenticate=authenticate, authorize=authorize, persistence_factory=factory,
                     config=ImportConfig(allowed_types=("Valve", "Pipe"), error_log_dir=str(temp_workdir / "logs")))
    r = _post(TestClient(app), {"projectId": "proj-1", "csvContent": CSV, "userId": "user-1"})
    assert r.status_code == 200
    assert r.json()["errors"][0]["row"] == 0


def test_default_authenticator_rejects_everything(temp_workdir: Path):
    r = _post(TestClient(create_app()), {"projectId": "proj-1", "csvContent": CSV})
    assert r.status_code == 401


def test_health():
    r = TestClient(create_app()).get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "mock_mode": True}
    assert r.headers["access-control-allow-origin"] == "*"
