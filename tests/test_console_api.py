from fastapi.testclient import TestClient

from termstream.api import console
from termstream.main import app
from termstream.services.sessions import SessionRegistry


def _install(monkeypatch, source) -> SessionRegistry:
    registry = SessionRegistry()
    monkeypatch.setattr(console, "session_registry", registry)
    monkeypatch.setattr(console, "command_run_source", lambda command, path=None: source)
    monkeypatch.setattr(console, "file_run_source", lambda file_path: source)
    return registry


def test_run_command_relays_decoded_text(monkeypatch, fake_source) -> None:
    _install(monkeypatch, fake_source([b"$ echo \xd0", b"\xb9\n\xd0\xb9\n"]))
    with TestClient(app) as client:
        response = client.post("/console/run_command", json={"command": "echo й"})
        assert response.status_code == 200
        assert response.text == "$ echo й\nй\n"
        session_id = response.headers["x-session-id"]

        detail = client.get(f"/console/sessions/{session_id}").json()
        assert detail["kind"] == "command"
        assert detail["state"] == "done"

        screen = client.get(f"/console/sessions/{session_id}/screen").json()
        assert screen["ended"] is True
        assert screen["lines"] == ["$ echo й", "й"]


def test_run_file_relays_error_line(monkeypatch, fake_source) -> None:
    source = fake_source([b"start\n", ConnectionResetError("gone")])
    source.failure_message = "Error: Failed to execute file\n"
    _install(monkeypatch, source)
    with TestClient(app) as client:
        response = client.post("/console/run_file", json={"file_path": "demo.md"})
        assert response.text == "start\nError: Failed to execute file\n"
        sessions = client.get("/console/sessions").json()
        assert [s["state"] for s in sessions] == ["errored"]
        assert sessions[0]["kind"] == "file"


def test_unknown_session_is_404(monkeypatch, fake_source) -> None:
    _install(monkeypatch, fake_source([]))
    with TestClient(app) as client:
        assert client.get("/console/sessions/nope").status_code == 404
        assert client.get("/console/sessions/nope/screen").status_code == 404
        assert client.delete("/console/sessions/nope").status_code == 404


def test_cancel_finished_session_is_a_no_op(monkeypatch, fake_source) -> None:
    _install(monkeypatch, fake_source([b"x"]))
    with TestClient(app) as client:
        session_id = client.post("/console/run_command", json={"command": "true"}).headers["x-session-id"]
        response = client.delete(f"/console/sessions/{session_id}")
        assert response.status_code == 200
        assert response.json()["state"] == "done"
