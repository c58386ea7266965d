from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import action_json
from nexithra.main import app


@pytest.fixture
def api(make_runtime):
    def factory(replies=None, **overrides):
        runtime, provider = make_runtime(replies, **overrides)
        app.state.runtime = runtime
        return TestClient(app), runtime

    yield factory
    if hasattr(app.state, "runtime"):
        del app.state.runtime


def test_unavailable_without_runtime() -> None:
    client = TestClient(app)
    assert client.get("/assistant/status").status_code == 503


def test_toggle_command_and_terminal(api, bridge) -> None:
    client, runtime = api([action_json("navigate", "Opening the library.", target="/library")])

    assert client.post("/assistant/toggle").json()["status"] == "idle"
    body = client.post("/assistant/command", json={"command": "open the library"}).json()

    assert body["status"] == "ok"
    assert body["kind"] == "navigate"
    assert body["spoken"] is True
    assert body["assistant"]["status"] == "speaking"

    terminal = client.get("/terminal").json()
    assert [m["type"] for m in terminal["messages"]] == ["user", "ai"]

    utterance_id = bridge.of("SPEAK")[0]["id"]
    assert client.post("/speech/ended", json={"id": utterance_id}).json()["status"] == "idle"


def test_blank_command_ignored(api) -> None:
    client, _ = api()
    assert client.post("/assistant/command", json={"command": "   "}).json()["status"] == "ignored"


def test_mode_switch(api) -> None:
    client, _ = api()
    assert client.post("/assistant/mode", json={"mode": "alya"}).json()["profile"]["name"] == "alya"
    assert client.post("/assistant/mode", json={"mode": "hal"}).status_code == 400
    assert client.get("/assistant/status").json()["mode"] == "alya"


def test_sound_mode(api) -> None:
    client, _ = api()
    assert client.post("/speech/sound-mode", json={"mode": "muted"}).json() == {"sound_mode": "muted"}
    assert client.post("/speech/sound-mode", json={"mode": "loud"}).status_code == 422


def test_keys_and_terminal_toggle(api) -> None:
    client, runtime = api()
    assert client.post("/keys", json={"chord": "Ctrl+'"}).json() == {"status": "handled", "panel": "terminal"}
    assert client.post("/terminal/toggle").json() == {"open": False}
    assert client.post("/keys", json={"chord": "ctrl+z"}).json()["status"] == "ignored"


def test_context_update(api) -> None:
    client, runtime = api()
    snapshot = client.post(
        "/assistant/context",
        json={"route": "/study?topic=optics", "language": "hi", "userGoal": {"type": "exam", "country": "India"}},
    ).json()

    assert snapshot["route"] == "/study?topic=optics"
    assert snapshot["language"] == "hi"
    assert runtime.subsystems.auth.user_goal.country == "India"


def test_capture_events(api) -> None:
    client, runtime = api()
    assert client.post("/capture/transcript", json={"text": "Jarvis", "is_final": True}).json() == {"forwarded": False}

    client.post("/capture/error", json={"reason": "Microphone permission denied"})
    state = client.post("/assistant/toggle").json()

    assert state["status"] == "off"
    assert state["capture_disabled"] is True


def test_capture_error_after_toggle_on_closes_session(api) -> None:
    client, runtime = api()
    assert client.post("/assistant/toggle").json()["status"] == "idle"

    client.post("/capture/error", json={"reason": "Microphone permission denied"})
    state = client.get("/assistant/status").json()

    assert state["status"] == "off"
    assert state["capture_disabled"] is True
    assert [m["type"] for m in client.get("/terminal").json()["messages"]] == ["error"]
