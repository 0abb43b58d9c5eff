"""Tests for the HTTP sidecar routes."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from sidecar.api.server import create_app
from tfvcsync.core.config import ConfigStore, TfvcConfig
from tfvcsync.core.context import ScmContext

FAKE_TF = """
case "$1" in
  status)
    if [ "$2" = "/format:detailed" ]; then
      printf 'edit $/Proj/a.cs\\nadd $/Proj/b.cs\\n'
    else
      echo "edit $2"
    fi
    ;;
  history) echo "Changeset: 9 Author: Jane Doe Date: 2024-01-01" ;;
  branches) printf 'Branch: $/Proj/Main\\nBranch: $/Proj/Dev\\n' ;;
  merge) echo "TF14087: conflicts" >&2; exit 1 ;;
esac
"""


@pytest.fixture
def context(workspace, temp_dir, fake_tf):
    tf = fake_tf(FAKE_TF)
    store = ConfigStore(workspace, base_dir=temp_dir / "runtime")
    ctx = ScmContext(workspace, config=TfvcConfig(tf_path=str(tf)), config_store=store)
    yield ctx
    ctx.dispose()


@pytest.fixture
def client(context):
    return TestClient(create_app(context=context))


def _paths(entries):
    return [entry["path"] for entry in entries]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_context_returns_503():
    client = TestClient(create_app())
    assert client.get("/api/pending").status_code == 503


class TestPendingRoutes:
    def test_empty_until_refreshed(self, client):
        assert client.get("/api/pending").json() == {"all": [], "included": [], "excluded": []}

    def test_refresh(self, client):
        data = client.post("/api/pending/refresh").json()

        assert _paths(data["all"]) == ["$/Proj/a.cs", "$/Proj/b.cs"]
        assert data["all"][0] == {"path": "$/Proj/a.cs", "status": "edit", "is_included": True}
        assert data["excluded"] == []

    def test_toggle_and_include(self, client):
        client.post("/api/pending/refresh")

        data = client.post("/api/pending/toggle", json={"path": "$/Proj/a.cs"}).json()
        assert _paths(data["excluded"]) == ["$/Proj/a.cs"]

        data = client.post("/api/pending/include", json={"path": "$/Proj/a.cs", "included": True}).json()
        assert data["excluded"] == []

    def test_toggle_unknown_path(self, client):
        response = client.post("/api/pending/toggle", json={"path": "$/nope"})
        assert response.status_code == 404


class TestScmRoutes:
    def test_checkin_without_included_files(self, client):
        response = client.post("/api/scm/checkin", json={"comment": "msg"})

        assert response.status_code == 400
        assert "No files" in response.json()["detail"]

    def test_checkin_included(self, client, context):
        client.post("/api/pending/refresh")
        client.post("/api/pending/toggle", json={"path": "$/Proj/b.cs"})

        response = client.post("/api/scm/checkin", json={"comment": "Fix login"})

        assert response.status_code == 200
        assert response.json()["files"] == ["$/Proj/a.cs"]
        assert context.history.recent()[-1].command == "checkin"

    def test_command_failure_maps_to_502(self, client):
        response = client.post(
            "/api/scm/merge",
            json={"source_branch": "$/Proj/Dev", "target_branch": "$/Proj/Main"},
        )

        assert response.status_code == 502
        body = response.json()
        assert "TF14087" in body["detail"]
        assert body["error"]["exit_code"] == 1

    def test_history(self, client):
        response = client.get("/api/scm/history", params={"path": "a.cs"})

        assert response.json() == [
            {"changeset_id": "9", "author": "Jane Doe", "date": "2024-01-01", "comment": None}
        ]

    def test_branches(self, client):
        assert client.get("/api/scm/branches").json() == ["$/Proj/Main", "$/Proj/Dev"]


class TestSettingsRoutes:
    def test_get_settings(self, client, context):
        data = client.get("/api/settings").json()
        assert data == context.config.to_dict()

    def test_update_settings(self, client, context):
        response = client.put("/api/settings", json={"auto_checkout_on_save": True})

        assert response.status_code == 200
        assert response.json()["auto_checkout_on_save"] is True
        assert context.config_store.load().auto_checkout_on_save is True

    @pytest.mark.parametrize("changes", [{"unknown": 1}, {"log_level": "loud"}])
    def test_invalid_settings(self, client, changes):
        assert client.put("/api/settings", json=changes).status_code == 400


class TestEventAndDiagnosticsRoutes:
    def test_signal_ignored_while_auto_checkout_off(self, client):
        data = client.post("/api/events/saved", json={"path": "a.cs"}).json()
        assert data == {"accepted": False, "processing": False}

    def test_non_file_scheme_not_processed(self, client, context):
        context.auto_checkout.configure(auto_checkout=True, auto_checkout_on_save=False)

        data = client.post("/api/events/changed", json={"path": "untitled-1", "scheme": "untitled"}).json()

        assert data == {"accepted": True, "processing": False}

    def test_diagnostics(self, client):
        response = client.get("/api/diagnostics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "### System Information" in response.text
        assert "### Authentication Status" in response.text


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class TestStateChangesRunOnEventLoop:
    def test_inclusion_notifications(self, client, context):
        client.post("/api/pending/refresh")
        seen = []
        context.fileset.on_did_change(lambda: seen.append(_on_event_loop()))

        client.post("/api/pending/toggle", json={"path": "$/Proj/a.cs"})
        client.post("/api/pending/include", json={"path": "$/Proj/a.cs", "included": True})

        assert seen == [True, True]

    def test_settings_update_reconfigures_on_loop(self, client, context, monkeypatch):
        seen = []
        configure = context.auto_checkout.configure

        def recording_configure(*args, **kwargs):
            seen.append(_on_event_loop())
            return configure(*args, **kwargs)

        monkeypatch.setattr(context.auto_checkout, "configure", recording_configure)

        client.put("/api/settings", json={"auto_checkout_on_save": True})

        assert seen == [True]
