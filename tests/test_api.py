"""
API endpoint tests for the WeChat Transcript API.

Tests the FastAPI endpoints for:
- Health check
- Configuration
- Contacts
- Transcripts and export
"""

import json
import sqlite3
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import SELF_WXID, add_messages, encode_bytes_extra, msg_row

from wechat_transcript.api.main import app
from wechat_transcript.core.config import load_config, update_config
from wechat_transcript.models.chat import MSG_TYPE_PICTURE, MSG_TYPE_TEXT


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def unconfigured():
    """Clear stored config before and after the test."""
    update_config(data_path=None, export_dir=None)
    yield
    update_config(data_path=None, export_dir=None)


@pytest.fixture
def configured(unconfigured, data_path: Path, msg_db: Path, temp_dir: Path):
    """Account directory with a few messages, registered in config."""
    conn = sqlite3.connect(str(msg_db))
    add_messages(
        conn,
        [
            msg_row(1, 1001, MSG_TYPE_TEXT, "wxid_alice", "你好", 1704067200),
            msg_row(2, 1002, MSG_TYPE_TEXT, "wxid_alice", "在吗", 1704153600, is_sender=1),
            msg_row(3, 1003, MSG_TYPE_PICTURE, "wxid_alice", "", 1704153660),
            msg_row(
                4, 1004, MSG_TYPE_TEXT, "12345@chatroom", "大家好", 1704067200,
                bytes_extra=encode_bytes_extra([(1, "wxid_bob")]),
            ),
        ],
    )
    conn.commit()
    conn.close()

    update_config(data_path=str(data_path), export_dir=str(temp_dir / "exports"))
    return data_path


class TestHealthEndpoint:
    """Tests for /api/health endpoint."""

    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root_returns_api_info(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


class TestConfigRoutes:
    """Tests for /api/config endpoints."""

    def test_get_config_empty(self, client, unconfigured):
        response = client.get("/api/config")
        assert response.status_code == 200
        data = response.json()
        assert data["data_path"] is None
        assert data["self_wxid"] is None
        assert data["export_dir"]

    def test_set_data_path(self, client, unconfigured, data_path):
        response = client.post("/api/config/data-path", json={"path": str(data_path)})
        assert response.status_code == 200
        assert response.json()["self_wxid"] == SELF_WXID
        assert load_config().data_path == str(data_path)

    def test_set_invalid_data_path(self, client, unconfigured, temp_dir):
        response = client.post("/api/config/data-path", json={"path": str(temp_dir)})
        assert response.status_code == 400
        assert load_config().data_path is None

    def test_set_data_path_requires_wxid_dir(self, client, unconfigured, data_path, temp_dir):
        other = temp_dir / "not_an_account"
        data_path.rename(other)
        response = client.post("/api/config/data-path", json={"path": str(other)})
        assert response.status_code == 400

    def test_set_export_dir(self, client, unconfigured, temp_dir):
        target = str(temp_dir / "out")
        response = client.post("/api/config/export-dir", json={"path": target})
        assert response.status_code == 200
        assert response.json()["export_dir"] == target


class TestContactRoutes:
    """Tests for /api/contacts endpoints."""

    def test_requires_data_path(self, client, unconfigured):
        response = client.get("/api/contacts/")
        assert response.status_code == 400

    def test_list_contacts(self, client, configured):
        response = client.get("/api/contacts/")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        first, second = data["contacts"]
        assert first["username"] == "wxid_alice"
        assert first["display_name"] == "Alice"
        assert first["message_count"] == 3
        assert first["is_chatroom"] is False
        assert second["is_chatroom"] is True


class TestTranscriptRoutes:
    """Tests for /api/transcripts endpoints."""

    def test_get_transcript(self, client, configured):
        response = client.get("/api/transcripts/wxid_alice")
        assert response.status_code == 200
        data = response.json()
        assert data["instruction"] == "Chat history with Alice"
        assert [d["speaker"] for d in data["dialogue"]] == ["Alice", "Me", "Alice"]
        assert data["dialogue"][2]["text"] == "[Image]"

    def test_get_chatroom_transcript(self, client, configured):
        response = client.get("/api/transcripts/12345@chatroom")
        assert response.status_code == 200
        assert response.json()["dialogue"][0]["speaker"] == "Bob"

    def test_get_unknown_transcript(self, client, configured):
        response = client.get("/api/transcripts/wxid_ghost")
        assert response.status_code == 404

    def test_export_one(self, client, configured):
        response = client.post("/api/transcripts/wxid_alice/export")
        assert response.status_code == 200
        file_path = Path(response.json()["file_path"])
        assert file_path.name.startswith("Me_Alice")
        data = json.loads(file_path.read_text(encoding="utf-8"))
        assert len(data[0]["dialogue"]) == 3

    def test_export_unknown(self, client, configured):
        response = client.post("/api/transcripts/wxid_ghost/export")
        assert response.status_code == 404

    def test_export_multiple(self, client, configured):
        response = client.post(
            "/api/transcripts/export",
            json={"talkers": ["wxid_alice", "12345@chatroom", "wxid_ghost", "wxid_alice"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["failed"] == ["wxid_ghost"]
        assert data["success"] is False
        assert all(Path(p).exists() for p in data["file_paths"])

    def test_export_multiple_empty(self, client, configured):
        response = client.post("/api/transcripts/export", json={"talkers": []})
        assert response.status_code == 400


class TestAPIIntegration:
    """Integration tests for the actual API."""

    def test_import_main_app(self):
        assert app.title == "微信聊天记录导出"

    def test_routes_imported(self):
        from wechat_transcript.api.routes import contacts, settings, transcripts

        assert contacts.router is not None
        assert settings.router is not None
        assert transcripts.router is not None
