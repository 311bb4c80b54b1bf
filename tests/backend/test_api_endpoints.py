"""
Tests for FastAPI backend endpoints.
"""

import json
from unittest.mock import Mock

import httpx
import openai
from fastapi.testclient import TestClient


def llm_completion(payload):
    completion = Mock()
    completion.choices = [Mock(message=Mock(content=json.dumps(payload)))]
    return completion


def make_client():
    from intent_tabs.server.app import app

    return TestClient(app)


def configure_api_key(client, api_key="sk-or-test"):
    response = client.put("/api/settings/api-key", json={"apiKey": api_key})
    assert response.status_code == 200


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health(self):
        client = make_client()

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data


class TestAnalyzeEndpoint:
    """Tests for POST /api/tabs/analyze."""

    def test_analyze_groups_tabs(self, mock_openai, sample_tabs_data):
        """Test a full analysis returns camelCase workspaces and unclustered tabs."""
        client = make_client()
        configure_api_key(client)

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 200
        data = response.json()
        assert data["tabCount"] == 3
        assert data["nextColorIndex"] == 1

        workspace = data["workspaces"][0]
        assert workspace["name"] == "Berlin Trip Planning"
        assert workspace["keyEntities"] == ["Berlin", "Jan 15-22"]
        assert workspace["color"] == "grey"
        assert workspace["isSaved"] is False
        assert [tab["id"] for tab in workspace["tabs"]] == [1, 2]
        assert workspace["tabs"][0]["description"] == "Find hotels in Berlin"
        assert workspace["tabs"][0]["favicon"] == "https://www.booking.com/favicon.ico"
        assert workspace["tabs"][0]["domain"] == "www.booking.com"

        assert [tab["id"] for tab in data["unclustered"]] == [3]

    def test_protected_tabs_never_reach_the_model(self, mock_openai, sample_tabs_data):
        client = make_client()
        configure_api_key(client)

        client.post("/api/tabs/analyze", json=sample_tabs_data)

        prompt = mock_openai.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "chrome://extensions" not in prompt
        assert "Find hotels in Berlin" in prompt

    def test_color_rotation_continues(self, sample_tabs_data):
        client = make_client()
        configure_api_key(client)
        sample_tabs_data["colorIndex"] = 8

        data = client.post("/api/tabs/analyze", json=sample_tabs_data).json()

        assert data["workspaces"][0]["color"] == "orange"
        assert data["nextColorIndex"] == 0

    def test_missing_api_key(self, mock_openai, sample_tabs_data):
        """Test clustering without a key returns a classified 400."""
        client = make_client()

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "MissingCredential"
        assert "API key not configured" in data["message"]
        mock_openai.chat.completions.create.assert_not_called()

    def test_single_tab_needs_no_api_key(self, sample_tabs_data):
        client = make_client()
        sample_tabs_data["tabs"] = sample_tabs_data["tabs"][:1]

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 200
        data = response.json()
        assert data["workspaces"] == []
        assert [tab["id"] for tab in data["unclustered"]] == [1]
        assert data["nextColorIndex"] == 0

    def test_empty_tabs(self):
        client = make_client()

        response = client.post("/api/tabs/analyze", json={"tabs": []})

        assert response.status_code == 200
        data = response.json()
        assert data["tabCount"] == 0
        assert data["workspaces"] == []
        assert data["unclustered"] == []

    def test_api_key_from_environment(self, mock_settings, sample_tabs_data):
        mock_settings.openrouter_api_key = "sk-or-env"
        client = make_client()

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 200

    def test_malformed_llm_response(self, mock_openai, sample_tabs_data):
        client = make_client()
        configure_api_key(client)
        mock_openai.chat.completions.create.return_value = llm_completion(
            {
                "workspaces": [
                    {"name": "A", "tabIds": [1, 2]},
                    {"name": "B", "tabIds": [2, 3]},
                ]
            }
        )

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 502
        assert response.json() == {"kind": "MalformedResponse", "message": "Duplicate tab ID: 2"}

    def test_invalid_api_key(self, mock_openai, sample_tabs_data):
        client = make_client()
        configure_api_key(client, "sk-or-revoked")
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        mock_openai.chat.completions.create.side_effect = openai.AuthenticationError(
            "User not found", response=httpx.Response(401, request=request), body=None
        )

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 401
        assert response.json()["kind"] == "InvalidCredential"

    def test_rate_limited(self, mock_openai, sample_tabs_data):
        client = make_client()
        configure_api_key(client)
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        mock_openai.chat.completions.create.side_effect = openai.RateLimitError(
            "Too many requests", response=httpx.Response(429, request=request), body=None
        )

        response = client.post("/api/tabs/analyze", json=sample_tabs_data)

        assert response.status_code == 429
        assert response.json()["kind"] == "RateLimited"


class TestApiKeyEndpoints:
    """Tests for /api/settings/api-key."""

    def test_no_key_initially(self):
        client = make_client()

        response = client.get("/api/settings/api-key")

        assert response.status_code == 200
        assert response.json() == {"hasApiKey": False}

    def test_set_key(self):
        client = make_client()

        response = client.put("/api/settings/api-key", json={"apiKey": "sk-or-test"})

        assert response.status_code == 200
        assert response.json() == {"hasApiKey": True}
        assert client.get("/api/settings/api-key").json() == {"hasApiKey": True}

    def test_key_is_never_returned(self):
        client = make_client()
        configure_api_key(client, "sk-or-secret")

        response = client.get("/api/settings/api-key")

        assert "sk-or-secret" not in response.text

    def test_blank_key_rejected(self):
        client = make_client()

        response = client.put("/api/settings/api-key", json={"apiKey": "   "})

        assert response.status_code == 422


class TestWorkspaceEndpoints:
    """Tests for saving, listing, deleting and restoring workspaces."""

    def test_save_workspace(self, sample_workspace_data):
        client = make_client()

        response = client.post("/api/workspaces", json=sample_workspace_data)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "ws-berlin"
        assert data["isSaved"] is True
        assert data["createdAt"] == 1700000000100

    def test_list_workspaces(self, sample_workspace_data):
        client = make_client()
        client.post("/api/workspaces", json=sample_workspace_data)

        response = client.get("/api/workspaces")

        assert response.status_code == 200
        workspaces = response.json()
        assert len(workspaces) == 1
        assert workspaces[0]["name"] == "Berlin Trip Planning"
        assert workspaces[0]["color"] == "green"

    def test_list_empty(self):
        client = make_client()

        assert client.get("/api/workspaces").json() == []

    def test_delete_workspace(self, sample_workspace_data):
        client = make_client()
        client.post("/api/workspaces", json=sample_workspace_data)

        response = client.delete("/api/workspaces/ws-berlin")

        assert response.status_code == 200
        assert response.json() == {"status": "success", "deleted": True}
        assert client.get("/api/workspaces").json() == []

    def test_delete_unknown_workspace(self):
        client = make_client()

        response = client.delete("/api/workspaces/missing")

        assert response.status_code == 200
        assert response.json()["deleted"] is False

    def test_restore_workspace(self, sample_workspace_data):
        """Test restore returns the workspace and its URLs in tab order."""
        client = make_client()
        client.post("/api/workspaces", json=sample_workspace_data)

        response = client.post("/api/workspaces/ws-berlin/restore")

        assert response.status_code == 200
        data = response.json()
        assert data["workspace"]["name"] == "Berlin Trip Planning"
        assert data["urls"] == [
            "https://www.booking.com/berlin",
            "https://www.kayak.com/flights/berlin",
        ]

    def test_restore_unknown_workspace(self):
        client = make_client()

        response = client.post("/api/workspaces/missing/restore")

        assert response.status_code == 404
        assert response.json()["detail"] == "Workspace not found"
