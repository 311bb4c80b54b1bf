"""
Pytest configuration and fixtures for backend API tests.
"""

import json

import pytest
from unittest.mock import AsyncMock, Mock, patch


@pytest.fixture(autouse=True)
def reset_workspace_db():
    """Reset the global database between tests."""
    import intent_tabs.server.app as app_module

    app_module._workspace_db = None
    yield
    if app_module._workspace_db is not None:
        app_module._workspace_db.close()
    app_module._workspace_db = None


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings to avoid requiring .env file in tests."""
    with patch("intent_tabs.agents.tab_clusterer.get_settings") as mock_clusterer_settings, \
         patch("intent_tabs.server.app.get_settings") as mock_app_settings:
        settings = Mock()
        settings.openrouter_api_key = None
        settings.openrouter_base_url = "https://openrouter.ai/api/v1"
        settings.llm_model = "anthropic/claude-sonnet-4"
        settings.llm_temperature = 0.3
        settings.llm_max_tokens = 2048
        settings.metadata_timeout_seconds = 1.0
        settings.enrichment_batch_size = 10
        settings.page_fetch_user_agent = "IntentTabOrganizer-Test/0.1"
        settings.page_fetch_max_bytes = 2_000_000
        settings.db_path = ":memory:"  # In-memory SQLite for tests
        mock_clusterer_settings.return_value = settings
        mock_app_settings.return_value = settings
        yield settings


def llm_completion(payload):
    """Chat completion carrying ``payload`` as JSON text."""
    completion = Mock()
    content = payload if isinstance(payload, str) else json.dumps(payload)
    completion.choices = [Mock(message=Mock(content=content))]
    return completion


@pytest.fixture(autouse=True)
def mock_openai():
    """Mock the async OpenAI client to avoid real API calls in tests."""
    with patch("intent_tabs.agents.tab_clusterer.AsyncOpenAI") as mock:
        mock_client = AsyncMock()
        mock_client.chat.completions.create.return_value = llm_completion(
            {
                "workspaces": [
                    {
                        "name": "Berlin Trip Planning",
                        "tabIds": [1, 2],
                        "summary": "Planning a trip to Berlin.",
                        "keyEntities": ["Berlin", "Jan 15-22"],
                        "suggestedActions": ["Book hotel"],
                        "confidence": 0.85,
                    }
                ],
                "unclustered": [3],
            }
        )
        mock.return_value = mock_client
        yield mock_client


def page(description):
    return (
        f'<html><head><meta name="description" content="{description}"></head>'
        "<body><p>content</p></body></html>"
    )


@pytest.fixture
def sample_tabs_data():
    """Sample tab data for testing API endpoints."""
    return {
        "tabs": [
            {
                "id": 1,
                "url": "https://www.booking.com/berlin",
                "title": "Berlin Hotels",
                "favIconUrl": "https://www.booking.com/favicon.ico",
                "status": "complete",
                "lastAccessed": 1700000000001,
                "html": page("Find hotels in Berlin"),
            },
            {
                "id": 2,
                "url": "https://www.kayak.com/flights/berlin",
                "title": "Flights to Berlin",
                "status": "complete",
                "lastAccessed": 1700000000002,
                "html": page("Cheap flights to Berlin"),
            },
            {
                "id": 3,
                "url": "https://en.wikipedia.org/wiki/Axolotl",
                "title": "Axolotl - Wikipedia",
                "status": "complete",
                "lastAccessed": 1700000000003,
                "html": page("The axolotl is a salamander"),
            },
            {
                "id": 4,
                "url": "chrome://extensions",
                "title": "Extensions",
                "status": "complete",
            },
        ],
        "colorIndex": 0,
    }


@pytest.fixture
def sample_workspace_data():
    """A workspace as the extension would post it for saving."""
    return {
        "id": "ws-berlin",
        "name": "Berlin Trip Planning",
        "summary": "Planning a trip to Berlin.",
        "tabs": [
            {
                "id": 1,
                "url": "https://www.booking.com/berlin",
                "title": "Berlin Hotels",
                "domain": "www.booking.com",
                "lastAccessed": 1700000000001,
            },
            {
                "id": 2,
                "url": "https://www.kayak.com/flights/berlin",
                "title": "Flights to Berlin",
                "domain": "www.kayak.com",
                "lastAccessed": 1700000000002,
            },
        ],
        "keyEntities": ["Berlin"],
        "suggestedActions": ["Book hotel"],
        "confidence": 0.85,
        "color": "green",
        "createdAt": 1700000000100,
        "isSaved": False,
    }
