"""
Shared fixtures: a stubbed daemon document upstream and a gateway app wired to it.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from common.config import Config
from daemon_mcp.document import DocumentFetcher
from gateway.http_gateway import create_gateway_app

SOURCE_URL = "https://daemon.example.test/daemon.md"

MOCK_DAEMON_MD = """# DAEMON DATA FILE

[ABOUT]
Test about content for testing purposes.

[MISSION]
Test mission statement.

[TELOS]
- P1: Test problem
- M1: Test mission
- G1: Test goal

[CURRENT_LOCATION]
Test location.

[PREFERENCES]
- Preference 1
- Preference 2

[FAVORITE_BOOKS]
- Book 1
- Book 2

[FAVORITE_MOVIES]
- Movie 1
- Movie 2

[FAVORITE_PODCASTS]
- Podcast 1
- Podcast 2

[DAILY_ROUTINE]
- 8AM: Wake up
- 9AM: Work

[PREDICTIONS]
- Prediction 1 (Probable)
- Prediction 2 (Likely)
"""

MOCK_SECTION_KEYS = [
    "ABOUT",
    "MISSION",
    "TELOS",
    "CURRENT_LOCATION",
    "PREFERENCES",
    "FAVORITE_BOOKS",
    "FAVORITE_MOVIES",
    "FAVORITE_PODCASTS",
    "DAILY_ROUTINE",
    "PREDICTIONS",
]


def make_fetcher(document: str = MOCK_DAEMON_MD, status_code: int = 200) -> DocumentFetcher:
    """Fetcher whose upstream always answers with the given document and status."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == SOURCE_URL
        return httpx.Response(status_code, text=document)

    return DocumentFetcher(SOURCE_URL, transport=httpx.MockTransport(handler))


def rpc(method: str, id=1, **params) -> dict:
    """Build a JSON-RPC request body."""
    body = {"jsonrpc": "2.0", "method": method, "id": id}
    if params:
        body["params"] = params
    return body


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration."""
    return Config()


@pytest.fixture
def fetcher() -> DocumentFetcher:
    return make_fetcher()


@pytest.fixture
def app(test_config: Config, fetcher: DocumentFetcher):
    """Create a test FastAPI app."""
    return create_gateway_app(test_config, fetcher)


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)
