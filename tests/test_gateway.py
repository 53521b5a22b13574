"""
End-to-end tests for the HTTP gateway and the daemon MCP JSON-RPC endpoint.
"""

import json
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from common.config import Config
from daemon_mcp.document import DocumentFetcher
from daemon_mcp.server import MCPReply
from gateway.http_gateway import create_gateway_app

from conftest import MOCK_SECTION_KEYS, SOURCE_URL, make_fetcher, rpc

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "POST, OPTIONS",
    "access-control-allow-headers": "Content-Type",
    "access-control-max-age": "86400",
}


def assert_cors(response: httpx.Response) -> None:
    for header, value in CORS_HEADERS.items():
        assert response.headers[header] == value


def result_text(data: dict) -> str:
    content = data["result"]["content"]
    assert len(content) == 1
    assert content[0]["type"] == "text"
    return content[0]["text"]


def call_tool(client: TestClient, name: str, id=1, **arguments) -> httpx.Response:
    params = {"name": name}
    if arguments:
        params["arguments"] = arguments
    return client.post("/", json=rpc("tools/call", id=id, **params))


class TestCors:
    def test_preflight(self, client: TestClient):
        response = client.options("/")

        assert response.status_code == 204
        assert response.content == b""
        assert_cors(response)

    def test_success_carries_cors_headers(self, client: TestClient):
        response = client.post("/", json=rpc("tools/list"))

        assert response.status_code == 200
        assert_cors(response)

    @pytest.mark.parametrize(
        "send",
        [
            lambda c: c.get("/"),
            lambda c: c.post("/", content=b"invalid json"),
            lambda c: c.post("/", json=rpc("unknown/method")),
        ],
    )
    def test_errors_carry_cors_headers(self, client: TestClient, send):
        response = send(client)

        assert response.status_code >= 400
        assert_cors(response)


class TestValidation:
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    def test_rejects_non_post(self, client: TestClient, method):
        response = client.request(method, "/")
        data = response.json()

        assert response.status_code == 405
        assert data["jsonrpc"] == "2.0"
        assert data["error"]["code"] == -32600
        assert "Only POST" in data["error"]["message"]
        assert data["id"] is None

    def test_rejects_invalid_json(self, client: TestClient):
        response = client.post(
            "/", content=b"invalid json", headers={"Content-Type": "application/json"}
        )
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32700
        assert "Invalid JSON" in data["error"]["message"]
        assert data["id"] is None

    def test_rejects_missing_jsonrpc_version(self, client: TestClient):
        response = client.post("/", json={"method": "tools/list", "id": 1})
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32600
        assert 'jsonrpc must be "2.0"' in data["error"]["message"]
        assert data["id"] == 1

    def test_rejects_missing_method(self, client: TestClient):
        response = client.post("/", json={"jsonrpc": "2.0", "id": 1})
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32600
        assert "method required" in data["error"]["message"]
        assert data["id"] == 1

    def test_rejects_missing_id(self, client: TestClient):
        response = client.post("/", json={"jsonrpc": "2.0", "method": "tools/list"})
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32600
        assert "id required" in data["error"]["message"]
        assert data["id"] is None

    def test_null_id_is_accepted(self, client: TestClient):
        response = client.post("/", json=rpc("tools/list", id=None))

        assert response.status_code == 200
        assert response.json()["id"] is None

    def test_overflowing_numeric_id_is_rejected(self, client: TestClient):
        response = client.post(
            "/",
            content=b'{"jsonrpc": "2.0", "method": "tools/list", "id": 1e400}',
            headers={"Content-Type": "application/json"},
        )
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32600
        assert data["id"] is None
        assert_cors(response)

    @pytest.mark.parametrize("constant", [b"NaN", b"Infinity", b"-Infinity"])
    def test_non_standard_constants_are_invalid_json(self, client: TestClient, constant):
        body = b'{"jsonrpc": "2.0", "method": "tools/list", "id": ' + constant + b"}"
        response = client.post("/", content=body, headers={"Content-Type": "application/json"})
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32700
        assert data["id"] is None
        assert_cors(response)


class TestToolsList:
    def test_lists_catalog(self, client: TestClient):
        response = client.post("/", json=rpc("tools/list"))
        data = response.json()

        assert response.status_code == 200
        assert data["jsonrpc"] == "2.0"
        assert data["id"] == 1

        tools = json.loads(result_text(data))["tools"]
        assert len(tools) >= 11
        for tool in tools:
            assert tool["name"]
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"
            assert isinstance(tool["inputSchema"]["required"], list)

    @pytest.mark.parametrize("request_id", [1, 0, 3.5, "abc-123", ""])
    def test_echoes_id_verbatim(self, client: TestClient, request_id):
        data = client.post("/", json=rpc("tools/list", id=request_id)).json()

        assert data["id"] == request_id
        assert type(data["id"]) is type(request_id)


class TestToolsCall:
    def test_get_about(self, client: TestClient):
        response = call_tool(client, "get_about")

        assert response.status_code == 200
        assert "Test about content" in result_text(response.json())

    def test_get_about_minimal_document(self, test_config: Config):
        app = create_gateway_app(test_config, make_fetcher("[ABOUT]\nX"))
        response = call_tool(TestClient(app), "get_about")

        assert result_text(response.json()) == "X"

    def test_get_projects_missing_is_placeholder(self, client: TestClient):
        response = call_tool(client, "get_projects")
        data = response.json()

        assert response.status_code == 200
        assert "error" not in data
        assert result_text(data) == "PROJECTS section not available"

    def test_get_all(self, client: TestClient):
        response = call_tool(client, "get_all")
        profile = json.loads(result_text(response.json()))

        assert response.status_code == 200
        for key in ("about", "mission", "telos", "last_updated"):
            assert key in profile
        assert profile["about"] == "Test about content for testing purposes."
        assert profile["projects"] == ""
        datetime.fromisoformat(profile["last_updated"].replace("Z", "+00:00"))

    def test_get_all_on_empty_document(self, test_config: Config):
        app = create_gateway_app(test_config, make_fetcher("no headers at all"))
        profile = json.loads(result_text(call_tool(TestClient(app), "get_all").json()))

        assert profile["about"] == ""
        assert profile["mission"] == ""
        assert profile["telos"] == ""
        assert profile["last_updated"]

    def test_get_section_case_insensitive(self, client: TestClient):
        lower = call_tool(client, "get_section", section="telos").json()
        upper = call_tool(client, "get_section", section="TELOS").json()

        assert result_text(lower) == result_text(upper)
        assert "G1: Test goal" in result_text(lower)

    def test_get_section_missing_argument(self, client: TestClient):
        response = client.post(
            "/", json=rpc("tools/call", id=4, name="get_section", arguments={})
        )
        data = response.json()

        assert response.status_code == 200
        assert data["error"]["code"] == -32602
        assert "Missing required parameter" in data["error"]["message"]
        assert data["id"] == 4

    def test_get_section_unknown(self, client: TestClient):
        response = call_tool(client, "get_section", id="s", section="NONEXISTENT")
        data = response.json()

        assert response.status_code == 200
        assert data["error"]["code"] == -32001
        assert data["error"]["data"]["available_sections"] == MOCK_SECTION_KEYS
        assert data["id"] == "s"

    def test_unknown_tool(self, client: TestClient):
        response = call_tool(client, "get_weather")
        data = response.json()

        assert response.status_code == 200
        assert data["error"]["code"] == -32601
        assert "Tool not found" in data["error"]["message"]
        assert "data" not in data["error"]

    def test_non_string_tool_name(self, client: TestClient):
        response = client.post("/", json=rpc("tools/call", id=3, name=5))
        data = response.json()

        assert response.status_code == 200
        assert data["error"]["code"] == -32601
        assert data["error"]["message"] == "Tool not found: 5"
        assert data["id"] == 3

    def test_get_section_with_empty_body(self, test_config: Config):
        app = create_gateway_app(test_config, make_fetcher("[ABOUT]\n\n[MISSION]\nM"))
        response = call_tool(TestClient(app), "get_section", id=2, section="about")
        data = response.json()

        assert response.status_code == 200
        assert data["error"]["code"] == -32001
        assert data["error"]["message"] == "Section not found: ABOUT"
        assert data["error"]["data"]["available_sections"] == ["ABOUT", "MISSION"]
        assert data["id"] == 2

    @pytest.mark.parametrize("params", [None, {}, {"name": ""}, {"arguments": {}}, []])
    def test_missing_tool_name(self, client: TestClient, params):
        body = {"jsonrpc": "2.0", "method": "tools/call", "id": 9}
        if params is not None:
            body["params"] = params

        response = client.post("/", json=body)
        data = response.json()

        assert response.status_code == 400
        assert data["error"]["code"] == -32602
        assert "tool name required" in data["error"]["message"]
        assert data["id"] == 9


class TestMethodRouting:
    def test_unknown_method(self, client: TestClient):
        response = client.post("/", json=rpc("resources/list", id="m"))
        data = response.json()

        assert response.status_code == 404
        assert data["error"]["code"] == -32601
        assert data["error"]["message"] == "Method not found: resources/list"
        assert data["id"] == "m"


class TestUpstreamFailures:
    def test_upstream_http_error(self, test_config: Config):
        app = create_gateway_app(test_config, make_fetcher("gone", status_code=404))
        response = TestClient(app).post("/", json=rpc("tools/list", id=5))
        data = response.json()

        assert response.status_code == 500
        assert data["error"]["code"] == -32603
        assert data["error"]["message"].startswith("Failed to load daemon data")
        assert data["id"] == 5
        assert_cors(response)

    def test_upstream_unreachable(self, test_config: Config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = DocumentFetcher(SOURCE_URL, transport=httpx.MockTransport(handler))
        response = TestClient(create_gateway_app(test_config, fetcher)).post(
            "/", json=rpc("tools/list", id=6)
        )
        data = response.json()

        assert response.status_code == 500
        assert data["error"]["code"] == -32603
        assert "connection refused" in data["error"]["message"]

    def test_document_parse_failure(self, client: TestClient, monkeypatch):
        def broken_parser(content: str):
            raise RuntimeError("bad document")

        monkeypatch.setattr("daemon_mcp.server.parse_sections", broken_parser)
        response = client.post("/", json=rpc("tools/list", id=7))
        data = response.json()

        assert response.status_code == 500
        assert data["error"]["code"] == -32002
        assert data["error"]["message"] == "Failed to parse daemon.md: bad document"
        assert data["id"] == 7

    def test_unhandled_exception(self, client: TestClient, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("daemon_mcp.dispatcher.ToolDispatcher.dispatch", explode)
        response = call_tool(client, "get_about", id=8)
        data = response.json()

        assert response.status_code == 500
        assert data["error"]["code"] == -32603
        assert data["error"]["message"] == "Internal server error: kaboom"
        assert data["id"] is None
        assert_cors(response)

    def test_serialization_failure(self, client: TestClient, monkeypatch):
        original = MCPReply.to_response
        rendered = []

        def fail_first(reply: MCPReply):
            rendered.append(reply)
            if len(rendered) == 1:
                raise ValueError("Out of range float values are not JSON compliant")
            return original(reply)

        monkeypatch.setattr(MCPReply, "to_response", fail_first)
        response = client.post("/", json=rpc("tools/list", id=10))
        data = response.json()

        assert response.status_code == 500
        assert data["error"]["code"] == -32603
        assert data["error"]["message"].startswith("Internal server error: Out of range float")
        assert data["id"] is None
        assert_cors(response)


class TestHealth:
    def test_health_endpoint(self, client: TestClient):
        response = client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["tools_count"] == 13
        assert data["source_url"] == SOURCE_URL
        assert_cors(response)


def test_custom_endpoint_path():
    config = Config()
    config.gateway.endpoint_path = "/mcp"
    client = TestClient(create_gateway_app(config, make_fetcher()))

    response = client.post("/mcp", json=rpc("tools/list"))

    assert response.status_code == 200
    assert client.post("/", json=rpc("tools/list")).status_code != 200
