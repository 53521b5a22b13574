"""
JSON-RPC 2.0 Protocol Implementation for the daemon MCP endpoint

Envelope models, the error taxonomy and the builders that render success and
error replies. Every reply carries ``jsonrpc: "2.0"`` and an ``id`` (possibly
null) so multiplexed callers can correlate them.

Reference: https://www.jsonrpc.org/specification
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, model_serializer

# JSON-RPC version constant
JSONRPC_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Daemon-specific error codes
TOOL_NOT_FOUND = METHOD_NOT_FOUND
SECTION_NOT_FOUND = -32001
PARSE_ERROR_DAEMON = -32002

RequestId = Union[int, float, str, None]


class ErrorKind(str, Enum):
    """Every failure the endpoint can report."""

    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"
    TOOL_NOT_FOUND = "tool_not_found"
    SECTION_NOT_FOUND = "section_not_found"
    PARSE_ERROR_DAEMON = "parse_error_daemon"


ERROR_CODES = MappingProxyType(
    {
        ErrorKind.PARSE_ERROR: PARSE_ERROR,
        ErrorKind.INVALID_REQUEST: INVALID_REQUEST,
        ErrorKind.METHOD_NOT_FOUND: METHOD_NOT_FOUND,
        ErrorKind.INVALID_PARAMS: INVALID_PARAMS,
        ErrorKind.INTERNAL_ERROR: INTERNAL_ERROR,
        ErrorKind.TOOL_NOT_FOUND: TOOL_NOT_FOUND,
        ErrorKind.SECTION_NOT_FOUND: SECTION_NOT_FOUND,
        ErrorKind.PARSE_ERROR_DAEMON: PARSE_ERROR_DAEMON,
    }
)


class MCPError(Exception):
    """
    A failure that maps onto a JSON-RPC error envelope.

    ``status_code`` is the HTTP status the envelope travels with; application
    errors stay at 200 so clients can tell a failed call from a failed transport.
    ``request_id`` is only consulted for failures raised before the request id
    is known to be valid.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        data: Optional[Any] = None,
        status_code: int = 200,
        request_id: RequestId = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.data = data
        self.status_code = status_code
        self.request_id = request_id

    @property
    def code(self) -> int:
        return ERROR_CODES[self.kind]


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Optional[Any] = None

    @model_serializer(mode="wrap")
    def _omit_missing_data(self, handler):
        payload = handler(self)
        if self.data is None:
            payload.pop("data", None)
        return payload


class JSONRPCRequest(BaseModel):
    """A validated JSON-RPC 2.0 request."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    method: str
    params: Optional[Any] = None


class MCPTextContent(BaseModel):
    """Text content item of a tool result."""

    type: Literal["text"] = "text"
    text: str


class MCPToolResult(BaseModel):
    """Result payload for tools/list and tools/call."""

    content: List[MCPTextContent]


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response message (success)."""

    jsonrpc: Literal["2.0"] = "2.0"
    result: MCPToolResult
    id: RequestId


class JSONRPCErrorResponse(BaseModel):
    """JSON-RPC 2.0 response message (error)."""

    jsonrpc: Literal["2.0"] = "2.0"
    error: JSONRPCError
    id: RequestId


JSONRPCReplyEnvelope = Union[JSONRPCResponse, JSONRPCErrorResponse]


class MCPMethods:
    """MCP method names served by this endpoint."""

    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class JSONRPCHandler:
    """Builders for JSON-RPC reply envelopes."""

    @staticmethod
    def create_text_response(id: RequestId, text: str) -> JSONRPCResponse:
        """Wrap a text payload as a single MCP text content item."""
        result = MCPToolResult(content=[MCPTextContent(text=text)])
        return JSONRPCResponse(id=id, result=result)

    @staticmethod
    def create_error_response(
        id: RequestId, code: int, message: str, data: Optional[Any] = None
    ) -> JSONRPCErrorResponse:
        """Create a JSON-RPC error response."""
        error = JSONRPCError(code=code, message=message, data=data)
        return JSONRPCErrorResponse(id=id, error=error)

    @staticmethod
    def from_error(error: MCPError, id: RequestId) -> JSONRPCErrorResponse:
        """Render an MCPError for the given request id."""
        return JSONRPCHandler.create_error_response(id, error.code, error.message, error.data)

    @staticmethod
    def to_payload(envelope: JSONRPCReplyEnvelope) -> Dict[str, Any]:
        """Serialize an envelope to a JSON-ready dict."""
        return envelope.model_dump(mode="json")
