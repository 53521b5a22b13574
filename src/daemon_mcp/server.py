"""
Daemon MCP JSON-RPC server.

Sequences one inbound call: method check, body parse, envelope validation,
upstream fetch, section parse, method routing and tool dispatch. Nothing is
shared between calls except the immutable tool catalog, so requests may run
concurrently without locking.
"""

import json
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from common.logging import TimedLogger, get_logger
from .dispatcher import ToolDispatcher
from .document import DocumentFetcher
from .jsonrpc import (
    INTERNAL_ERROR,
    ErrorKind,
    JSONRPCHandler,
    JSONRPCReplyEnvelope,
    JSONRPCRequest,
    MCPError,
    MCPMethods,
    RequestId,
)
from .sections import parse_sections
from .tool_catalog import list_tool_descriptors
from .validator import RequestValidator

logger = get_logger(__name__)

# Verbs routed to the endpoint; OPTIONS is answered by the CORS layer
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


@dataclass
class MCPReply:
    """A reply envelope and the HTTP status it is sent with."""

    status_code: int
    envelope: JSONRPCReplyEnvelope

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            content=JSONRPCHandler.to_payload(self.envelope), status_code=self.status_code
        )


class DaemonMCPServer:
    """
    JSON-RPC 2.0 server exposing the daemon document as MCP tools.

    Only ``tools/list`` and ``tools/call`` are served. Protocol and upstream
    failures change the HTTP status; tool-level failures stay at 200 with the
    detail in the reply's ``error`` field.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        endpoint_path: str = "/",
        validator: Optional[RequestValidator] = None,
        dispatcher: Optional[ToolDispatcher] = None,
    ):
        self.fetcher = fetcher
        self.endpoint_path = endpoint_path
        self.validator = validator or RequestValidator()
        self.dispatcher = dispatcher or ToolDispatcher()

        self.router = APIRouter(tags=["Daemon MCP"])
        self._setup_routes()

        logger.info(
            event="daemon_mcp_server_initialized",
            endpoint=endpoint_path,
            source_url=fetcher.source_url,
        )

    def _setup_routes(self) -> None:
        """Setup the JSON-RPC route."""

        @self.router.api_route(self.endpoint_path, methods=ROUTED_METHODS)
        async def handle_jsonrpc(request: Request) -> JSONResponse:
            """Main JSON-RPC endpoint."""
            with TimedLogger(
                logger, "jsonrpc_request_completed", http_method=request.method
            ) as timer:
                raw = b""
                if request.method == self.validator.allowed_method:
                    raw = await request.body()
                reply = await self.handle(request.method, raw)
                response = self.render(reply)
                timer.context.update(status_code=response.status_code, id=reply.envelope.id)
            return response

    def get_router(self) -> APIRouter:
        """Get the FastAPI router for the JSON-RPC endpoint."""
        return self.router

    async def handle(self, http_method: str, raw: Union[bytes, str]) -> MCPReply:
        """
        Process one inbound call and build its reply.

        Any fault not already mapped to a JSON-RPC error is reported as
        INTERNAL_ERROR with HTTP 500 and a null id.
        """
        try:
            try:
                request = self.validator.validate(http_method, raw)
            except MCPError as e:
                logger.info(
                    event="jsonrpc_request_rejected",
                    code=e.code,
                    reason=e.message,
                    status_code=e.status_code,
                )
                return self._error_reply(e, e.request_id)

            return await self._handle_request(request)

        except Exception as e:
            return self._internal_error_reply(e)

    def render(self, reply: MCPReply) -> JSONResponse:
        """Serialize a reply, falling back to INTERNAL_ERROR if that fails."""
        try:
            return reply.to_response()
        except Exception as e:
            return self._internal_error_reply(e).to_response()

    async def _handle_request(self, request: JSONRPCRequest) -> MCPReply:
        """Fetch, parse and route a validated request."""
        logger.debug(event="jsonrpc_request", method=request.method, id=request.id)

        try:
            document = await self.fetcher.fetch()
            sections = self._parse_document(document)

            if request.method == MCPMethods.TOOLS_LIST:
                text = json.dumps({"tools": list_tool_descriptors()})
            elif request.method == MCPMethods.TOOLS_CALL:
                text = self._handle_tools_call(request, sections)
            else:
                raise MCPError(
                    ErrorKind.METHOD_NOT_FOUND,
                    f"Method not found: {request.method}",
                    status_code=404,
                )

        except MCPError as e:
            logger.info(
                event="jsonrpc_error_returned",
                method=request.method,
                id=request.id,
                code=e.code,
                reason=e.message,
                status_code=e.status_code,
            )
            return self._error_reply(e, request.id)

        return MCPReply(status_code=200, envelope=JSONRPCHandler.create_text_response(request.id, text))

    def _parse_document(self, document: str) -> dict:
        try:
            return parse_sections(document)
        except Exception as e:
            raise MCPError(
                ErrorKind.PARSE_ERROR_DAEMON,
                f"Failed to parse daemon.md: {e}",
                status_code=500,
            )

    def _handle_tools_call(self, request: JSONRPCRequest, sections: dict) -> str:
        params = request.params if isinstance(request.params, dict) else {}
        tool_name = params.get("name")
        if not tool_name:
            raise MCPError(
                ErrorKind.INVALID_PARAMS, "Invalid params: tool name required", status_code=400
            )

        text = self.dispatcher.dispatch(tool_name, params.get("arguments") or {}, sections)
        logger.info(event="tool_dispatched", tool_name=tool_name, id=request.id)
        return text

    @staticmethod
    def _internal_error_reply(error: Exception) -> MCPReply:
        logger.error(
            event="jsonrpc_handler_error", error=str(error), error_type=type(error).__name__
        )
        envelope = JSONRPCHandler.create_error_response(
            None, INTERNAL_ERROR, f"Internal server error: {error}"
        )
        return MCPReply(status_code=500, envelope=envelope)

    @staticmethod
    def _error_reply(error: MCPError, request_id: RequestId) -> MCPReply:
        return MCPReply(
            status_code=error.status_code, envelope=JSONRPCHandler.from_error(error, request_id)
        )
