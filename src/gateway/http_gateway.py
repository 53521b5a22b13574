"""
HTTP gateway using FastAPI.

Wires the CORS layer, the daemon MCP JSON-RPC endpoint and a health check
into one application.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from common.config import Config
from common.logging import get_logger
from daemon_mcp.document import DocumentFetcher
from daemon_mcp.server import DaemonMCPServer
from daemon_mcp.tool_catalog import TOOLS
from gateway.cors import CorsLayer

logger = get_logger(__name__)


class HTTPGateway:
    """FastAPI gateway hosting the daemon MCP endpoint."""

    def __init__(self, config: Config, fetcher: Optional[DocumentFetcher] = None):
        self.config = config
        self.app = FastAPI(title="Daemon MCP", version="0.1.0")

        self.fetcher = fetcher or DocumentFetcher(config.daemon.source_url)
        self.mcp_server = DaemonMCPServer(
            self.fetcher, endpoint_path=config.gateway.endpoint_path
        )
        self.cors = CorsLayer(write_method=self.mcp_server.validator.allowed_method)

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup FastAPI routes and middleware."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint. Does not contact the upstream."""
            return JSONResponse(
                {
                    "status": "healthy",
                    "tools_count": len(TOOLS),
                    "source_url": self.fetcher.source_url,
                }
            )

        self.app.include_router(self.mcp_server.get_router())
        self.app.middleware("http")(self.cors.dispatch)


def create_gateway_app(config: Config, fetcher: Optional[DocumentFetcher] = None) -> FastAPI:
    """Create and configure the FastAPI gateway application."""
    gateway = HTTPGateway(config, fetcher)
    logger.info(
        event="gateway_app_created",
        endpoint=config.gateway.endpoint_path,
        source_url=gateway.fetcher.source_url,
    )
    return gateway.app
