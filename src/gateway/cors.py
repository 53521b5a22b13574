"""
CORS handling for the gateway.

Preflight requests are answered directly with 204 and an empty body. Every
other response gets the same allow-origin/methods/headers added without
touching its status or body.
"""

from typing import Awaitable, Callable, Dict

from fastapi import Request, Response

from common.logging import get_logger

logger = get_logger(__name__)

PREFLIGHT_METHOD = "OPTIONS"
MAX_AGE_SECONDS = 86400


class CorsLayer:
    """Adds cross-origin headers to every response and serves preflight."""

    def __init__(self, write_method: str = "POST"):
        self.headers: Dict[str, str] = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": f"{write_method}, {PREFLIGHT_METHOD}",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
        }

    def preflight_response(self) -> Response:
        return Response(status_code=204, headers=self.headers)

    def apply(self, response: Response) -> Response:
        response.headers.update(self.headers)
        return response

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """HTTP middleware entry point."""
        if request.method == PREFLIGHT_METHOD:
            logger.debug(event="cors_preflight", path=request.url.path)
            return self.preflight_response()
        return self.apply(await call_next(request))
