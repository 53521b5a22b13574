"""
JSON-RPC envelope validation.

Checks run in a fixed order and stop at the first failure: transport method,
JSON well-formedness, then the ``jsonrpc``, ``method`` and ``id`` fields.
"""

import json
import math
from typing import Any, Optional, Union

from .jsonrpc import JSONRPC_VERSION, ErrorKind, JSONRPCRequest, MCPError, RequestId

ALLOWED_METHOD = "POST"


def _is_valid_id(value: Any) -> bool:
    # bool is an int subclass but not a JSON-RPC id
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        # 1e400 decodes to inf and cannot be serialized back
        return math.isfinite(value)
    return value is None or isinstance(value, (int, str))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _echo_id(body: dict) -> RequestId:
    request_id = body.get("id")
    return request_id if _is_valid_id(request_id) else None


class RequestValidator:
    """Turns a raw HTTP request into a validated JSONRPCRequest or raises MCPError."""

    def __init__(self, allowed_method: str = ALLOWED_METHOD):
        self.allowed_method = allowed_method.upper()

    def check_transport_method(self, http_method: str) -> None:
        """Reject anything but the write method with a 405."""
        if http_method.upper() != self.allowed_method:
            raise MCPError(
                ErrorKind.INVALID_REQUEST,
                f"Only {self.allowed_method} requests are supported",
                status_code=405,
            )

    def parse_body(self, raw: Union[bytes, str]) -> Any:
        """Decode the body as JSON; the id is unknown on failure."""
        try:
            return json.loads(raw, parse_constant=_reject_constant)
        except ValueError:
            raise MCPError(ErrorKind.PARSE_ERROR, "Invalid JSON", status_code=400)

    def validate_envelope(self, body: Any) -> JSONRPCRequest:
        """Check the envelope fields of an already decoded body."""
        if not isinstance(body, dict):
            raise MCPError(
                ErrorKind.INVALID_REQUEST,
                "Invalid Request: expected a JSON object",
                status_code=400,
            )

        if body.get("jsonrpc") != JSONRPC_VERSION:
            raise MCPError(
                ErrorKind.INVALID_REQUEST,
                'Invalid Request: jsonrpc must be "2.0"',
                status_code=400,
                request_id=_echo_id(body),
            )

        method = body.get("method")
        if not isinstance(method, str) or not method:
            raise MCPError(
                ErrorKind.INVALID_REQUEST,
                "Invalid Request: method required",
                status_code=400,
                request_id=_echo_id(body),
            )

        # An explicit null id counts as present
        if "id" not in body:
            raise MCPError(
                ErrorKind.INVALID_REQUEST, "Invalid Request: id required", status_code=400
            )

        if not _is_valid_id(body["id"]):
            raise MCPError(
                ErrorKind.INVALID_REQUEST,
                "Invalid Request: id must be a string, number, or null",
                status_code=400,
            )

        return JSONRPCRequest(id=body["id"], method=method, params=body.get("params"))

    def validate(self, http_method: str, raw: Optional[Union[bytes, str]]) -> JSONRPCRequest:
        """Run every check in order."""
        self.check_transport_method(http_method)
        body = self.parse_body(raw or b"")
        return self.validate_envelope(body)
