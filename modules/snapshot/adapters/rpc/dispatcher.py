from __future__ import annotations

import logging

from pydantic import ValidationError

from modules.snapshot.adapters.rpc import resources, tools
from modules.snapshot.adapters.schemas import (
    CallToolParamsV1,
    JsonRpcRequestV1,
    ReadResourceParamsV1,
)
from modules.snapshot.application.service import SnapshotService
from modules.snapshot.domain.errors import (
    DimensionMismatchError,
    DownstreamError,
    MalformedInputError,
    NotFoundError,
    SightlineError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
NOT_FOUND = -32004
DIMENSION_MISMATCH = -32010
DOWNSTREAM_FAILURE = -32020

_ERROR_CODES: list[tuple[type[SightlineError], int]] = [
    (NotFoundError, NOT_FOUND),
    (DimensionMismatchError, DIMENSION_MISMATCH),
    (MalformedInputError, INVALID_PARAMS),
    (UnsupportedOperationError, METHOD_NOT_FOUND),
    (DownstreamError, DOWNSTREAM_FAILURE),
]

# MCP-style slash names are accepted alongside the underscore ones.
METHOD_ALIASES = {
    "tools/list": "list_tools",
    "tools/call": "call_tool",
    "resources/list": "list_resources",
    "resources/read": "read_resource",
}


def error_code_for(exc: SightlineError) -> int:
    for error_type, code in _ERROR_CODES:
        if isinstance(exc, error_type):
            return code
    return INTERNAL_ERROR


def error_response(request_id: object, code: int, message: str, data: dict | None = None) -> dict:
    error: dict = {"code": code, "message": message}
    if data:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def parse_error_response(detail: str = "Parse error") -> dict:
    return error_response(None, PARSE_ERROR, detail)


def notification(method: str, params: dict) -> dict:
    return {"jsonrpc": "2.0", "method": method, "params": params}


class JsonRpcDispatcher:
    """Routes decoded JSON-RPC messages to tool and resource handlers.

    Every transport hands its decoded message to `handle`, so HTTP and
    WebSocket callers get the same envelope for the same request.
    """

    def __init__(self, service: SnapshotService) -> None:
        self.service = service
        self._methods = {
            "list_tools": self._list_tools,
            "call_tool": self._call_tool,
            "list_resources": self._list_resources,
            "read_resource": self._read_resource,
        }

    def handle(self, message: object) -> dict:
        request_id = message.get("id") if isinstance(message, dict) else None
        try:
            request = JsonRpcRequestV1.model_validate(message)
        except ValidationError:
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        method_name = METHOD_ALIASES.get(request.method, request.method)
        method = self._methods.get(method_name)
        if method is None:
            return error_response(
                request.id, METHOD_NOT_FOUND, f"Unknown method: {request.method}"
            )
        if isinstance(request.params, list):
            return error_response(
                request.id, INVALID_PARAMS, "Invalid params: expected an object, got an array"
            )

        try:
            result = method(request.params)
        except SightlineError as exc:
            code = error_code_for(exc)
            logger.info("rpc %s failed: %s (%s)", method_name, exc, exc.code)
            return error_response(request.id, code, str(exc), {"type": exc.code})
        except Exception:
            logger.exception("rpc %s crashed", method_name)
            return error_response(request.id, INTERNAL_ERROR, "Internal error")
        return {"jsonrpc": "2.0", "id": request.id, "result": result}

    def _list_tools(self, _params: dict) -> dict:
        return tools.list_tools()

    def _call_tool(self, params: dict) -> dict:
        call = tools.parse_params(CallToolParamsV1, params)
        return tools.call_tool(self.service, call.name, call.arguments)

    def _list_resources(self, _params: dict) -> dict:
        return resources.list_resources()

    def _read_resource(self, params: dict) -> dict:
        read = tools.parse_params(ReadResourceParamsV1, params)
        return resources.read_resource(self.service, read.uri)
