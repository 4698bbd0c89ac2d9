"""Per-session JSON-RPC method dispatch.

A :class:`ProtocolHandler` is created for every push stream. It never talks
to the network itself: responses are handed to ``send``, which the transport
wires to the session outbox. ``handle`` never raises; every failure is turned
into a JSON-RPC error object (or dropped, for notifications).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from .errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ProtocolError,
    jsonrpc_error,
    jsonrpc_result,
    request_id_of,
)
from .schemas import JsonRpcRequest, ResourceReadParams, ToolCallParams
from .tools import CatalogResources, LearningTools

__all__ = ["PROTOCOL_VERSION", "ProtocolHandler"]

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

Send = Callable[[dict[str, Any]], None]
Method = Callable[[dict[str, Any]], Any]


def _parse_params(model: type[BaseModel], params: dict[str, Any]) -> Any:
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()})
        raise ProtocolError(INVALID_PARAMS, "Invalid params", {"fields": fields}) from exc


class ProtocolHandler:
    def __init__(
        self,
        tools: LearningTools,
        resources: CatalogResources,
        send: Send,
        server_info: Mapping[str, str],
    ) -> None:
        self.tools = tools
        self.resources = resources
        self.send = send
        self.server_info = dict(server_info)
        self._methods: dict[str, Method] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    def handle(self, message: Any) -> dict[str, Any] | None:
        """Dispatch ``message`` and push the response (if any) through ``send``."""

        response = self.dispatch(message)
        if response is not None:
            self.send(response)
        return response

    def dispatch(self, message: Any) -> dict[str, Any] | None:
        if not isinstance(message, Mapping):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError:
            logger.info("rejected malformed envelope")
            return jsonrpc_error(request_id_of(message), INVALID_REQUEST, "Invalid Request")

        method = self._methods.get(request.method)
        if method is None:
            if request.is_notification:
                logger.debug("ignored notification", extra={"method": request.method})
                return None
            return jsonrpc_error(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")

        try:
            result = method(request.params)
        except ProtocolError as exc:
            response = exc.to_response(request.id)
        except Exception as exc:
            logger.exception("method failed", extra={"method": request.method})
            response = jsonrpc_error(request.id, INTERNAL_ERROR, f"Internal error: {exc}")
        else:
            response = jsonrpc_result(request.id, result)

        if request.is_notification:
            return None
        return response

    # ---------------------------------------------------------------- methods
    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        logger.info("session initialized", extra={"client_protocol": requested})
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": dict(self.server_info),
        }

    def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [descriptor.to_dict() for descriptor in self.tools.descriptors()]}

    def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        call = _parse_params(ToolCallParams, params)
        return self.tools.call(call.name, call.arguments).to_dict()

    def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [descriptor.to_dict() for descriptor in self.resources.descriptors()]}

    def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        read = _parse_params(ResourceReadParams, params)
        return {"contents": [content.to_dict() for content in self.resources.read(read.uri)]}
