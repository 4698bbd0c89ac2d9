from __future__ import annotations

from typing import Any, Final

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "SESSION_NOT_FOUND",
    "ProtocolError",
    "SessionError",
    "jsonrpc_error",
    "jsonrpc_result",
    "request_id_of",
]

INVALID_REQUEST: Final = -32600
METHOD_NOT_FOUND: Final = -32601
INVALID_PARAMS: Final = -32602
INTERNAL_ERROR: Final = -32603
SESSION_NOT_FOUND: Final = -32001

RequestId = str | int | None


class ProtocolError(Exception):
    """A failure that is reported to the peer as a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_response(self, request_id: RequestId) -> dict[str, Any]:
        return jsonrpc_error(request_id, self.code, self.message, self.data)


class SessionError(ProtocolError):
    def __init__(self, session_id: str | None) -> None:
        super().__init__(SESSION_NOT_FOUND, "Session not found")
        self.session_id = session_id


def jsonrpc_result(request_id: RequestId, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def jsonrpc_error(
    request_id: RequestId,
    code: int,
    message: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": int(code), "message": str(message)}
    if data:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def request_id_of(message: Any) -> RequestId:
    """Best-effort ``id`` of a raw envelope, for errors raised before validation."""

    if isinstance(message, dict):
        candidate = message.get("id")
        if isinstance(candidate, (str, int)) and not isinstance(candidate, bool):
            return candidate
    return None
