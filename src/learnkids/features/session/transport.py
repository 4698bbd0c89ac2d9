"""Server-Sent Events transport.

``GET <stream_path>`` opens a push stream and registers it as a temporary
session. The first event tells the client where to post::

    event: endpoint
    data: /mcp/messages?sessionId=3f2a...

``POST <message_path>?sessionId=<id>`` carries one JSON-RPC envelope. The id
is looked up, and if unknown the newest pending stream is bound to it. The
response is not written to the POST: it is queued on the session outbox and
relayed by the stream as an ``event: message``. The POST itself always
answers HTTP 200.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from sse_starlette.sse import EventSourceResponse

from ..protocol.dispatcher import ProtocolHandler, Send
from ..protocol.errors import INTERNAL_ERROR, SessionError, jsonrpc_error, request_id_of
from .registry import Session, SessionRegistry

__all__ = ["CORS_HEADERS", "SseTransport", "create_transport_router"]

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "content-type",
}

HandlerFactory = Callable[[Send], ProtocolHandler]


class SseTransport:
    def __init__(
        self,
        registry: SessionRegistry,
        handler_factory: HandlerFactory,
        *,
        stream_path: str = "/mcp",
        message_path: str = "/mcp/messages",
        idle_seconds: float = 3600.0,
        keepalive_seconds: float = 15.0,
    ) -> None:
        self.registry = registry
        self.handler_factory = handler_factory
        self.stream_path = stream_path
        self.message_path = message_path
        self.idle_seconds = idle_seconds
        self.keepalive_seconds = keepalive_seconds

    # ------------------------------------------------------------------ streams
    def _attach_handler(self, session: Session) -> ProtocolHandler:
        if session.handler is None:
            session.handler = self.handler_factory(session.outbox.put_nowait)
        return session.handler

    def endpoint_for(self, suggested_id: str) -> str:
        return f"{self.message_path}?sessionId={suggested_id}"

    def open_session(self) -> tuple[Session, str]:
        """Register a pending session and return it with its endpoint URL.

        The suggested id is not a registry key: the first POST carrying it
        goes through promotion like any other client-chosen id.
        """

        session = self.registry.open_temporary()
        self._attach_handler(session)
        endpoint = self.endpoint_for(uuid.uuid4().hex)
        logger.info("opened stream", extra={"pending_key": session.key})
        return session, endpoint

    async def event_stream(self, session: Session, endpoint: str) -> AsyncIterator[dict[str, str]]:
        clock = self.registry.clock
        try:
            yield {"event": "endpoint", "data": endpoint}
            while True:
                last_seen = session.last_seen_at if session.last_seen_at is not None else clock()
                remaining = self.idle_seconds - (clock() - last_seen)
                if remaining <= 0:
                    logger.info("closing idle stream", extra={"session_id": session.key})
                    return
                try:
                    payload = await asyncio.wait_for(session.outbox.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue
                yield {"event": "message", "data": json.dumps(payload, ensure_ascii=False)}
        finally:
            if self.registry.remove_session(session):
                logger.info("closed stream", extra={"session_id": session.key})

    def open_stream(self) -> EventSourceResponse:
        session, endpoint = self.open_session()
        return EventSourceResponse(
            self.event_stream(session, endpoint),
            ping=self.keepalive_seconds,
            headers=dict(CORS_HEADERS),
        )

    # ------------------------------------------------------------------ inbound
    def resolve_session(self, session_id: str | None) -> Session | None:
        session = self.registry.get(session_id)
        if session is not None:
            return session
        return self.registry.promote_session(session_id).session

    def _json(self, payload: dict[str, Any]) -> JSONResponse:
        return JSONResponse(payload, status_code=200, headers=dict(CORS_HEADERS))

    def deliver(self, session_id: str | None, message: Any) -> dict[str, Any]:
        """Route a parsed envelope to its session; returns the POST body."""

        session = self.resolve_session(session_id)
        if session is None:
            logger.warning("session not found", extra={"session_id": session_id})
            return SessionError(session_id).to_response(request_id_of(message))
        self.registry.touch_session(session)
        self._attach_handler(session).handle(message)
        return {"received": True}

    async def post_message(self, request: Request) -> JSONResponse:
        session_id = request.query_params.get("sessionId")
        body = await request.body()
        try:
            message = json.loads(body)
        except ValueError as exc:
            logger.info("rejected unparseable message", extra={"session_id": session_id})
            return self._json(jsonrpc_error(None, INTERNAL_ERROR, f"Internal error: {exc}"))
        return self._json(self.deliver(session_id, message))

    def preflight(self) -> Response:
        return Response(status_code=204, headers=dict(CORS_HEADERS))


def create_transport_router(transport: SseTransport) -> APIRouter:
    router = APIRouter(tags=["mcp"])

    @router.get(transport.stream_path)
    async def open_stream() -> Response:
        return transport.open_stream()

    @router.options(transport.stream_path)
    async def stream_preflight() -> Response:
        return transport.preflight()

    @router.post(transport.message_path)
    async def post_message(request: Request) -> Response:
        return await transport.post_message(request)

    @router.options(transport.message_path)
    async def message_preflight() -> Response:
        return transport.preflight()

    return router
