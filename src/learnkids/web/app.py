from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from ..core.config import ServerSettings
from ..data.content_store import ContentStore
from ..features.protocol import CatalogResources, LearningTools, ProtocolHandler
from ..features.protocol.dispatcher import Send
from ..features.session import SessionRegistry, SseTransport, create_transport_router

__all__ = ["app", "create_app", "main"]

logger = logging.getLogger(__name__)


def create_app(
    settings: ServerSettings | None = None,
    *,
    store: ContentStore | None = None,
    registry: SessionRegistry | None = None,
) -> FastAPI:
    if settings is None:
        settings = ServerSettings.from_env()
    if store is None:
        store = ContentStore(settings.data_dir)
    # empty registries are falsy
    if registry is None:
        registry = SessionRegistry()

    tools = LearningTools(store, max_submission_length=settings.max_submission_length)
    resources = CatalogResources(store)
    server_info = {"name": settings.app_name, "version": settings.app_version}

    def handler_factory(send: Send) -> ProtocolHandler:
        return ProtocolHandler(tools, resources, send, server_info)

    transport = SseTransport(
        registry,
        handler_factory,
        stream_path=settings.stream_path,
        message_path=settings.message_path,
        idle_seconds=settings.session_idle_seconds,
        keepalive_seconds=settings.keepalive_seconds,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            courses = store.courses()
        except (OSError, ValueError):
            logger.exception("failed to preload course catalog", extra={"data_dir": str(store.data_dir)})
        else:
            logger.info(
                "server ready",
                extra={"courses": len(courses), "stream_path": settings.stream_path},
            )
        yield

    app = FastAPI(title="LearnKids MCP Server", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.transport = transport
    app.include_router(create_transport_router(transport))

    @app.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "version": settings.app_version,
            "transport": "sse",
            "sessions": len(registry),
            "pendingSessions": len(registry.temporary_keys()),
        }

    @app.get("/api")
    def api_info() -> dict[str, object]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "stream": settings.stream_path,
                "messages": settings.message_path,
                "health": "/health",
            },
            "tools": tools.names(),
            "resources": resources.uris(),
        }

    def _custom_openapi() -> dict[str, object]:  # pragma: no cover - exercised via docs
        if app.openapi_schema:
            return app.openapi_schema
        app.openapi_schema = get_openapi(
            title=app.title,
            version=settings.app_version,
            description="JSON-RPC over Server-Sent Events for the LearnKids course tools.",
            routes=app.routes,
        )
        return app.openapi_schema

    app.openapi = _custom_openapi  # type: ignore[method-assign]
    return app


app = create_app()


def main() -> None:  # pragma: no cover - runner
    import uvicorn

    settings = ServerSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":  # pragma: no cover
    main()
