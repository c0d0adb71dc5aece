"""FastAPI application for project storage."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response

from project_storage import __version__
from project_storage.api import guarded, router
from project_storage.config import Settings
from project_storage.limits import BodySizeLimitMiddleware
from project_storage.proxy import PROXY_METHODS, FallbackProxy
from project_storage.storage import ProjectStorage

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    storage: ProjectStorage | None = None,
    fallback_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application around one ``ProjectStorage`` instance.

    Args:
        settings: Configuration; read from the environment when omitted.
        storage: Store to serve; built from ``settings`` when omitted.
        fallback_transport: Transport for the fallback proxy client (tests).
    """
    settings = settings or Settings()
    storage = storage or ProjectStorage(settings.storage_dir, max_size=settings.max_upload_bytes)
    proxy = (
        FallbackProxy(settings.fallback, timeout=settings.fallback_timeout, transport=fallback_transport)
        if settings.fallback
        else None
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan handler."""
        logger.info("Local .sb3 project storage enabled at /api/projects (%s)", storage.storage_dir)
        if proxy is not None:
            logger.info("Proxy host: %s", proxy.upstream)
        yield
        if proxy is not None:
            await proxy.aclose()

    app = FastAPI(
        title="project-storage",
        description="Local storage for .sb3 project archives",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_upload_bytes)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    if proxy is not None:
        # Registered last so every local route takes precedence
        @app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
        @guarded
        async def fallback(request: Request) -> Response:
            return await proxy.forward(request)

    return app
