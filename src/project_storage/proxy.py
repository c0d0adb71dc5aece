"""Fallback proxy for requests no local route handles.

When a fallback host is configured every unmatched request is forwarded to
it unchanged (method, path, query, headers, body) and the upstream response
is relayed back.
"""

from __future__ import annotations

import logging
from typing import Final

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Connection-scoped headers (RFC 9110 §7.6.1) are never forwarded
HOP_BY_HOP_HEADERS: Final[frozenset[str]] = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# httpx decodes the body, so length and encoding no longer match upstream's
_STRIPPED_RESPONSE_HEADERS: Final[frozenset[str]] = HOP_BY_HOP_HEADERS | {
    "content-length",
    "content-encoding",
}

PROXY_METHODS: Final[list[str]] = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class FallbackProxy:
    """Forwards requests to ``upstream`` with a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        upstream: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.upstream = upstream.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.upstream,
            timeout=timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def forward(self, request: Request) -> Response:
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"

        headers = [
            (name, value)
            for name, value in request.headers.items()
            if name not in HOP_BY_HOP_HEADERS and name not in ("host", "content-length")
        ]
        body = await request.body()

        try:
            upstream = await self.client.request(request.method, target, headers=headers, content=body)
        except httpx.HTTPError as e:
            logger.warning("Fallback request %s %s failed: %s", request.method, target, e)
            return JSONResponse(
                {"success": False, "error": f"Fallback host unavailable: {e}"},
                status_code=502,
            )

        logger.debug("Proxied %s %s -> %d", request.method, target, upstream.status_code)
        response = Response(content=upstream.content, status_code=upstream.status_code)
        for name, value in upstream.headers.multi_items():
            if name.lower() not in _STRIPPED_RESPONSE_HEADERS:
                response.headers.append(name, value)
        return response

    async def aclose(self) -> None:
        await self.client.aclose()
