"""Request body size limit.

A declared ``Content-Length`` over the limit is answered with 413 before the
application sees the request. Bodies without a declared length are counted
as they arrive, and ``PayloadTooLargeError`` is raised from ``receive`` as
soon as the limit is passed, so an oversized upload is never fully buffered.
"""

import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from project_storage.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, *, max_body_size: int, path_prefix: str = "/api") -> None:
        self.app = app
        self.max_body_size = max_body_size
        self.path_prefix = path_prefix.rstrip("/")

    def _applies_to(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(f"{self.path_prefix}/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._applies_to(scope["path"]):
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_size:
            logger.warning(
                "Rejected %s %s: Content-Length %s exceeds %d bytes",
                scope["method"],
                scope["path"],
                declared,
                self.max_body_size,
            )
            error = PayloadTooLargeError(self.max_body_size)
            response = JSONResponse({"success": False, "error": str(error)}, status_code=413)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise PayloadTooLargeError(self.max_body_size)
            return message

        await self.app(scope, limited_receive, send)
