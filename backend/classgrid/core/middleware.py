from __future__ import annotations

import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestSizeLimitMiddleware:
    """Caps request bodies at `max_bytes` with a 413 in the API error shape.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are counted while buffered, before the route sees them.
    """

    def __init__(self, app: ASGIApp, *, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max(1, max_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            await self._reject(int(declared), scope, receive, send)
            return

        buffered: list[Message] = []
        size = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            size += len(message.get("body", b""))
            if size > self.max_bytes:
                await self._reject(size, scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, size: int, scope: Scope, receive: Receive, send: Send) -> None:
        logger.warning(
            "Rejected %s %s: body of %s bytes exceeds %s",
            scope.get("method"),
            scope.get("path"),
            size,
            self.max_bytes,
        )
        response = JSONResponse(
            status_code=413,
            content={
                "message": f"Request body too large (over {self.max_bytes} bytes)",
                "details": {"maxBytes": self.max_bytes},
            },
        )
        await response(scope, receive, send)
