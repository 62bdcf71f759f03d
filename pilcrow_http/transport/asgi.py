import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional
from urllib.parse import quote

from pilcrow_http.transport.base import HeaderEntries, ResponseWriter
from pilcrow_http.web.core import App
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse

logger = logging.getLogger("pilcrow")

Message = Dict[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]


def request_target(scope: Dict[str, Any]) -> str:
    """Origin-form target (path plus query) of an ASGI http scope."""
    raw_path = scope.get("raw_path")
    if raw_path:
        target = raw_path.decode("latin-1")
    else:
        target = quote(scope.get("path") or "/", safe="/%!$&'()*+,;=:@~")
    query = scope.get("query_string") or b""
    if query:
        target += "?" + query.decode("latin-1")
    return target


class AsgiResponseWriter(ResponseWriter):
    """Queues ASGI messages; ``run`` sends them in order.

    A second head is dropped with a warning and later body writes still go
    out after the first head. Once sending fails every later write is
    dropped.
    """

    def __init__(self) -> None:
        self.head_sent = False
        self.finished = False
        self._queue: "asyncio.Queue[Message]" = asyncio.Queue()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def write_head(self, status: int, headers: HeaderEntries) -> bool:
        if self.finished:
            return False
        if self.head_sent:
            logger.warning("head_already_sent status=%d ignored", status)
            return False
        self.head_sent = True
        raw = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, values in headers
            for value in values
        ]
        self._queue.put_nowait({"type": "http.response.start", "status": status, "headers": raw})
        return True

    def write_body(self, data: bytes) -> None:
        if not data or self.finished:
            return
        self._queue.put_nowait({"type": "http.response.body", "body": bytes(data), "more_body": True})

    def finish(self) -> None:
        if self.finished:
            return
        if not self.head_sent:
            self.write_head(200, [])
        self.finished = True
        self._queue.put_nowait({"type": "http.response.body", "body": b"", "more_body": False})

    async def run(self, send: Send, response: ServerResponse) -> None:
        while True:
            message = await self._queue.get()
            try:
                await send(message)
            except Exception as e:
                logger.debug("send_failed err=%r", e)
                self.finished = True
                while not self._queue.empty():
                    self._queue.get_nowait()
                response.close()
                return
            if message["type"] == "http.response.body" and not message["more_body"]:
                return


async def _receive_loop(receive: Receive, chunks: "asyncio.Queue[Optional[bytes]]", response: ServerResponse) -> None:
    more_body = True
    while True:
        message = await receive()
        kind = message.get("type")
        if kind == "http.request":
            if not more_body:
                continue
            body = message.get("body") or b""
            if body:
                chunks.put_nowait(bytes(body))
            more_body = bool(message.get("more_body", False))
            if not more_body:
                chunks.put_nowait(None)
        elif kind == "http.disconnect":
            if more_body:
                chunks.put_nowait(None)
            response.close()
            return


async def _body(chunks: "asyncio.Queue[Optional[bytes]]") -> AsyncIterator[bytes]:
    while True:
        chunk = await chunks.get()
        if chunk is None:
            return
        yield chunk


class AsgiAdapter:
    """ASGI 3 application serving an ``App``."""

    def __init__(self, app: App) -> None:
        self.app = app

    async def __call__(self, scope: Dict[str, Any], receive: Receive, send: Send) -> None:
        kind = scope.get("type")
        if kind == "lifespan":
            await self._lifespan(receive, send)
            return
        if kind != "http":
            raise RuntimeError(f"unsupported scope type {kind!r}")
        await self._http(scope, receive, send)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message.get("type") == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message.get("type") == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _http(self, scope: Dict[str, Any], receive: Receive, send: Send) -> None:
        method = scope.get("method") or ""
        if not method:
            logger.info("reject method=%r path=%r", method, scope.get("path"))
            await send({"type": "http.response.start", "status": 405, "headers": []})
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return

        chunks: "asyncio.Queue[Optional[bytes]]" = asyncio.Queue()
        writer = AsgiResponseWriter()
        response = ServerResponse(writer)
        request = ServerRequest(method, request_target(scope), _body(chunks))
        for name, value in scope.get("headers") or []:
            request.headers.add(name.decode("latin-1"), value.decode("latin-1"))

        pump = asyncio.create_task(_receive_loop(receive, chunks, response))
        sender = asyncio.create_task(writer.run(send, response))
        try:
            await self.app.handle(request, response)
            writer.finish()
            await sender
        except Exception as e:
            logger.error("handler_exception method=%s path=%s err=%r", method, request.pathname, e)
            raise
        finally:
            pump.cancel()
            sender.cancel()
            await asyncio.gather(pump, sender, return_exceptions=True)
            response.close()


def as_asgi(app: App) -> AsgiAdapter:
    return AsgiAdapter(app)
