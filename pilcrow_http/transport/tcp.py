import asyncio
import logging
from contextlib import suppress
from typing import AsyncIterator, Optional

import h11

from pilcrow_http.errors import HeadAlreadySentError
from pilcrow_http.transport.base import HeaderEntries, ResponseWriter, TransportServer
from pilcrow_http.web.core import App
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse

logger = logging.getLogger("pilcrow")

READ_SIZE = 64 * 1024
# pump pauses once this much unread input sits in h11's buffer
HIGH_WATER = 1 << 20
ACCEPTED_TARGETS = ("/", "http://", "https://")


def is_acceptable(method: str, target: str) -> bool:
    if not method or not target:
        return False
    return target.startswith(ACCEPTED_TARGETS)


class _Channel:
    """One socket: an h11 server connection fed by a background read pump.

    The pump keeps reading while a handler runs, so a client hanging up is
    seen even when nobody is consuming the request body.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.conn = h11.Connection(h11.SERVER)
        self.reader = reader
        self.writer = writer
        self.response: Optional[ServerResponse] = None
        self.eof = False
        self._readable = asyncio.Event()
        self._drained = asyncio.Event()
        self._drained.set()
        self._pump: Optional[asyncio.Task] = None

    def start(self) -> None:
        self._pump = asyncio.create_task(self._read_loop())

    async def _read_loop(self) -> None:
        try:
            while True:
                await self._drained.wait()
                data = await self.reader.read(READ_SIZE)
                self.conn.receive_data(data)
                self._readable.set()
                if not data:
                    break
                if len(self.conn.trailing_data[0]) > HIGH_WATER:
                    self._drained.clear()
        except (ConnectionError, OSError) as e:
            logger.debug("read_failed err=%r", e)
        finally:
            self.eof = True
            self._readable.set()
            if self.response is not None:
                self.response.close()

    async def next_event(self):
        while True:
            event = self.conn.next_event()
            if event is not h11.NEED_DATA:
                return event
            if self.eof:
                raise ConnectionError("closed")
            self._readable.clear()
            self._drained.set()
            await self._readable.wait()

    async def body(self) -> AsyncIterator[bytes]:
        while True:
            event = await self.next_event()
            if isinstance(event, h11.Data):
                yield bytes(event.data)
            elif isinstance(event, (h11.EndOfMessage, h11.ConnectionClosed)):
                return

    def send(self, event) -> None:
        data = self.conn.send(event)
        if data and not self.writer.is_closing():
            self.writer.write(data)

    async def drain(self) -> None:
        if not self.writer.is_closing():
            await self.writer.drain()

    async def close(self) -> None:
        if self._pump is not None:
            self._pump.cancel()
            with suppress(asyncio.CancelledError):
                await self._pump
        if self.response is not None:
            self.response.close()
        self.writer.close()
        with suppress(ConnectionError, OSError):
            await self.writer.wait_closed()


class TcpResponseWriter(ResponseWriter):
    """Writes straight into the socket; a second head raises."""

    def __init__(self, channel: _Channel, discard_body: bool = False) -> None:
        self.channel = channel
        self.discard_body = discard_body
        self.head_sent = False

    def write_head(self, status: int, headers: HeaderEntries) -> bool:
        if self.head_sent:
            raise HeadAlreadySentError(f"head already sent, refusing status {status}")
        flat = [(name, value) for name, values in headers for value in values]
        self.channel.send(h11.Response(status_code=status, headers=flat))
        self.head_sent = True
        return True

    def write_body(self, data: bytes) -> None:
        # responses to HEAD carry no body on the wire
        if not data or self.discard_body:
            return
        self.channel.send(h11.Data(data=data))


class HttpTcpServer(TransportServer):
    def __init__(self, app: App, host: str = "0.0.0.0", port: int = 8000) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.server: Optional[asyncio.base_events.Server] = None

    async def start(self) -> None:
        self.server = await asyncio.start_server(self._handle_connection, self.host, self.port)
        # port 0 binds an ephemeral port
        self.port = self.server.sockets[0].getsockname()[1]
        logger.info("listening on %s:%d", self.host, self.port)

    async def serve_forever(self) -> None:
        if self.server is None:
            await self.start()
        async with self.server:
            await self.server.serve_forever()

    async def close(self) -> None:
        if self.server is None:
            return
        self.server.close()
        await self.server.wait_closed()
        self.server = None

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        logger.debug("conn addr=%s", peer)
        channel = _Channel(reader, writer)
        channel.start()
        try:
            while True:
                event = await channel.next_event()
                if isinstance(event, h11.ConnectionClosed):
                    break
                if not isinstance(event, h11.Request):
                    continue
                if not await self._serve_request(channel, event):
                    break
                channel.conn.start_next_cycle()
        except h11.RemoteProtocolError as e:
            logger.warning("bad_request addr=%s err=%r", peer, e)
            await self._send_bare(channel, e.error_status_hint)
        except (ConnectionError, OSError, h11.LocalProtocolError) as e:
            logger.debug("conn_lost addr=%s err=%r", peer, e)
        finally:
            await channel.close()
            logger.debug("conn_closed addr=%s", peer)

    async def _serve_request(self, channel: _Channel, event: h11.Request) -> bool:
        method = event.method.decode("ascii", errors="replace")
        target = event.target.decode("ascii", errors="replace")
        if not is_acceptable(method, target):
            logger.info("reject method=%s target=%s", method, target)
            await self._send_bare(channel, 405)
            return False

        request = ServerRequest(method, target, channel.body())
        for name, value in event.headers:
            request.headers.add(name.decode("latin-1"), value.decode("latin-1"))
        writer = TcpResponseWriter(channel, discard_body=method == "HEAD")
        response = ServerResponse(writer)
        channel.response = response
        if channel.eof:
            response.close()

        try:
            await self.app.handle(request, response)
        except Exception as e:
            logger.error("handler_exception method=%s path=%s err=%r", method, request.pathname, e, exc_info=True)
            if writer.head_sent or channel.conn.our_state is not h11.SEND_RESPONSE:
                return False
            writer.write_head(500, [("content-length", ["0"])])

        if not writer.head_sent:
            writer.write_head(200, [])
        channel.send(h11.EndOfMessage())
        await channel.drain()
        response.close()
        channel.response = None
        # unread request body has to be consumed before the next cycle
        if channel.conn.their_state is h11.SEND_BODY:
            async for _ in channel.body():
                pass
        return channel.conn.our_state is h11.DONE and channel.conn.their_state is h11.DONE

    @staticmethod
    async def _send_bare(channel: _Channel, status: int) -> None:
        if channel.conn.our_state not in (h11.IDLE, h11.SEND_RESPONSE):
            return
        try:
            channel.send(h11.Response(status_code=status, headers=[("content-length", "0"), ("connection", "close")]))
            channel.send(h11.EndOfMessage())
            await channel.drain()
        except (ConnectionError, OSError, h11.LocalProtocolError) as e:
            logger.debug("send_failed status=%d err=%r", status, e)


def serve(app: App, port: int, host: str = "0.0.0.0") -> None:
    """Bind ``host:port`` and serve ``app`` until interrupted."""
    server = HttpTcpServer(app, host, port)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("shutting down")
