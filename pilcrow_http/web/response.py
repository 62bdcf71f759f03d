from __future__ import annotations

import json
from typing import Any, Callable, Optional

from pilcrow_http.core.cookies import CookieAttributes, serialize_cookie
from pilcrow_http.core.enums import ResponseState
from pilcrow_http.core.headers import ServerHeaders
from pilcrow_http.core.signal import CompletionSignal
from pilcrow_http.transport.base import ResponseWriter


class ResponseBody:
    def __init__(self, write: Callable[[bytes], None]) -> None:
        self._write = write

    def write(self, data: bytes) -> None:
        self._write(data)

    def write_string(self, data: str) -> None:
        self._write(data.encode("utf-8"))


class ServerResponse:
    """Transport-independent response.

    ``write_head`` hands the status and a snapshot of ``headers`` to the
    transport and returns the body writer. Header changes made afterwards
    never reach the wire. A second flush is up to the transport; ``status``
    only changes when the transport accepted the head.
    """

    def __init__(self, writer: ResponseWriter) -> None:
        self.headers = ServerHeaders()
        self.closed = CompletionSignal()
        self.status: Optional[int] = None
        self.bytes_written = 0
        self._writer = writer

    @property
    def head_sent(self) -> bool:
        return self.status is not None

    @property
    def state(self) -> ResponseState:
        if self.closed.is_set():
            return ResponseState.CLOSED
        if self.head_sent:
            return ResponseState.HEAD_SENT
        return ResponseState.OPEN

    def close(self) -> None:
        self.closed.resolve()

    def write_head(self, status: int) -> ResponseBody:
        code = int(status)
        if self._writer.write_head(code, list(self.headers.entries())):
            self.status = code
        return ResponseBody(self._write_body)

    def _write_body(self, data: bytes) -> None:
        self._writer.write_body(data)
        self.bytes_written += len(data)

    def send_text(self, status: int, data: str) -> None:
        self.headers.set("Content-Type", "text/plain")
        self.write_head(status).write_string(data)

    def send_html(self, status: int, data: str) -> None:
        self.headers.set("Content-Type", "text/html")
        self.write_head(status).write_string(data)

    def send_json(self, status: int, data: Any) -> None:
        self.headers.set("Content-Type", "application/json")
        self.write_head(status).write_string(json.dumps(data, separators=(",", ":"), ensure_ascii=False))

    def redirect(self, location: str, status: int = 302) -> None:
        self.headers.set("Location", location)
        self.write_head(status)

    def set_cookie(self, name: str, value: str, attributes: Optional[CookieAttributes] = None) -> ServerResponse:
        self.headers.add("Set-Cookie", serialize_cookie(name, value, attributes))
        return self

    def __repr__(self) -> str:
        return f"ServerResponse(status={self.status!r}, state={self.state.value})"
