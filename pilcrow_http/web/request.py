from __future__ import annotations

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

from pilcrow_http.core.cookies import parse_cookies
from pilcrow_http.core.headers import ServerHeaders
from pilcrow_http.core.locals import Locals
from pilcrow_http.errors import BodyParseError


def split_url(url: str) -> Tuple[str, str]:
    """Return ``(pathname, query)`` for an origin-form or absolute URL.

    An absolute URL only keeps the first path segment after the host:
    ``https://host/a/b?x=1`` gives ``("/a", "x=1")``.
    """
    if url.startswith("http://") or url.startswith("https://"):
        rest, _, query = url.split("://", 1)[1].partition("?")
        segments = rest.split("/")
        if len(segments) < 2:
            return "/", query
        return "/" + segments[1], query
    pathname, _, query = url.partition("?")
    return pathname, query


class ServerRequest:
    def __init__(self, method: str, url: str, body: Optional[AsyncIterable[bytes]] = None) -> None:
        self.method = method
        self.url = url
        self.body = body
        self.pathname, self.search = split_url(url)
        self.query_items: List[Tuple[str, str]] = parse_qsl(self.search, keep_blank_values=True)
        self.query: Dict[str, str] = {}
        for name, value in self.query_items:
            self.query.setdefault(name, value)
        self.headers = ServerHeaders()
        self.locals = Locals()
        self._body_used = False

    @property
    def body_used(self) -> bool:
        return self._body_used

    def query_all(self, name: str) -> List[str]:
        return [v for k, v in self.query_items if k == name]

    async def stream(self) -> AsyncIterator[bytes]:
        # single pass: whoever drains first gets the bytes
        if self._body_used or self.body is None:
            return
        self._body_used = True
        async for chunk in self.body:
            if chunk:
                yield bytes(chunk)

    async def buffer(self) -> bytes:
        buf = bytearray()
        async for chunk in self.stream():
            buf.extend(chunk)
        return bytes(buf)

    async def text(self) -> str:
        return (await self.buffer()).decode("utf-8", errors="replace")

    async def json(self) -> Any:
        raw = await self.text()
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise BodyParseError(f"invalid json body: {e.msg}") from e

    def get_cookie(self, name: str) -> Optional[str]:
        return parse_cookies(self.headers.get("Cookie") or "").get(name)

    def __repr__(self) -> str:
        return f"ServerRequest(method={self.method!r}, url={self.url!r})"
