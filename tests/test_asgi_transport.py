from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from pilcrow_http.transport.asgi import AsgiAdapter, AsgiResponseWriter, as_asgi, request_target
from pilcrow_http.web.core import App
from pilcrow_http.web.metrics import Metrics, metrics_middleware
from pilcrow_http.web.response import ServerResponse

Message = Dict[str, Any]


def http_scope(method: str = "GET", path: str = "/", query: bytes = b"", headers: Optional[list] = None) -> Message:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "query_string": query,
        "headers": headers if headers is not None else [(b"host", b"example.test")],
        "server": ("127.0.0.1", 8000),
    }


class FakePeer:
    """Feeds ``receive`` from a list and records everything sent."""

    def __init__(self, incoming: List[Message], hold: bool = True) -> None:
        self.incoming = list(incoming)
        self.sent: List[Message] = []
        self.hold = hold
        self.disconnect = asyncio.Event()

    async def receive(self) -> Message:
        if self.incoming:
            return self.incoming.pop(0)
        if self.hold:
            await self.disconnect.wait()
        return {"type": "http.disconnect"}

    async def send(self, message: Message) -> None:
        self.sent.append(message)

    @property
    def status(self) -> Optional[int]:
        for m in self.sent:
            if m["type"] == "http.response.start":
                return m["status"]
        return None

    @property
    def headers(self) -> dict:
        for m in self.sent:
            if m["type"] == "http.response.start":
                return {k.decode(): v.decode() for k, v in m["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.sent if m["type"] == "http.response.body")


def call(app: App, scope: Message, incoming: Optional[List[Message]] = None) -> FakePeer:
    peer = FakePeer(incoming if incoming is not None else [{"type": "http.request", "body": b"", "more_body": False}])

    async def main() -> None:
        await asyncio.wait_for(as_asgi(app)(scope, peer.receive, peer.send), timeout=5)

    asyncio.run(main())
    return peer


@pytest.mark.parametrize(
    "scope,expected",
    [
        (http_scope(path="/a/b", query=b"x=1"), "/a/b?x=1"),
        (http_scope(), "/"),
        ({"type": "http", "headers": []}, "/"),
        (dict(http_scope(path="/a b"), raw_path=b"/a%20b"), "/a%20b"),
        (dict(http_scope(path="/a b")), "/a%20b"),
        (dict(http_scope(path="/x"), scheme="https"), "/x"),
    ],
)
def test_request_target(scope: Message, expected: str) -> None:
    assert request_target(scope) == expected


def test_request_fields_come_from_scope() -> None:
    seen: Dict[str, Any] = {}

    async def handler(req, res) -> None:
        seen["method"] = req.method
        seen["url"] = req.url
        seen["pathname"] = req.pathname
        seen["q"] = req.query.get("q")
        seen["agent"] = req.headers.get("user-agent")
        res.send_text(200, "ok")

    app = App().get("/find", handler)
    scope = http_scope(path="/find", query=b"q=tea", headers=[(b"host", b"h.test"), (b"user-agent", b"t/1")])
    peer = call(app, scope)

    assert seen == {
        "method": "GET",
        "url": "/find?q=tea",
        "pathname": "/find",
        "q": "tea",
        "agent": "t/1",
    }
    assert peer.status == 200
    assert peer.body == b"ok"


def test_response_messages_in_order() -> None:
    async def handler(req, res) -> None:
        res.headers.set("X-One", "1")
        res.headers.add("Set-Cookie", "a=1")
        res.headers.add("Set-Cookie", "b=2")
        body = res.write_head(201)
        body.write(b"ab")
        body.write_string("cd")

    peer = call(App().get("/", handler), http_scope())

    kinds = [m["type"] for m in peer.sent]
    assert kinds == ["http.response.start", "http.response.body", "http.response.body", "http.response.body"]
    assert peer.sent[0]["status"] == 201
    assert (b"set-cookie", b"a=1") in [(k.lower(), v) for k, v in peer.sent[0]["headers"]]
    assert (b"set-cookie", b"b=2") in [(k.lower(), v) for k, v in peer.sent[0]["headers"]]
    assert peer.body == b"abcd"
    assert peer.sent[-1]["more_body"] is False


def test_request_body_is_streamed_from_messages() -> None:
    async def handler(req, res) -> None:
        res.send_text(200, (await req.text()).upper())

    incoming = [
        {"type": "http.request", "body": b"hel", "more_body": True},
        {"type": "http.request", "body": b"", "more_body": True},
        {"type": "http.request", "body": b"lo", "more_body": False},
    ]
    peer = call(App().post("/", handler), http_scope(method="POST"), incoming)
    assert peer.body == b"HELLO"


def test_unmatched_route_is_404() -> None:
    peer = call(App(), http_scope(path="/missing"))
    assert peer.status == 404
    assert peer.body == b""


def test_empty_method_is_405() -> None:
    peer = call(App().all("/", lambda req, res: None), http_scope(method=""))
    assert peer.status == 405


def test_handler_without_head_gets_implicit_200() -> None:
    peer = call(App().get("/", lambda req, res: None), http_scope())
    assert peer.status == 200
    assert peer.sent[-1] == {"type": "http.response.body", "body": b"", "more_body": False}


def test_second_head_is_ignored() -> None:
    async def handler(req, res) -> None:
        res.write_head(200).write_string("a")
        res.write_head(500).write_string("b")

    peer = call(App().get("/", handler), http_scope())
    starts = [m for m in peer.sent if m["type"] == "http.response.start"]
    assert [m["status"] for m in starts] == [200]
    assert peer.body == b"ab"


def test_multi_segment_route_is_reachable() -> None:
    app = App().get("/users/42/posts", lambda req, res: res.send_text(200, req.pathname))
    peer = call(app, http_scope(path="/users/42/posts", query=b"page=2"))
    assert peer.status == 200
    assert peer.body == b"/users/42/posts"


def test_ignored_second_head_keeps_first_status() -> None:
    seen: List[int] = []

    async def handler(req, res) -> None:
        res.write_head(200).write_string("a")
        res.write_head(500)
        seen.append(res.status)

    m = Metrics()
    peer = call(App().use(metrics_middleware(m)).get("/", handler), http_scope())
    assert peer.status == 200
    assert seen == [200]
    assert m.by_class() == {"2xx": 1}


def test_writes_after_send_failure_are_dropped() -> None:
    async def broken(message: Message) -> None:
        raise ConnectionResetError("peer gone")

    async def main() -> None:
        writer = AsgiResponseWriter()
        res = ServerResponse(writer)
        sender = asyncio.create_task(writer.run(broken, res))
        body = res.write_head(200)
        await asyncio.wait_for(sender, timeout=1)

        assert res.closed.is_set()
        for _ in range(100):
            body.write(b"tick")
        writer.finish()
        assert writer.pending == 0
        assert writer.write_head(500, []) is False

    asyncio.run(main())


def test_disconnect_resolves_closed() -> None:
    resolved: List[bool] = []

    async def handler(req, res) -> None:
        res.write_head(200).write_string("tick")
        await res.closed
        resolved.append(res.closed.is_set())

    app = App().get("/stream", handler)
    peer = FakePeer([{"type": "http.request", "body": b"", "more_body": False}])

    async def main() -> None:
        task = asyncio.create_task(as_asgi(app)(http_scope(path="/stream"), peer.receive, peer.send))
        await asyncio.sleep(0.05)
        assert not task.done()
        peer.disconnect.set()
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(main())
    assert resolved == [True]
    assert peer.body.startswith(b"tick")


def test_handler_exception_is_reraised() -> None:
    def boom(req, res) -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        call(App().get("/", boom), http_scope())


def test_lifespan_is_acknowledged() -> None:
    peer = FakePeer([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}], hold=False)

    async def main() -> None:
        await AsgiAdapter(App())({"type": "lifespan"}, peer.receive, peer.send)

    asyncio.run(main())
    assert [m["type"] for m in peer.sent] == ["lifespan.startup.complete", "lifespan.shutdown.complete"]


def test_unsupported_scope_raises() -> None:
    peer = FakePeer([])

    with pytest.raises(RuntimeError):
        asyncio.run(AsgiAdapter(App())({"type": "websocket"}, peer.receive, peer.send))
