from __future__ import annotations

import asyncio
import logging

import pytest

from helpers import make_request, make_response
from pilcrow_http.server.plugins import metrics as metrics_plugin
from pilcrow_http.web.core import App
from pilcrow_http.web.metrics import Metrics, metrics_middleware, status_class
from pilcrow_http.web.middleware import access_log


def dispatch(app: App, method: str, url: str):
    res, writer = make_response()
    asyncio.run(app.handle(make_request(method, url), res))
    return res, writer


@pytest.mark.parametrize(
    "status,cls",
    [(200, "2xx"), (204, "2xx"), (302, "3xx"), (404, "4xx"), (503, "5xx"), (None, "none")],
)
def test_status_class(status, cls: str) -> None:
    assert status_class(status) == cls


def test_observe_reads_response_state() -> None:
    m = Metrics()
    ok, _ = make_response()
    ok.send_text(200, "hello")
    gone, _ = make_response()
    gone.write_head(200).write(b"partial")
    gone.close()

    m.observe(ok, 2.0)
    m.observe(gone, 4.0)

    assert m.requests == 2
    assert m.bytes_out == 12
    assert m.by_class() == {"2xx": 2}
    assert m.disconnects == 1
    assert m.mean_ms == pytest.approx(3.0)
    assert m.slowest_ms == pytest.approx(4.0)


def test_middleware_buckets_statuses_and_failures() -> None:
    m = Metrics()

    def boom(req, res) -> None:
        raise RuntimeError("boom")

    app = App().use(metrics_middleware(m))
    app.get("/ok", lambda req, res: res.send_text(200, "hello"))
    app.get("/down", lambda req, res: res.send_text(503, "down"))
    app.get("/quiet", lambda req, res: None)
    app.get("/boom", boom)

    dispatch(app, "GET", "/ok")
    dispatch(app, "GET", "/down")
    dispatch(app, "GET", "/quiet")
    with pytest.raises(RuntimeError):
        dispatch(app, "GET", "/boom")

    assert m.requests == 4
    assert m.by_class() == {"2xx": 1, "5xx": 1, "none": 2}
    assert m.failures == 1
    assert m.in_flight == 0
    assert m.bytes_out == 9


def test_in_flight_counts_running_requests() -> None:
    m = Metrics()
    seen = []

    async def slow(req, res) -> None:
        seen.append(m.in_flight)
        await asyncio.sleep(0.01)
        res.send_text(200, "ok")

    app = App().use(metrics_middleware(m)).get("/", slow)

    async def main() -> None:
        pairs = [make_response() for _ in range(3)]
        await asyncio.gather(*(app.handle(make_request("GET", "/"), res) for res, _ in pairs))

    asyncio.run(main())
    assert max(seen) == 3
    assert m.in_flight == 0


def test_render_lines() -> None:
    m = Metrics()
    res, _ = make_response()
    res.send_text(404, "nope")
    m.observe(res, 1.5)

    text = m.render(prefix="t")
    assert "t_requests_total 1\n" in text
    assert 't_responses_total{class="4xx"} 1\n' in text
    assert "t_response_bytes_total 4\n" in text
    assert "t_response_ms_max 1.500\n" in text
    assert text.endswith("\n")


def test_metrics_plugin_exposes_endpoint() -> None:
    app = App()
    m = metrics_plugin.register(app)
    app.get("/", lambda req, res: res.send_text(200, "hi"))

    dispatch(app, "GET", "/")
    _, writer = dispatch(app, "GET", "/metrics")

    assert writer.status == 200
    assert writer.headers["content-type"] == ["text/plain; version=0.0.4"]
    assert b"pilcrow_requests_total 1\n" in writer.body
    assert b'pilcrow_responses_total{class="2xx"} 1\n' in writer.body
    assert m.requests == 2


def test_access_log_reports_status_after_chain(caplog) -> None:
    app = App().use(access_log()).get("/teapot", lambda req, res: res.send_text(418, "short and stout"))

    with caplog.at_level(logging.INFO, logger="pilcrow.access"):
        dispatch(app, "GET", "/teapot")

    lines = [r.getMessage() for r in caplog.records if r.name == "pilcrow.access"]
    assert len(lines) == 1
    assert lines[0].startswith("req method=GET path=/teapot status=418 bytes=15 ")


def test_access_log_logs_and_reraises(caplog) -> None:
    def boom(req, res) -> None:
        raise KeyError("k")

    app = App().use(access_log()).get("/", boom)

    with caplog.at_level(logging.INFO, logger="pilcrow.access"):
        with pytest.raises(KeyError):
            dispatch(app, "GET", "/")

    errors = [r for r in caplog.records if r.name == "pilcrow.access" and r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "path=/" in errors[0].getMessage()
