import asyncio
import logging

from pilcrow_http.web.core import App
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse

logger = logging.getLogger("pilcrow.server")

TICK_SECONDS = 0.5


async def index(request: ServerRequest, response: ServerResponse) -> None:
    response.send_text(200, "Hello world!")


async def stream(request: ServerRequest, response: ServerResponse) -> None:
    response.headers.set("Content-Type", "text/plain")
    response.headers.set("X-Content-Type-Options", "nosniff")
    body = response.write_head(200)

    async def tick() -> None:
        while True:
            body.write_string("hello\n")
            await asyncio.sleep(TICK_SECONDS)

    task = asyncio.create_task(tick())
    try:
        await response.closed
    finally:
        task.cancel()
    logger.debug("stream closed")


def register(app: App) -> None:
    app.get("/", index).get("/stream", stream)
