import logging
import time
from typing import Optional

from pilcrow_http.web.core import Middleware, Next
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse


def access_log(logger: Optional[logging.Logger] = None) -> Middleware:
    """One log line per request, written after the rest of the chain ran."""
    log = logger or logging.getLogger("pilcrow.access")

    async def _middleware(request: ServerRequest, response: ServerResponse, next: Next) -> None:
        t0 = time.perf_counter()
        try:
            await next()
        except Exception as e:
            log.error("req method=%s path=%s err=%r", request.method, request.pathname, e)
            raise
        # 0 means the chain stopped without flushing a head
        log.info(
            "req method=%s path=%s status=%d bytes=%d ms=%.2f",
            request.method,
            request.pathname,
            response.status or 0,
            response.bytes_written,
            (time.perf_counter() - t0) * 1000,
        )

    return _middleware
