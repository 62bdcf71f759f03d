import time
from collections import Counter
from typing import Dict, Optional

from pilcrow_http.web.core import Middleware, Next
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse


def status_class(status: Optional[int]) -> str:
    """``"2xx"`` style bucket; ``"none"`` when no head was flushed."""
    if status is None:
        return "none"
    return f"{status // 100}xx"


class Metrics:
    """Per-App request statistics, read off each finished response.

    Updated from the event loop only, one ``observe`` per request.
    """

    def __init__(self) -> None:
        self.started_at = time.time()
        self.in_flight = 0
        self.requests = 0
        self.failures = 0
        self.disconnects = 0
        self.bytes_out = 0
        self.statuses: Counter = Counter()
        self.slowest_ms = 0.0
        self._total_ms = 0.0

    def observe(self, response: ServerResponse, elapsed_ms: float, failed: bool = False) -> None:
        self.requests += 1
        self.bytes_out += response.bytes_written
        self.statuses[status_class(response.status)] += 1
        if failed:
            self.failures += 1
        # transports resolve ``closed`` after the chain unless the client left first
        if response.closed.is_set():
            self.disconnects += 1
        self._total_ms += elapsed_ms
        self.slowest_ms = max(self.slowest_ms, elapsed_ms)

    @property
    def mean_ms(self) -> float:
        return self._total_ms / self.requests if self.requests else 0.0

    def by_class(self) -> Dict[str, int]:
        return dict(sorted(self.statuses.items()))

    def render(self, prefix: str = "pilcrow") -> str:
        lines = [
            f"{prefix}_requests_total {self.requests}",
            f"{prefix}_requests_in_flight {self.in_flight}",
        ]
        for cls, n in self.by_class().items():
            lines.append(f'{prefix}_responses_total{{class="{cls}"}} {n}')
        lines += [
            f"{prefix}_handler_failures_total {self.failures}",
            f"{prefix}_client_disconnects_total {self.disconnects}",
            f"{prefix}_response_bytes_total {self.bytes_out}",
            f"{prefix}_response_ms_mean {self.mean_ms:.3f}",
            f"{prefix}_response_ms_max {self.slowest_ms:.3f}",
        ]
        return "\n".join(lines) + "\n"


def metrics_middleware(metrics: Metrics) -> Middleware:
    async def _middleware(request: ServerRequest, response: ServerResponse, next: Next) -> None:
        metrics.in_flight += 1
        t0 = time.perf_counter()
        failed = False
        try:
            await next()
        except Exception:
            failed = True
            raise
        finally:
            metrics.in_flight -= 1
            metrics.observe(response, (time.perf_counter() - t0) * 1000, failed)

    return _middleware
