from __future__ import annotations

from typing import AsyncIterator, Iterable, List, Optional, Tuple

from pilcrow_http.transport.base import HeaderEntries, ResponseWriter
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse


class RecordingWriter(ResponseWriter):
    """In-memory transport: keeps every head and body write in order."""

    def __init__(self) -> None:
        self.heads: List[Tuple[int, List[Tuple[str, List[str]]]]] = []
        self.chunks: List[bytes] = []

    def write_head(self, status: int, headers: HeaderEntries) -> bool:
        self.heads.append((status, [(name, list(values)) for name, values in headers]))
        return True

    def write_body(self, data: bytes) -> None:
        self.chunks.append(bytes(data))

    @property
    def status(self) -> Optional[int]:
        return self.heads[0][0] if self.heads else None

    @property
    def headers(self) -> dict:
        return dict(self.heads[0][1]) if self.heads else {}

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)


async def chunks(parts: Iterable[bytes]) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


def make_request(method: str = "GET", url: str = "/", body: Optional[Iterable[bytes]] = None) -> ServerRequest:
    return ServerRequest(method, url, chunks(body) if body is not None else None)


def make_response() -> Tuple[ServerResponse, RecordingWriter]:
    writer = RecordingWriter()
    return ServerResponse(writer), writer
