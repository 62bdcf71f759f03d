from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

HeaderEntries = Sequence[Tuple[str, List[str]]]


class ResponseWriter(ABC):
    """Write side of a transport, one instance per response."""

    @abstractmethod
    def write_head(self, status: int, headers: HeaderEntries) -> bool:
        """Emit the head; False when the transport dropped it."""
        raise NotImplementedError

    @abstractmethod
    def write_body(self, data: bytes) -> None:
        raise NotImplementedError


class TransportServer(ABC):
    @abstractmethod
    async def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def serve_forever(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError
