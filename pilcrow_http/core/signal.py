import asyncio
from typing import Any, Generator


class CompletionSignal:
    """One-shot notification with no payload.

    ``resolve`` may be called any number of times; only the first call has
    an effect. Awaiting the signal suspends until it has been resolved.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._resolutions = 0

    def resolve(self) -> bool:
        if self._event.is_set():
            return False
        self._resolutions += 1
        self._event.set()
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def resolutions(self) -> int:
        return self._resolutions

    async def wait(self) -> None:
        await self._event.wait()

    def __await__(self) -> Generator[Any, None, None]:
        return self.wait().__await__()
