from __future__ import annotations

from typing import Any, Dict, Generic, Optional, TypeVar, overload

T = TypeVar("T")

_MISSING: Any = object()


class LocalKey(Generic[T]):
    """Declared slot in a request's ``Locals`` bag.

    Modules create keys at import time and read/write through them, e.g.::

        SESSION: LocalKey[Session] = LocalKey("session")

        request.locals[SESSION] = session
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"LocalKey({self.name!r})"


class Locals:
    """Per-request store keyed by ``LocalKey`` identity, not by name."""

    def __init__(self) -> None:
        self._values: Dict[LocalKey[Any], Any] = {}

    def __getitem__(self, key: LocalKey[T]) -> T:
        try:
            return self._values[key]
        except KeyError:
            raise KeyError(key.name) from None

    def __setitem__(self, key: LocalKey[T], value: T) -> None:
        self._values[key] = value

    def __delitem__(self, key: LocalKey[Any]) -> None:
        try:
            del self._values[key]
        except KeyError:
            raise KeyError(key.name) from None

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    @overload
    def get(self, key: LocalKey[T]) -> Optional[T]: ...

    @overload
    def get(self, key: LocalKey[T], default: T) -> T: ...

    def get(self, key, default=None):
        return self._values.get(key, default)

    def pop(self, key: LocalKey[T], default: Any = _MISSING) -> T:
        if default is _MISSING:
            try:
                return self._values.pop(key)
            except KeyError:
                raise KeyError(key.name) from None
        return self._values.pop(key, default)
